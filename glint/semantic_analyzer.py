# glint/semantic_analyzer.py
import logging
from contextlib import contextmanager
from typing import Dict, Iterator, List, Optional

from . import gl_ast
from .gl_ast import ASTNode, Visibility
from .diagnostics import Diagnostic, undefined, unused

log = logging.getLogger('semantic')

class AnalysisError(Exception):
    """Internal contract violation in the checker. Never a user-facing finding."""
    def __init__(self, message: str, node: Optional[ASTNode] = None):
        loc = ""
        if node is not None and node.line is not None and node.col is not None:
            loc = f" (at {node.line}:{node.col})"
        super().__init__(message + loc)
        self.node = node

class Binding:
    """Usage tracking for one declared name."""
    def __init__(self, visibility: Visibility):
        self.visibility = visibility
        self.usage_count: int = 0

    def __repr__(self):
        return f"Binding({self.visibility.value}, used={self.usage_count})"

Scope = Dict[str, Binding]

class ScopeStack:
    """Stack of lexical scopes. The innermost scope is the last element."""
    def __init__(self):
        self.scopes: List[Scope] = []

    def __len__(self):
        return len(self.scopes)

    def push(self):
        log.debug(f"Entering new scope (level {len(self.scopes)})")
        self.scopes.append({})

    def pop(self) -> Scope:
        if not self.scopes:
            raise AnalysisError("Attempted to pop a scope from an empty scope stack")
        log.debug(f"Exiting scope (level {len(self.scopes) - 1})")
        return self.scopes.pop()

    def declare(self, name: str, visibility: Visibility):
        """Bind name in the innermost scope, replacing any binding of the same name there."""
        if not self.scopes:
            raise AnalysisError(f"Attempted to declare '{name}' with no open scope")
        log.debug(f"Declaring '{name}' ({visibility.value}) in scope level {len(self.scopes) - 1}")
        self.scopes[-1][name] = Binding(visibility)

    def _find(self, name: str) -> Optional[Binding]:
        for scope in reversed(self.scopes):
            if name in scope:
                return scope[name]
        return None

    def use(self, name: str) -> bool:
        """Record a reference to name in the innermost scope that binds it."""
        binding = self._find(name)
        if binding is None:
            log.debug(f"Lookup of '{name}' failed")
            return False
        binding.usage_count += 1
        log.debug(f"Marked '{name}' as used: {binding}")
        return True

    def contains(self, name: str) -> bool:
        return self._find(name) is not None

class AnalysisState:
    """Scope stack and diagnostics for a single analysis run."""
    def __init__(self):
        self.scopes = ScopeStack()
        self.diagnostics: List[Diagnostic] = []

    def report(self, diagnostic: Diagnostic):
        log.debug(f"Reporting {diagnostic}")
        self.diagnostics.append(diagnostic)

    @contextmanager
    def scope(self, description: str, check_unused: bool = True) -> Iterator[None]:
        """Open a scope for the duration of the block.

        Unused private bindings of the scope are reported when it closes, even if the
        block exits with an exception.
        """
        self.scopes.push()
        try:
            yield
        finally:
            closed = self.scopes.pop()
            if check_unused:
                self._check_unused(closed, description)

    def _check_unused(self, scope: Scope, description: str):
        log.debug(f"Checking for unused bindings in {description}...")
        for name, binding in scope.items():
            if binding.visibility is Visibility.PRIVATE and binding.usage_count == 0:
                self.report(unused(name))

class SemanticAnalyzer:
    """Checks a module for undefined references and unused private bindings.

    An analyzer instance owns the state of exactly one run; use a new instance
    (or the module level ``analyze``) for every module.
    """
    def __init__(self):
        self.state = AnalysisState()
        self._finished = False
        log.debug("SemanticAnalyzer initialized.")

    def analyze(self, module: gl_ast.Module) -> List[Diagnostic]:
        """Entry point. Returns the diagnostics in the order they were detected."""
        if self._finished:
            raise AnalysisError("SemanticAnalyzer instances are single use")
        self._finished = True
        log.info(f"Starting semantic analysis of {len(module.functions)} function(s)")
        # Function names live in the module scope, which is never checked for unused bindings
        with self.state.scope("module scope", check_unused=False):
            for function in module.functions:
                self._visit(function)
        log.info(f"Semantic analysis finished with {len(self.state.diagnostics)} diagnostic(s)")
        return list(self.state.diagnostics)

    def _visit(self, node: ASTNode):
        """Dispatch to the appropriate visit method."""
        method_name = f'visit_{type(node).__name__}'
        visitor = getattr(self, method_name, self.generic_visit)
        log.debug(f"Visiting {type(node).__name__} node using {visitor.__name__}")
        visitor(node)

    def generic_visit(self, node: ASTNode):
        """Fallback for node types without a visit method."""
        if isinstance(node, (gl_ast.UnsupportedExpression, gl_ast.UnsupportedPattern)):
            log.debug(f"{type(node).__name__} is outside the checked subset, skipping")
            return
        raise AnalysisError(f"No analysis rule for node type: {type(node).__name__}", node)

    def _visit_statements(self, statements: List[gl_ast.Statement]):
        for stmt in statements:
            self._visit(stmt)

    # --- Functions & Scoping ---
    def visit_Function(self, node: gl_ast.Function):
        log.debug(f"Analyzing Function: {node.name}")
        # Declared before the body so the function can refer to itself
        self.state.scopes.declare(node.name, node.visibility)

        with self.state.scope(f"parameters of {node.name}"):
            for param in node.parameters:
                if param.is_discarded:
                    log.debug(f"Parameter '{param.name}' is discarded, not binding it")
                    continue
                self.state.scopes.declare(param.name, Visibility.PRIVATE)

            with self.state.scope(f"body of {node.name}"):
                self._visit_statements(node.body)

        log.debug(f"Finished analyzing Function: {node.name}")

    # --- Statements ---
    def visit_Assignment(self, node: gl_ast.Assignment):
        # The value side is not checked for references
        self._visit(node.pattern)

    def visit_Use(self, node: gl_ast.Use):
        for pattern in node.patterns:
            self._visit(pattern)

    def visit_ExpressionStatement(self, node: gl_ast.ExpressionStatement):
        self._visit(node.expression)

    # --- Patterns ---
    def visit_PatternVariable(self, node: gl_ast.PatternVariable):
        self.state.scopes.declare(node.name, Visibility.PRIVATE)

    def visit_PatternTuple(self, node: gl_ast.PatternTuple):
        for element in node.elements:
            self._visit(element)

    def visit_PatternList(self, node: gl_ast.PatternList):
        for element in node.elements:
            self._visit(element)
        if node.tail is not None:
            self._visit(node.tail)

    def visit_PatternAssignment(self, node: gl_ast.PatternAssignment):
        self._visit(node.pattern)
        self.state.scopes.declare(node.name, Visibility.PRIVATE)

    # --- Expressions ---
    def visit_Variable(self, node: gl_ast.Variable):
        if not self.state.scopes.use(node.name):
            self.state.report(undefined(node.name))

    def visit_NegateInt(self, node: gl_ast.NegateInt):
        self._visit(node.value)

    def visit_NegateBool(self, node: gl_ast.NegateBool):
        self._visit(node.value)

    def visit_Block(self, node: gl_ast.Block):
        with self.state.scope("block"):
            self._visit_statements(node.statements)

    def visit_Tuple(self, node: gl_ast.Tuple):
        for element in node.elements:
            self._visit(element)


def analyze(module: gl_ast.Module) -> List[Diagnostic]:
    """Check a parsed module and return its diagnostics in detection order."""
    return SemanticAnalyzer().analyze(module)
