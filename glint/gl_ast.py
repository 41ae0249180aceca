# glint/gl_ast.py
import enum
from dataclasses import dataclass, field
from typing import List, Optional


class Visibility(enum.Enum):
    PRIVATE = "private"
    PUBLIC = "public"


@dataclass
class ASTNode:
    # Position of the first token of the node. Not part of node equality so trees
    # built by hand in tests compare equal to parsed ones.
    line: Optional[int] = field(default=None, kw_only=True, repr=False, compare=False)
    col: Optional[int] = field(default=None, kw_only=True, repr=False, compare=False)

    def set_pos(self, line: Optional[int], col: Optional[int]):
        self.line = line
        self.col = col
        return self

# --- Patterns ---
@dataclass
class PatternVariable(ASTNode):
    name: str
    def __repr__(self):
        return f"PVar({self.name})"

@dataclass
class PatternTuple(ASTNode):
    elements: List['Pattern']
    def __repr__(self):
        return f"PTuple({', '.join(repr(e) for e in self.elements)})"

@dataclass
class PatternList(ASTNode):
    elements: List['Pattern']
    tail: Optional['Pattern'] = None # The pattern after '..', if any
    def __repr__(self):
        tail_repr = f", ..{self.tail!r}" if self.tail is not None else ""
        return f"PList([{', '.join(repr(e) for e in self.elements)}]{tail_repr})"

@dataclass
class PatternAssignment(ASTNode):
    """Represents '<pattern> as <name>'."""
    pattern: 'Pattern'
    name: str
    def __repr__(self):
        return f"PAs({self.pattern!r} as {self.name})"

@dataclass
class PatternDiscard(ASTNode):
    name: str # Includes the leading underscore; empty for a bare '..' list tail
    def __repr__(self):
        return f"PDiscard({self.name})"

@dataclass
class PatternInt(ASTNode):
    value: str
    def __repr__(self):
        return f"PInt({self.value})"

@dataclass
class PatternFloat(ASTNode):
    value: str
    def __repr__(self):
        return f"PFloat({self.value})"

@dataclass
class PatternString(ASTNode):
    value: str
    def __repr__(self):
        return f'PString("{self.value}")'

@dataclass
class PatternConstructor(ASTNode):
    name: str # May be module qualified, e.g. 'option.Some'
    arguments: List['Pattern'] = field(default_factory=list)
    def __repr__(self):
        return f"PConstructor({self.name}({', '.join(repr(a) for a in self.arguments)}))"

# Patterns that never introduce a binding
UnsupportedPattern = PatternDiscard | PatternInt | PatternFloat | PatternString | PatternConstructor

Pattern = PatternVariable | PatternTuple | PatternList | PatternAssignment | UnsupportedPattern

# --- Expressions ---
@dataclass
class Variable(ASTNode):
    name: str
    def __repr__(self):
        return f"Var({self.name})"

@dataclass
class NegateInt(ASTNode):
    value: 'Expression'
    def __repr__(self):
        return f"Neg({self.value!r})"

@dataclass
class NegateBool(ASTNode):
    value: 'Expression'
    def __repr__(self):
        return f"Not({self.value!r})"

@dataclass
class Block(ASTNode):
    statements: List['Statement']
    def __repr__(self):
        return f"Block({self.statements!r})"

@dataclass
class Tuple(ASTNode):
    elements: List['Expression']
    def __repr__(self):
        return f"Tuple({', '.join(repr(e) for e in self.elements)})"

@dataclass
class Int(ASTNode):
    value: str # Source spelling, underscores kept
    def __repr__(self):
        return f"Int({self.value})"

@dataclass
class Float(ASTNode):
    value: str
    def __repr__(self):
        return f"Float({self.value})"

@dataclass
class String(ASTNode):
    value: str
    def __repr__(self):
        return f'String("{self.value}")'

@dataclass
class ListExpr(ASTNode):
    elements: List['Expression']
    tail: Optional['Expression'] = None # The '..rest' spread, if any
    def __repr__(self):
        tail_repr = f", ..{self.tail!r}" if self.tail is not None else ""
        return f"List([{', '.join(repr(e) for e in self.elements)}]{tail_repr})"

@dataclass
class Constructor(ASTNode):
    """A record constructor or variant used as a value, e.g. 'Nil', 'Ok'."""
    name: str
    def __repr__(self):
        return f"Constructor({self.name})"

@dataclass
class Argument(ASTNode):
    value: 'Expression'
    label: Optional[str] = None
    def __repr__(self):
        return f"{self.label}: {self.value!r}" if self.label else repr(self.value)

@dataclass
class Call(ASTNode):
    function: 'Expression'
    arguments: List[Argument]
    def __repr__(self):
        return f"Call({self.function!r}({', '.join(repr(a) for a in self.arguments)}))"

@dataclass
class FieldAccess(ASTNode):
    container: 'Expression'
    label: str # Field name, or the index for tuple access
    def __repr__(self):
        return f"Field({self.container!r}.{self.label})"

@dataclass
class BinaryOperator(ASTNode):
    operator: str # Operator spelling, e.g. '+', '<>', '|>'
    left: 'Expression'
    right: 'Expression'
    def __repr__(self):
        return f"Op({self.left!r} {self.operator} {self.right!r})"

@dataclass
class Clause(ASTNode):
    # One list of patterns per case subject, one such list per '|' alternative
    alternatives: List[List[Pattern]]
    guard: Optional['Expression']
    body: 'Expression'
    def __repr__(self):
        alts = " | ".join(", ".join(repr(p) for p in alt) for alt in self.alternatives)
        guard_repr = f" if {self.guard!r}" if self.guard is not None else ""
        return f"Clause({alts}{guard_repr} -> {self.body!r})"

@dataclass
class Case(ASTNode):
    subjects: List['Expression']
    clauses: List[Clause]
    def __repr__(self):
        return f"Case({self.subjects!r}, {self.clauses!r})"

@dataclass
class Fn(ASTNode):
    """Anonymous function 'fn(<params>) { <body> }'."""
    parameters: List['Parameter']
    body: List['Statement']
    def __repr__(self):
        return f"Fn({self.parameters!r}, {self.body!r})"

@dataclass
class Todo(ASTNode):
    message: Optional['Expression'] = None
    def __repr__(self):
        return f"Todo({self.message!r})" if self.message is not None else "Todo"

@dataclass
class Panic(ASTNode):
    message: Optional['Expression'] = None
    def __repr__(self):
        return f"Panic({self.message!r})" if self.message is not None else "Panic"

# Expressions that neither bind nor reference names as far as the checker is concerned
UnsupportedExpression = (Int | Float | String | ListExpr | Constructor | Call | FieldAccess
                         | BinaryOperator | Case | Fn | Todo | Panic)

Expression = Variable | NegateInt | NegateBool | Block | Tuple | UnsupportedExpression

# --- Statements ---
@dataclass
class Assignment(ASTNode):
    """Represents 'let [assert] <pattern> = <value>'."""
    pattern: Pattern
    value: Expression
    is_assert: bool = False
    annotation: Optional[str] = None # Source text of the type annotation, if any
    def __repr__(self):
        keyword = "let assert" if self.is_assert else "let"
        return f"{keyword}({self.pattern!r} = {self.value!r})"

@dataclass
class Use(ASTNode):
    """Represents 'use <patterns> <- <function>'."""
    patterns: List[Pattern]
    function: Expression
    def __repr__(self):
        return f"Use({', '.join(repr(p) for p in self.patterns)} <- {self.function!r})"

@dataclass
class ExpressionStatement(ASTNode):
    expression: Expression
    def __repr__(self):
        return f"Expr({self.expression!r})"

Statement = Assignment | Use | ExpressionStatement

# --- Module Structure ---
@dataclass
class Parameter(ASTNode):
    """A function parameter. Names starting with '_' are discarded."""
    name: str
    label: Optional[str] = None
    annotation: Optional[str] = None

    @property
    def is_discarded(self) -> bool:
        return self.name.startswith('_')

    def __repr__(self):
        label_repr = f"{self.label} " if self.label else ""
        return f"Param({label_repr}{self.name})"

@dataclass
class Function(ASTNode):
    name: str
    visibility: Visibility
    parameters: List[Parameter]
    body: List[Statement]
    return_annotation: Optional[str] = None
    def __repr__(self):
        pub = "pub " if self.visibility is Visibility.PUBLIC else ""
        params_repr = ", ".join(repr(p) for p in self.parameters)
        return f"{pub}Function({self.name}({params_repr}) body={self.body!r})"

@dataclass
class Import(ASTNode):
    module: str # Slash separated path, e.g. 'gleam/io'
    alias: Optional[str] = None
    unqualified: List[str] = field(default_factory=list)
    def __repr__(self):
        alias_repr = f" as {self.alias}" if self.alias else ""
        return f"Import({self.module}{alias_repr})"

@dataclass
class Module(ASTNode):
    """Root node for a parsed source file."""
    functions: List[Function] = field(default_factory=list)
    imports: List[Import] = field(default_factory=list)
    def __repr__(self):
        return f"Module([{', '.join(repr(f) for f in self.functions)}])"
