# glint/parser.py
import logging
from typing import Any, List, Optional, Set

from .lexer import (Lexer, Token, TT_COLON, TT_COMMA, TT_DOT, TT_DOTDOT, TT_EOF, TT_EQUAL,
                    TT_FLOAT, TT_HASH, TT_INTEGER, TT_INVALID, TT_KEYWORD, TT_LARROW,
                    TT_LBRACE, TT_LBRACKET, TT_LPAREN, TT_NAME, TT_OPERATOR, TT_RARROW,
                    TT_RBRACE, TT_RBRACKET, TT_RPAREN, TT_STRING, TT_UPNAME, TT_VBAR,
                    TT_BANG)
from . import gl_ast
from .gl_ast import Visibility

log = logging.getLogger(__name__)


class ParseError(Exception):
    def __init__(self, message: str, token: Optional[Token] = None):
        if token:
            super().__init__(f"{message} near token {token} ({token.line}:{token.col})")
        else:
            super().__init__(message)
        self.token = token

# Binary operator precedence, lowest binds loosest. All are left associative.
BINARY_PRECEDENCE = {
    '||': 1,
    '&&': 2,
    '==': 3, '!=': 3,
    '<': 4, '>': 4, '<=': 4, '>=': 4, '<.': 4, '>.': 4, '<=.': 4, '>=.': 4,
    '<>': 5,
    '|>': 6,
    '+': 7, '-': 7, '+.': 7, '-.': 7,
    '*': 8, '/': 8, '%': 8, '*.': 8, '/.': 8,
}

class Parser:
    def __init__(self, tokens: List[Token]):
        self.tokens = tokens
        self.current_token_index = 0
        self.current_token = self.tokens[0] if self.tokens else None
        self._log_state("Parser initialized")

    def _log_state(self, message: str):
        token_info = f"Token={self.current_token}" if self.current_token else "Token=None (EOF)"
        log.debug(f"[Parser State @ Pos {self.current_token_index}] {message}. {token_info}")

    def _log_entry(self, func_name: str):
        log.debug(f"--> Entering {func_name}")

    def _log_exit(self, func_name: str, result: Optional[Any]):
        result_repr = repr(result) if result is not None else "None"
        # Limit result repr length for logs
        if len(result_repr) > 100:
            result_repr = result_repr[:97] + "..."
        log.debug(f"<-- Exiting {func_name}. Result: {result_repr}")

    def _advance(self) -> Token:
        """Consume the current token and return it."""
        token = self.current_token
        if self.current_token_index < len(self.tokens) - 1:
            self.current_token_index += 1
            self.current_token = self.tokens[self.current_token_index]
        return token

    def _peek(self, offset: int = 1) -> Optional[Token]:
        peek_pos = self.current_token_index + offset
        if peek_pos < len(self.tokens):
            return self.tokens[peek_pos]
        return None

    def _check(self, token_type: str, value: Optional[str] = None) -> bool:
        """Check if the current token matches the given type and optionally value."""
        token = self.current_token
        if token is None or token.type != token_type:
            return False
        return value is None or token.value == value

    def _match(self, token_type: str, value: Optional[str] = None) -> Optional[Token]:
        """Consume and return the current token if it matches, else None."""
        if self._check(token_type, value):
            return self._advance()
        return None

    def _consume(self, token_type: str, message: Optional[str] = None, value: Optional[str] = None) -> Token:
        """Consume the current token if it matches the type, otherwise raise error."""
        token = self.current_token
        if token is not None and token.type == TT_INVALID:
            raise ParseError(f"Invalid token {token.value!r}", token)
        if self._check(token_type, value):
            return self._advance()
        expected = f"{token_type} {value!r}" if value else token_type
        error_msg = f"{message} (Expected {expected})" if message else f"Expected {expected}"
        raise ParseError(error_msg, token)

    def _comma_separated(self, parse_item, closing: str) -> List[Any]:
        """Parse 'item, item, ...' up to (not including) the closing token, trailing comma allowed."""
        items = []
        while not self._check(closing):
            items.append(parse_item())
            if not self._match(TT_COMMA):
                break
        return items

    def parse(self) -> gl_ast.Module:
        """Top-level parsing method."""
        self._log_entry("parse")
        module = gl_ast.Module()
        start_token = self.current_token
        if start_token is not None:
            module.set_pos(start_token.line, start_token.col)

        while not self._check(TT_EOF):
            if self._check(TT_KEYWORD, 'import'):
                module.imports.append(self.parse_import())
            elif self._check(TT_KEYWORD, 'pub') or self._check(TT_KEYWORD, 'fn'):
                module.functions.append(self.parse_function())
            else:
                token = self.current_token
                raise ParseError(f"Unexpected token type '{token.type}' with value {token.value!r} at top level", token)

        log.info(f"Parsed module with {len(module.functions)} function(s) and {len(module.imports)} import(s)")
        self._log_exit("parse", module)
        return module

    # --- Definitions ---

    def parse_import(self) -> gl_ast.Import:
        """Parses 'import a/b[.{x, y}] [as name]'."""
        self._log_entry("parse_import")
        start_token = self._consume(TT_KEYWORD, "Expected 'import'", 'import')
        segments = [self._consume(TT_NAME, "Expected module name after 'import'").value]
        while self._match(TT_OPERATOR, '/'):
            segments.append(self._consume(TT_NAME, "Expected module path segment after '/'").value)

        unqualified = []
        if self._check(TT_DOT) and self._peek() is not None and self._peek().type == TT_LBRACE:
            self._advance()
            self._advance()
            unqualified = self._comma_separated(self._parse_unqualified_import, TT_RBRACE)
            self._consume(TT_RBRACE, "Expected '}' after unqualified imports")

        alias = None
        if self._match(TT_KEYWORD, 'as'):
            alias = self._consume(TT_NAME, "Expected alias name after 'as'").value

        node = gl_ast.Import("/".join(segments), alias, unqualified)
        node.set_pos(start_token.line, start_token.col)
        self._log_exit("parse_import", node)
        return node

    def _parse_unqualified_import(self) -> str:
        self._match(TT_NAME, 'type')
        token = self.current_token
        if token.type not in (TT_NAME, TT_UPNAME):
            raise ParseError("Expected name in unqualified import list", token)
        self._advance()
        if self._match(TT_KEYWORD, 'as'):
            token = self.current_token
            if token.type not in (TT_NAME, TT_UPNAME):
                raise ParseError("Expected alias in unqualified import list", token)
            self._advance()
        return token.value

    def parse_function(self) -> gl_ast.Function:
        """Parses '[pub] fn <name>(<params>) [-> <type>] { <body> }'."""
        self._log_entry("parse_function")
        start_token = self.current_token
        visibility = Visibility.PUBLIC if self._match(TT_KEYWORD, 'pub') else Visibility.PRIVATE
        self._consume(TT_KEYWORD, "Expected 'fn'", 'fn')
        name = self._consume(TT_NAME, "Expected function name after 'fn'").value

        self._consume(TT_LPAREN, "Expected '(' after function name")
        params = self._comma_separated(self._parse_parameter, TT_RPAREN)
        self._consume(TT_RPAREN, "Expected ')' after function parameters")

        return_annotation = None
        if self._match(TT_RARROW):
            return_annotation = self._skip_annotation({TT_LBRACE})

        body = self.parse_block_body()
        func = gl_ast.Function(name, visibility, params, body, return_annotation)
        func.set_pos(start_token.line, start_token.col)
        self._log_exit("parse_function", func)
        return func

    def _parse_parameter(self) -> gl_ast.Parameter:
        """Parses '[label] name [: Type]'."""
        first = self._consume(TT_NAME, "Expected parameter name")
        label = None
        name = first.value
        if self._check(TT_NAME):
            label = name
            name = self._advance().value
        annotation = None
        if self._match(TT_COLON):
            annotation = self._skip_annotation({TT_COMMA, TT_RPAREN})
        param = gl_ast.Parameter(name, label, annotation)
        param.set_pos(first.line, first.col)
        return param

    def _skip_annotation(self, stop_types: Set[str]) -> str:
        """Skips a type annotation by bracket balancing and returns its source text.

        Stops at the first token of one of ``stop_types`` found outside any brackets.
        """
        start_token = self.current_token
        depth = 0
        while True:
            token = self.current_token
            if token.type == TT_EOF:
                raise ParseError("Unexpected end of input inside type annotation", token)
            if depth == 0 and token.type in stop_types:
                break
            if token.type in (TT_LPAREN, TT_LBRACKET, TT_LBRACE):
                depth += 1
            elif token.type in (TT_RPAREN, TT_RBRACKET, TT_RBRACE):
                if depth == 0:
                    raise ParseError("Unbalanced bracket in type annotation", token)
                depth -= 1
            self._advance()
        if token is start_token:
            raise ParseError("Expected type annotation", token)
        end_index = self.tokens[self.current_token_index - 1].end_index
        return self._source_text(start_token.start_index, end_index)

    def _source_text(self, start: int, end: int) -> str:
        # Tokens don't carry the source, so rebuild the spelling from their values,
        # keeping a single space wherever the source had a gap
        text = ""
        previous = None
        for token in self.tokens:
            if token.start_index < start or token.end_index > end or token.type == TT_EOF:
                continue
            if previous is not None and previous.end_index != token.start_index:
                text += " "
            text += str(token.value)
            previous = token
        return text

    # --- Statements ---

    def parse_block_body(self) -> List[gl_ast.Statement]:
        """Parses '{ <statements> }'."""
        self._log_entry("parse_block_body")
        self._consume(TT_LBRACE, "Expected '{' to open block")
        statements = []
        while not self._check(TT_RBRACE):
            if self._check(TT_EOF):
                raise ParseError("Unexpected end of input, expected '}' to close block", self.current_token)
            statements.append(self.parse_statement())
        self._consume(TT_RBRACE, "Expected '}' to close block")
        self._log_exit("parse_block_body", statements)
        return statements

    def parse_statement(self) -> gl_ast.Statement:
        token = self.current_token
        if self._check(TT_KEYWORD, 'let'):
            stmt = self._parse_assignment()
        elif self._check(TT_KEYWORD, 'use'):
            stmt = self._parse_use()
        else:
            stmt = gl_ast.ExpressionStatement(self.parse_expression())
        stmt.set_pos(token.line, token.col)
        return stmt

    def _parse_assignment(self) -> gl_ast.Assignment:
        """Parses 'let [assert] <pattern> [: <type>] = <expression>'."""
        self._log_entry("_parse_assignment")
        self._consume(TT_KEYWORD, "Expected 'let'", 'let')
        is_assert = self._match(TT_KEYWORD, 'assert') is not None
        pattern = self.parse_pattern()
        annotation = None
        if self._match(TT_COLON):
            annotation = self._skip_annotation({TT_EQUAL})
        self._consume(TT_EQUAL, "Expected '=' in let binding")
        value = self.parse_expression()
        stmt = gl_ast.Assignment(pattern, value, is_assert, annotation)
        self._log_exit("_parse_assignment", stmt)
        return stmt

    def _parse_use(self) -> gl_ast.Use:
        """Parses 'use [<pattern>, ...] <- <expression>'."""
        self._log_entry("_parse_use")
        self._consume(TT_KEYWORD, "Expected 'use'", 'use')
        patterns = []
        if not self._check(TT_LARROW):
            patterns = self._comma_separated(self._parse_use_pattern, TT_LARROW)
        self._consume(TT_LARROW, "Expected '<-' in use expression")
        function = self.parse_expression()
        stmt = gl_ast.Use(patterns, function)
        self._log_exit("_parse_use", stmt)
        return stmt

    def _parse_use_pattern(self) -> gl_ast.Pattern:
        pattern = self.parse_pattern()
        if self._match(TT_COLON):
            self._skip_annotation({TT_COMMA, TT_LARROW})
        return pattern

    # --- Patterns ---

    def parse_pattern(self) -> gl_ast.Pattern:
        token = self.current_token
        pattern = self._parse_pattern_primary()
        pattern.set_pos(token.line, token.col)
        while self._match(TT_KEYWORD, 'as'):
            name = self._consume(TT_NAME, "Expected name after 'as' in pattern").value
            pattern = gl_ast.PatternAssignment(pattern, name).set_pos(token.line, token.col)
        return pattern

    def _parse_pattern_primary(self) -> gl_ast.Pattern:
        token = self.current_token
        if token.type == TT_NAME:
            self._advance()
            if self._check(TT_DOT) and self._peek() is not None and self._peek().type == TT_UPNAME:
                # Module qualified constructor, e.g. option.Some(x)
                self._advance()
                return self._parse_constructor_pattern(f"{token.value}.{self._advance().value}")
            if token.value.startswith('_'):
                return gl_ast.PatternDiscard(token.value)
            return gl_ast.PatternVariable(token.value)
        if token.type == TT_UPNAME:
            self._advance()
            return self._parse_constructor_pattern(token.value)
        if token.type == TT_INTEGER:
            return gl_ast.PatternInt(self._advance().value)
        if token.type == TT_FLOAT:
            return gl_ast.PatternFloat(self._advance().value)
        if token.type == TT_STRING:
            return gl_ast.PatternString(self._advance().value)
        if self._check(TT_OPERATOR, '-'):
            self._advance()
            number = self.current_token
            if number.type == TT_INTEGER:
                return gl_ast.PatternInt('-' + self._advance().value)
            if number.type == TT_FLOAT:
                return gl_ast.PatternFloat('-' + self._advance().value)
            raise ParseError("Expected number after '-' in pattern", number)
        if token.type == TT_HASH:
            self._advance()
            self._consume(TT_LPAREN, "Expected '(' after '#' in tuple pattern")
            elements = self._comma_separated(self.parse_pattern, TT_RPAREN)
            self._consume(TT_RPAREN, "Expected ')' to close tuple pattern")
            return gl_ast.PatternTuple(elements)
        if token.type == TT_LBRACKET:
            return self._parse_list_pattern()
        if token.type == TT_INVALID:
            raise ParseError(f"Invalid token {token.value!r}", token)
        raise ParseError("Unexpected token in pattern", token)

    def _parse_constructor_pattern(self, name: str) -> gl_ast.PatternConstructor:
        arguments = []
        if self._match(TT_LPAREN):
            arguments = self._comma_separated(self._parse_constructor_argument, TT_RPAREN)
            self._consume(TT_RPAREN, "Expected ')' to close constructor pattern")
        return gl_ast.PatternConstructor(name, arguments)

    def _parse_constructor_argument(self) -> gl_ast.Pattern:
        # Labelled argument 'label: pattern'; the label itself binds nothing
        if self._check(TT_NAME) and self._peek() is not None and self._peek().type == TT_COLON:
            self._advance()
            self._advance()
        return self.parse_pattern()

    def _parse_list_pattern(self) -> gl_ast.PatternList:
        """Parses '[p, ...]', '[p, ..tail]' and '[p, ..]'."""
        self._consume(TT_LBRACKET, "Expected '[' to open list pattern")
        elements = []
        tail = None
        while not self._check(TT_RBRACKET):
            dotdot = self._match(TT_DOTDOT)
            if dotdot:
                if self._check(TT_RBRACKET) or self._check(TT_COMMA):
                    tail = gl_ast.PatternDiscard("").set_pos(dotdot.line, dotdot.col)
                else:
                    tail = self.parse_pattern()
                self._match(TT_COMMA)
                break
            elements.append(self.parse_pattern())
            if not self._match(TT_COMMA):
                break
        self._consume(TT_RBRACKET, "Expected ']' to close list pattern")
        return gl_ast.PatternList(elements, tail)

    # --- Expressions ---

    def parse_expression(self, min_precedence: int = 1) -> gl_ast.Expression:
        """Precedence climbing over binary operators."""
        left = self._parse_unary()
        while True:
            token = self.current_token
            if token.type != TT_OPERATOR or token.value not in BINARY_PRECEDENCE:
                break
            precedence = BINARY_PRECEDENCE[token.value]
            if precedence < min_precedence:
                break
            self._advance()
            right = self.parse_expression(precedence + 1)
            left = gl_ast.BinaryOperator(token.value, left, right).set_pos(token.line, token.col)
        return left

    def _parse_unary(self) -> gl_ast.Expression:
        token = self.current_token
        if self._match(TT_OPERATOR, '-'):
            return gl_ast.NegateInt(self._parse_unary()).set_pos(token.line, token.col)
        if self._match(TT_BANG):
            return gl_ast.NegateBool(self._parse_unary()).set_pos(token.line, token.col)
        return self._parse_postfix()

    def _parse_postfix(self) -> gl_ast.Expression:
        expr = self._parse_primary()
        while True:
            token = self.current_token
            if self._match(TT_LPAREN):
                arguments = self._comma_separated(self._parse_argument, TT_RPAREN)
                self._consume(TT_RPAREN, "Expected ')' after call arguments")
                expr = gl_ast.Call(expr, arguments).set_pos(token.line, token.col)
            elif self._match(TT_DOT):
                label_token = self.current_token
                if label_token.type not in (TT_NAME, TT_UPNAME, TT_INTEGER):
                    raise ParseError("Expected field name or tuple index after '.'", label_token)
                self._advance()
                expr = gl_ast.FieldAccess(expr, label_token.value).set_pos(token.line, token.col)
            else:
                return expr

    def _parse_argument(self) -> gl_ast.Argument:
        token = self.current_token
        label = None
        if self._check(TT_NAME) and self._peek() is not None and self._peek().type == TT_COLON:
            label = self._advance().value
            self._advance()
        return gl_ast.Argument(self.parse_expression(), label).set_pos(token.line, token.col)

    def _parse_primary(self) -> gl_ast.Expression:
        self._log_entry("_parse_primary")
        token = self.current_token
        if token.type == TT_INTEGER:
            expr = gl_ast.Int(self._advance().value)
        elif token.type == TT_FLOAT:
            expr = gl_ast.Float(self._advance().value)
        elif token.type == TT_STRING:
            expr = gl_ast.String(self._advance().value)
        elif token.type == TT_NAME:
            expr = gl_ast.Variable(self._advance().value)
        elif token.type == TT_UPNAME:
            expr = gl_ast.Constructor(self._advance().value)
        elif token.type == TT_HASH:
            self._advance()
            self._consume(TT_LPAREN, "Expected '(' after '#' in tuple")
            elements = self._comma_separated(self.parse_expression, TT_RPAREN)
            self._consume(TT_RPAREN, "Expected ')' to close tuple")
            expr = gl_ast.Tuple(elements)
        elif token.type == TT_LBRACKET:
            expr = self._parse_list()
        elif token.type == TT_LBRACE:
            expr = gl_ast.Block(self.parse_block_body())
        elif self._check(TT_KEYWORD, 'fn'):
            expr = self._parse_anonymous_function()
        elif self._check(TT_KEYWORD, 'case'):
            expr = self._parse_case()
        elif self._check(TT_KEYWORD, 'todo') or self._check(TT_KEYWORD, 'panic'):
            self._advance()
            message = None
            if self._match(TT_KEYWORD, 'as'):
                message = self.parse_expression()
            expr = gl_ast.Todo(message) if token.value == 'todo' else gl_ast.Panic(message)
        elif token.type == TT_INVALID:
            raise ParseError(f"Invalid token {token.value!r}", token)
        elif token.type == TT_EOF:
            raise ParseError("Unexpected end of input while parsing expression", token)
        else:
            raise ParseError("Unexpected token when parsing expression", token)

        expr.set_pos(token.line, token.col)
        self._log_exit("_parse_primary", expr)
        return expr

    def _parse_list(self) -> gl_ast.ListExpr:
        self._consume(TT_LBRACKET, "Expected '[' to open list")
        elements = []
        tail = None
        while not self._check(TT_RBRACKET):
            if self._match(TT_DOTDOT):
                tail = self.parse_expression()
                self._match(TT_COMMA)
                break
            elements.append(self.parse_expression())
            if not self._match(TT_COMMA):
                break
        self._consume(TT_RBRACKET, "Expected ']' to close list")
        return gl_ast.ListExpr(elements, tail)

    def _parse_anonymous_function(self) -> gl_ast.Fn:
        self._consume(TT_KEYWORD, "Expected 'fn'", 'fn')
        self._consume(TT_LPAREN, "Expected '(' after 'fn'")
        params = self._comma_separated(self._parse_parameter, TT_RPAREN)
        self._consume(TT_RPAREN, "Expected ')' after anonymous function parameters")
        if self._match(TT_RARROW):
            self._skip_annotation({TT_LBRACE})
        return gl_ast.Fn(params, self.parse_block_body())

    def _parse_case(self) -> gl_ast.Case:
        """Parses 'case <subjects> { <pattern>[, ...] [| ...] [if <guard>] -> <expression> ... }'."""
        self._log_entry("_parse_case")
        self._consume(TT_KEYWORD, "Expected 'case'", 'case')
        subjects = [self.parse_expression()]
        while self._match(TT_COMMA):
            subjects.append(self.parse_expression())
        self._consume(TT_LBRACE, "Expected '{' after case subjects")

        clauses = []
        while not self._check(TT_RBRACE):
            clause_token = self.current_token
            if clause_token.type == TT_EOF:
                raise ParseError("Unexpected end of input inside case expression", clause_token)
            alternatives = [self._parse_clause_patterns()]
            while self._match(TT_VBAR):
                alternatives.append(self._parse_clause_patterns())
            guard = None
            if self._match(TT_KEYWORD, 'if'):
                guard = self.parse_expression()
            self._consume(TT_RARROW, "Expected '->' after case clause patterns")
            body = self.parse_expression()
            clause = gl_ast.Clause(alternatives, guard, body)
            clauses.append(clause.set_pos(clause_token.line, clause_token.col))
        self._consume(TT_RBRACE, "Expected '}' to close case expression")

        if not clauses:
            raise ParseError("Case expression must have at least one clause", self.tokens[self.current_token_index - 1])
        node = gl_ast.Case(subjects, clauses)
        self._log_exit("_parse_case", node)
        return node

    def _parse_clause_patterns(self) -> List[gl_ast.Pattern]:
        patterns = [self.parse_pattern()]
        while self._match(TT_COMMA):
            patterns.append(self.parse_pattern())
        return patterns


def parse_source(source: str) -> gl_ast.Module:
    """Lex and parse a source string into a Module."""
    return Parser(Lexer(source).tokenize()).parse()
