# glint/lexer.py
import logging
from dataclasses import dataclass
from typing import Any, List, Optional

log = logging.getLogger(__name__)

@dataclass
class Token:
    type: str
    value: Any
    line: int  # 1-based line number
    col: int   # 1-based column number (start of token)
    start_index: int = 0 # Index in the source text where the token starts
    end_index: int = 0   # Index in the source text where the token ends (exclusive)

    def __repr__(self):
        if self.type == TT_EOF:
            return f"{self.type}(@{self.line}:{self.col})"
        return f"{self.type}({repr(self.value)} @{self.line}:{self.col})"

# Token Types
TT_KEYWORD = "KEYWORD"
TT_NAME = "NAME"          # lowercase or '_' prefixed identifier
TT_UPNAME = "UPNAME"      # Capitalized identifier (types, constructors)
TT_INTEGER = "INTEGER"
TT_FLOAT = "FLOAT"
TT_STRING = "STRING"
TT_LPAREN = "LPAREN"      # (
TT_RPAREN = "RPAREN"      # )
TT_LBRACE = "LBRACE"      # {
TT_RBRACE = "RBRACE"      # }
TT_LBRACKET = "LBRACKET"  # [
TT_RBRACKET = "RBRACKET"  # ]
TT_COMMA = "COMMA"        # ,
TT_COLON = "COLON"        # :
TT_DOT = "DOT"            # .
TT_DOTDOT = "DOTDOT"      # ..
TT_HASH = "HASH"          # #
TT_VBAR = "VBAR"          # |
TT_EQUAL = "EQUAL"        # =
TT_RARROW = "RARROW"      # ->
TT_LARROW = "LARROW"      # <-
TT_BANG = "BANG"          # !
TT_OPERATOR = "OPERATOR"  # Binary operators, value holds the spelling
TT_EOF = "EOF"
TT_INVALID = "INVALID"    # Unrecognized input

KEYWORDS = {
    'pub', 'fn', 'let', 'assert', 'use', 'case', 'if', 'import', 'as', 'todo', 'panic',
}

# Multi-character symbols first so the longest spelling wins
SYMBOLS = [
    ('<=.', TT_OPERATOR), ('>=.', TT_OPERATOR),
    ('..', TT_DOTDOT), ('->', TT_RARROW), ('<-', TT_LARROW),
    ('==', TT_OPERATOR), ('!=', TT_OPERATOR), ('<=', TT_OPERATOR), ('>=', TT_OPERATOR),
    ('<.', TT_OPERATOR), ('>.', TT_OPERATOR), ('+.', TT_OPERATOR), ('-.', TT_OPERATOR),
    ('*.', TT_OPERATOR), ('/.', TT_OPERATOR), ('&&', TT_OPERATOR), ('||', TT_OPERATOR),
    ('<>', TT_OPERATOR), ('|>', TT_OPERATOR),
    ('(', TT_LPAREN), (')', TT_RPAREN), ('{', TT_LBRACE), ('}', TT_RBRACE),
    ('[', TT_LBRACKET), (']', TT_RBRACKET), (',', TT_COMMA), (':', TT_COLON),
    ('.', TT_DOT), ('#', TT_HASH), ('|', TT_VBAR), ('=', TT_EQUAL), ('!', TT_BANG),
    ('<', TT_OPERATOR), ('>', TT_OPERATOR), ('+', TT_OPERATOR), ('-', TT_OPERATOR),
    ('*', TT_OPERATOR), ('/', TT_OPERATOR), ('%', TT_OPERATOR),
]

STRING_ESCAPES = {'n': '\n', 't': '\t', 'r': '\r', '"': '"', '\\': '\\'}

class Lexer:
    def __init__(self, text: str):
        self.text = text
        self.pos = 0
        self.line = 1
        self.col = 1 # 1-based column
        self.tokens: List[Token] = []
        log.debug(f"Lexer initialized with text of length {len(text)}")

    def _advance(self, count=1):
        """Advance position and column, handling newlines."""
        for _ in range(count):
            if self.pos >= len(self.text):
                break
            if self.text[self.pos] == '\n':
                self.line += 1
                self.col = 1
            else:
                self.col += 1
            self.pos += 1

    def _peek(self, lookahead=0) -> Optional[str]:
        """Return the character at pos + lookahead without consuming it, or None if EOF."""
        peek_pos = self.pos + lookahead
        if peek_pos < len(self.text):
            return self.text[peek_pos]
        return None

    def _skip_whitespace_and_comments(self):
        while self._peek() is not None:
            char = self._peek()
            if char in ' \t\r\n':
                self._advance()
            elif char == '/' and self._peek(1) == '/':
                log.debug(f"Skipping comment at {self.line}:{self.col}")
                while self._peek() is not None and self._peek() != '\n':
                    self._advance()
            else:
                break

    def _add(self, token_type: str, value: Any, line: int, col: int, start_index: int):
        token = Token(token_type, value, line, col, start_index, self.pos)
        log.debug(f"Found {token}")
        self.tokens.append(token)

    def tokenize(self) -> List[Token]:
        log.debug("Starting tokenization...")
        while True:
            self._skip_whitespace_and_comments()
            start_line, start_col, start_index = self.line, self.col, self.pos
            char = self._peek()
            if char is None:
                break

            if char.isdigit():
                self._lex_number(start_line, start_col, start_index)
            elif char.isalpha() or char == '_':
                self._lex_name(start_line, start_col, start_index)
            elif char == '"':
                self._lex_string(start_line, start_col, start_index)
            else:
                for spelling, token_type in SYMBOLS:
                    if self.text.startswith(spelling, self.pos):
                        self._advance(len(spelling))
                        self._add(token_type, spelling, start_line, start_col, start_index)
                        break
                else:
                    log.error(f"Invalid character {repr(char)} at {start_line}:{start_col}")
                    self._advance()
                    self._add(TT_INVALID, char, start_line, start_col, start_index)

        log.debug(f"Appending EOF token at @{self.line}:{self.col}")
        self.tokens.append(Token(TT_EOF, None, self.line, self.col, self.pos, self.pos))
        log.debug("Tokenization finished.")
        return self.tokens

    def _lex_number(self, line: int, col: int, start_index: int):
        while self._peek() is not None and (self._peek().isdigit() or self._peek() == '_'):
            self._advance()
        # Only '.' followed by a digit makes a float; '1.' alone stays an int then a DOT
        next_char = self._peek(1)
        if self._peek() == '.' and next_char is not None and next_char.isdigit():
            self._advance()
            while self._peek() is not None and (self._peek().isdigit() or self._peek() == '_'):
                self._advance()
            self._add(TT_FLOAT, self.text[start_index:self.pos], line, col, start_index)
        else:
            self._add(TT_INTEGER, self.text[start_index:self.pos], line, col, start_index)

    def _lex_name(self, line: int, col: int, start_index: int):
        while self._peek() is not None and (self._peek().isalnum() or self._peek() == '_'):
            self._advance()
        ident = self.text[start_index:self.pos]
        if ident in KEYWORDS:
            self._add(TT_KEYWORD, ident, line, col, start_index)
        elif ident[0].isupper():
            self._add(TT_UPNAME, ident, line, col, start_index)
        else:
            self._add(TT_NAME, ident, line, col, start_index)

    def _lex_string(self, line: int, col: int, start_index: int):
        self._advance() # Consume opening quote
        value = ""
        while self._peek() is not None:
            char = self._peek()
            if char == '"':
                self._advance()
                self._add(TT_STRING, value, line, col, start_index)
                return
            if char == '\\':
                escape_char = self._peek(1)
                if escape_char is None:
                    break
                self._advance(2)
                if escape_char in STRING_ESCAPES:
                    value += STRING_ESCAPES[escape_char]
                else:
                    log.warning(f"Unknown string escape sequence '\\{escape_char}' in string starting {line}:{col}. Treating literally.")
                    value += '\\' + escape_char
            else:
                value += char
                self._advance()
        log.error(f"Unterminated string literal at EOF starting {line}:{col}")
        self._add(TT_INVALID, self.text[start_index:self.pos], line, col, start_index)
