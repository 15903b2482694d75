"""
Lexer for IPLD schema source.

Tokenizes the input into a list of tokens for the parser. Whitespace and
comments are dropped; only line numbers survive.
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import List

from .schema_errors import InvalidSyntax


class TokenType(Enum):
    KEYWORD = auto()
    IDENTIFIER = auto()
    SYMBOL = auto()


@dataclass(frozen=True)
class Token:
    type: TokenType
    value: str
    line: int

    def __repr__(self):
        return f"Token({self.type.name}, {self.value!r}, line {self.line})"


KEYWORDS = frozenset({
    'type', 'representation', 'advanced', 'optional', 'nullable',
    'struct', 'enum',
    'Bool', 'String', 'Bytes', 'Int', 'Float',
    'map', 'list', 'link',
    'RMT',
})

SYMBOLS = frozenset('{}[]:,&')


def _is_identifier_char(char: str) -> bool:
    return char.isalnum() or char == '_'


class Lexer:
    """Tokenizer for IPLD schema source."""

    def __init__(self, source: str):
        self.source = source
        self.pos = 0
        self.line = 1
        self.tokens: List[Token] = []

    def tokenize(self) -> List[Token]:
        """Tokenize the entire source and return list of tokens."""
        while not self._at_end():
            self._scan_token()
        return self.tokens

    def _at_end(self) -> bool:
        return self.pos >= len(self.source)

    def _peek(self, offset: int = 0) -> str:
        pos = self.pos + offset
        if pos >= len(self.source):
            return '\0'
        return self.source[pos]

    def _advance(self) -> str:
        char = self.source[self.pos]
        self.pos += 1
        if char == '\n':
            self.line += 1
        return char

    def _add_token(self, token_type: TokenType, value: str, line: int):
        self.tokens.append(Token(token_type, value, line))

    def _scan_token(self):
        char = self._peek()

        if char in ' \t\r\n':
            self._advance()
            return

        if char in SYMBOLS:
            self._add_token(TokenType.SYMBOL, self._advance(), self.line)
            return

        if _is_identifier_char(char):
            self._scan_identifier()
            return

        if char == '/':
            if self._peek(1) == '/':
                self._skip_line_comment()
                return
            if self._peek(1) == '*':
                self._skip_block_comment()
                return

        raise InvalidSyntax(f"Unexpected character: {char!r}", self.line)

    def _scan_identifier(self):
        start_line = self.line
        start = self.pos
        while not self._at_end() and _is_identifier_char(self._peek()):
            self._advance()

        value = self.source[start:self.pos]
        token_type = TokenType.KEYWORD if value in KEYWORDS else TokenType.IDENTIFIER
        self._add_token(token_type, value, start_line)

    def _skip_line_comment(self):
        while not self._at_end() and self._peek() != '\n':
            self._advance()

    def _skip_block_comment(self):
        start_line = self.line
        self._advance()  # /
        self._advance()  # *

        while not self._at_end():
            if self._peek() == '*' and self._peek(1) == '/':
                self._advance()
                self._advance()
                return
            self._advance()

        raise InvalidSyntax("Unterminated block comment", start_line)


def tokenize(source: str) -> List[Token]:
    """Convenience function to tokenize schema source."""
    lexer = Lexer(source)
    return lexer.tokenize()
