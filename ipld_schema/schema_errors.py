"""
Errors raised while tokenizing and parsing schema source.

Every error is fatal to the current parse; there is no recovery.
"""

from typing import Optional


class SchemaError(Exception):
    """Base class for all schema failures."""
    def __init__(self, message: str, line: Optional[int] = None):
        self.message = message
        self.line = line
        if line is not None:
            super().__init__(f"Line {line}: {message}")
        else:
            super().__init__(message)


class InvalidSyntax(SchemaError):
    """Raised by the lexer on an unknown character or unterminated comment."""


class InvalidToken(SchemaError):
    """Raised when the parser expected one token and found another."""
    def __init__(self, message: str, line: Optional[int] = None,
                 expected: Optional[str] = None, found: Optional[str] = None):
        self.expected = expected
        self.found = found
        super().__init__(message, line)


class UnexpectedEndOfInput(SchemaError):
    """Raised when a production still needs a token but the input is exhausted."""
    def __init__(self, message: str = "Unexpected end of input", line: Optional[int] = None):
        super().__init__(message, line)


class InvalidType(SchemaError):
    """Raised when a map key type is anything but String."""


class InvalidRepresentation(SchemaError):
    """Raised for representation annotations other than `advanced RMT` on a list or map."""


class InvalidUnionRepresentation(SchemaError):
    """Reserved for union representations."""


class InlineComplexTypeNotAllowed(SchemaError):
    """Raised when a struct or enum body appears where only a node type is allowed."""
