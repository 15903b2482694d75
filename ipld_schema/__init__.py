"""
IPLD schema front end.

This package provides:
- schema_lexer: Tokenizer for schema source
- schema_parser: Recursive descent parser producing the schema AST
- schema_peg_parser: The same grammar run through Lark
- schema_converter: AST to dict / YAML / JSON
"""

from .schema_ast import (
    ScalarKind,
    ScalarNode,
    LinkNode,
    TypeRef,
    ListNode,
    MapNode,
    FieldDefinition,
    ScalarType,
    StructType,
    EnumType,
    NodeType,
    ParsedSchema,
)

from .schema_errors import (
    SchemaError,
    InvalidSyntax,
    InvalidToken,
    UnexpectedEndOfInput,
    InvalidType,
    InvalidRepresentation,
    InvalidUnionRepresentation,
    InlineComplexTypeNotAllowed,
)

from .schema_lexer import Lexer, Token, TokenType, KEYWORDS, tokenize
from .schema_parser import Parser, parse, parse_file
