"""
Parser for IPLD schema source.

Parses a token list into a ParsedSchema mapping type names to definitions.
"""

from pathlib import Path
from typing import Dict, List, Optional, Tuple

from .schema_lexer import Token, TokenType, tokenize
from .schema_errors import (
    InvalidToken, UnexpectedEndOfInput, InvalidType, InvalidRepresentation,
    InlineComplexTypeNotAllowed,
)
from .schema_ast import (
    ScalarKind, ScalarNode, LinkNode, TypeRef, ListNode, MapNode, SchemaNode,
    FieldDefinition, ScalarType, StructType, EnumType, NodeType,
    TypeDefinition, ParsedSchema,
)


SCALAR_KEYWORDS = frozenset(kind.value for kind in ScalarKind)

ADVANCED_REPRESENTATION = ('representation', 'advanced', 'RMT')


def _describe(token_type: TokenType, value: Optional[str]) -> str:
    kind = token_type.name.lower()
    if value is None:
        return kind
    return f"{kind} {value!r}"


class Parser:
    """Recursive descent parser for IPLD schemas."""

    def __init__(self, tokens: List[Token]):
        self.tokens = tokens
        self.pos = 0

    def parse(self) -> ParsedSchema:
        """Parse the token list into a ParsedSchema."""
        schema = ParsedSchema()

        while not self._at_end():
            name, definition = self._parse_type_decl()
            schema.add(name, definition)

        return schema

    # =========================================================================
    # Helper methods
    # =========================================================================

    def _at_end(self) -> bool:
        return self.pos >= len(self.tokens)

    def _peek(self) -> Token:
        if self._at_end():
            line = self.tokens[-1].line if self.tokens else None
            raise UnexpectedEndOfInput(line=line)
        return self.tokens[self.pos]

    def _advance(self) -> int:
        current = self.pos
        self.pos += 1
        return current

    def _check(self, token_type: TokenType, value: Optional[str] = None) -> bool:
        if self._at_end():
            return False
        token = self.tokens[self.pos]
        if value is not None and token.value != value:
            return False
        return token.type == token_type

    def _match(self, token_type: TokenType, value: Optional[str] = None) -> bool:
        if self._check(token_type, value):
            self._advance()
            return True
        return False

    def _match_sequence(self, *keywords: str) -> bool:
        """Consume all of `keywords` in order, or none of them."""
        saved = self.pos
        for keyword in keywords:
            if not self._match(TokenType.KEYWORD, keyword):
                self.pos = saved
                return False
        return True

    def _consume(self, token_type: TokenType, value: Optional[str] = None) -> Token:
        if self._check(token_type, value):
            return self.tokens[self._advance()]

        found = self._peek()
        expected = _describe(token_type, value)
        actual = _describe(found.type, found.value)
        raise InvalidToken(
            f"Expected {expected}, found {actual}",
            found.line, expected=expected, found=actual,
        )

    def _check_scalar(self) -> bool:
        return (self._check(TokenType.KEYWORD)
                and self.tokens[self.pos].value in SCALAR_KEYWORDS)

    # =========================================================================
    # Type declarations
    # =========================================================================

    def _parse_type_decl(self) -> Tuple[str, TypeDefinition]:
        """Parse: type NAME TYPEDEF"""
        self._consume(TokenType.KEYWORD, 'type')
        name = self._consume(TokenType.IDENTIFIER).value
        definition = self._parse_type_definition()

        if self._check(TokenType.KEYWORD, 'representation'):
            token = self._peek()
            raise InvalidRepresentation(
                f"Unsupported representation for type {name!r}; "
                f"only 'representation advanced RMT' on a list or map is allowed",
                token.line,
            )

        return name, definition

    def _parse_type_definition(self) -> TypeDefinition:
        token = self._peek()

        if self._check_scalar():
            self._advance()
            return ScalarType(ScalarKind(token.value))

        if self._match(TokenType.KEYWORD, 'struct'):
            return StructType(self._parse_struct())

        if self._match(TokenType.KEYWORD, 'enum'):
            return EnumType(self._parse_enum())

        if self._match(TokenType.KEYWORD, 'map') or self._check(TokenType.SYMBOL, '{'):
            return self._with_representation(self._parse_map())

        if self._match(TokenType.KEYWORD, 'list'):
            return self._with_representation(self._parse_list())

        if self._check(TokenType.SYMBOL, '['):
            return self._with_representation(self._parse_inline_list())

        if self._match(TokenType.KEYWORD, 'link') or self._match(TokenType.SYMBOL, '&'):
            return NodeType(self._parse_link())

        return NodeType(TypeRef(self._consume(TokenType.IDENTIFIER).value))

    def _with_representation(self, node: SchemaNode) -> NodeType:
        advanced = self._match_sequence(*ADVANCED_REPRESENTATION)
        return NodeType(node, advanced=advanced)

    def _parse_struct(self) -> Dict[str, FieldDefinition]:
        """Parse: { NAME optional? nullable? NODE ... }"""
        self._consume(TokenType.SYMBOL, '{')

        fields: Dict[str, FieldDefinition] = {}
        while not self._check(TokenType.SYMBOL, '}'):
            name = self._consume(TokenType.IDENTIFIER).value
            optional = self._match(TokenType.KEYWORD, 'optional')
            nullable = self._match(TokenType.KEYWORD, 'nullable')
            fields[name] = FieldDefinition(
                type=self._parse_node_value(),
                optional=optional,
                value_nullable=nullable,
            )

        self._consume(TokenType.SYMBOL, '}')
        return fields

    def _parse_enum(self) -> List[str]:
        """Parse: { NAME, NAME, ... }"""
        self._consume(TokenType.SYMBOL, '{')

        members = []
        while not self._check(TokenType.SYMBOL, '}'):
            members.append(self._consume(TokenType.IDENTIFIER).value)
            if not self._check(TokenType.SYMBOL, '}'):
                self._consume(TokenType.SYMBOL, ',')

        self._consume(TokenType.SYMBOL, '}')
        return members

    # =========================================================================
    # Node values
    # =========================================================================

    def _parse_node_value(self) -> SchemaNode:
        token = self._peek()

        if self._check_scalar():
            self._advance()
            return ScalarNode(ScalarKind(token.value))

        if self._check(TokenType.SYMBOL, '['):
            return self._parse_inline_list()

        if self._check(TokenType.SYMBOL, '{'):
            return self._parse_map()

        if self._match(TokenType.SYMBOL, '&'):
            return self._parse_link()

        if self._check(TokenType.KEYWORD, 'struct') or self._check(TokenType.KEYWORD, 'enum'):
            raise InlineComplexTypeNotAllowed(
                f"Inline {token.value} definitions are not allowed; declare a named type instead",
                token.line,
            )

        return TypeRef(self._consume(TokenType.IDENTIFIER).value)

    def _parse_link(self) -> LinkNode:
        return LinkNode(self._consume(TokenType.IDENTIFIER).value)

    def _parse_map(self) -> MapNode:
        """Parse: { String : nullable? NODE }"""
        self._consume(TokenType.SYMBOL, '{')
        if not self._match(TokenType.KEYWORD, 'String'):
            token = self._peek()
            raise InvalidType(f"Map key type must be String, not {token.value!r}", token.line)
        self._consume(TokenType.SYMBOL, ':')
        nullable = self._match(TokenType.KEYWORD, 'nullable')
        value_type = self._parse_node_value()
        self._consume(TokenType.SYMBOL, '}')
        return MapNode(value_type, value_nullable=nullable)

    def _parse_list(self) -> ListNode:
        """Parse the body after `list`: nullable? NODE"""
        nullable = self._match(TokenType.KEYWORD, 'nullable')
        return ListNode(self._parse_node_value(), value_nullable=nullable)

    def _parse_inline_list(self) -> ListNode:
        """Parse: [ nullable? NODE ]"""
        self._consume(TokenType.SYMBOL, '[')
        nullable = self._match(TokenType.KEYWORD, 'nullable')
        value_type = self._parse_node_value()
        self._consume(TokenType.SYMBOL, ']')
        return ListNode(value_type, value_nullable=nullable)


def parse(source: str) -> ParsedSchema:
    """Convenience function to parse schema source into a ParsedSchema."""
    tokens = tokenize(source)
    parser = Parser(tokens)
    return parser.parse()


def parse_file(path) -> ParsedSchema:
    """Parse a schema file into a ParsedSchema."""
    return parse(Path(path).read_text())
