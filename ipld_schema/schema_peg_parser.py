"""
PEG-style parser for IPLD schemas using Lark.

Uses the formal grammar in schema_grammar.lark with Lark's Earley parser to
produce the same AST as the hand-written recursive descent parser in
schema_parser.py. Lark exceptions are translated into the schema error
taxonomy so callers only ever see SchemaError subclasses.
"""

from pathlib import Path

from lark import Lark, Transformer, v_args
from lark.exceptions import UnexpectedCharacters, UnexpectedEOF, UnexpectedToken, VisitError

from .schema_ast import (
    ScalarKind, ScalarNode, LinkNode, TypeRef, ListNode, MapNode,
    FieldDefinition, ScalarType, StructType, EnumType, NodeType, ParsedSchema,
)
from .schema_errors import (
    InvalidSyntax, InvalidToken, UnexpectedEndOfInput, InvalidType,
    InvalidRepresentation, InlineComplexTypeNotAllowed,
)


GRAMMAR_PATH = Path(__file__).parent / "schema_grammar.lark"

# Terminals that only appear inside `representation advanced RMT`
_REPRESENTATION_TERMINALS = {'ADVANCED', 'RMT'}


@v_args(inline=True)
class SchemaTransformer(Transformer):
    """Transform the Lark parse tree into schema AST nodes."""

    # =========================================================================
    # Top-level
    # =========================================================================

    def start(self, *decls):
        schema = ParsedSchema()
        for name, definition in decls:
            schema.add(name, definition)
        return schema

    def type_decl(self, name, definition):
        return str(name), definition

    # =========================================================================
    # Type definitions
    # =========================================================================

    def scalar(self, token):
        return ScalarKind(str(token))

    def scalar_def(self, kind):
        return ScalarType(kind)

    def struct_def(self, *fields):
        return StructType(dict(fields))

    def field(self, name, optional, nullable, node):
        return str(name), FieldDefinition(
            type=node,
            optional=optional is not None,
            value_nullable=nullable is not None,
        )

    def enum_def(self, members=None):
        return EnumType(members or [])

    def enum_members(self, *names):
        return [str(name) for name in names]

    def map_def(self, node, advanced):
        return NodeType(node, advanced=bool(advanced))

    def list_def(self, node, advanced):
        return NodeType(node, advanced=bool(advanced))

    def advanced(self):
        return True

    def link_def(self, name):
        return NodeType(LinkNode(str(name)))

    def ref_def(self, name):
        return NodeType(TypeRef(str(name)))

    # =========================================================================
    # Node values
    # =========================================================================

    def scalar_node(self, kind):
        return ScalarNode(kind)

    def link_node(self, name):
        return LinkNode(str(name))

    def type_ref(self, name):
        return TypeRef(str(name))

    def list_body(self, nullable, node):
        return ListNode(node, value_nullable=nullable is not None)

    def inline_list(self, nullable, node):
        return ListNode(node, value_nullable=nullable is not None)

    def map_body(self, key, nullable, node):
        return MapNode(node, value_nullable=nullable is not None)

    def map_key(self, token):
        if str(token) != ScalarKind.STRING.value:
            raise InvalidType(f"Map key type must be String, not {str(token)!r}", token.line)
        return token


# Create parser instance
_parser = None


def get_parser() -> Lark:
    """Get or create the Lark parser instance."""
    global _parser
    if _parser is None:
        with open(GRAMMAR_PATH) as f:
            grammar = f.read()
        _parser = Lark(
            grammar,
            parser='earley',
            lexer='basic',
            propagate_positions=True,
            maybe_placeholders=True,
        )
    return _parser


def _translate_unexpected_token(error: UnexpectedToken):
    token = error.token
    expected = set(error.expected)

    if token.type == '$END':
        if expected <= _REPRESENTATION_TERMINALS:
            return InvalidRepresentation("Incomplete 'representation advanced RMT' annotation")
        return UnexpectedEndOfInput()

    if token.type == 'REPRESENTATION' or expected <= _REPRESENTATION_TERMINALS:
        return InvalidRepresentation(
            "Only 'representation advanced RMT' on a list or map is allowed",
            token.line,
        )

    if token.type in ('STRUCT', 'ENUM') and 'LSQB' in expected:
        return InlineComplexTypeNotAllowed(
            f"Inline {token} definitions are not allowed; declare a named type instead",
            token.line,
        )

    # Map key position: every scalar keyword is acceptable but no nested node
    if {'STRING', 'BOOL'} <= expected and 'LSQB' not in expected:
        return InvalidType(f"Map key type must be String, not {str(token)!r}", token.line)

    wanted = ', '.join(sorted(expected))
    found = f"{token.type.lower()} {str(token)!r}"
    return InvalidToken(
        f"Expected one of {wanted}, found {found}",
        token.line, expected=wanted, found=found,
    )


def parse(source: str) -> ParsedSchema:
    """Parse schema source into a ParsedSchema."""
    parser = get_parser()
    try:
        tree = parser.parse(source)
    except UnexpectedCharacters as e:
        raise InvalidSyntax(f"Unexpected character: {e.char!r}", e.line) from e
    except UnexpectedEOF as e:
        if e.expected and set(e.expected) <= _REPRESENTATION_TERMINALS:
            raise InvalidRepresentation("Incomplete 'representation advanced RMT' annotation") from e
        raise UnexpectedEndOfInput() from e
    except UnexpectedToken as e:
        raise _translate_unexpected_token(e) from e

    try:
        return SchemaTransformer().transform(tree)
    except VisitError as e:
        # Lark wraps transformer errors
        raise e.orig_exc from e


def parse_file(path) -> ParsedSchema:
    """Parse a schema file into a ParsedSchema."""
    with open(path) as f:
        return parse(f.read())
