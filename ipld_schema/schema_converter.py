"""
Schema converter utilities.

Provides:
- ast_to_dict(): Convert a ParsedSchema to plain dicts/lists/strings
- schema_to_yaml() / schema_to_json(): Serialize that dict form
- convert_schema_source(): Parse and convert in one step
"""

import json
from typing import Any, Dict

import yaml

from .schema_ast import (
    ScalarNode, LinkNode, TypeRef, ListNode, MapNode, SchemaNode,
    ScalarType, StructType, EnumType, NodeType, TypeDefinition, ParsedSchema,
)
from .schema_parser import parse


def ast_to_dict(schema: ParsedSchema) -> Dict[str, Any]:
    """Convert a ParsedSchema to the dict format used for dumps."""
    return {
        'types': {name: convert_type_definition(definition)
                  for name, definition in schema.types.items()},
    }


def convert_type_definition(definition: TypeDefinition) -> Dict[str, Any]:
    if isinstance(definition, ScalarType):
        return {definition.kind.value.lower(): {}}
    elif isinstance(definition, StructType):
        fields = {}
        for name, field in definition.fields.items():
            fields[name] = {
                'type': convert_node(field.type),
                'optional': field.optional,
                'nullable': field.value_nullable,
            }
        return {'struct': {'fields': fields}}
    elif isinstance(definition, EnumType):
        return {'enum': {'members': list(definition.values)}}
    elif isinstance(definition, NodeType):
        converted = convert_node(definition.value)
        if isinstance(converted, str):
            converted = {'ref': converted}
        if definition.advanced:
            converted['representation'] = {'advanced': 'RMT'}
        return converted
    else:
        raise TypeError(f"Unknown type definition: {definition!r}")


def convert_node(node: SchemaNode):
    """Convert a node: scalars and references become their name."""
    if isinstance(node, ScalarNode):
        return node.kind.value
    elif isinstance(node, TypeRef):
        return node.name
    elif isinstance(node, LinkNode):
        return {'link': {'expectedType': node.expected_type}}
    elif isinstance(node, ListNode):
        return {'list': {
            'valueType': convert_node(node.value_type),
            'valueNullable': node.value_nullable,
        }}
    elif isinstance(node, MapNode):
        return {'map': {
            'keyType': 'String',
            'valueType': convert_node(node.value_type),
            'valueNullable': node.value_nullable,
        }}
    else:
        raise TypeError(f"Unknown schema node: {node!r}")


def schema_to_yaml(schema: ParsedSchema) -> str:
    return yaml.safe_dump(ast_to_dict(schema), sort_keys=False, default_flow_style=False)


def schema_to_json(schema: ParsedSchema, indent: int = 2) -> str:
    return json.dumps(ast_to_dict(schema), indent=indent)


def convert_schema_source(schema_source: str) -> Dict[str, Any]:
    """Parse schema source and return its dict form."""
    return ast_to_dict(parse(schema_source))
