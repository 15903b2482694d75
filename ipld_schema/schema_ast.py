"""
AST node definitions for IPLD schemas.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Union
from enum import Enum


class ScalarKind(Enum):
    """Scalar kinds, valued by their schema keyword."""
    BOOL = "Bool"
    INT = "Int"
    FLOAT = "Float"
    STRING = "String"
    BYTES = "Bytes"


# =============================================================================
# Schema nodes
# =============================================================================

@dataclass(frozen=True)
class ScalarNode:
    """Scalar value: String, Int, ..."""
    kind: ScalarKind


@dataclass(frozen=True)
class LinkNode:
    """Link: &Person. The expected type is never resolved."""
    expected_type: str


@dataclass(frozen=True)
class TypeRef:
    """Reference to another named type."""
    name: str


@dataclass(frozen=True)
class ListNode:
    """List: [nullable? value_type]."""
    value_type: 'SchemaNode'
    value_nullable: bool = False


@dataclass(frozen=True)
class MapNode:
    """Map: {String : nullable? value_type}. Keys are always String."""
    value_type: 'SchemaNode'
    value_nullable: bool = False


# Union type for all nodes
SchemaNode = Union[ScalarNode, LinkNode, TypeRef, ListNode, MapNode]


# =============================================================================
# Type definitions
# =============================================================================

@dataclass(frozen=True)
class FieldDefinition:
    type: SchemaNode
    optional: bool = False
    value_nullable: bool = False


@dataclass(frozen=True)
class ScalarType:
    """type Name String"""
    kind: ScalarKind


@dataclass(frozen=True)
class StructType:
    """type Name struct { ... }"""
    fields: Dict[str, FieldDefinition] = field(default_factory=dict)

    def __hash__(self):
        return hash(tuple(self.fields.items()))


@dataclass(frozen=True)
class EnumType:
    """type Name enum { A, B }"""
    values: List[str] = field(default_factory=list)

    def __hash__(self):
        return hash(tuple(self.values))


@dataclass(frozen=True)
class NodeType:
    """A named list, map, link or reference, optionally `representation advanced RMT`."""
    value: SchemaNode
    advanced: bool = False


# Union type for all type definitions
TypeDefinition = Union[ScalarType, StructType, EnumType, NodeType]


# =============================================================================
# Parse result
# =============================================================================

@dataclass
class ParsedSchema:
    """Named type definitions of one schema source.

    `types` keeps the last definition of each name; `declared` lists every
    `type` declaration in source order, repeats included.
    """
    types: Dict[str, TypeDefinition] = field(default_factory=dict)
    declared: List[str] = field(default_factory=list)

    def add(self, name: str, definition: TypeDefinition):
        self.types[name] = definition
        self.declared.append(name)

    def duplicates(self) -> List[str]:
        """Names declared more than once, in order of first repeat."""
        seen = set()
        repeated: List[str] = []
        for name in self.declared:
            if name in seen and name not in repeated:
                repeated.append(name)
            seen.add(name)
        return repeated

    def __getitem__(self, name: str) -> TypeDefinition:
        return self.types[name]

    def __contains__(self, name) -> bool:
        return name in self.types

    def __iter__(self) -> Iterator[str]:
        return iter(self.types)

    def __len__(self) -> int:
        return len(self.types)
