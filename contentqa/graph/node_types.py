"""Node and edge type definitions for the reference graph."""

from enum import Enum


class NodeType(str, Enum):
    """Types of nodes in the reference graph."""

    ENTITY = "entity"


class EdgeType(str, Enum):
    """Reference field storage types, used as edge types."""

    ENTITY_REFERENCE = "entity_reference"
    ENTITY_REFERENCE_REVISIONS = "entity_reference_revisions"
    DYNAMIC_ENTITY_REFERENCE = "dynamic_entity_reference"


REFERENCE_FIELD_TYPES = frozenset(edge_type.value for edge_type in EdgeType)
