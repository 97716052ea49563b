"""Graph layer for representing entity references as networkx graphs."""

from .node_types import NodeType, EdgeType, REFERENCE_FIELD_TYPES
from .reference_graph import ReferenceGraph, entity_node_id
from .builder import build_reference_graph

__all__ = [
    "NodeType",
    "EdgeType",
    "REFERENCE_FIELD_TYPES",
    "ReferenceGraph",
    "entity_node_id",
    "build_reference_graph",
]
