"""ReferenceGraph wrapper around networkx for stored entities."""

from typing import Any, Iterator

import networkx as nx

from .node_types import EdgeType, NodeType


def entity_node_id(entity_type: str, entity_id: int | str) -> str:
    """Build the node ID of an entity."""
    return f"{entity_type}:{entity_id}"


class ReferenceGraph:
    """A graph of existing entities and the references between them.

    Wraps a networkx MultiDiGraph: one node per stored entity, one edge per
    reference value (field delta) whose target exists. References to missing
    targets never become edges, so an entity's successors are exactly its
    resolved reference set.
    """

    def __init__(self):
        """Initialize an empty reference graph."""
        self._graph = nx.MultiDiGraph()
        self._dangling = 0

    @property
    def graph(self) -> nx.MultiDiGraph:
        """Get the underlying networkx graph."""
        return self._graph

    @property
    def dangling_count(self) -> int:
        """Number of reference values whose target did not exist."""
        return self._dangling

    # -------------------------------------------------------------------------
    # Node and edge management
    # -------------------------------------------------------------------------

    def add_entity(
        self, entity_type: str, entity_id: int | str, **attrs: Any
    ) -> str:
        """Add an entity node to the graph.

        Args:
            entity_type: The entity type ID.
            entity_id: The entity ID.
            **attrs: Additional attributes for the node (bundle, ...).

        Returns:
            The node ID.
        """
        node_id = entity_node_id(entity_type, entity_id)
        self._graph.add_node(
            node_id,
            node_type=NodeType.ENTITY,
            entity_type=entity_type,
            entity_id=entity_id,
            **attrs,
        )
        return node_id

    def add_reference(
        self,
        source_type: str,
        source_id: int | str,
        target_type: str,
        target_id: int | str,
        field_name: str,
        delta: int,
        ref_type: str = EdgeType.ENTITY_REFERENCE.value,
    ) -> bool:
        """Add a reference edge if both endpoints exist.

        Returns:
            True if the edge was added, False if the target is missing.
        """
        source = entity_node_id(source_type, source_id)
        target = entity_node_id(target_type, target_id)

        if not self._graph.has_node(source) or not self._graph.has_node(target):
            self._dangling += 1
            return False

        try:
            edge_type = EdgeType(ref_type)
        except ValueError:
            edge_type = EdgeType.ENTITY_REFERENCE

        self._graph.add_edge(
            source,
            target,
            edge_type=edge_type,
            field=field_name,
            delta=delta,
        )
        return True

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def has_entity(self, entity_type: str, entity_id: int | str) -> bool:
        """Check if an entity exists in the graph."""
        return self._graph.has_node(entity_node_id(entity_type, entity_id))

    def get_entity_node(
        self, entity_type: str, entity_id: int | str
    ) -> dict[str, Any] | None:
        """Get an entity node's attributes."""
        node_id = entity_node_id(entity_type, entity_id)
        if self._graph.has_node(node_id):
            return dict(self._graph.nodes[node_id])
        return None

    def get_referenced(
        self, entity_type: str, entity_id: int | str
    ) -> list[tuple[str, int | str]]:
        """Get the (entity_type, entity_id) pairs an entity references.

        Each target appears once, in the order its first edge was added.
        """
        node_id = entity_node_id(entity_type, entity_id)
        if not self._graph.has_node(node_id):
            return []

        seen = set()
        referenced = []
        for _, target in self._graph.out_edges(node_id):
            if target in seen:
                continue
            seen.add(target)
            data = self._graph.nodes[target]
            referenced.append((data["entity_type"], data["entity_id"]))
        return referenced

    def iter_references(self) -> Iterator[tuple[str, str, str, int]]:
        """Iterate over all resolved references.

        Yields:
            Tuples of (source_node, target_node, field_name, delta).
        """
        for source, target, data in self._graph.edges(data=True):
            yield source, target, data["field"], data["delta"]
