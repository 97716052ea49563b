"""Builder for converting a SiteSnapshot to a ReferenceGraph."""

from ..storage.base import REFERENCE_PROPERTY
from ..storage.models import SiteSnapshot
from .node_types import REFERENCE_FIELD_TYPES, EdgeType
from .reference_graph import ReferenceGraph


def build_reference_graph(snapshot: SiteSnapshot) -> ReferenceGraph:
    """Build a ReferenceGraph from a SiteSnapshot.

    A field value counts as a reference when its field storage is one of the
    reference field types, or when the item names its own target_type (base
    fields and dynamic references).

    Args:
        snapshot: The parsed site snapshot.

    Returns:
        A ReferenceGraph holding every stored entity.
    """
    graph = ReferenceGraph()

    # Add all stored entities first
    for entity_type in snapshot.entity_types:
        for entity in snapshot.get_entities(entity_type):
            graph.add_entity(entity_type, entity.id, bundle=entity.bundle)

    configs = {
        (config.entity_type, config.field_name): config
        for config in snapshot.field_storage
        if config.type in REFERENCE_FIELD_TYPES
    }

    # Add references (after all entities exist)
    for entity_type in snapshot.entity_types:
        for entity in snapshot.get_entities(entity_type):
            for field_name, items in entity.fields.items():
                config = configs.get((entity_type, field_name))
                ref_type = config.type if config else EdgeType.ENTITY_REFERENCE.value
                for delta, item in enumerate(items):
                    if REFERENCE_PROPERTY not in item:
                        continue
                    target_type = item.get("target_type") or (
                        config.target_type if config else None
                    )
                    if not target_type:
                        continue
                    graph.add_reference(
                        entity_type,
                        entity.id,
                        target_type,
                        item[REFERENCE_PROPERTY],
                        field_name,
                        delta,
                        ref_type=ref_type,
                    )

    return graph
