"""Referential integrity check for entity reference fields.

Covers core entity_reference forward links. The entity_reference_revisions
and dynamic_entity_reference steps are declared but produce no result yet.
"""

import logging
from typing import Any, Callable

from ..graph.node_types import EdgeType
from ..storage.base import REFERENCE_PROPERTY, EntityRecord, EntityStorage
from ..storage.errors import StorageError
from .base import CheckDefinition, Pass, ProgressCallback, Result

logger = logging.getLogger(__name__)

STEP_ER = EdgeType.ENTITY_REFERENCE.value
STEP_DER = EdgeType.DYNAMIC_ENTITY_REFERENCE.value
STEP_ERR = EdgeType.ENTITY_REFERENCE_REVISIONS.value

REFERENCE_INTEGRITY = CheckDefinition(
    id="references.integrity",
    label="Referential integrity",
    description=(
        "This check finds broken entity references. Missing nodes or "
        "references mean broken links and a bad user experience. These "
        "should usually be edited."
    ),
    step_ids=(STEP_ER, STEP_DER, STEP_ERR),
    uses_batch=True,
)

# entity_type -> field_name -> target entity_type
ReferenceFieldMap = dict[str, dict[str, str | None]]

# entity_type -> entity_id -> field_name -> delta -> target_id
BrokenReferenceReport = dict[str, dict[Any, dict[str, dict[int, Any]]]]


def build_entity_reference_field_map(storage: EntityStorage) -> ReferenceFieldMap:
    """Build a map of entity_reference fields per entity type.

    Only fields stored as entity_reference are included; revision and dynamic
    references are left to their own steps.

    Args:
        storage: Entity storage providing the field storage configs.

    Returns:
        The field map.
    """
    fields: ReferenceFieldMap = {}
    for config in storage.load_all_field_storage_configs():
        if config.type != STEP_ER:
            continue
        fields.setdefault(config.entity_type, {})[config.field_name] = config.target_type
    return fields


def _same_id(a: Any, b: Any) -> bool:
    return str(a) == str(b)


def is_reference_resolved(
    referenced: list[EntityRecord], target_type: str | None, target_id: Any
) -> bool:
    """Check if a declared target is among the resolved references.

    The entity type must match before the ID is compared, so an equal ID
    under another entity type does not count.
    """
    for target in referenced:
        if target.entity_type_id != target_type:
            continue
        if _same_id(target.id, target_id):
            return True
    return False


class ReferenceIntegrityCheck:
    """Find entity reference values pointing to entities that do not exist."""

    definition = REFERENCE_INTEGRITY

    def __init__(self, storage: EntityStorage):
        """Initialize the check.

        Args:
            storage: Entity storage for every entity type to scan.
        """
        self.storage = storage

    def check_entity_reference(self) -> Result:
        """Verify integrity of entity_reference forward links.

        Returns:
            Result whose payload is the broken reference report. Entity types
            whose storage failed are listed in the result errors.
        """
        report: BrokenReferenceReport = {}
        errors: dict[str, str] = {}

        try:
            field_map = build_entity_reference_field_map(self.storage)
        except StorageError as e:
            logger.warning("Cannot load field storage configs: %s", e)
            errors["field_storage_config"] = f"Cannot load field storage configs: {e}"
            return Result(STEP_ER, False, report, errors)

        for entity_type, fields in field_map.items():
            try:
                entities = self.storage.load_all_entities(entity_type)
            except StorageError as e:
                logger.warning("Skipping entity type %s: %s", entity_type, e)
                errors[entity_type] = f"Cannot load entities of type {entity_type}: {e}"
                continue

            broken_for_type = {}
            for entity in entities:
                broken = self._check_entity(entity, fields)
                if broken:
                    broken_for_type[entity.id] = broken

            logger.debug(
                "Checked %d %s entities, %d with broken references",
                len(entities),
                entity_type,
                len(broken_for_type),
            )
            if broken_for_type:
                report[entity_type] = broken_for_type

        passed = not report and not errors
        logger.info(
            "%s: %d entity types with broken references",
            STEP_ER,
            len(report),
        )
        return Result(STEP_ER, passed, report, errors)

    def _check_entity(
        self, entity: EntityRecord, fields: dict[str, str | None]
    ) -> dict[str, dict[int, Any]]:
        """Find the broken deltas of one entity, per field."""
        broken: dict[str, dict[int, Any]] = {}
        referenced: list[EntityRecord] | None = None

        for name, target_type in fields.items():
            items = entity.get_field(name)
            if items is None or items.is_empty():
                continue

            # Resolved once per entity, shared by all its fields.
            if referenced is None:
                referenced = entity.referenced_entities()

            field_broken = {}
            for delta, item in items:
                target_id = item.get(REFERENCE_PROPERTY)
                if not is_reference_resolved(referenced, target_type, target_id):
                    field_broken[delta] = target_id

            if field_broken:
                broken[name] = field_broken

        return broken

    def check_dynamic_entity_reference(self) -> Result | None:
        """Verify integrity of dynamic_entity_reference forward links."""
        return None

    def check_entity_reference_revisions(self) -> Result | None:
        """Verify entity_reference_revisions forward and backward links."""
        return None

    @property
    def steps(self) -> dict[str, Callable[[], Result | None]]:
        """The check steps, in execution order."""
        return {
            STEP_ER: self.check_entity_reference,
            STEP_DER: self.check_dynamic_entity_reference,
            STEP_ERR: self.check_entity_reference_revisions,
        }

    def run_step(self, step_id: str) -> Result | None:
        """Run a single step by ID, for orchestrators driving steps one at a time."""
        if step_id not in self.steps:
            raise KeyError(f"Unknown step '{step_id}' for {self.definition.id}")
        return self.steps[step_id]()

    def run(self, on_progress: ProgressCallback | None = None) -> Pass:
        """Run every step in order, advancing the lifecycle between steps."""
        pass_ = Pass.start(self.definition, on_progress)
        step_ids = self.definition.step_ids
        for index, step_id in enumerate(step_ids):
            pass_.record(self.run_step(step_id))
            if index < len(step_ids) - 1:
                pass_.life.advance()
        pass_.life.end()
        return pass_
