# ==============================================
# FieldValidator
# ==============================================
#
# PURPOSE:
#   Check a submitted payload against its entity's metadata BEFORE any
#   store access. Errors are collected per field rather than stopping
#   at the first one, so the caller can show them all at once.
#
# CHECKS (per record, parent and every child):
# --------------------------------------------
#   - primary key fields present and not null
#   - non-nullable fields present and not null
#   - value conforms to the declared data type
#   - string length within max_length
#   - no keys that the entity does not declare
#   - no two children of one bean sharing a primary key
#
# ERROR KEYS:
# -----------
#   Parent errors are keyed by field name, child errors by the child's
#   position, e.g. "beans[0].CITY" or "ADDRESS[1].PIN".
#
# ==============================================

from typing import Any, Dict, List, Mapping, Optional, Tuple

from makerchecker.model.columns import BEANS_KEY
from makerchecker.model.decomposer import DecompositionError, child_positions, decompose
from makerchecker.model.entity import Entity
from makerchecker.model.record import Record

from .type_detector import TypeDetector


class FieldValidator:
    """Metadata-driven validation of record payloads."""

    def __init__(self, type_detector: Optional[TypeDetector] = None):
        self.type_detector = type_detector or TypeDetector()

    def validate(self, entity: Entity, payload: Mapping[str, Any]) -> Dict[str, str]:
        """
        Validate a (possibly composite) payload.

        Args:
            entity: Module schema
            payload: Incoming field -> value mapping

        Returns:
            Mapping of error key -> message; empty when the payload is valid
        """
        try:
            composite = decompose(entity, payload)
        except DecompositionError as e:
            return {BEANS_KEY: str(e)}

        errors = self.validate_record(composite.parent)

        seen: Dict[Tuple[str, Tuple], str] = {}
        positions = child_positions(entity, payload)
        for position, child in zip(positions, composite.children):
            child_errors = self.validate_record(child)
            for name, message in child_errors.items():
                errors[f"{position}.{name}"] = message

            bean = child.entity
            if any(name in child_errors for name in bean.primary_field_names):
                continue
            marker = (bean.entity_name, self._typed_key(child))
            if marker in seen:
                # Both children would land on the same staging row
                for name in self._distinguishing_fields(entity, bean):
                    errors[f"{position}.{name}"] = f"{name} repeats the key of {seen[marker]}"
            else:
                seen[marker] = position

        return errors

    def _typed_key(self, record: Record) -> Tuple:
        return tuple(
            self.type_detector.coerce(record.get(f.name), f.data_type)[0]
            for f in record.entity.fields if f.primary_key
        )

    @staticmethod
    def _distinguishing_fields(entity: Entity, bean: Entity) -> List[str]:
        # Key fields the child sets itself; inherited parent keys never differ
        own = [name for name in bean.primary_field_names if name not in entity.primary_field_names]
        return own or bean.primary_field_names

    def validate_record(self, record: Record) -> Dict[str, str]:
        """Field-level checks of a single record against its own entity."""
        entity = record.entity
        errors: Dict[str, str] = {}

        for field in entity.fields:
            value = record.get(field.name)

            if value is None:
                if field.primary_key:
                    errors[field.name] = f"{field.name} is a primary key and is required"
                elif not field.nullable:
                    errors[field.name] = f"{field.name} is required"
                continue

            if not self.type_detector.conforms(value, field.data_type):
                errors[field.name] = f"{field.name} must be of type {field.data_type}"
                continue

            if field.max_length is not None and isinstance(value, str) and len(value) > field.max_length:
                errors[field.name] = f"{field.name} must be at most {field.max_length} characters"

        declared = set(entity.field_names)
        for name in record.values:
            if name not in declared:
                errors[name] = f"{name} is not a field of {entity.entity_name}"

        return errors
