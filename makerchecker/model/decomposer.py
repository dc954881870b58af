# ==============================================
# Decomposer
# ==============================================
#
# PURPOSE:
#   Split a composite payload into the parent's own fields and the
#   ordered list of child records, and put a read response back
#   together the other way round.
#
# RULES:
# ------
#   - Children travel under the reserved key "beans" as a list.
#   - The read-response shape (children listed under the Bean's own
#     entity name) is accepted as input as well.
#   - A child names its Bean with the reserved key "__bean__". If the
#     Module owns exactly one Bean, the tag may be omitted.
#   - A child that does not carry one of its Bean's fields which is
#     also a primary key of the parent inherits the parent's value.
#
# Pure functions, no side effects: input payloads are never mutated.
# ==============================================

from typing import Any, Dict, List, Mapping, Optional

from makerchecker.model.columns import BEAN_NAME_KEY, BEANS_KEY
from makerchecker.model.entity import Entity
from makerchecker.model.record import CompositeRecord, Record


class DecompositionError(ValueError):
    """The payload cannot be split according to the entity's metadata."""


def _resolve_bean(module: Entity, child: Mapping[str, Any], position: str) -> Entity:
    tag = child.get(BEAN_NAME_KEY)
    if tag is not None:
        bean = module.bean(str(tag))
        if bean is None:
            raise DecompositionError(f"{position}: {module.entity_name} owns no bean named {tag!r}")
        return bean
    if len(module.beans) == 1:
        return module.beans[0]
    raise DecompositionError(f"{position}: child record must name its bean with {BEAN_NAME_KEY!r}")


def _child_payloads(module: Entity, payload: Mapping[str, Any]) -> List[tuple]:
    """(position label, bean, child dict) for every child in the payload."""
    found = []

    listed = payload.get(BEANS_KEY)
    if listed is not None:
        if not isinstance(listed, list):
            raise DecompositionError(f"{BEANS_KEY} must be a list of records")
        for i, child in enumerate(listed):
            position = f"{BEANS_KEY}[{i}]"
            if not isinstance(child, Mapping):
                raise DecompositionError(f"{position}: child record must be an object")
            found.append((position, _resolve_bean(module, child, position), child))

    for bean in module.beans:
        grouped = payload.get(bean.entity_name)
        if grouped is None:
            continue
        if not isinstance(grouped, list):
            raise DecompositionError(f"{bean.entity_name} must be a list of records")
        for i, child in enumerate(grouped):
            position = f"{bean.entity_name}[{i}]"
            if not isinstance(child, Mapping):
                raise DecompositionError(f"{position}: child record must be an object")
            found.append((position, bean, child))

    return found


def parent_fields(module: Entity, payload: Mapping[str, Any]) -> Dict[str, Any]:
    """The payload without the reserved child keys."""
    reserved = {BEANS_KEY} | {b.entity_name for b in module.beans}
    return {k: v for k, v in payload.items() if k not in reserved}


def decompose(module: Entity, payload: Mapping[str, Any]) -> CompositeRecord:
    """
    Split a payload into a parent Record and its child Records.

    Args:
        module: Schema of the top-level entity
        payload: Incoming mapping, possibly carrying children

    Returns:
        CompositeRecord with each child bound to its Bean

    Raises:
        DecompositionError: children are malformed or cannot be matched
            to a Bean of the module
    """
    if not isinstance(payload, Mapping):
        raise DecompositionError("Record must be an object")

    parent = Record(module, parent_fields(module, payload))
    if not module.beans:
        if payload.get(BEANS_KEY):
            raise DecompositionError(f"{module.entity_name} owns no beans")
        return CompositeRecord(parent)

    children = []
    for _, bean, child in _child_payloads(module, payload):
        values = {k: v for k, v in child.items() if k != BEAN_NAME_KEY}
        for name in module.primary_field_names:
            if bean.get_field(name) is not None and values.get(name) is None and name in parent:
                values[name] = parent[name]
        children.append(Record(bean, values))

    return CompositeRecord(parent, children)


def child_positions(module: Entity, payload: Mapping[str, Any]) -> List[str]:
    """Position labels of the children, in the same order decompose() uses."""
    if not module.beans:
        return []
    return [position for position, _, _ in _child_payloads(module, payload)]


def compose(parent_row: Mapping[str, Any], children: Optional[Dict[str, List[Dict[str, Any]]]] = None) -> Dict[str, Any]:
    """
    Inverse of decompose() for read responses: the parent row with each
    Bean's rows attached under the Bean's entity name.
    """
    composed = dict(parent_row)
    for bean_name, rows in (children or {}).items():
        composed[bean_name] = [dict(r) for r in rows]
    return composed
