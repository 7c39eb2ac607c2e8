"""Visibility evaluation for checklist fields.

Visibility is a pure function of (checklist, responses). It is recomputed
in full after every response change: a field may depend on any other
field, including ones declared later or inside unrelated groups, so there
is nothing safe to cache between changes.

Groups are always visible and never gate their children; only a field's
own condition decides whether that field is visible.
"""

import json
import logging
import math
from typing import Any, Mapping, Optional

from .models import ConditionOperator, GroupItem, VisibilityCondition
from .tree import ChecklistIndex

logger = logging.getLogger("skchecklist.visibility")


def stringify(value: Any) -> Optional[str]:
    """Implicit string form of a response value.

    Strings pass through, booleans become ``true``/``false``, whole
    floats drop their fraction (``1.0`` -> ``1``), lists are joined with
    commas, mappings become compact JSON and ``None`` stays undefined.
    """
    if value is None:
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple)):
        return ",".join("" if v is None else stringify(v) for v in value)
    if isinstance(value, float):
        if math.isnan(value):
            return "NaN"
        if math.isinf(value):
            return "Infinity" if value > 0 else "-Infinity"
        if value.is_integer():
            return str(int(value))
        return repr(value)
    if isinstance(value, dict):
        return json.dumps(value, separators=(",", ":"), default=str)
    return str(value)


def evaluate_condition(
    condition: Optional[VisibilityCondition],
    responses: Mapping[str, Any],
    known_fields=None,
) -> bool:
    """Decide whether a single condition holds.

    Args:
        condition: The condition (None means always visible).
        responses: Current response map keyed by field name.
        known_fields: Field names that exist in the checklist. When given,
            a condition naming anything else fails closed.

    Returns:
        True if the guarded item is visible.
    """
    if condition is None:
        return True
    if known_fields is not None and condition.field_name not in known_fields:
        return False

    current = stringify(responses.get(condition.field_name))

    if condition.operator == ConditionOperator.EQUALS:
        return current is not None and current == condition.value
    if condition.operator == ConditionOperator.CONTAINS:
        return bool(current) and condition.value in current
    return False


def compute_visible(tree, responses: Mapping[str, Any]) -> frozenset[str]:
    """Names of every leaf field currently visible.

    Args:
        tree: Checklist, item list, GroupItem or ChecklistIndex.
        responses: Current response map keyed by field name.

    Returns:
        Frozen set of visible field names. With no responses only the
        unconditional fields are visible.
    """
    index = ChecklistIndex.of(tree)
    visible: set[str] = set()

    for item, _ in index.walk():
        if isinstance(item, GroupItem) or not item.name:
            continue
        if evaluate_condition(item.visibility_condition, responses, index.fields):
            visible.add(item.name)

    logger.debug("%d of %d fields visible", len(visible), len(index.fields))
    return frozenset(visible)


def is_visible(tree, name: str, responses: Mapping[str, Any]) -> bool:
    """Visibility of a single field by name (False if it does not exist).

    A name carried by several fields is visible when any of them is,
    matching ``compute_visible``.
    """
    index = ChecklistIndex.of(tree)
    return any(
        evaluate_condition(item.visibility_condition, responses, index.fields)
        for item in index.leaves()
        if item.name == name
    )
