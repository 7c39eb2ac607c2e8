"""Required-field validation for a signing session.

A field blocks submission only while it is required, visible and empty.
Hidden fields never block, whatever their value.
"""

import logging
from typing import Any, Iterable, Mapping

from .errors import ValidationError
from .models import GroupItem, MissingField
from .tree import ChecklistIndex
from .visibility import compute_visible, evaluate_condition

logger = logging.getLogger("skchecklist.validator")


def is_empty_response(value: Any) -> bool:
    """True for ``None``, the empty string and empty lists."""
    if value is None:
        return True
    if isinstance(value, str):
        return value == ""
    if isinstance(value, (list, tuple, set, frozenset)):
        return len(value) == 0
    return False


def find_missing(
    tree,
    visible: Iterable[str],
    responses: Mapping[str, Any],
) -> list[MissingField]:
    """List required, visible fields that have no response.

    Args:
        tree: Checklist, item list, GroupItem or ChecklistIndex.
        visible: Field names currently visible (from ``compute_visible``).
        responses: Current response map.

    Returns:
        Unmet fields in sorted checklist order. Empty means submittable.
    """
    index = ChecklistIndex.of(tree)
    visible = visible if isinstance(visible, (set, frozenset)) else set(visible)
    missing: list[MissingField] = []

    for item, _ in index.walk():
        if isinstance(item, GroupItem):
            continue
        if not item.required or item.name not in visible:
            continue
        # A shared name is visible when any of its fields is; each field
        # still answers to its own condition.
        if not evaluate_condition(item.visibility_condition, responses, index.fields):
            continue
        if is_empty_response(responses.get(item.name)):
            missing.append(MissingField(name=item.name, text=item.text))

    return missing


def check_responses(tree, responses: Mapping[str, Any]) -> list[str]:
    """Validate a response map in one call.

    Returns:
        The visible field names, for callers that need them next.

    Raises:
        ValidationError: If any required, visible field is empty.
    """
    index = ChecklistIndex.of(tree)
    visible = compute_visible(index, responses)
    missing = find_missing(index, visible, responses)
    if missing:
        logger.warning(
            "Rejected responses: %d required field(s) missing (%s)",
            len(missing),
            ", ".join(m.name for m in missing),
        )
        raise ValidationError(missing)
    return sorted(visible)
