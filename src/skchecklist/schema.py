"""Checklist schema construction, validation and inspection.

Everything here runs at authoring time. A checklist that fails
``validate_checklist`` must never be sent to the document service; the
problems are reported back to the author in one go, never repaired.
``lint_checklist`` reports softer findings that leave the checklist
usable.
"""

import logging
from typing import Optional, Union

from pydantic import ValidationError as PydanticValidationError

from .errors import (
    ChecklistWarning,
    ConditionCycle,
    DuplicateFieldName,
    SchemaError,
    SelfReferencingCondition,
    UnresolvedConditionReference,
)
from .models import (
    DEFAULT_RULES,
    Checklist,
    ChecklistRules,
    ChoiceItem,
    GroupItem,
    TemplateDefinition,
)
from .tree import ChecklistIndex, _children_of

logger = logging.getLogger("skchecklist.schema")


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------

def _format_pydantic_error(error: dict) -> str:
    location = ".".join(str(part) for part in error.get("loc", ()))
    return f"{location}: {error.get('msg', 'invalid value')}" if location else error.get("msg", "")


def parse_checklist(
    raw: Union[dict, str, bytes],
    rules: Optional[ChecklistRules] = None,
) -> Checklist:
    """Build and validate a checklist from raw JSON-compatible input.

    Args:
        raw: Checklist definition as a dict or a JSON document.
        rules: Authoring rules (defaults to ``DEFAULT_RULES``).

    Returns:
        The validated Checklist.

    Raises:
        SchemaError: If the input is malformed in any way.
    """
    try:
        if isinstance(raw, (str, bytes)):
            checklist = Checklist.model_validate_json(raw)
        else:
            checklist = Checklist.model_validate(raw)
    except PydanticValidationError as exc:
        raise SchemaError(
            [_format_pydantic_error(e) for e in exc.errors()]
        ) from exc

    validate_checklist(checklist, rules)
    return checklist


def parse_template(
    raw: Union[dict, str, bytes],
    rules: Optional[ChecklistRules] = None,
) -> TemplateDefinition:
    """Parse a template definition and validate its checklist portion.

    Raises:
        SchemaError: If the template or its checklist is malformed, or the
            ``document_type`` promises a checklist that is absent.
    """
    try:
        if isinstance(raw, (str, bytes)):
            template = TemplateDefinition.model_validate_json(raw)
        else:
            template = TemplateDefinition.model_validate(raw)
    except PydanticValidationError as exc:
        raise SchemaError(
            [_format_pydantic_error(e) for e in exc.errors()]
        ) from exc

    checklist = signing_checklist(template)
    if checklist is not None:
        validate_checklist(checklist, rules)
    return template


def signing_checklist(template: TemplateDefinition) -> Optional[Checklist]:
    """Return the checklist portion of a template (None for document-only).

    Raises:
        SchemaError: If ``document_type`` says a checklist is bundled but
            none is present.
    """
    if not template.has_checklist:
        return None
    if template.checklist is None:
        raise SchemaError(
            f"Template {template.token[:8]} is of type "
            f"{template.document_type.value} but carries no checklist"
        )
    return template.checklist


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

def validate_checklist(
    checklist: Checklist,
    rules: Optional[ChecklistRules] = None,
) -> None:
    """Check a checklist against the authoring rules.

    Raises:
        SchemaError: Listing every violation found.
    """
    rules = rules or DEFAULT_RULES
    problems: list[str] = []

    title = checklist.title.strip()
    if rules.require_title and not title:
        problems.append("Title is required")
    if len(checklist.title) > rules.title_max_length:
        problems.append(
            f"Title must be {rules.title_max_length} characters or less"
        )

    description = checklist.description.strip()
    if rules.require_description and not description:
        problems.append("Description is required")
    if len(checklist.description) > rules.description_max_length:
        problems.append(
            f"Description must be {rules.description_max_length} characters or less"
        )

    if len(checklist.items) < rules.min_items:
        problems.append(
            "At least one item is required"
            if rules.min_items == 1
            else f"At least {rules.min_items} items are required"
        )

    problems.extend(_item_problems(checklist.items, rules))
    if problems:
        raise SchemaError(problems)


def validate_items(items: list, rules: Optional[ChecklistRules] = None) -> None:
    """Check item structure only (no title/description/count rules).

    Raises:
        SchemaError: Listing every violation found.
    """
    problems = _item_problems(items, rules or DEFAULT_RULES)
    if problems:
        raise SchemaError(problems)


def _item_problems(items: list, rules: ChecklistRules) -> list[str]:
    problems: list[str] = []
    _check_level(items, rules, prefix="", scope=frozenset(), seen_ids=set(), problems=problems)
    return problems


def _check_level(
    items: list,
    rules: ChecklistRules,
    prefix: str,
    scope: frozenset,
    seen_ids: set,
    problems: list[str],
) -> None:
    level_names: set[str] = set()

    for position, item in enumerate(items, start=1):
        label = f"Item {prefix}{position}"

        if item.id in seen_ids:
            problems.append(f"{label}: Duplicate item id '{item.id}'")
        seen_ids.add(item.id)

        condition = item.visibility_condition
        if condition is not None and not condition.field_name.strip():
            problems.append(f"{label}: Visibility condition needs a field name")

        if isinstance(item, GroupItem):
            continue

        name = (item.name or "").strip()
        if not name:
            problems.append(f"{label}: Name is required")
        elif name in level_names:
            problems.append(f"{label}: Name '{name}' is already used by a sibling")
        elif name in scope:
            problems.append(f"{label}: Name '{name}' is already used by an enclosing item")
        else:
            level_names.add(name)

        if isinstance(item, ChoiceItem):
            if len(item.options) < rules.min_options:
                problems.append(
                    f"{label}: At least {rules.min_options} options are required "
                    f"for {item.type}"
                )
            for index, option in enumerate(item.options, start=1):
                if not option.label.strip() or not option.value.strip():
                    problems.append(
                        f"{label}, Option {index}: Both label and value are required"
                    )

    # Children inherit every leaf name of every enclosing level.
    inner_scope = scope | level_names
    for position, item in enumerate(items, start=1):
        if not isinstance(item, GroupItem):
            continue
        label = f"Item {prefix}{position}"
        if not item.items:
            problems.append(f"{label}: Group must contain at least one item")
            continue
        _check_level(
            item.items,
            rules,
            prefix=f"{prefix}{position}.",
            scope=inner_scope,
            seen_ids=seen_ids,
            problems=problems,
        )


# ---------------------------------------------------------------------------
# Counting
# ---------------------------------------------------------------------------

def count_leaves(tree) -> int:
    """Count every non-group item at any depth. Groups never count."""
    total = 0
    for item in _children_of(tree):
        if isinstance(item, GroupItem):
            total += count_leaves(item.items)
        else:
            total += 1
    return total


def count_items(tree) -> int:
    """Count every item at any depth, groups included."""
    total = 0
    for item in _children_of(tree):
        total += 1
        if isinstance(item, GroupItem):
            total += count_items(item.items)
    return total


# ---------------------------------------------------------------------------
# Lint
# ---------------------------------------------------------------------------

def lint_checklist(
    checklist,
    rules: Optional[ChecklistRules] = None,
) -> list[ChecklistWarning]:
    """Report non-blocking authoring findings.

    Args:
        checklist: Checklist (or item list / index) to inspect.
        rules: ``detect_cycles`` toggles cycle reporting.

    Returns:
        Findings in checklist order; empty when nothing is suspicious.
    """
    rules = rules or DEFAULT_RULES
    index = ChecklistIndex.of(checklist)
    findings: list[ChecklistWarning] = []

    first_owner: dict[str, str] = {}
    for item, _ in index.walk():
        if isinstance(item, GroupItem) or not item.name:
            continue
        owner = first_owner.setdefault(item.name, item.id)
        if owner != item.id:
            findings.append(DuplicateFieldName(item.id, item.name, owner))

    for item, _ in index.walk():
        condition = item.visibility_condition
        if condition is None or not condition.field_name:
            continue
        reference = condition.field_name
        if not index.has_field(reference):
            findings.append(
                UnresolvedConditionReference(item.id, item.name, reference)
            )
        elif reference == item.name and not isinstance(item, GroupItem):
            findings.append(SelfReferencingCondition(item.id, item.name))

    if rules.detect_cycles:
        findings.extend(_find_cycles(index))

    for finding in findings:
        logger.warning("%s", finding)
    return findings


def _find_cycles(index: ChecklistIndex) -> list[ConditionCycle]:
    """Find loops in the field -> condition-target graph.

    Every field has at most one condition, so each node has at most one
    outgoing edge; following edges from each unvisited node finds every
    loop exactly once.
    """
    depends_on: dict[str, str] = {}
    for name, item_id in index.fields.items():
        condition = index.nodes[item_id].visibility_condition
        if condition is None:
            continue
        target = condition.field_name
        if target != name and index.has_field(target):
            depends_on[name] = target

    cycles: list[ConditionCycle] = []
    done: set[str] = set()
    for start in depends_on:
        path: list[str] = []
        on_path: dict[str, int] = {}
        current: Optional[str] = start
        while current is not None and current not in done:
            if current in on_path:
                loop = path[on_path[current]:] + [current]
                cycles.append(ConditionCycle(index.fields[current], loop))
                break
            on_path[current] = len(path)
            path.append(current)
            current = depends_on.get(current)
        done.update(path)
    return cycles


def describe(checklist: Checklist) -> dict:
    """Summary counts used by previews and the CLI."""
    return {
        "token": checklist.token,
        "title": checklist.title,
        "top_level_items": len(checklist.items),
        "total_items": count_items(checklist),
        "fields": count_leaves(checklist),
        "required_fields": sum(
            1 for item, _ in ChecklistIndex.of(checklist).walk()
            if not isinstance(item, GroupItem) and item.required
        ),
    }
