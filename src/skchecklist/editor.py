"""Field-by-field checklist authoring.

The editor holds a mutable draft. Items can be appended (to the top level
or into a group), removed, moved and given conditions while the draft is
still incomplete; nothing is validated until ``build()``, which returns an
independent, validated Checklist ready to send to the document service.
"""

import logging
from typing import Optional

from .errors import ChecklistWarning, SchemaError
from .models import (
    DEFAULT_RULES,
    Checklist,
    ChecklistOption,
    ChecklistRules,
    ChoiceItem,
    GroupItem,
    VisibilityCondition,
)
from .schema import lint_checklist, validate_checklist
from .tree import find_item, find_parent, sorted_children

logger = logging.getLogger("skchecklist.editor")


class ChecklistEditor:
    """Mutable draft of a checklist.

    Args:
        title: Checklist title.
        description: Checklist description.
        items: Initial items (deep-copied).
        rules: Authoring rules applied by ``build()``.
    """

    def __init__(
        self,
        title: str = "",
        description: str = "",
        items: Optional[list] = None,
        rules: Optional[ChecklistRules] = None,
    ) -> None:
        self.rules = rules or DEFAULT_RULES
        self._draft = Checklist(
            title=title,
            description=description,
            items=[item.model_copy(deep=True) for item in items or []],
        )

    @classmethod
    def from_checklist(
        cls, checklist: Checklist, rules: Optional[ChecklistRules] = None
    ) -> "ChecklistEditor":
        """Start editing an existing checklist (keeps its token)."""
        editor = cls(rules=rules)
        editor._draft = checklist.model_copy(deep=True)
        return editor

    @property
    def title(self) -> str:
        return self._draft.title

    @title.setter
    def title(self, value: str) -> None:
        self._draft.title = value

    @property
    def description(self) -> str:
        return self._draft.description

    @description.setter
    def description(self, value: str) -> None:
        self._draft.description = value

    @property
    def items(self) -> list:
        """Top-level items in sorted order (live draft objects)."""
        return sorted_children(self._draft)

    # ------------------------------------------------------------------
    # Items
    # ------------------------------------------------------------------

    def _container(self, parent_id: Optional[str]):
        if parent_id is None:
            return self._draft
        parent = find_item(self._draft, parent_id)
        if parent is None:
            raise KeyError(f"Item {parent_id} not found")
        if not isinstance(parent, GroupItem):
            raise SchemaError(f"Item {parent_id} is a {parent.type}, not a group")
        return parent

    def _item(self, item_id: str):
        item = find_item(self._draft, item_id)
        if item is None:
            raise KeyError(f"Item {item_id} not found")
        return item

    def add_item(self, item, parent_id: Optional[str] = None):
        """Append an item after its future siblings.

        The item's ``order`` becomes one more than the highest sibling
        order (1 for the first item).

        Args:
            item: InputItem, ChoiceItem or GroupItem (deep-copied).
            parent_id: Group to append into (None for the top level).

        Returns:
            The stored copy of the item.

        Raises:
            KeyError: If ``parent_id`` does not exist.
            SchemaError: If ``parent_id`` is not a group.
        """
        container = self._container(parent_id)
        stored = item.model_copy(deep=True)
        if find_item(self._draft, stored.id) is not None:
            raise SchemaError(f"Duplicate item id '{stored.id}'")
        stored.order = max((i.order for i in container.items), default=0) + 1
        container.items.append(stored)
        logger.debug("Added %s item %s (order %d)", stored.type, stored.id, stored.order)
        return stored

    def remove_item(self, item_id: str):
        """Remove an item (and, for groups, everything inside it).

        Returns:
            The removed item.

        Raises:
            KeyError: If the item does not exist.
        """
        container = find_parent(self._draft, item_id)
        if container is None:
            raise KeyError(f"Item {item_id} not found")
        item = self._item(item_id)
        container.items[:] = [i for i in container.items if i.id != item_id]
        logger.debug("Removed item %s", item_id)
        return item

    def move_item(self, item_id: str, position: int) -> None:
        """Move an item to ``position`` (0-based) among its siblings.

        Sibling orders are renumbered 1..n to match the new sequence.

        Raises:
            KeyError: If the item does not exist.
        """
        container = find_parent(self._draft, item_id)
        if container is None:
            raise KeyError(f"Item {item_id} not found")
        siblings = sorted_children(container)
        item = next(i for i in siblings if i.id == item_id)
        siblings.remove(item)
        position = max(0, min(position, len(siblings)))
        siblings.insert(position, item)
        for order, sibling in enumerate(siblings, start=1):
            sibling.order = order
        container.items[:] = siblings

    # ------------------------------------------------------------------
    # Options and conditions
    # ------------------------------------------------------------------

    def add_option(self, item_id: str, label: str = "", value: str = "") -> ChecklistOption:
        """Append an option to a choice-type item."""
        item = self._item(item_id)
        if not isinstance(item, ChoiceItem):
            raise SchemaError(f"Item {item_id} is a {item.type} and takes no options")
        option = ChecklistOption(label=label, value=value)
        item.options.append(option)
        return option

    def remove_option(self, item_id: str, index: int) -> ChecklistOption:
        """Remove the option at ``index`` from a choice-type item."""
        item = self._item(item_id)
        if not isinstance(item, ChoiceItem):
            raise SchemaError(f"Item {item_id} is a {item.type} and takes no options")
        return item.options.pop(index)

    def set_condition(
        self, item_id: str, condition: Optional[VisibilityCondition]
    ) -> None:
        """Attach, replace or (with None) clear an item's visibility condition."""
        self._item(item_id).visibility_condition = (
            condition.model_copy() if condition is not None else None
        )

    # ------------------------------------------------------------------
    # Output
    # ------------------------------------------------------------------

    def lint(self) -> list[ChecklistWarning]:
        """Non-blocking findings for the current draft."""
        return lint_checklist(self._draft, self.rules)

    def build(self) -> Checklist:
        """Validate the draft and return an independent Checklist.

        Raises:
            SchemaError: Listing every problem in the draft.
        """
        validate_checklist(self._draft, self.rules)
        checklist = self._draft.model_copy(deep=True)
        logger.info(
            "Built checklist %s (%s, %d top-level items)",
            checklist.token[:8],
            checklist.title,
            len(checklist.items),
        )
        return checklist
