"""Structural operations over a checklist tree.

Siblings are always processed in ascending ``order`` with ties kept in
declaration order, at every level independently. Callers never rely on
the order items arrive in.

``ChecklistIndex`` flattens a tree into an arena keyed by item id, with
parent -> child id lists. Conditions may point anywhere in the tree, so
the evaluator resolves them through the index instead of walking
ownership links.
"""

import logging
from datetime import datetime, timezone
from typing import Iterator, Optional, Union

from .errors import SchemaError
from .models import Checklist, GroupItem, _new_id, _new_token

logger = logging.getLogger("skchecklist.tree")


# ---------------------------------------------------------------------------
# Ordering
# ---------------------------------------------------------------------------

def _children_of(node) -> list:
    if isinstance(node, (Checklist, GroupItem)):
        return node.items
    if isinstance(node, (list, tuple)):
        return list(node)
    raise TypeError(f"Expected a checklist, group or item list, got {type(node).__name__}")


def sorted_children(node) -> list:
    """Return a node's children in render/evaluation order.

    Args:
        node: A Checklist, a GroupItem, or a plain list of items.

    Returns:
        New list sorted by ascending ``order``; equal orders keep their
        declaration order (``sorted`` is stable).
    """
    return sorted(_children_of(node), key=lambda item: item.order)


def sort_tree(node) -> list:
    """Recursively sorted deep copy of a node's children.

    The input is left untouched.
    """
    result = []
    for item in sorted_children(node):
        clone = item.model_copy(deep=True)
        if isinstance(clone, GroupItem):
            clone.items = sort_tree(clone.items)
        result.append(clone)
    return result


# ---------------------------------------------------------------------------
# Traversal and search
# ---------------------------------------------------------------------------

def iter_items(node, depth: int = 0) -> Iterator[tuple]:
    """Depth-first walk in sorted order, yielding ``(item, depth)``.

    Groups are yielded before their children.
    """
    for item in sorted_children(node):
        yield item, depth
        if isinstance(item, GroupItem):
            yield from iter_items(item.items, depth + 1)


def iter_leaves(node) -> Iterator:
    """Every non-group item at any depth, in sorted order."""
    for item, _ in iter_items(node):
        if not isinstance(item, GroupItem):
            yield item


def find_item(node, item_id: str):
    """Find an item (group or leaf) by id anywhere below ``node``.

    Returns:
        The item, or None.
    """
    for item in _children_of(node):
        if item.id == item_id:
            return item
        if isinstance(item, GroupItem):
            found = find_item(item.items, item_id)
            if found is not None:
                return found
    return None


def find_field(node, name: str):
    """Find the first leaf (in sorted order) whose ``name`` matches."""
    for leaf in iter_leaves(node):
        if leaf.name == name:
            return leaf
    return None


def find_parent(node, item_id: str) -> Optional[Union[Checklist, GroupItem, list]]:
    """Return the container holding ``item_id``: the node itself or a group."""
    for item in _children_of(node):
        if item.id == item_id:
            return node
        if isinstance(item, GroupItem):
            found = find_parent(item, item_id)
            if found is not None:
                return found
    return None


# ---------------------------------------------------------------------------
# Arena index
# ---------------------------------------------------------------------------

class ChecklistIndex:
    """Flat arena view of a checklist tree.

    Built in one pass; every lookup afterwards is a dict access.

    Attributes:
        nodes: Item id -> item.
        children: Parent id (None for the root) -> sorted child ids.
        parents: Item id -> parent id (None for top-level items).
        fields: Field name -> id of the first leaf carrying it.

    Raises:
        SchemaError: If two items share an id.
    """

    def __init__(self, tree) -> None:
        self.nodes: dict = {}
        self.children: dict[Optional[str], list[str]] = {None: []}
        self.parents: dict[str, Optional[str]] = {}
        self.fields: dict[str, str] = {}
        self._add(tree, None)

    @classmethod
    def of(cls, tree) -> "ChecklistIndex":
        """Return ``tree`` if already indexed, otherwise index it."""
        if isinstance(tree, cls):
            return tree
        return cls(tree)

    def _add(self, node, parent_id: Optional[str]) -> None:
        for item in sorted_children(node):
            if item.id in self.nodes:
                raise SchemaError(f"Duplicate item id '{item.id}'")
            self.nodes[item.id] = item
            self.parents[item.id] = parent_id
            self.children[parent_id].append(item.id)
            if isinstance(item, GroupItem):
                self.children[item.id] = []
                self._add(item.items, item.id)
            elif item.name:
                self.fields.setdefault(item.name, item.id)

    def __len__(self) -> int:
        return len(self.nodes)

    def __contains__(self, item_id: str) -> bool:
        return item_id in self.nodes

    @property
    def roots(self) -> list:
        return [self.nodes[i] for i in self.children[None]]

    def get(self, item_id: str):
        return self.nodes.get(item_id)

    def field(self, name: str):
        """Leaf item answering to ``name``, or None."""
        item_id = self.fields.get(name)
        return self.nodes[item_id] if item_id is not None else None

    def has_field(self, name: str) -> bool:
        return name in self.fields

    def walk(self, parent_id: Optional[str] = None, depth: int = 0) -> Iterator[tuple]:
        """Sorted depth-first walk over ids, yielding ``(item, depth)``."""
        for item_id in self.children.get(parent_id, []):
            item = self.nodes[item_id]
            yield item, depth
            if item_id in self.children:
                yield from self.walk(item_id, depth + 1)

    def leaves(self) -> Iterator:
        for item, _ in self.walk():
            if not isinstance(item, GroupItem):
                yield item

    def ancestors(self, item_id: str) -> list:
        """Groups enclosing ``item_id``, innermost first."""
        chain = []
        parent = self.parents.get(item_id)
        while parent is not None:
            chain.append(self.nodes[parent])
            parent = self.parents.get(parent)
        return chain


# ---------------------------------------------------------------------------
# Copy
# ---------------------------------------------------------------------------

def _regenerate_ids(items: list) -> None:
    for item in items:
        item.id = _new_id()
        if isinstance(item, GroupItem):
            _regenerate_ids(item.items)


def copy_checklist(
    checklist: Checklist,
    title: Optional[str] = None,
    regenerate_ids: bool = True,
) -> Checklist:
    """Duplicate a checklist as a new, independent template.

    Names, orders, options and conditions are copied verbatim; the copy
    shares no mutable state with the original.

    Args:
        checklist: Checklist to duplicate.
        title: Title for the copy (defaults to the original's).
        regenerate_ids: Assign fresh ids to every nested item.

    Returns:
        A new Checklist with its own token.
    """
    clone = checklist.model_copy(deep=True)
    clone.token = _new_token()
    clone.created_at = datetime.now(timezone.utc)
    clone.updated_at = None
    if title is not None:
        clone.title = title
    if regenerate_ids:
        _regenerate_ids(clone.items)

    logger.info(
        "Copied checklist %s -> %s (%s)",
        checklist.token[:8],
        clone.token[:8],
        clone.title,
    )
    return clone
