"""Exceptions and authoring warnings raised by SKChecklist.

Errors abort the operation that raised them: a malformed schema is never
built, an incomplete submission is never assembled. Warnings are findings
that leave the checklist usable (an unresolved condition simply keeps its
field hidden) and are reported to the author, not the signer.
"""

from typing import Optional, Union


class ChecklistError(Exception):
    """Base class for every SKChecklist error."""


class SchemaError(ChecklistError):
    """Malformed checklist definition.

    Attributes:
        problems: One human-readable message per violation found.
    """

    def __init__(self, problems: Union[list[str], str]) -> None:
        if isinstance(problems, str):
            problems = [problems]
        self.problems = list(problems)
        super().__init__("; ".join(self.problems))


class ValidationError(ChecklistError):
    """Submission attempted while required, visible fields are empty.

    Attributes:
        missing: Unmet fields in checklist order.
    """

    def __init__(self, missing: list) -> None:
        self.missing = list(missing)
        super().__init__(
            "Please fill in all required fields: " + ", ".join(self.messages)
        )

    @property
    def messages(self) -> list[str]:
        return [m.message for m in self.missing]


class MissingSignatureError(ChecklistError):
    """Submission attempted without a signature value."""

    def __init__(self, message: str = "Please provide your signature") -> None:
        super().__init__(message)


# ---------------------------------------------------------------------------
# Authoring warnings
# ---------------------------------------------------------------------------

class ChecklistWarning(UserWarning):
    """Non-blocking authoring finding tied to one item.

    Attributes:
        item_id: Item the finding is about.
        field_name: That item's ``name`` (if any).
    """

    def __init__(
        self, message: str, item_id: str, field_name: Optional[str] = None
    ) -> None:
        self.item_id = item_id
        self.field_name = field_name
        super().__init__(message)

    @property
    def message(self) -> str:
        return str(self)


class UnresolvedConditionReference(ChecklistWarning):
    """A visibility condition names a field that does not exist.

    The item stays hidden for every response set.
    """

    def __init__(self, item_id: str, field_name: Optional[str], reference: str) -> None:
        self.reference = reference
        label = field_name or item_id
        super().__init__(
            f"'{label}' is shown only when '{reference}' matches, "
            f"but no field named '{reference}' exists; it will never be visible",
            item_id,
            field_name,
        )


class SelfReferencingCondition(ChecklistWarning):
    """A field's visibility depends on its own response."""

    def __init__(self, item_id: str, field_name: str) -> None:
        super().__init__(
            f"'{field_name}' is shown only when its own value matches; "
            "it can only become visible if answered while hidden",
            item_id,
            field_name,
        )


class ConditionCycle(ChecklistWarning):
    """Fields whose visibility conditions depend on each other in a loop.

    Attributes:
        cycle: Field names along the loop, first name repeated at the end.
    """

    def __init__(self, item_id: str, cycle: list[str]) -> None:
        self.cycle = list(cycle)
        super().__init__(
            "Visibility conditions form a cycle: " + " -> ".join(self.cycle),
            item_id,
            self.cycle[0] if self.cycle else None,
        )


class DuplicateFieldName(ChecklistWarning):
    """Two fields in unrelated branches share a response key."""

    def __init__(self, item_id: str, field_name: str, first_id: str) -> None:
        self.first_id = first_id
        super().__init__(
            f"Field name '{field_name}' is also used by item {first_id}; "
            "both fields will read and write the same response",
            item_id,
            field_name,
        )
