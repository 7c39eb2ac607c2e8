"""Core data models for SKChecklist.

A checklist is a tree of form items. Leaves collect responses keyed by
their ``name``; groups only nest other items. Any item can carry a
visibility condition that ties its relevance to another field's current
value, anywhere in the same checklist.

The JSON shape matches the document service's checklist endpoints so a
checklist can be retrieved, previewed, signed and copied without any
translation layer.
"""

from datetime import datetime, timezone
from enum import Enum, IntEnum
from typing import Annotated, Any, Literal, Optional, Union
from uuid import uuid4

from pydantic import AliasChoices, BaseModel, Field, field_validator


def _new_id() -> str:
    return uuid4().hex[:12]


def _new_token() -> str:
    return uuid4().hex


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class FieldType(str, Enum):
    """Checklist item types. Closed set: the engine handles every one."""

    TEXT = "text"
    EMAIL = "email"
    TEXTAREA = "textarea"
    DATE_TIME = "date_time"
    RADIO = "radio"
    SELECT = "select"
    CHECKBOX = "checkbox"
    MULTI_SELECT = "multi-select"
    GROUP = "group"


MULTI_VALUE_TYPES = frozenset({FieldType.CHECKBOX, FieldType.MULTI_SELECT})


class ConditionOperator(str, Enum):
    """Comparison applied by a visibility condition."""

    EQUALS = "equals"
    CONTAINS = "contains"


class DocumentType(IntEnum):
    """What a template bundles, using the document service's codes."""

    DOCUMENT_ONLY = 1
    CHECKLIST_ONLY = 2
    DOCUMENT_WITH_CHECKLIST = 3


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

class ChecklistRules(BaseModel):
    """Authoring rules enforced when a checklist is built or parsed.

    Attributes:
        min_options: Minimum number of options for choice-type fields.
        min_items: Minimum number of top-level items in a checklist.
        title_max_length: Longest accepted checklist title.
        description_max_length: Longest accepted checklist description.
        require_title: Reject checklists with an empty title.
        require_description: Reject checklists with an empty description.
        detect_cycles: Report cyclic visibility dependencies when linting.
    """

    min_options: int = 2
    min_items: int = 1
    title_max_length: int = 100
    description_max_length: int = 500
    require_title: bool = True
    require_description: bool = True
    detect_cycles: bool = True


DEFAULT_RULES = ChecklistRules()


# ---------------------------------------------------------------------------
# Checklist items
# ---------------------------------------------------------------------------

class ChecklistOption(BaseModel):
    """A selectable choice: ``label`` is shown, ``value`` is stored."""

    label: str = ""
    value: str = ""


class VisibilityCondition(BaseModel):
    """Show an item only when another field's response matches.

    Attributes:
        field_name: ``name`` of the field whose response is inspected.
        operator: How the response is compared to ``value``.
        value: Expected value (equals) or substring (contains).
    """

    field_name: str
    operator: ConditionOperator = ConditionOperator.EQUALS
    value: str = ""


class _ItemBase(BaseModel):
    """Attributes shared by every checklist item.

    Attributes:
        id: Identifier unique within one checklist. Integer ids from the
            document service are accepted and stored as strings.
        name: Response key. Required for every non-group item.
        text: Prompt shown to the signer.
        required: Whether a visible item must be answered before signing.
        order: Sort key among siblings (ascending, ties keep input order).
        visibility_condition: Optional rule gating this item's visibility.
    """

    id: str = Field(default_factory=_new_id)
    name: Optional[str] = None
    text: str = ""
    required: bool = False
    order: int = 0
    visibility_condition: Optional[VisibilityCondition] = Field(
        None,
        validation_alias=AliasChoices("visibility_condition", "visibilityCondition"),
    )

    model_config = {"populate_by_name": True, "extra": "forbid"}

    @field_validator("id", mode="before")
    @classmethod
    def _stringify_id(cls, value):
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value

    @property
    def field_type(self) -> FieldType:
        return FieldType(self.type)

    @property
    def is_group(self) -> bool:
        return self.type == FieldType.GROUP.value


class InputItem(_ItemBase):
    """Free-entry field: single string response."""

    type: Literal["text", "email", "textarea", "date_time"] = "text"


class ChoiceItem(_ItemBase):
    """Field answered by picking from ``options``.

    ``checkbox`` and ``multi-select`` collect a list of values; ``radio``
    and ``select`` collect a single value.
    """

    type: Literal["radio", "select", "checkbox", "multi-select"]
    options: list[ChecklistOption] = Field(default_factory=list)

    @property
    def is_multi_value(self) -> bool:
        return self.field_type in MULTI_VALUE_TYPES


class GroupItem(_ItemBase):
    """Container for nested items. Never collects a response itself."""

    type: Literal["group"] = "group"
    items: list["ChecklistItem"] = Field(default_factory=list)


ChecklistItem = Annotated[
    Union[InputItem, ChoiceItem, GroupItem],
    Field(discriminator="type"),
]

GroupItem.model_rebuild()


# ---------------------------------------------------------------------------
# Checklist and template
# ---------------------------------------------------------------------------

class Checklist(BaseModel):
    """A reusable checklist schema addressed by ``token``.

    Attributes:
        token: Addressing token assigned by the document service.
        title: Checklist title.
        description: What the checklist is for.
        items: Top-level items (groups carry their own children).
        created_at: Creation timestamp.
        updated_at: Last modification timestamp.
    """

    token: str = Field(default_factory=_new_token)
    title: str = ""
    description: str = ""
    items: list[ChecklistItem] = Field(default_factory=list)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
    updated_at: Optional[datetime] = None

    def to_definition(self) -> dict:
        """Render the creation payload ``{title, description, items}``."""
        return {
            "title": self.title,
            "description": self.description,
            "items": [
                item.model_dump(mode="json", exclude_none=True)
                for item in self.items
            ],
        }


class Attachment(BaseModel):
    """Binary attachment metadata carried by a template."""

    id: str
    filename: str = ""
    original_name: str = ""
    file_type: str = ""
    file_size: int = 0
    url: str = ""
    uploaded_at: Optional[datetime] = None

    @field_validator("id", mode="before")
    @classmethod
    def _stringify_id(cls, value):
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value


class TemplateDefinition(BaseModel):
    """A document wrapper bundling a checklist and/or an attachment.

    Attributes:
        token: Template token.
        document_title: Title of the document to sign.
        comments: Free-form notes.
        document_type: Which parts the template bundles.
        attachment: The binary document, if any.
        checklist: The checklist, if any.
    """

    token: str = Field(default_factory=_new_token)
    document_title: str = ""
    comments: str = ""
    document_type: DocumentType = DocumentType.CHECKLIST_ONLY
    attachment: Optional[Attachment] = None
    checklist: Optional[Checklist] = None

    @property
    def has_checklist(self) -> bool:
        return self.document_type in (
            DocumentType.CHECKLIST_ONLY,
            DocumentType.DOCUMENT_WITH_CHECKLIST,
        )


# ---------------------------------------------------------------------------
# Validation results
# ---------------------------------------------------------------------------

class MissingField(BaseModel):
    """A required, visible field that has no response yet."""

    name: str
    text: str = ""

    @property
    def message(self) -> str:
        return f"{self.text or self.name} is required"


# ---------------------------------------------------------------------------
# Submission
# ---------------------------------------------------------------------------

class DeviceInfo(BaseModel):
    """Signer device/browser metadata recorded for the audit trail.

    Attributes:
        ip_address: Signer's IP address.
        browser_signature: Full user-agent string.
        browser_name: Short browser identifier (first user-agent token).
        is_mobile: Whether the signer used a mobile device.
        device_type: ``Mobile`` or ``Desktop``.
        device_os: Operating system / platform string.
    """

    ip_address: str = ""
    browser_signature: str = ""
    browser_name: str = ""
    is_mobile: bool = False
    device_type: str = "Desktop"
    device_os: str = ""


class SubmissionPayload(BaseModel):
    """Signed-document payload sent to the external signing endpoint.

    Serialize with ``model_dump(by_alias=True)`` to get the wire keys.
    """

    token: str
    responses: dict[str, Any] = Field(default_factory=dict)
    signature_data: str = Field(alias="signatureData")
    ip_address: str = Field("", alias="ipAddress")
    browser_signature: str = Field("", alias="browserSignature")
    browser_name: str = Field("", alias="browserName")
    is_mobile: Literal[0, 1] = Field(0, alias="isMobile")
    device_type: str = Field("Desktop", alias="deviceType")
    device_os: str = Field("", alias="deviceOs")

    model_config = {"populate_by_name": True}


class SubmissionResult(BaseModel):
    """Reply from the signing endpoint, opaque beyond these fields."""

    success: bool
    download_url: Optional[str] = None
    message: Optional[str] = None
