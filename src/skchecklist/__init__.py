"""SKChecklist — dynamic checklists for document signing.

Conditionally-visible form fields, nested groups, required-field
validation and signed-submission assembly over plain JSON data.
"""

from .assembler import assemble, detect_device
from .editor import ChecklistEditor
from .errors import (
    ChecklistError,
    ChecklistWarning,
    MissingSignatureError,
    SchemaError,
    UnresolvedConditionReference,
    ValidationError,
)
from .models import (
    Checklist,
    ChecklistItem,
    ChecklistOption,
    ChecklistRules,
    ChoiceItem,
    DeviceInfo,
    GroupItem,
    InputItem,
    SubmissionPayload,
    VisibilityCondition,
)
from .schema import count_items, count_leaves, lint_checklist, parse_checklist
from .session import SigningSession
from .tree import copy_checklist, sorted_children
from .validator import find_missing
from .visibility import compute_visible

__version__ = "0.1.0"
