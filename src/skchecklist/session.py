"""Signing session — one signer, one checklist, one response map.

The session owns its responses exclusively and treats the checklist as
read-only. Every response change recomputes visibility in full, so the
host UI can re-render straight from ``visible`` and ``missing()`` after
each keystroke.

Group expand/collapse state lives here too. It is display state only: it
is never persisted and never affects validation.
"""

import copy
import logging
from typing import Any, Mapping, Optional

from .assembler import assemble
from .errors import SchemaError
from .models import Checklist, DeviceInfo, GroupItem, MissingField, SubmissionPayload
from .schema import signing_checklist
from .tree import ChecklistIndex
from .validator import find_missing
from .visibility import compute_visible

logger = logging.getLogger("skchecklist.session")


class SigningSession:
    """Transient state for one signer filling in one checklist.

    Args:
        token: Token of the document or signing link being signed.
        checklist: The checklist to answer (deep-copied, then read-only).
        responses: Optional initial responses.
    """

    def __init__(
        self,
        token: str,
        checklist: Checklist,
        responses: Optional[Mapping[str, Any]] = None,
    ) -> None:
        self.token = token
        self.checklist = checklist.model_copy(deep=True)
        self._index = ChecklistIndex(self.checklist)
        self._responses: dict[str, Any] = copy.deepcopy(dict(responses or {}))
        self._expanded: set[str] = set()
        self._visible: frozenset[str] = frozenset()
        self._recompute()

    @classmethod
    def for_template(cls, token: str, template) -> "SigningSession":
        """Open a session on the checklist portion of a template.

        Raises:
            SchemaError: If the template carries no checklist.
        """
        checklist = signing_checklist(template)
        if checklist is None:
            raise SchemaError(f"Template {template.token[:8]} has no checklist to sign")
        return cls(token, checklist)

    # ------------------------------------------------------------------
    # Responses
    # ------------------------------------------------------------------

    @property
    def responses(self) -> dict[str, Any]:
        """Copy of the current responses."""
        return copy.deepcopy(self._responses)

    @property
    def visible(self) -> frozenset[str]:
        return self._visible

    def is_visible(self, name: str) -> bool:
        return name in self._visible

    def get(self, name: str, default: Any = None) -> Any:
        return copy.deepcopy(self._responses.get(name, default))

    def set_response(self, name: str, value: Any) -> frozenset[str]:
        """Record a response and recompute visibility.

        Returns:
            The new visible set.
        """
        self._responses[name] = copy.deepcopy(value)
        return self._recompute()

    def clear_response(self, name: str) -> frozenset[str]:
        self._responses.pop(name, None)
        return self._recompute()

    def update(self, responses: Mapping[str, Any]) -> frozenset[str]:
        """Record several responses at once, recomputing once."""
        for name, value in responses.items():
            self._responses[name] = copy.deepcopy(value)
        return self._recompute()

    def _recompute(self) -> frozenset[str]:
        self._visible = compute_visible(self._index, self._responses)
        return self._visible

    # ------------------------------------------------------------------
    # Group display state
    # ------------------------------------------------------------------

    def toggle_group(self, group_id: str) -> bool:
        """Flip a group between expanded and collapsed.

        Returns:
            True if the group is now expanded.

        Raises:
            KeyError: If ``group_id`` is not a group in this checklist.
        """
        if not isinstance(self._index.get(group_id), GroupItem):
            raise KeyError(f"Group {group_id} not found")
        if group_id in self._expanded:
            self._expanded.discard(group_id)
            return False
        self._expanded.add(group_id)
        return True

    def is_expanded(self, group_id: str) -> bool:
        return group_id in self._expanded

    # ------------------------------------------------------------------
    # Validation and submission
    # ------------------------------------------------------------------

    def missing(self) -> list[MissingField]:
        return find_missing(self._index, self._visible, self._responses)

    def messages(self) -> list[str]:
        """Human-readable list of what still needs answering."""
        return [m.message for m in self.missing()]

    @property
    def is_complete(self) -> bool:
        return not self.missing()

    def submit(self, signature: Optional[str], device_info: DeviceInfo) -> SubmissionPayload:
        """Assemble the signed payload.

        Raises:
            ValidationError: If required, visible fields are empty.
            MissingSignatureError: If the signature is blank.
        """
        payload = assemble(
            self.token, self._responses, signature, device_info, self._index
        )
        logger.info("Session %s submitted", self.token[:8])
        return payload
