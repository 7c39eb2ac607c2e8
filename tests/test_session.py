"""Tests for signing sessions."""

import pytest

from skchecklist.assembler import detect_device
from skchecklist.errors import MissingSignatureError, SchemaError, ValidationError
from skchecklist.models import DocumentType, TemplateDefinition
from skchecklist.session import SigningSession


@pytest.fixture
def session(inspection) -> SigningSession:
    return SigningSession("link-abc", inspection)


class TestVisibility:
    """Visibility is recomputed after every change."""

    def test_initial(self, session):
        assert session.visible == frozenset({"contact", "condition", "extras"})

    def test_set_response_reveals(self, session):
        visible = session.set_response("condition", "damaged")
        assert "damage_notes" in visible
        assert session.is_visible("damage_notes")

    def test_clear_response_hides(self, session):
        session.set_response("condition", "damaged")
        session.clear_response("condition")
        assert not session.is_visible("damage_notes")

    def test_update(self, session):
        session.update({"condition": "damaged", "extras": ["child_seat"]})
        assert {"damage_notes", "seat_model"} <= session.visible

    def test_initial_responses(self, inspection):
        session = SigningSession("t", inspection, {"extras": ["gps", "child_seat"]})
        assert session.is_visible("seat_model")


class TestOwnership:
    """The session never shares state with its callers."""

    def test_inputs_not_mutated(self, inspection):
        initial = {"extras": ["gps"]}
        session = SigningSession("t", inspection, initial)
        session.set_response("contact", "x@y.z")
        assert initial == {"extras": ["gps"]}

    def test_responses_returns_copy(self, session):
        session.set_response("extras", ["gps"])
        session.responses["extras"].append("child_seat")
        assert session.get("extras") == ["gps"]

    def test_checklist_is_copied(self, inspection, session):
        inspection.items[0].required = False
        assert session.checklist.items[0].required is True


class TestGroups:
    """Expand/collapse is display state only."""

    def test_toggle(self, session):
        assert session.is_expanded("3") is False
        assert session.toggle_group("3") is True
        assert session.is_expanded("3") is True
        assert session.toggle_group("3") is False

    def test_toggle_non_group(self, session):
        with pytest.raises(KeyError):
            session.toggle_group("1")

    def test_toggle_unknown(self, session):
        with pytest.raises(KeyError):
            session.toggle_group("nope")

    def test_collapsed_group_still_validated(self, session):
        session.update({"contact": "a@b.c", "condition": "good", "extras": ["child_seat"]})
        assert session.is_expanded("3") is False
        assert [m.name for m in session.missing()] == ["seat_model"]


class TestSubmit:
    """Submission through the session."""

    def test_messages(self, session):
        assert session.messages() == [
            "Contact email is required",
            "Overall condition is required",
        ]
        assert session.is_complete is False

    def test_submit(self, session):
        session.update({"contact": "a@b.c", "condition": "good"})
        assert session.is_complete is True
        payload = session.submit("Chef", detect_device("Mozilla/5.0 (X11; Linux x86_64)"))
        assert payload.token == "link-abc"
        assert payload.responses == {"contact": "a@b.c", "condition": "good"}
        assert payload.device_os == "Linux"

    def test_submit_incomplete(self, session):
        with pytest.raises(ValidationError):
            session.submit("Chef", detect_device(""))

    def test_submit_unsigned(self, session):
        session.update({"contact": "a@b.c", "condition": "good"})
        with pytest.raises(MissingSignatureError):
            session.submit("  ", detect_device(""))


class TestForTemplate:
    """Opening a session from a template."""

    def test_checklist_template(self, inspection):
        template = TemplateDefinition(
            document_title="Rental",
            document_type=DocumentType.DOCUMENT_WITH_CHECKLIST,
            checklist=inspection,
        )
        session = SigningSession.for_template("link-1", template)
        assert session.checklist.title == "Vehicle Inspection"

    def test_document_only(self, inspection):
        template = TemplateDefinition(
            document_type=DocumentType.DOCUMENT_ONLY, checklist=inspection
        )
        with pytest.raises(SchemaError, match="no checklist to sign"):
            SigningSession.for_template("link-1", template)

    def test_declared_but_absent(self):
        template = TemplateDefinition(document_type=DocumentType.CHECKLIST_ONLY)
        with pytest.raises(SchemaError, match="carries no checklist"):
            SigningSession.for_template("link-1", template)
