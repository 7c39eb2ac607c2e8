"""Shared fixtures for SKChecklist tests."""

import pytest

from skchecklist.models import (
    Checklist,
    ChecklistOption,
    ChoiceItem,
    GroupItem,
    InputItem,
    VisibilityCondition,
)
from skchecklist.schema import parse_checklist


def _inspection_definition() -> dict:
    """Checklist definition as the document service returns it."""
    return {
        "token": "insp-token-0001",
        "title": "Vehicle Inspection",
        "description": "Condition report completed before handing over a rental.",
        "items": [
            {
                "id": 1,
                "type": "radio",
                "name": "condition",
                "text": "Overall condition",
                "required": True,
                "order": 1,
                "options": [
                    {"label": "Good", "value": "good"},
                    {"label": "Damaged", "value": "damaged"},
                ],
            },
            {
                "id": 2,
                "type": "textarea",
                "name": "damage_notes",
                "text": "Describe the damage",
                "required": True,
                "order": 2,
                "visibility_condition": {
                    "field_name": "condition",
                    "operator": "equals",
                    "value": "damaged",
                },
            },
            {
                "id": 3,
                "type": "group",
                "text": "Extras",
                "required": False,
                "order": 3,
                "items": [
                    {
                        "id": 4,
                        "type": "checkbox",
                        "name": "extras",
                        "text": "Extras included",
                        "required": False,
                        "order": 1,
                        "options": [
                            {"label": "GPS", "value": "gps"},
                            {"label": "Child seat", "value": "child_seat"},
                        ],
                    },
                    {
                        "id": 5,
                        "type": "text",
                        "name": "seat_model",
                        "text": "Child seat model",
                        "required": True,
                        "order": 2,
                        "visibility_condition": {
                            "field_name": "extras",
                            "operator": "contains",
                            "value": "child_seat",
                        },
                    },
                ],
            },
            {
                "id": 6,
                "type": "email",
                "name": "contact",
                "text": "Contact email",
                "required": True,
                "order": 0,
            },
        ],
    }


@pytest.fixture
def inspection_definition() -> dict:
    """Raw definition of the vehicle inspection checklist."""
    return _inspection_definition()


@pytest.fixture
def inspection(inspection_definition) -> Checklist:
    """Parsed vehicle inspection checklist."""
    return parse_checklist(inspection_definition)


@pytest.fixture
def nested_checklist() -> Checklist:
    """One group holding 3 fields and a sub-group holding 2 more."""
    return Checklist(
        title="Nested",
        description="Groups within groups",
        items=[
            GroupItem(
                id="outer",
                text="Outer",
                items=[
                    InputItem(id="f1", name="f1", order=1),
                    InputItem(id="f2", name="f2", order=2),
                    ChoiceItem(
                        id="f3",
                        name="f3",
                        type="select",
                        order=3,
                        options=[
                            ChecklistOption(label="A", value="a"),
                            ChecklistOption(label="B", value="b"),
                        ],
                    ),
                    GroupItem(
                        id="inner",
                        text="Inner",
                        order=4,
                        items=[
                            InputItem(id="f4", name="f4", order=1),
                            InputItem(id="f5", name="f5", order=2),
                        ],
                    ),
                ],
            )
        ],
    )


@pytest.fixture
def scenario() -> Checklist:
    """``detail`` is required and shown only when ``condition`` is 'show'."""
    return Checklist(
        title="Scenario",
        description="Conditional detail",
        items=[
            InputItem(name="condition", text="Condition", order=1),
            InputItem(
                name="detail",
                text="Detail",
                required=True,
                order=2,
                visibility_condition=VisibilityCondition(
                    field_name="condition", operator="equals", value="show"
                ),
            ),
        ],
    )
