import os
import sys
from types import SimpleNamespace

import pytest

sys.path.append(os.path.join(os.path.dirname(__file__), ".."))

from inventorypro.errors import FormValidationError
from inventorypro.forms import (
    COLLABORATOR_FORM_DEFAULTS,
    ITEM_FORM_DEFAULTS,
    MAX_COUNT,
    coerce_count,
    collaborator_payload,
    empty_form,
    form_from_request,
    form_from_row,
    item_payload,
)
from inventorypro.search import ITEM_SEARCH_FIELDS, filter_rows


def test_filter_is_case_insensitive_substring():
    rows = [{"name": "Laptop"}, {"name": "Mouse"}]
    assert filter_rows(rows, "lap", ["name"]) == [{"name": "Laptop"}]
    assert filter_rows(rows, "LAP", ["name"]) == [{"name": "Laptop"}]


def test_empty_query_returns_all_rows_in_order():
    rows = [{"name": "Mouse"}, {"name": "Laptop"}]
    assert filter_rows(rows, "", ["name"]) == rows
    assert filter_rows(rows, None, ["name"]) == rows


def test_filter_does_not_modify_input():
    rows = [{"name": "Laptop"}, {"name": "Mouse"}]
    snapshot = list(rows)
    filter_rows(rows, "mouse", ["name"])
    assert rows == snapshot


def test_filter_reads_attributes_and_skips_missing_values():
    rows = [
        SimpleNamespace(name="Cable", patrimony_number="PAT-1", category=None),
        SimpleNamespace(name="Switch", patrimony_number="PAT-2", category="Network"),
    ]
    assert filter_rows(rows, "network", ITEM_SEARCH_FIELDS) == [rows[1]]
    assert filter_rows(rows, "pat-1", ITEM_SEARCH_FIELDS) == [rows[0]]
    assert filter_rows(rows, "none", ITEM_SEARCH_FIELDS) == []


def test_empty_form_is_a_fresh_copy():
    form = empty_form(ITEM_FORM_DEFAULTS)
    form["name"] = "changed"
    assert ITEM_FORM_DEFAULTS["name"] == ""
    assert empty_form(ITEM_FORM_DEFAULTS)["quantity"] == 0


def test_form_from_row_turns_missing_values_into_empty_strings():
    row = SimpleNamespace(name="Ana", email=None, department="IT", position=None)
    assert form_from_row(row, COLLABORATOR_FORM_DEFAULTS) == {
        "name": "Ana",
        "email": "",
        "department": "IT",
        "position": "",
    }


def test_form_from_request_keeps_defaults_for_absent_fields():
    form = form_from_request({"name": " Laptop ", "quantity": "3"}, ITEM_FORM_DEFAULTS)
    assert form["name"] == "Laptop"
    assert form["quantity"] == "3"
    assert form["minimum_stock"] == 0
    assert form["status"] == "available"


@pytest.mark.parametrize(
    "value, expected",
    [("", 0), (None, 0), ("7", 7), (" 12 ", 12), ("3.0", 3), (4, 4)],
)
def test_coerce_count(value, expected):
    assert coerce_count(value, "Quantity") == expected


@pytest.mark.parametrize("value", ["abc", "-2", "inf", "99999999999999999999", "1e30"])
def test_coerce_count_rejects_invalid_values(value):
    with pytest.raises(FormValidationError):
        coerce_count(value, "Quantity")


def test_item_payload_coerces_counts_and_collaborator():
    payload = item_payload(
        {
            "patrimony_number": " PAT-0001 ",
            "name": "Laptop",
            "quantity": "5",
            "minimum_stock": "",
            "collaborator_id": "3",
            "status": "",
        }
    )
    assert payload["patrimony_number"] == "PAT-0001"
    assert payload["quantity"] == 5
    assert payload["minimum_stock"] == 0
    assert payload["collaborator_id"] == 3
    assert payload["status"] == "available"
    assert payload["description"] == ""


def test_item_payload_without_collaborator():
    payload = item_payload({"patrimony_number": "PAT-1", "name": "Desk", "collaborator_id": ""})
    assert payload["collaborator_id"] is None


def test_collaborator_payload_requires_name():
    with pytest.raises(FormValidationError) as excinfo:
        collaborator_payload({"name": "  "})
    assert excinfo.value.message == "Name is required."


def test_coerce_count_accepts_largest_integer_column_value():
    assert coerce_count(str(MAX_COUNT), "Quantity") == MAX_COUNT
    with pytest.raises(FormValidationError) as excinfo:
        coerce_count(str(MAX_COUNT + 1), "Quantity")
    assert excinfo.value.message == f"Quantity cannot exceed {MAX_COUNT}."
