"""Form state shared by the create and edit dialogs."""

from __future__ import annotations

from typing import Dict, Mapping

from inventorypro.errors import FormValidationError
from inventorypro.models import ItemStatus


# Largest value a 32-bit INTEGER column holds.
MAX_COUNT = 2**31 - 1

ITEM_FORM_DEFAULTS: Dict[str, object] = {
    "patrimony_number": "",
    "name": "",
    "description": "",
    "category": "",
    "quantity": 0,
    "minimum_stock": 0,
    "location": "",
    "collaborator_id": "",
    "ticket_number": "",
    "status": ItemStatus.AVAILABLE.value,
}

COLLABORATOR_FORM_DEFAULTS: Dict[str, object] = {
    "name": "",
    "email": "",
    "department": "",
    "position": "",
}

PROFILE_FORM_DEFAULTS: Dict[str, object] = {
    "full_name": "",
    "email": "",
    "department": "",
}


def _blank(value) -> str:
    return "" if value is None else str(value)


def empty_form(defaults: Mapping[str, object]) -> Dict[str, object]:
    return dict(defaults)


def form_from_row(row, defaults: Mapping[str, object]) -> Dict[str, object]:
    """Prefill a form from a stored row; unset optional fields become ``""``."""

    form: Dict[str, object] = {}
    for field, default in defaults.items():
        value = getattr(row, field, None)
        if isinstance(default, int):
            form[field] = int(value or 0)
        else:
            form[field] = _blank(value)
    return form


def form_from_request(data: Mapping[str, str], defaults: Mapping[str, object]) -> Dict[str, object]:
    form: Dict[str, object] = {}
    for field, default in defaults.items():
        raw = data.get(field)
        form[field] = default if raw is None else raw.strip()
    return form


def coerce_count(value, label: str) -> int:
    if value is None or value == "":
        return 0
    try:
        number = int(str(value).strip())
    except (TypeError, ValueError):
        try:
            number = int(float(str(value).strip()))
        except (TypeError, ValueError, OverflowError):
            raise FormValidationError(f"{label} must be a number.")
    if number < 0:
        raise FormValidationError(f"{label} cannot be negative.")
    if number > MAX_COUNT:
        raise FormValidationError(f"{label} cannot exceed {MAX_COUNT}.")
    return number


def _item_status(value) -> str:
    raw = _blank(value).strip() or ItemStatus.AVAILABLE.value
    try:
        return ItemStatus(raw).value
    except ValueError:
        raise FormValidationError("Select a valid status.")


def item_payload(form: Mapping[str, object]) -> Dict[str, object]:
    """Column values for an item write, with counts coerced to integers."""

    patrimony = _blank(form.get("patrimony_number")).strip()
    name = _blank(form.get("name")).strip()
    if not patrimony:
        raise FormValidationError("Patrimony number is required.")
    if not name:
        raise FormValidationError("Name is required.")

    collaborator_raw = _blank(form.get("collaborator_id")).strip()
    if collaborator_raw:
        try:
            collaborator_id = int(collaborator_raw)
        except ValueError:
            raise FormValidationError("Select a valid collaborator.")
    else:
        collaborator_id = None

    return {
        "patrimony_number": patrimony,
        "name": name,
        "description": _blank(form.get("description")),
        "category": _blank(form.get("category")),
        "quantity": coerce_count(form.get("quantity"), "Quantity"),
        "minimum_stock": coerce_count(form.get("minimum_stock"), "Minimum stock"),
        "location": _blank(form.get("location")),
        "collaborator_id": collaborator_id,
        "ticket_number": _blank(form.get("ticket_number")),
        "status": _item_status(form.get("status")),
    }


def collaborator_payload(form: Mapping[str, object]) -> Dict[str, object]:
    name = _blank(form.get("name")).strip()
    if not name:
        raise FormValidationError("Name is required.")
    return {
        "name": name,
        "email": _blank(form.get("email")),
        "department": _blank(form.get("department")),
        "position": _blank(form.get("position")),
    }
