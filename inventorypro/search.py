"""Client-style substring filtering over already loaded rows."""

from __future__ import annotations

from typing import Iterable, Sequence, TypeVar

T = TypeVar("T")

ITEM_SEARCH_FIELDS = ("name", "patrimony_number", "category")
COLLABORATOR_SEARCH_FIELDS = ("name", "email", "department")
PROFILE_SEARCH_FIELDS = ("full_name", "email", "department")


def _field_value(row, field: str) -> str:
    if isinstance(row, dict):
        value = row.get(field)
    else:
        value = getattr(row, field, None)
    return "" if value is None else str(value)


def filter_rows(rows: Iterable[T], query: str | None, fields: Sequence[str]) -> list[T]:
    """Keep rows where any of ``fields`` contains ``query``, ignoring case.

    An empty query returns every row in its original order.
    """

    rows = list(rows)
    needle = (query or "").lower()
    if not needle:
        return rows
    return [
        row
        for row in rows
        if any(needle in _field_value(row, field).lower() for field in fields)
    ]
