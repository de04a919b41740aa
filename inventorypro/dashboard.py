from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Sequence

from inventorypro.extensions import db
from inventorypro.models import (
    Collaborator,
    InventoryItem,
    StockMovement,
    is_low_stock,
    resolve_status,
)


UNCATEGORIZED_LABEL = "Uncategorized"

CHART_COLORS = (
    "hsl(215, 70%, 28%)",
    "hsl(160, 60%, 38%)",
    "hsl(38, 92%, 50%)",
    "hsl(0, 72%, 51%)",
    "hsl(270, 50%, 50%)",
)


@dataclass(frozen=True)
class ChartEntry:
    name: str
    value: int


@dataclass(frozen=True)
class DashboardSummary:
    total_items: int
    total_collaborators: int
    low_stock: int
    movements: int
    category_data: Sequence[ChartEntry] = field(default_factory=tuple)
    status_data: Sequence[ChartEntry] = field(default_factory=tuple)


def _count_by(labels: Iterable[str]) -> tuple[ChartEntry, ...]:
    counts: dict[str, int] = {}
    for label in labels:
        counts[label] = counts.get(label, 0) + 1
    return tuple(ChartEntry(name=name, value=count) for name, count in counts.items())


def category_breakdown(items: Iterable) -> tuple[ChartEntry, ...]:
    return _count_by((item.category or UNCATEGORIZED_LABEL) for item in items)


def status_breakdown(items: Iterable) -> tuple[ChartEntry, ...]:
    return _count_by(resolve_status(item.status).label for item in items)


def build_summary(
    items: Sequence,
    collaborator_count: int,
    movement_count: int,
) -> DashboardSummary:
    return DashboardSummary(
        total_items=len(items),
        total_collaborators=collaborator_count,
        low_stock=sum(1 for item in items if is_low_stock(item)),
        movements=movement_count,
        category_data=category_breakdown(items),
        status_data=status_breakdown(items),
    )


def load_dashboard() -> DashboardSummary:
    """Fetch the three source collections and reduce them in memory."""

    items = InventoryItem.query.all()
    collaborator_ids = db.session.query(Collaborator.id).all()
    movement_ids = db.session.query(StockMovement.id).all()
    return build_summary(items, len(collaborator_ids), len(movement_ids))
