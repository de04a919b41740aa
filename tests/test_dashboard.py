import os
import sys
from types import SimpleNamespace

import pytest

sys.path.append(os.path.join(os.path.dirname(__file__), ".."))

from inventorypro import auth_service, create_app
from inventorypro.dashboard import (
    UNCATEGORIZED_LABEL,
    ChartEntry,
    build_summary,
    category_breakdown,
    load_dashboard,
    status_breakdown,
)
from inventorypro.extensions import db
from inventorypro.models import (
    Collaborator,
    InventoryItem,
    ItemStatus,
    StockMovement,
    UnknownStatus,
    resolve_status,
)


@pytest.fixture
def app():
    app = create_app({"TESTING": True, "SQLALCHEMY_DATABASE_URI": "sqlite:///:memory:"})
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    with app.app_context():
        auth_service.create_user("operator@example.com", "secret1", email_confirm=True)
    client = app.test_client()
    client.post(
        "/auth/login",
        data={"email": "operator@example.com", "password": "secret1"},
    )
    return client


def _item(category=None, status="available", quantity=10, minimum_stock=0):
    return SimpleNamespace(
        category=category, status=status, quantity=quantity, minimum_stock=minimum_stock
    )


def test_resolve_status_variants():
    assert resolve_status("in_use") is ItemStatus.IN_USE
    assert resolve_status("in_use").label == "In use"
    unknown = resolve_status("lent")
    assert isinstance(unknown, UnknownStatus)
    assert unknown.label == "lent"
    assert unknown.is_known is False


def test_missing_category_is_grouped_as_uncategorized():
    items = [_item("IT"), _item(None), _item(""), _item("IT")]
    assert category_breakdown(items) == (
        ChartEntry(name="IT", value=2),
        ChartEntry(name=UNCATEGORIZED_LABEL, value=2),
    )


def test_status_breakdown_uses_labels_and_keeps_unknown_values():
    items = [_item(status="maintenance"), _item(status="lent"), _item(status="maintenance")]
    assert status_breakdown(items) == (
        ChartEntry(name="Maintenance", value=2),
        ChartEntry(name="lent", value=1),
    )


def test_build_summary_counts():
    items = [
        _item(quantity=0, minimum_stock=0),
        _item(quantity=3, minimum_stock=5),
        _item(quantity=9, minimum_stock=5),
    ]
    summary = build_summary(items, collaborator_count=4, movement_count=7)
    assert summary.total_items == 3
    assert summary.total_collaborators == 4
    assert summary.low_stock == 2
    assert summary.movements == 7


def test_empty_inventory_produces_empty_charts():
    summary = build_summary([], 0, 0)
    assert summary.total_items == 0
    assert summary.category_data == ()
    assert summary.status_data == ()


def test_load_dashboard_reads_database(app):
    with app.app_context():
        collaborator = Collaborator(name="Ana")
        item = InventoryItem(
            patrimony_number="PAT-0200",
            name="Tablet",
            category="Mobile",
            quantity=2,
            minimum_stock=1,
        )
        db.session.add_all([collaborator, item])
        db.session.flush()
        db.session.add(StockMovement(item=item, quantity=2, movement_type=StockMovement.TYPE_IN))
        db.session.commit()

        summary = load_dashboard()

    assert summary.total_items == 1
    assert summary.total_collaborators == 1
    assert summary.movements == 1
    assert summary.low_stock == 0
    assert summary.category_data == (ChartEntry(name="Mobile", value=1),)
    assert summary.status_data == (ChartEntry(name="Available", value=1),)


def test_dashboard_page_shows_counts_and_empty_state(client):
    page = client.get("/").get_data(as_text=True)
    assert "Total items: <strong>0</strong>" in page
    assert "No items registered yet" in page
    assert 'id="category-chart"' not in page
