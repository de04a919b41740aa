import io
import os
import sys

import pytest
from openpyxl import load_workbook

sys.path.append(os.path.join(os.path.dirname(__file__), ".."))

from inventorypro import auth_service, create_app
from inventorypro.extensions import db
from inventorypro.models import Collaborator, InventoryItem


@pytest.fixture
def app():
    app = create_app({"TESTING": True, "SQLALCHEMY_DATABASE_URI": "sqlite:///:memory:"})
    with app.app_context():
        db.create_all()
        auth_service.create_user("operator@example.com", "secret1", email_confirm=True)
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    client = app.test_client()
    client.post(
        "/auth/login",
        data={"email": "operator@example.com", "password": "secret1"},
    )
    return client


def test_create_and_edit_collaborator(client, app):
    response = client.post(
        "/collaborators/save",
        data={"name": "Ana Souza", "email": "ana@example.com", "department": "IT"},
        follow_redirects=True,
    )
    assert "Collaborator created!" in response.get_data(as_text=True)

    with app.app_context():
        collaborator = Collaborator.query.filter_by(name="Ana Souza").one()
        assert collaborator.position == ""
        collaborator_id = collaborator.id

    page = client.get(f"/collaborators/?edit={collaborator_id}").get_data(as_text=True)
    assert 'name="email" value="ana@example.com"' in page
    assert 'name="position" value=""' in page

    response = client.post(
        "/collaborators/save",
        data={
            "id": str(collaborator_id),
            "name": "Ana Souza",
            "email": "ana@example.com",
            "department": "Finance",
            "position": "Analyst",
        },
        follow_redirects=True,
    )
    assert "Collaborator updated!" in response.get_data(as_text=True)

    with app.app_context():
        collaborator = db.session.get(Collaborator, collaborator_id)
        assert collaborator.department == "Finance"
        assert collaborator.position == "Analyst"
        assert Collaborator.query.count() == 1


def test_collaborator_name_is_required(client, app):
    response = client.post("/collaborators/save", data={"name": "", "email": "x@example.com"})

    assert response.status_code == 400
    page = response.get_data(as_text=True)
    assert "Name is required." in page
    assert 'value="x@example.com"' in page
    with app.app_context():
        assert Collaborator.query.count() == 0


def test_deleting_collaborator_unassigns_items(client, app):
    with app.app_context():
        collaborator = Collaborator(name="Bruno")
        db.session.add(collaborator)
        db.session.commit()
        item = InventoryItem(
            patrimony_number="PAT-0100",
            name="Notebook",
            collaborator_id=collaborator.id,
        )
        db.session.add(item)
        db.session.commit()
        collaborator_id, item_id = collaborator.id, item.id

    response = client.post(f"/collaborators/{collaborator_id}/delete", follow_redirects=True)
    assert "Collaborator removed!" in response.get_data(as_text=True)

    with app.app_context():
        assert db.session.get(Collaborator, collaborator_id) is None
        item = db.session.get(InventoryItem, item_id)
        assert item is not None
        assert item.collaborator_id is None


def test_search_matches_email_and_department(client, app):
    with app.app_context():
        db.session.add_all(
            [
                Collaborator(name="Carla", email="carla@example.com", department="Logistics"),
                Collaborator(name="Diego", email="diego@example.com", department="Sales"),
            ]
        )
        db.session.commit()

    page = client.get("/collaborators/?search=LOGISTICS").get_data(as_text=True)
    assert "Carla" in page
    assert "Diego" not in page

    page = client.get("/collaborators/?search=diego@").get_data(as_text=True)
    assert "Diego" in page
    assert "Carla" not in page


def test_collaborator_export(client, app):
    with app.app_context():
        db.session.add_all(
            [
                Collaborator(name="Zeca", email="zeca@example.com", department="IT", position="Tech"),
                Collaborator(name="Alice", email="alice@example.com", department="HR", position="Lead"),
            ]
        )
        db.session.commit()

    response = client.get("/collaborators/export")
    assert response.status_code == 200
    assert "collaborators.xlsx" in response.headers["Content-Disposition"]

    sheet = load_workbook(io.BytesIO(response.data))["Collaborators"]
    rows = list(sheet.iter_rows(values_only=True))
    assert rows == [
        ("Name", "Email", "Department", "Position"),
        ("Alice", "alice@example.com", "HR", "Lead"),
        ("Zeca", "zeca@example.com", "IT", "Tech"),
    ]
