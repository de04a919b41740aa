import os
import sys

import pytest
from sqlalchemy.exc import OperationalError

sys.path.append(os.path.join(os.path.dirname(__file__), ".."))

from inventorypro import auth_service, create_app
from inventorypro.extensions import db
from inventorypro.models import AuthUser, Profile
from inventorypro.seed import (
    DEFAULT_ADMIN_EMAIL,
    DEFAULT_ADMIN_FULL_NAME,
    DEFAULT_ADMIN_PASSWORD,
    seed_admin,
)


SERVICE_KEY = "test-service-key"


@pytest.fixture
def app():
    app = create_app(
        {
            "TESTING": True,
            "SQLALCHEMY_DATABASE_URI": "sqlite:///:memory:",
            "SERVICE_ROLE_KEY": SERVICE_KEY,
        }
    )
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


def _service_headers():
    return {"Authorization": f"Bearer {SERVICE_KEY}"}


def test_first_sign_in_page_creates_single_admin(client, app):
    response = client.get("/auth/login")
    assert response.status_code == 200
    page = response.get_data(as_text=True)
    assert 'id="default-credentials"' in page
    assert DEFAULT_ADMIN_EMAIL in page

    with app.app_context():
        users = AuthUser.query.all()
        assert len(users) == 1
        admin = users[0]
        assert admin.email == DEFAULT_ADMIN_EMAIL
        assert admin.check_password(DEFAULT_ADMIN_PASSWORD)
        assert admin.email_confirmed
        assert admin.profile is not None
        assert admin.profile.full_name == DEFAULT_ADMIN_FULL_NAME


def test_second_sign_in_page_load_is_a_noop(client, app):
    client.get("/auth/login")
    response = client.get("/auth/login")

    page = response.get_data(as_text=True)
    assert 'id="default-credentials"' not in page
    with app.app_context():
        assert AuthUser.query.count() == 1
        assert Profile.query.count() == 1


def test_default_admin_can_sign_in(client):
    client.get("/auth/login")
    response = client.post(
        "/auth/login",
        data={"email": DEFAULT_ADMIN_EMAIL, "password": DEFAULT_ADMIN_PASSWORD},
    )
    assert response.status_code == 302

    dashboard = client.get("/")
    assert dashboard.status_code == 200
    assert "Dashboard" in dashboard.get_data(as_text=True)


def test_seed_is_skipped_when_a_user_exists(app):
    with app.app_context():
        auth_service.create_user("owner@example.com", "secret1", email_confirm=True)

        result = seed_admin()

        assert result.created is False
        assert result.message == "Admin already exists"
        assert AuthUser.query.filter_by(email=DEFAULT_ADMIN_EMAIL).first() is None


def test_seed_removes_orphaned_profiles(app):
    with app.app_context():
        db.session.add(Profile(user_id=None, full_name="Ghost", email="ghost@example.com"))
        db.session.add(Profile(user_id=999, full_name="Stale", email="stale@example.com"))
        db.session.commit()

        result = seed_admin()

        assert result.created is True
        emails = {profile.email for profile in Profile.query.all()}
        assert emails == {DEFAULT_ADMIN_EMAIL}


def test_losing_the_seed_race_reports_error_without_duplicate(app, monkeypatch):
    with app.app_context():
        assert seed_admin().created is True

        # Second caller saw an empty user table before the first one committed.
        monkeypatch.setattr(auth_service, "any_user_exists", lambda: False)
        result = seed_admin()

        assert result.created is False
        assert result.error
        assert AuthUser.query.count() == 1


def test_sign_in_page_renders_when_seed_fails(client, app, monkeypatch):
    monkeypatch.setattr(auth_service, "any_user_exists", lambda: False)

    def _fail(*args, **kwargs):
        raise auth_service.AuthError("duplicate key value violates unique constraint")

    monkeypatch.setattr(auth_service, "create_user", _fail)

    response = client.get("/auth/login")
    assert response.status_code == 200
    page = response.get_data(as_text=True)
    assert 'id="default-credentials"' not in page
    assert 'name="password"' in page


def test_seed_on_login_can_be_disabled():
    app = create_app(
        {
            "TESTING": True,
            "SQLALCHEMY_DATABASE_URI": "sqlite:///:memory:",
            "SEED_ADMIN_ON_LOGIN": False,
        }
    )
    with app.app_context():
        response = app.test_client().get("/auth/login")
        assert response.status_code == 200
        assert AuthUser.query.count() == 0


def test_seed_function_requires_service_credentials(client, app):
    response = client.post("/functions/seed-admin")
    assert response.status_code == 401

    response = client.post(
        "/functions/seed-admin", headers={"Authorization": "Bearer wrong-key"}
    )
    assert response.status_code == 401

    with app.app_context():
        assert AuthUser.query.count() == 0


def test_seed_function_creates_admin_once(client, app):
    first = client.post("/functions/seed-admin", headers=_service_headers())
    assert first.status_code == 200
    assert first.get_json() == {"created": True}
    assert first.headers["Access-Control-Allow-Origin"] == "*"

    second = client.post("/functions/seed-admin", headers=_service_headers())
    assert second.status_code == 200
    assert second.get_json() == {"created": False, "message": "Admin already exists"}

    with app.app_context():
        assert AuthUser.query.count() == 1


def test_seed_function_reports_provisioning_error(client, monkeypatch):
    client.post("/functions/seed-admin", headers=_service_headers())
    monkeypatch.setattr(auth_service, "any_user_exists", lambda: False)

    response = client.post("/functions/seed-admin", headers=_service_headers())

    assert response.status_code == 400
    payload = response.get_json()
    assert payload["created"] is False
    assert payload["error"]


def test_seed_function_answers_preflight(client):
    response = client.options("/functions/seed-admin")
    assert response.status_code == 204
    assert "authorization" in response.headers["Access-Control-Allow-Headers"]


def test_sign_in_page_renders_when_first_run_lookup_fails(client, app, monkeypatch):
    def _unavailable():
        raise OperationalError("SELECT profiles.id", {}, Exception("database is locked"))

    monkeypatch.setattr(auth_service, "any_profile_exists", _unavailable)

    response = client.get("/auth/login")

    assert response.status_code == 200
    page = response.get_data(as_text=True)
    assert 'id="default-credentials"' not in page
    assert 'name="password"' in page
    with app.app_context():
        assert AuthUser.query.count() == 0
