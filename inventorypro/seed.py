"""First-run bootstrap of the default administrator account.

The existence check and the creation are separate statements without a
surrounding lock. Two first loads racing each other can both see an empty
user table; the loser then fails on the unique email constraint and gets a
reported, non-fatal error. Simultaneous first installs are rare enough that
this is accepted.
"""

from __future__ import annotations

from dataclasses import dataclass

from flask import current_app
from sqlalchemy import or_, select
from sqlalchemy.exc import SQLAlchemyError

from inventorypro import auth_service
from inventorypro.errors import AuthError, backend_error_message
from inventorypro.extensions import db
from inventorypro.models import AuthUser, Profile


DEFAULT_ADMIN_EMAIL = "admin@admin.com"
DEFAULT_ADMIN_PASSWORD = "admin1"
DEFAULT_ADMIN_FULL_NAME = "Administrador"


@dataclass(frozen=True)
class SeedResult:
    created: bool
    message: str | None = None
    error: str | None = None

    def to_payload(self) -> dict:
        payload: dict = {"created": self.created}
        if self.message:
            payload["message"] = self.message
        if self.error:
            payload["error"] = self.error
        return payload


def _remove_orphaned_profiles() -> int:
    orphans = Profile.query.filter(
        or_(Profile.user_id.is_(None), Profile.user_id.not_in(select(AuthUser.id)))
    )
    removed = orphans.delete(synchronize_session=False)
    if removed:
        db.session.commit()
        current_app.logger.info("Removed %d orphaned profile row(s) before seeding", removed)
    return removed


def seed_admin() -> SeedResult:
    """Create the default administrator when no account exists yet."""

    if auth_service.any_user_exists():
        return SeedResult(created=False, message="Admin already exists")

    try:
        _remove_orphaned_profiles()
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception("Unable to clean orphaned profiles before seeding")

    try:
        auth_service.create_user(
            DEFAULT_ADMIN_EMAIL,
            DEFAULT_ADMIN_PASSWORD,
            full_name=DEFAULT_ADMIN_FULL_NAME,
            email_confirm=True,
        )
    except AuthError as exc:
        current_app.logger.warning("Default admin provisioning failed: %s", exc.message)
        return SeedResult(created=False, error=exc.message)

    current_app.logger.info("Provisioned default admin account %s", DEFAULT_ADMIN_EMAIL)
    return SeedResult(created=True)


def seed_on_first_load() -> SeedResult | None:
    """Sign-in screen hook; returns ``None`` when profiles already exist."""

    try:
        if auth_service.any_profile_exists():
            return None
        return seed_admin()
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("Admin bootstrap failed")
        return SeedResult(created=False, error=backend_error_message(exc))
