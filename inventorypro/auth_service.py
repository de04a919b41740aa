"""Session auth and account provisioning backed by the ``auth_users`` table."""

from __future__ import annotations

from datetime import datetime

from flask import current_app
from flask_login import login_user
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from inventorypro.errors import AuthError, FormValidationError, backend_error_message
from inventorypro.extensions import db
from inventorypro.models import AuthUser, Profile


def _normalize_email(email: str | None) -> str:
    return (email or "").strip().lower()


def _min_password_length() -> int:
    return int(current_app.config.get("PASSWORD_MIN_LENGTH", 6))


def any_profile_exists() -> bool:
    """Cheap existence lookup used by the sign-in screen."""

    return db.session.query(Profile.id).limit(1).first() is not None


def any_user_exists() -> bool:
    return db.session.query(AuthUser.id).limit(1).first() is not None


def validate_new_password(password: str, confirmation: str | None = None) -> None:
    if confirmation is not None and password != confirmation:
        raise FormValidationError("Passwords do not match.")
    minimum = _min_password_length()
    if len(password or "") < minimum:
        raise FormValidationError(f"Password must be at least {minimum} characters.")


def create_user(
    email: str,
    password: str,
    *,
    full_name: str = "",
    email_confirm: bool = False,
) -> AuthUser:
    """Insert a new auth user; the profile row follows from the insert hook."""

    normalized = _normalize_email(email)
    if not normalized:
        raise AuthError("Email address is required.")
    if not password:
        raise AuthError("Password is required.")

    if AuthUser.query.filter_by(email=normalized).first() is not None:
        raise AuthError("A user with this email address has already been registered")

    user = AuthUser(
        email=normalized,
        user_metadata={"full_name": full_name or ""},
        email_confirmed_at=datetime.utcnow() if email_confirm else None,
    )
    user.set_password(password)
    db.session.add(user)
    try:
        db.session.commit()
    except IntegrityError as exc:
        db.session.rollback()
        raise AuthError(backend_error_message(exc)) from exc
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("Failed to create auth user %s", normalized)
        raise AuthError(backend_error_message(exc)) from exc

    current_app.logger.info("Created auth user %s", normalized)
    return user


def sign_up(email: str, password: str, full_name: str) -> AuthUser:
    validate_new_password(password)
    require_confirmation = current_app.config.get("AUTH_REQUIRE_EMAIL_CONFIRMATION", False)
    return create_user(
        email,
        password,
        full_name=(full_name or "").strip(),
        email_confirm=not require_confirmation,
    )


def sign_in(email: str, password: str) -> AuthUser:
    """Validate credentials and attach the user to the session."""

    normalized = _normalize_email(email)
    user = AuthUser.query.filter_by(email=normalized).first()
    if user is None or not user.check_password(password or ""):
        current_app.logger.info("Failed sign-in attempt for %s", normalized or "<blank>")
        raise AuthError("Invalid login credentials")

    if current_app.config.get("AUTH_REQUIRE_EMAIL_CONFIRMATION", False) and not user.email_confirmed:
        raise AuthError("Email not confirmed")

    user.last_sign_in_at = datetime.utcnow()
    db.session.commit()
    login_user(user)
    return user


def update_password(user: AuthUser, new_password: str) -> None:
    validate_new_password(new_password)
    user.set_password(new_password)
    try:
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        raise AuthError(backend_error_message(exc)) from exc


def confirm_email(user: AuthUser) -> None:
    if user.email_confirmed_at is not None:
        return
    user.email_confirmed_at = datetime.utcnow()
    try:
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        raise AuthError(backend_error_message(exc)) from exc
    current_app.logger.info("Confirmed email for %s", user.email)
