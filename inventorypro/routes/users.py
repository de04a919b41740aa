from __future__ import annotations

from flask import (
    Blueprint,
    abort,
    current_app,
    flash,
    redirect,
    render_template,
    request,
    url_for,
)
from flask_login import current_user, login_required
from sqlalchemy.exc import SQLAlchemyError

from inventorypro import auth_service
from inventorypro.errors import AuthError, FormValidationError, backend_error_message
from inventorypro.extensions import db
from inventorypro.forms import PROFILE_FORM_DEFAULTS, empty_form, form_from_request, form_from_row
from inventorypro.models import Profile
from inventorypro.search import PROFILE_SEARCH_FIELDS, filter_rows

bp = Blueprint("users", __name__, url_prefix="/users")


def load_profiles():
    return Profile.query.order_by(Profile.created_at.desc(), Profile.id.desc()).all()


def _render_list(*, form=None, editing_id=None, dialog_open=False, status_code=200):
    search = request.args.get("search", "") or request.form.get("search", "")
    return (
        render_template(
            "users/list.html",
            profiles=filter_rows(load_profiles(), search, PROFILE_SEARCH_FIELDS),
            search=search,
            form=form or empty_form(PROFILE_FORM_DEFAULTS),
            editing_id=editing_id,
            dialog_open=dialog_open,
        ),
        status_code,
    )


@bp.route("/")
@login_required
def list_users():
    edit_id = request.args.get("edit", type=int)
    if edit_id is not None:
        profile = db.session.get(Profile, edit_id)
        if profile is None:
            abort(404)
        return _render_list(
            form=form_from_row(profile, PROFILE_FORM_DEFAULTS),
            editing_id=profile.id,
            dialog_open=True,
        )
    return _render_list(dialog_open=request.args.get("new") == "1")


def _create_user(form: dict):
    password = request.form.get("password", "")
    full_name = str(form.get("full_name") or "").strip()
    email = str(form.get("email") or "").strip()
    department = str(form.get("department") or "").strip()

    try:
        auth_service.validate_new_password(password)
        user = auth_service.create_user(
            email, password, full_name=full_name, email_confirm=True
        )
    except (AuthError, FormValidationError) as exc:
        flash(exc.message, "danger")
        return _render_list(form=form, dialog_open=True, status_code=400)

    if department:
        profile = Profile.query.filter_by(email=user.email).first()
        if profile is not None:
            profile.department = department
            try:
                db.session.commit()
            except SQLAlchemyError as exc:
                db.session.rollback()
                flash(backend_error_message(exc), "danger")
                return redirect(url_for("users.list_users"))

    flash(f"User created! {full_name or user.email} can now access the system.", "success")
    return redirect(url_for("users.list_users"))


@bp.route("/save", methods=["POST"])
@login_required
def save_user():
    editing_id = request.form.get("id", type=int)
    form = form_from_request(request.form, PROFILE_FORM_DEFAULTS)

    if not editing_id:
        return _create_user(form)

    profile = db.session.get(Profile, editing_id)
    if profile is None:
        abort(404)

    full_name = str(form.get("full_name") or "").strip()
    if not full_name:
        flash("Full name is required.", "danger")
        return _render_list(form=form, editing_id=editing_id, dialog_open=True, status_code=400)

    profile.full_name = full_name
    profile.department = str(form.get("department") or "")
    try:
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        flash(backend_error_message(exc), "danger")
        return _render_list(form=form, editing_id=editing_id, dialog_open=True, status_code=400)

    flash("User updated!", "success")
    return redirect(url_for("users.list_users"))


@bp.route("/<int:profile_id>/confirm", methods=["POST"])
@login_required
def confirm_user(profile_id: int):
    profile = db.session.get(Profile, profile_id)
    if profile is None or profile.user is None:
        abort(404)

    try:
        auth_service.confirm_email(profile.user)
    except AuthError as exc:
        flash(exc.message, "danger")
        return redirect(url_for("users.list_users"))

    flash(f"Email confirmed for {profile.email}.", "success")
    return redirect(url_for("users.list_users"))


@bp.route("/<int:profile_id>/delete", methods=["POST"])
@login_required
def delete_user(profile_id: int):
    profile = db.session.get(Profile, profile_id)
    if profile is None:
        abort(404)

    if profile.user_id is not None and profile.user_id == current_user.id:
        flash("You cannot delete the account you are signed in with.", "warning")
        return redirect(url_for("users.list_users"))

    try:
        if profile.user is not None:
            db.session.delete(profile.user)
        else:
            db.session.delete(profile)
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.warning("User delete rejected: %s", backend_error_message(exc))
        flash(backend_error_message(exc), "danger")
        return redirect(url_for("users.list_users"))

    flash("User removed!", "success")
    return redirect(url_for("users.list_users"))
