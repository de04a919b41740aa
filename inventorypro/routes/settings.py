from flask import Blueprint, current_app, flash, redirect, render_template, request, url_for
from flask_login import current_user, login_required
from sqlalchemy.exc import SQLAlchemyError

from inventorypro import auth_service
from inventorypro.errors import (
    AuthError,
    FormValidationError,
    StorageError,
    backend_error_message,
)
from inventorypro.settings_service import COLOR_PRESETS, get_store, write_settings
from inventorypro.storage import allowed_extension, get_bucket

bp = Blueprint("settings", __name__, url_prefix="/settings")


def _save(values: dict, success_message: str):
    try:
        write_settings(values)
    except SQLAlchemyError as exc:
        flash(backend_error_message(exc), "danger")
        return redirect(url_for("settings.settings_home"))
    get_store().refresh()
    flash(success_message, "success")
    return redirect(url_for("settings.settings_home"))


@bp.route("/")
@login_required
def settings_home():
    preset_index = request.args.get("preset", type=int)
    selected_preset = None
    if preset_index is not None and 0 <= preset_index < len(COLOR_PRESETS):
        selected_preset = COLOR_PRESETS[preset_index]

    return render_template(
        "settings/home.html",
        color_presets=COLOR_PRESETS,
        selected_preset=selected_preset,
        allowed_logo_extensions=sorted(current_app.config.get("LOGO_ALLOWED_EXTENSIONS", ())),
    )


@bp.route("/name", methods=["POST"])
@login_required
def save_name():
    system_name = request.form.get("system_name", "").strip()
    return _save({"system_name": system_name}, "System name updated!")


@bp.route("/colors", methods=["POST"])
@login_required
def save_colors():
    values = {
        "primary_color": request.form.get("primary_color", "").strip(),
        "accent_color": request.form.get("accent_color", "").strip(),
        "sidebar_color": request.form.get("sidebar_color", "").strip(),
    }
    return _save(values, "Colors updated!")


@bp.route("/logo", methods=["POST"])
@login_required
def upload_logo():
    upload = request.files.get("logo")
    if upload is None or not upload.filename:
        flash("Select a file to upload.", "danger")
        return redirect(url_for("settings.settings_home"))

    allowed = current_app.config.get("LOGO_ALLOWED_EXTENSIONS", set())
    extension = allowed_extension(upload.filename, allowed)
    if extension is None:
        allowed_list = ", ".join(sorted(allowed)) if allowed else "(none)"
        flash(f"Logo not saved. Allowed file types: {allowed_list}", "danger")
        return redirect(url_for("settings.settings_home"))

    object_name = f"logo.{extension}"
    try:
        bucket = get_bucket(current_app.config.get("LOGO_BUCKET", "logos"))
        bucket.remove([object_name])
        bucket.upload(object_name, upload.stream, upsert=True)
        public_url = bucket.get_public_url(object_name)
    except StorageError as exc:
        flash(f"Upload failed: {exc.message}", "danger")
        return redirect(url_for("settings.settings_home"))

    return _save({"logo_url": public_url}, "Logo updated!")


@bp.route("/logo/remove", methods=["POST"])
@login_required
def remove_logo():
    return _save({"logo_url": ""}, "Logo removed.")


@bp.route("/password", methods=["POST"])
@login_required
def change_password():
    new_password = request.form.get("new_password", "")
    confirm_password = request.form.get("confirm_password", "")

    try:
        auth_service.validate_new_password(new_password, confirm_password)
        auth_service.update_password(current_user, new_password)
    except (FormValidationError, AuthError) as exc:
        flash(exc.message, "danger")
        return redirect(url_for("settings.settings_home"))

    flash("Password changed!", "success")
    return redirect(url_for("settings.settings_home"))
