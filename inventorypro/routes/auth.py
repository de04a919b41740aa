from urllib.parse import urljoin, urlparse

from flask import (
    Blueprint,
    current_app,
    flash,
    redirect,
    render_template,
    request,
    url_for,
)
from flask_login import current_user, login_required, logout_user

from inventorypro import auth_service
from inventorypro.errors import AuthError, FormValidationError
from inventorypro.seed import DEFAULT_ADMIN_EMAIL, DEFAULT_ADMIN_PASSWORD, seed_on_first_load

bp = Blueprint("auth", __name__, url_prefix="/auth")


def _safe_redirect_target(target: str | None, *, default: str) -> str:
    if not target:
        return url_for(default)

    if target.startswith("/") and not target.startswith("//"):
        return target

    app_url = urlparse(request.host_url)
    parsed_target = urlparse(urljoin(request.host_url, target))
    if parsed_target.netloc == app_url.netloc:
        return parsed_target.path + (f"?{parsed_target.query}" if parsed_target.query else "")

    return url_for(default)


def _render_login(*, mode: str = "signin", show_default_credentials: bool = False, **form):
    return render_template(
        "auth/login.html",
        mode=mode,
        show_default_credentials=show_default_credentials,
        default_admin_email=DEFAULT_ADMIN_EMAIL,
        default_admin_password=DEFAULT_ADMIN_PASSWORD,
        form=form,
    )


@bp.route("/login", methods=["GET", "POST"])
def login():
    if current_user.is_authenticated:
        return redirect(url_for("dashboard.home"))

    if request.method == "POST":
        email = request.form.get("email", "").strip()
        password = request.form.get("password", "")
        try:
            auth_service.sign_in(email, password)
        except AuthError as exc:
            flash(exc.message, "danger")
            return _render_login(email=email)
        return redirect(_safe_redirect_target(request.args.get("next"), default="dashboard.home"))

    show_default_credentials = False
    if current_app.config.get("SEED_ADMIN_ON_LOGIN", True):
        result = seed_on_first_load()
        if result is not None:
            show_default_credentials = result.created
            if result.error:
                current_app.logger.warning("Admin bootstrap reported: %s", result.error)

    return _render_login(show_default_credentials=show_default_credentials)


@bp.route("/signup", methods=["GET", "POST"])
def signup():
    if current_user.is_authenticated:
        return redirect(url_for("dashboard.home"))

    if request.method == "GET":
        return _render_login(mode="signup")

    full_name = request.form.get("full_name", "").strip()
    email = request.form.get("email", "").strip()
    password = request.form.get("password", "")
    try:
        auth_service.sign_up(email, password, full_name)
    except (AuthError, FormValidationError) as exc:
        flash(exc.message, "danger")
        return _render_login(mode="signup", full_name=full_name, email=email)

    if current_app.config.get("AUTH_REQUIRE_EMAIL_CONFIRMATION", False):
        flash("Account created. An administrator must confirm it before you can sign in.", "success")
    else:
        flash("Account created. You can sign in now.", "success")
    return redirect(url_for("auth.login"))


@bp.route("/logout")
@login_required
def logout():
    logout_user()
    flash("Signed out", "success")
    return redirect(url_for("auth.login"))
