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
from flask_login import login_required
from sqlalchemy.exc import SQLAlchemyError

from inventorypro.errors import FormValidationError, backend_error_message
from inventorypro.extensions import db
from inventorypro.forms import (
    COLLABORATOR_FORM_DEFAULTS,
    collaborator_payload,
    empty_form,
    form_from_request,
    form_from_row,
)
from inventorypro.models import Collaborator, InventoryItem
from inventorypro.search import COLLABORATOR_SEARCH_FIELDS, filter_rows
from inventorypro.utils.export import export_rows_to_csv, export_rows_to_xlsx

bp = Blueprint("collaborators", __name__, url_prefix="/collaborators")

EXPORT_COLUMNS = (
    ("name", "Name"),
    ("email", "Email"),
    ("department", "Department"),
    ("position", "Position"),
)


def load_collaborators():
    return Collaborator.query.order_by(Collaborator.name, Collaborator.id).all()


def _render_list(*, form=None, editing_id=None, dialog_open=False, status_code=200):
    search = request.args.get("search", "") or request.form.get("search", "")
    return (
        render_template(
            "collaborators/list.html",
            collaborators=filter_rows(load_collaborators(), search, COLLABORATOR_SEARCH_FIELDS),
            search=search,
            form=form or empty_form(COLLABORATOR_FORM_DEFAULTS),
            editing_id=editing_id,
            dialog_open=dialog_open,
        ),
        status_code,
    )


@bp.route("/")
@login_required
def list_collaborators():
    edit_id = request.args.get("edit", type=int)
    if edit_id is not None:
        collaborator = db.session.get(Collaborator, edit_id)
        if collaborator is None:
            abort(404)
        return _render_list(
            form=form_from_row(collaborator, COLLABORATOR_FORM_DEFAULTS),
            editing_id=collaborator.id,
            dialog_open=True,
        )
    return _render_list(dialog_open=request.args.get("new") == "1")


@bp.route("/save", methods=["POST"])
@login_required
def save_collaborator():
    editing_id = request.form.get("id", type=int)
    form = form_from_request(request.form, COLLABORATOR_FORM_DEFAULTS)

    try:
        payload = collaborator_payload(form)
    except FormValidationError as exc:
        flash(exc.message, "danger")
        return _render_list(form=form, editing_id=editing_id, dialog_open=True, status_code=400)

    if editing_id:
        collaborator = db.session.get(Collaborator, editing_id)
        if collaborator is None:
            abort(404)
    else:
        collaborator = Collaborator()
        db.session.add(collaborator)

    for field, value in payload.items():
        setattr(collaborator, field, value)

    try:
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.warning("Collaborator save rejected: %s", backend_error_message(exc))
        flash(backend_error_message(exc), "danger")
        return _render_list(form=form, editing_id=editing_id, dialog_open=True, status_code=400)

    flash("Collaborator updated!" if editing_id else "Collaborator created!", "success")
    return redirect(url_for("collaborators.list_collaborators"))


@bp.route("/<int:collaborator_id>/delete", methods=["POST"])
@login_required
def delete_collaborator(collaborator_id: int):
    collaborator = db.session.get(Collaborator, collaborator_id)
    if collaborator is None:
        abort(404)

    try:
        # Assigned items stay in inventory, unassigned.
        InventoryItem.query.filter_by(collaborator_id=collaborator.id).update(
            {"collaborator_id": None}, synchronize_session=False
        )
        db.session.delete(collaborator)
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        flash(backend_error_message(exc), "danger")
        return redirect(url_for("collaborators.list_collaborators"))

    flash("Collaborator removed!", "success")
    return redirect(url_for("collaborators.list_collaborators"))


@bp.route("/export")
@login_required
def export_collaborators():
    search = request.args.get("search", "")
    collaborators = filter_rows(load_collaborators(), search, COLLABORATOR_SEARCH_FIELDS)
    if request.args.get("format") == "csv":
        return export_rows_to_csv(collaborators, EXPORT_COLUMNS, "collaborators.csv")
    return export_rows_to_xlsx(collaborators, EXPORT_COLUMNS, "collaborators.xlsx", "Collaborators")
