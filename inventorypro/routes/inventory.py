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

from inventorypro.errors import FormValidationError, backend_error_message
from inventorypro.extensions import db
from inventorypro.forms import (
    ITEM_FORM_DEFAULTS,
    empty_form,
    form_from_request,
    form_from_row,
    item_payload,
)
from inventorypro.models import (
    Collaborator,
    InventoryItem,
    ItemStatus,
    StockMovement,
    resolve_status,
)
from inventorypro.search import ITEM_SEARCH_FIELDS, filter_rows
from inventorypro.utils.export import export_rows_to_csv, export_rows_to_xlsx

bp = Blueprint("inventory", __name__, url_prefix="/inventory")


def load_items():
    return InventoryItem.query.order_by(
        InventoryItem.created_at.desc(), InventoryItem.id.desc()
    ).all()


def item_export_columns(collaborators):
    names = {collaborator.id: collaborator.name for collaborator in collaborators}
    return (
        ("patrimony_number", "Patrimony No."),
        ("name", "Name"),
        ("category", "Category"),
        ("quantity", "Quantity"),
        ("minimum_stock", "Minimum Stock"),
        ("location", "Location"),
        (lambda item: resolve_status(item.status).label, "Status"),
        ("ticket_number", "Ticket No."),
        (lambda item: names.get(item.collaborator_id, ""), "Collaborator"),
    )


def _render_list(*, form=None, editing_id=None, dialog_open=False, status_code=200):
    search = request.args.get("search", "") or request.form.get("search", "")
    items = load_items()
    collaborators = Collaborator.query.order_by(Collaborator.name).all()
    return (
        render_template(
            "inventory/list.html",
            items=filter_rows(items, search, ITEM_SEARCH_FIELDS),
            collaborators=collaborators,
            search=search,
            form=form or empty_form(ITEM_FORM_DEFAULTS),
            editing_id=editing_id,
            dialog_open=dialog_open,
            statuses=list(ItemStatus),
        ),
        status_code,
    )


def _record_quantity_change(item: InventoryItem, previous_quantity: int) -> None:
    delta = item.quantity - previous_quantity
    if delta == 0:
        return
    movement_type = StockMovement.TYPE_IN if delta > 0 else StockMovement.TYPE_OUT
    db.session.add(
        StockMovement(
            item=item,
            quantity=delta,
            movement_type=movement_type,
            reference=item.ticket_number or None,
            created_by=getattr(current_user, "email", None),
        )
    )


@bp.route("/")
@login_required
def list_items():
    edit_id = request.args.get("edit", type=int)
    if edit_id is not None:
        item = db.session.get(InventoryItem, edit_id)
        if item is None:
            abort(404)
        return _render_list(
            form=form_from_row(item, ITEM_FORM_DEFAULTS),
            editing_id=item.id,
            dialog_open=True,
        )

    return _render_list(dialog_open=request.args.get("new") == "1")


@bp.route("/save", methods=["POST"])
@login_required
def save_item():
    editing_id = request.form.get("id", type=int)
    form = form_from_request(request.form, ITEM_FORM_DEFAULTS)

    try:
        payload = item_payload(form)
    except FormValidationError as exc:
        flash(exc.message, "danger")
        return _render_list(form=form, editing_id=editing_id, dialog_open=True, status_code=400)

    if editing_id:
        item = db.session.get(InventoryItem, editing_id)
        if item is None:
            abort(404)
        previous_quantity = item.quantity or 0
    else:
        item = InventoryItem()
        db.session.add(item)
        previous_quantity = 0

    for field, value in payload.items():
        setattr(item, field, value)

    try:
        db.session.flush()
        _record_quantity_change(item, previous_quantity)
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.warning("Item save rejected: %s", backend_error_message(exc))
        flash(backend_error_message(exc), "danger")
        return _render_list(form=form, editing_id=editing_id, dialog_open=True, status_code=400)

    flash("Item updated!" if editing_id else "Item created!", "success")
    return redirect(url_for("inventory.list_items"))


@bp.route("/<int:item_id>/delete", methods=["POST"])
@login_required
def delete_item(item_id: int):
    item = db.session.get(InventoryItem, item_id)
    if item is None:
        abort(404)

    try:
        db.session.delete(item)
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        flash(backend_error_message(exc), "danger")
        return redirect(url_for("inventory.list_items"))

    flash("Item removed!", "success")
    return redirect(url_for("inventory.list_items"))


@bp.route("/export")
@login_required
def export_items():
    search = request.args.get("search", "")
    items = filter_rows(load_items(), search, ITEM_SEARCH_FIELDS)
    columns = item_export_columns(Collaborator.query.all())

    if request.args.get("format") == "csv":
        return export_rows_to_csv(items, columns, "inventory.csv")
    return export_rows_to_xlsx(items, columns, "inventory.xlsx", "Inventory")
