from __future__ import annotations

import traceback

from flask import Blueprint, current_app, render_template, request
from werkzeug.exceptions import HTTPException

from inventorypro.extensions import db

bp = Blueprint("errors", __name__)


def _format_stacktrace(error: BaseException | None) -> str:
    if error is None:
        return ""

    return "".join(traceback.format_exception(type(error), error, error.__traceback__))


@bp.app_errorhandler(Exception)
def handle_exception(error: Exception):
    # HTTP errors other than 500 keep their default handling.
    if isinstance(error, HTTPException) and error.code != 500:
        return error

    root_error: BaseException | None = getattr(error, "original_exception", None)
    if root_error is None or not isinstance(root_error, BaseException):
        root_error = error

    db.session.rollback()
    current_app.logger.exception("Unhandled exception", exc_info=error)

    error_message = "Internal Server Error"
    if isinstance(error, HTTPException) and error.description:
        error_message = error.description
    elif str(error):
        error_message = str(error)

    return (
        render_template(
            "errors/server_error.html",
            error_message=error_message,
            stacktrace=_format_stacktrace(root_error) if current_app.debug else "",
            endpoint=request.endpoint,
            path=request.path,
        ),
        500,
    )
