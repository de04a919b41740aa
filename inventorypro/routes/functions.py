"""Server-side functions invoked over HTTP with the service key."""

from __future__ import annotations

import hmac

from flask import Blueprint, current_app, jsonify, request

from inventorypro.extensions import db
from inventorypro.seed import seed_admin

bp = Blueprint("functions", __name__, url_prefix="/functions")

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
}


def _json(payload: dict, status: int = 200):
    response = jsonify(payload)
    response.status_code = status
    response.headers.update(CORS_HEADERS)
    return response


def _has_service_credentials() -> bool:
    expected = current_app.config.get("SERVICE_ROLE_KEY") or ""
    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not expected:
        return False
    return hmac.compare_digest(token.strip(), expected)


@bp.route("/seed-admin", methods=["POST", "OPTIONS"])
def seed_admin_function():
    if request.method == "OPTIONS":
        response = current_app.response_class(status=204)
        response.headers.update(CORS_HEADERS)
        return response

    if not _has_service_credentials():
        return _json({"error": "Service credentials required"}, 401)

    try:
        result = seed_admin()
    except Exception as exc:
        db.session.rollback()
        current_app.logger.exception("seed-admin function failed")
        return _json({"error": str(exc)}, 500)

    if result.error:
        return _json(result.to_payload(), 400)
    return _json(result.to_payload())
