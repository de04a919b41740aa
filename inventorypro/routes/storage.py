from flask import Blueprint, abort, current_app, send_from_directory

from inventorypro.errors import StorageError
from inventorypro.storage import get_bucket

bp = Blueprint("storage", __name__, url_prefix="/storage")


@bp.route("/<bucket>/<path:object_name>")
def public_object(bucket: str, object_name: str):
    if bucket not in current_app.config.get("PUBLIC_BUCKETS", ()):
        abort(404)

    try:
        target = get_bucket(bucket)
        if not target.exists(object_name):
            abort(404)
    except StorageError:
        abort(404)

    response = send_from_directory(target.path, object_name)
    response.cache_control.no_cache = True
    return response
