"""Filesystem-backed object storage with public URLs."""

from __future__ import annotations

import os
from typing import BinaryIO, Iterable

from flask import current_app, url_for
from werkzeug.utils import secure_filename

from inventorypro.errors import StorageError


class Bucket:
    def __init__(self, root: str, name: str):
        self.name = name
        self.path = os.path.join(root, name)

    def _object_path(self, object_name: str) -> str:
        safe_name = secure_filename(object_name)
        if not safe_name or safe_name != object_name:
            raise StorageError(f"Invalid object name: {object_name!r}")
        return os.path.join(self.path, safe_name)

    def exists(self, object_name: str) -> bool:
        return os.path.isfile(self._object_path(object_name))

    def upload(self, object_name: str, stream: BinaryIO, *, upsert: bool = False) -> str:
        target = self._object_path(object_name)
        if os.path.exists(target) and not upsert:
            raise StorageError("The resource already exists")
        try:
            os.makedirs(self.path, exist_ok=True)
            with open(target, "wb") as handle:
                handle.write(stream.read())
        except OSError as exc:
            current_app.logger.exception("Failed to store %s/%s", self.name, object_name)
            raise StorageError(str(exc)) from exc
        return object_name

    def remove(self, object_names: Iterable[str]) -> list[str]:
        removed: list[str] = []
        for object_name in object_names:
            target = self._object_path(object_name)
            if not os.path.exists(target):
                continue
            try:
                os.remove(target)
            except OSError as exc:
                raise StorageError(str(exc)) from exc
            removed.append(object_name)
        return removed

    def get_public_url(self, object_name: str) -> str:
        return url_for(
            "storage.public_object",
            bucket=self.name,
            object_name=object_name,
            _external=True,
        )


def get_bucket(name: str) -> Bucket:
    root = current_app.config.get("STORAGE_ROOT")
    if not root:
        raise StorageError("Object storage root is not configured.")
    return Bucket(root, name)


def allowed_extension(filename: str, allowed: Iterable[str]) -> str | None:
    if "." not in filename:
        return None
    extension = filename.rsplit(".", 1)[1].lower()
    return extension if extension in set(allowed) else None
