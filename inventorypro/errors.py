"""Exceptions raised by the service layer and surfaced as notifications."""

from __future__ import annotations


class InventoryProError(Exception):
    """Base class for errors whose message is shown to the user verbatim."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class FormValidationError(InventoryProError):
    """Input rejected before any write reaches the database."""


class AuthError(InventoryProError):
    """Raised by the auth service for credential or provisioning failures."""


class StorageError(InventoryProError):
    """Raised by the object storage layer."""


def backend_error_message(exc: Exception) -> str:
    """Return the raw backend message carried by ``exc``."""

    original = getattr(exc, "orig", None)
    if original is not None:
        text = str(original).strip()
        if text:
            return text
    text = str(exc).strip()
    return text or exc.__class__.__name__
