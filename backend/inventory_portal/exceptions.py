"""Application exceptions.

Each carries the HTTP status it maps to; the handlers registered in
``main.py`` turn them into the standard response envelope.
"""
from typing import List, Optional


class InventoryPortalError(Exception):
    """Base exception for all inventory portal errors."""

    status_code = 500

    def __init__(self, message: str, errors: Optional[List[str]] = None):
        self.message = message
        self.errors = errors
        super().__init__(message)


class MalformedIdError(InventoryPortalError):
    """Raised when a path identifier does not parse."""

    status_code = 400

    def __init__(self, resource: str = "resource"):
        self.resource = resource
        super().__init__(f"Invalid {resource} ID format")


class NotFoundError(InventoryPortalError):
    """Raised when a well-formed identifier matches no record."""

    status_code = 404

    def __init__(self, resource: str = "Resource"):
        self.resource = resource
        super().__init__(f"{resource} not found")


class DuplicateKeyError(InventoryPortalError):
    """Raised when a write would break a uniqueness constraint."""

    status_code = 400

    FIELD_MESSAGES = {
        "serial_number": "Serial number already exists",
        "username": "username already exists",
        "email": "email already exists",
    }

    def __init__(self, field: str):
        self.field = field
        super().__init__(self.FIELD_MESSAGES.get(field, f"{field} already exists"))


class InvalidQueryError(InventoryPortalError):
    """Raised when a query parameter is outside its allowed values."""

    status_code = 400


class AuthenticationError(InventoryPortalError):
    status_code = 401


class PermissionDeniedError(InventoryPortalError):
    status_code = 403


def conflicting_field(error_text: str) -> Optional[str]:
    """Best-effort extraction of the column behind an IntegrityError.

    Works with both the SQLite ("UNIQUE constraint failed: users.email") and
    the PostgreSQL ("... constraint \"uq_users_email\"") wording.
    """
    text = error_text.lower()
    for field in ("serial_number", "username", "email"):
        if field in text:
            return field
    return None
