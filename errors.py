"""Failures raised by the stores and surfaced by the request handlers.

``CatalogError`` subclasses are user-facing and end up as flash messages (or
JSON errors); ``StoreUnavailable`` is an outage and becomes a 500.
"""


class CatalogError(Exception):
    """Base error; ``message`` is safe to show to the user."""

    status_code = 400
    default_message = "Request failed"

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(CatalogError):
    default_message = "Invalid input"

    def __init__(self, message=None, fields=()):
        self.fields = tuple(fields)
        super().__init__(message)


class DuplicateIdentity(CatalogError):
    default_message = "Username or email is already registered"


class DuplicateTitle(CatalogError):
    default_message = "A book with that title already exists"


class InvalidIdentifier(CatalogError):
    default_message = "Invalid book ID"


class NotFound(CatalogError):
    status_code = 404
    default_message = "Book not found"


class AccessDenied(CatalogError):
    status_code = 403
    default_message = "Access denied"


class InvalidCredentials(CatalogError):
    status_code = 401
    # Same text for unknown identifier and wrong password
    default_message = "Incorrect username or password"


class StoreUnavailable(Exception):
    """The database could not be reached; answered with a bare 500."""

    message = "The book store is unavailable"
