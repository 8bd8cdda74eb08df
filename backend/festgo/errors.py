# Overview: Tagged service errors shared by every route; one JSON shape for all failures.

"""
Error kinds (authoritative)

- validation_error     400  malformed or missing input, client-correctable
- invalid_format       400  bartender input token does not parse
- insufficient_stock   400  business-rule conflict, reduce quantity
- empty_cart           400  confirm precondition failed
- unauthorized         401  missing or invalid bearer credential
- forbidden            403  role mismatch
- not_found            404  referenced entity absent
- consistency_fault    500  ticket outcome unknown after stock was touched

Business-rule errors are never retried by the server.
"""

from __future__ import annotations


class ServiceError(Exception):
    """Base for all errors surfaced to API callers."""

    kind = "service_error"
    status_code = 400

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict:
        return {"error": self.kind, "message": self.message, "details": self.details}


class ValidationError(ServiceError):
    """400-level input problem."""

    kind = "validation_error"


class InvalidFormat(ValidationError):
    kind = "invalid_format"


class NotFound(ServiceError):
    kind = "not_found"
    status_code = 404


class InsufficientStock(ServiceError):
    kind = "insufficient_stock"


class EmptyCart(ServiceError):
    kind = "empty_cart"


class Unauthorized(ServiceError):
    kind = "unauthorized"
    status_code = 401


class Forbidden(ServiceError):
    kind = "forbidden"
    status_code = 403


class ConsistencyFault(ServiceError):
    """
    Ticket persistence outcome is unknown after stock was decremented.

    The full attempt payload travels in ``details`` for the critical log;
    callers only ever see PUBLIC_MESSAGE.
    """

    kind = "consistency_fault"
    status_code = 500
    PUBLIC_MESSAGE = (
        "The ticket outcome could not be confirmed. Check the ticket history "
        "before retrying to avoid charging the customer twice."
    )

    def to_dict(self) -> dict:
        return {"error": self.kind, "message": self.PUBLIC_MESSAGE, "details": {}}
