# Overview: API error taxonomy; each error knows the HTTP status it maps to.

"""
API errors raised by services and gates.

Routes catch ApiError and turn it into the response envelope via
responses.error_response(). Anything that is not an ApiError is treated as
unexpected: logged with a stack trace and returned as a generic 500.
"""

from __future__ import annotations


class ApiError(Exception):
    """Base class for errors that have a well-defined HTTP outcome."""

    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str | None = None, errors: list[dict] | None = None):
        self.message = message or self.default_message
        self.errors = errors
        super().__init__(self.message)


# 400

class ValidationError(ApiError):
    """Malformed or out-of-range input. Carries per-field problems."""

    status_code = 400
    default_message = "Validation failed"


class InvalidSupplier(ValidationError):
    """supplier_id does not resolve to an active supplier account."""

    default_message = "Invalid supplier ID or supplier is inactive"


# 401

class Unauthenticated(ApiError):
    status_code = 401
    default_message = "Authentication required"


class MissingToken(Unauthenticated):
    default_message = "Access token required"


class InvalidToken(Unauthenticated):
    default_message = "Invalid or expired token"


class UserNotFound(Unauthenticated):
    default_message = "User not found or inactive"


# 403

class Forbidden(ApiError):
    status_code = 403
    default_message = "Insufficient permissions"


class SelfActionForbidden(Forbidden):
    default_message = "You cannot perform this action on your own account"


class DeliveryLocked(Forbidden):
    default_message = "Delivery can only be modified within 10 minutes of creation"


# 404

class NotFound(ApiError):
    status_code = 404
    default_message = "Resource not found"


# 409

class Conflict(ApiError):
    status_code = 409
    default_message = "Conflict"


class AlreadyAccepted(Conflict):
    default_message = "Delivery has already been accepted"
