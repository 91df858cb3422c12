"""
Domain error hierarchy.

Every failure the services can report derives from ``EngiGrowError`` and
knows its HTTP status, so the API layer maps them in one place
(``engigrow.api.error_handlers``) and no route handler has to translate
exceptions itself.
"""

from typing import Optional


class EngiGrowError(Exception):
    """Base exception for all domain errors."""

    code = "internal_error"
    http_status = 500

    def __init__(self, message: str, headers: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.headers = headers

    def to_response(self) -> dict:
        return {"error": self.message, "code": self.code}


class ValidationError(EngiGrowError):
    """Malformed or missing input."""

    code = "validation_error"
    http_status = 400


class DuplicateIdentity(EngiGrowError):
    """A user with this email already exists."""

    code = "duplicate_identity"
    http_status = 400


class NotFound(EngiGrowError):
    code = "not_found"
    http_status = 404


class AuthenticationError(EngiGrowError):
    """Base for failures that stop a caller from being authenticated."""

    code = "authentication_failed"
    http_status = 401

    def __init__(self, message: str, headers: Optional[dict] = None):
        if headers is None and self.http_status == 401:
            headers = {"WWW-Authenticate": "Bearer"}
        super().__init__(message, headers=headers)


class InvalidCredentials(AuthenticationError):
    code = "invalid_credentials"


class MissingToken(AuthenticationError):
    code = "missing_token"


class MalformedToken(AuthenticationError):
    code = "malformed_token"
    http_status = 403


class ExpiredToken(AuthenticationError):
    code = "expired_token"
    http_status = 403


class IdentityNotFound(AuthenticationError):
    """Token was valid but its user no longer exists."""

    code = "identity_not_found"


class StorageFailure(EngiGrowError):
    """The durable store rejected or failed an operation."""

    code = "storage_failure"
    http_status = 500
