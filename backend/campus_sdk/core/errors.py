# campus_sdk/core/errors.py
"""
Error taxonomy for the record store and auth layer.
Every error carries a stable machine-readable code and the HTTP status
the API layer answers with, so callers can message users without
inspecting exception types.
"""
from typing import Dict, List, Optional


class SDKError(Exception):
    """Base class for all errors raised by the SDK."""
    code = "SDK_ERROR"
    status_code = 500

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.__class__.__name__)
        self.message = message or self.__class__.__name__

    def to_detail(self) -> dict:
        """Serialize into the `detail` payload used by the HTTP layer."""
        return {"code": self.code, "message": self.message}


class ValidationError(SDKError):
    """
    A candidate record is missing required fields or carries a value
    of the wrong declared type.

    Attributes:
        collection: Collection the candidate was validated against
        missing: Every required field that was absent or None
        type_errors: field -> expected type tag, for mistyped values
    """
    code = "VALIDATION_ERROR"
    status_code = 422

    def __init__(
        self,
        collection: str,
        missing: Optional[List[str]] = None,
        type_errors: Optional[Dict[str, str]] = None,
    ):
        self.collection = collection
        self.missing = sorted(missing or [])
        self.type_errors = dict(type_errors or {})
        parts = []
        if self.missing:
            parts.append("missing required fields: " + ", ".join(self.missing))
        if self.type_errors:
            parts.append("wrong types: " + ", ".join(
                f"{f} (expected {t})" for f, t in sorted(self.type_errors.items())
            ))
        super().__init__(f"{collection}: " + "; ".join(parts))

    def to_detail(self) -> dict:
        detail = super().to_detail()
        detail["missing"] = self.missing
        detail["typeErrors"] = self.type_errors
        return detail


class NotFound(SDKError):
    code = "NOT_FOUND"
    status_code = 404


class SchemaNotFound(NotFound):
    code = "SCHEMA_NOT_FOUND"


class SessionInvalid(NotFound):
    """Token is unknown, expired, destroyed or invalidated."""
    code = "AUTH_INVALID_TOKEN"
    status_code = 401


class Conflict(SDKError):
    """Optimistic-concurrency retry budget exhausted; re-issue the whole operation."""
    code = "CONFLICT"
    status_code = 409


class AlreadyExists(SDKError):
    code = "ALREADY_EXISTS"
    status_code = 409


class InvalidCredentials(SDKError):
    code = "AUTH_INVALID_CREDENTIALS"
    status_code = 401

    def __init__(self, message: str = "Incorrect email or password"):
        super().__init__(message)


class OTPError(SDKError):
    status_code = 400


class InvalidOTP(OTPError):
    code = "OTP_INVALID"

    def __init__(self, message: str = "One-time passcode is invalid"):
        super().__init__(message)


class ExpiredOTP(OTPError):
    code = "OTP_EXPIRED"

    def __init__(self, message: str = "One-time passcode has expired"):
        super().__init__(message)


class RemoteUnavailable(SDKError):
    """Network or backend failure after internal retries."""
    code = "REMOTE_UNAVAILABLE"
    status_code = 503
