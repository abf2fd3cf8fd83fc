"""
Custom exceptions for SnapLink service.

Store errors carry an HTTP status code and error code so the API layer can
render them without inspecting messages. Telemetry errors never leave the
log shipper except for local validation failures.
"""

from typing import Any, Dict, Optional


class SnapLinkException(Exception):
    """Base exception for SnapLink service."""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        error_code: str = "internal_error",
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.error_code = error_code
        self.details = details or {}


class ValidationError(SnapLinkException):
    """Raised when request validation fails."""

    def __init__(
        self,
        message: str,
        error_code: str = "validation_error",
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(
            message=message,
            status_code=400,
            error_code=error_code,
            details=details,
        )


class InvalidFormatError(ValidationError):
    """Raised when a supplied shortcode fails the key format rule."""

    def __init__(self, shortcode: str) -> None:
        super().__init__(
            message="Invalid shortcode format (3-10 alphanumeric chars)",
            error_code="invalid_format",
            details={"shortcode": shortcode},
        )


class InvalidTargetError(ValidationError):
    """Raised when the target is not an absolute URL."""

    def __init__(self, url: str) -> None:
        super().__init__(
            message="Invalid URL provided",
            error_code="invalid_url",
            details={"url": url},
        )


class InvalidValidityError(ValidationError):
    """Raised when validity is not a positive number of days."""

    def __init__(self, validity: Any) -> None:
        super().__init__(
            message="Validity must be a positive number of days",
            error_code="invalid_validity",
            details={"validity": validity},
        )


class KeyConflictError(SnapLinkException):
    """Raised when a supplied shortcode is already taken."""

    def __init__(self, shortcode: str) -> None:
        super().__init__(
            message="Shortcode already exists",
            status_code=409,
            error_code="key_conflict",
            details={"shortcode": shortcode},
        )


class NotFoundError(SnapLinkException):
    """Raised when a shortcode is not in the store."""

    def __init__(self, shortcode: str) -> None:
        super().__init__(
            message="Short URL not found",
            status_code=404,
            error_code="not_found",
            details={"shortcode": shortcode},
        )


class ExpiredError(SnapLinkException):
    """Raised by the API layer when a record exists but has expired."""

    def __init__(self, shortcode: str) -> None:
        super().__init__(
            message="Short URL has expired",
            status_code=410,
            error_code="expired",
            details={"shortcode": shortcode},
        )


class TelemetryValidationError(ValueError):
    """Raised by the log shipper when an event uses an unknown origin, level or category."""


class CredentialUnavailableError(Exception):
    """Auth endpoint did not yield a usable token. Never leaves the token manager."""


class DeliveryError(Exception):
    """Collector did not accept an event. Never leaves the log shipper."""

    def __init__(self, message: str, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.status = status
