"""
Exception hierarchy raised by the Daraja helpers.

Every failure surfaces to the immediate caller as one of these types; nothing
in the package logs an error and carries on.
"""

from __future__ import annotations

from typing import Optional

__all__ = [
    "ConfigError",
    "DarajaError",
    "InvalidEnvironmentError",
    "InvalidOperationCodeError",
    "MalformedResponseError",
    "MissingCredentialsError",
    "MissingFieldError",
    "OperationNotAllowedError",
    "TokenGenerationError",
    "TransportError",
]


class DarajaError(Exception):
    """Base class for every error raised by this package."""


class ConfigError(DarajaError):
    """Raised when the supplied configuration is invalid."""


class InvalidEnvironmentError(ConfigError):
    """Raised for a runtime mode other than ``sandbox`` or ``live``."""


class MissingCredentialsError(ConfigError):
    """Raised when a consumer key or secret is absent."""


class TokenGenerationError(DarajaError):
    def __init__(
        self,
        message: str,
        *,
        status: Optional[int] = None,
        body: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.status = status
        self.body = body


class TransportError(DarajaError):
    """
    HTTP-level failure: a non-2xx status, a timeout or a connection error.

    ``status`` and ``body`` are ``None`` when no response was received. When
    the gateway returned its usual JSON error envelope, ``error_code`` and
    ``error_message`` carry its ``errorCode``/``errorMessage`` fields.
    """

    def __init__(
        self,
        message: str,
        *,
        status: Optional[int] = None,
        body: Optional[str] = None,
        error_code: Optional[str] = None,
        error_message: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.status = status
        self.body = body
        self.error_code = error_code
        self.error_message = error_message


class MalformedResponseError(DarajaError):
    """Raised when a body that should be a JSON object is not one."""


class MissingFieldError(DarajaError):
    def __init__(self, field: str, operation: Optional[str] = None) -> None:
        where = f" for {operation}" if operation else ""
        super().__init__(f"Missing required field '{field}'{where}")
        self.field = field
        self.operation = operation


class OperationNotAllowedError(DarajaError):
    """Raised when an operation is not available in the current environment."""


class InvalidOperationCodeError(DarajaError):
    """Raised for an enumerated value outside its closed set."""
