"""What-if backtester exception hierarchy.

All backtester exceptions derive from :class:`WhatIfError` so callers can
catch every domain failure uniformly. Each error carries a machine-readable
:class:`ErrorKind`, the status a transport layer should map it to, and an
optional diagnostic ``detail`` kept apart from the public message.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    """Machine-readable category of a backtester error."""

    INVALID_DATE = "invalid_date"
    PROVIDER_UNAVAILABLE = "provider_unavailable"
    NO_DATA = "no_data"
    INSUFFICIENT_DATA_AFTER_SNAP = "insufficient_data_after_snap"
    CONFIG = "config"
    VALIDATION = "validation"


class WhatIfError(Exception):
    """Base class for backtester exceptions.

    :param message: Public, caller-facing message.
    :param detail: Optional diagnostic detail (e.g. an upstream error message).
        Not part of ``str(err)``; review before showing it to untrusted callers.
    """

    kind: ErrorKind = ErrorKind.VALIDATION
    status: int = 400

    def __init__(self, message: str, detail: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.detail = detail

    def to_dict(self, include_detail: bool = False) -> dict[str, str]:
        """Serialize the error for an external response body."""
        payload = {"error": self.kind.value, "message": self.message}
        if include_detail and self.detail:
            payload["detail"] = self.detail
        return payload


class InvalidDateError(WhatIfError):
    """Raised when a date string is not a strict ``YYYY-MM-DD`` calendar date."""

    kind = ErrorKind.INVALID_DATE
    status = 400


class ProviderUnavailableError(WhatIfError):
    """Raised when the upstream price source fails (network, auth, rate-limit)."""

    kind = ErrorKind.PROVIDER_UNAVAILABLE
    status = 502


class NoDataError(WhatIfError):
    """Raised when the upstream returns no usable rows for the buffered window."""

    kind = ErrorKind.NO_DATA
    status = 422


class InsufficientDataError(WhatIfError):
    """Raised when trading-day snapping cannot produce a two-point window."""

    kind = ErrorKind.INSUFFICIENT_DATA_AFTER_SNAP
    status = 422


class ConfigError(WhatIfError):
    """Raised when configuration files or parameters are invalid."""

    kind = ErrorKind.CONFIG
    status = 500


class DataValidationError(WhatIfError):
    """Raised when a request passes schema validation but cannot be processed.

    Named DataValidationError to avoid conflict with pydantic's ValidationError.
    """

    kind = ErrorKind.VALIDATION
    status = 400


__all__ = [
    "ErrorKind",
    "WhatIfError",
    "InvalidDateError",
    "ProviderUnavailableError",
    "NoDataError",
    "InsufficientDataError",
    "ConfigError",
    "DataValidationError",
]
