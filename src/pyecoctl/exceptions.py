"""Exception hierarchy for pyecoctl.

All errors raised by the library inherit from :class:`EcoflowError` so the
command-line front end can use a single ``except EcoflowError`` to report
configuration problems and remote API failures alike.
"""

from __future__ import annotations


class EcoflowError(Exception):
    """Base exception for all pyecoctl errors."""

    pass


class EcoflowConfigError(EcoflowError):
    """Effective configuration is missing a value required by the requested mode."""

    pass


class EcoflowConnectionError(EcoflowError):
    """Failed to reach the EcoFlow cloud API."""

    pass


class EcoflowAPIError(EcoflowError):
    """The EcoFlow cloud API returned an error response.

    Attributes:
        code: Error code reported by the API (``None`` for HTTP-level errors)
    """

    def __init__(self, message: str, code: str | None = None) -> None:
        """Initialize with message and optional API error code.

        Args:
            message: Human readable error description
            code: Error code from the response body, if any
        """
        self.code = code
        super().__init__(message)


class EcoflowAuthError(EcoflowAPIError):
    """Request was rejected because of invalid credentials or signature."""

    pass


__all__ = [
    "EcoflowAPIError",
    "EcoflowAuthError",
    "EcoflowConfigError",
    "EcoflowConnectionError",
    "EcoflowError",
]
