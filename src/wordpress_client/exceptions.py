"""SDK-specific exceptions."""

from __future__ import annotations


class WordpressClientError(Exception):
    """Base exception for all WordPress client failures."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        body: object = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body
        self.cause = cause

    def __str__(self) -> str:  # pragma: no cover - simple formatting
        if self.status_code is None:
            return str(self.args[0])
        return f"{self.status_code}: {self.args[0]}"


class ConstructionError(WordpressClientError, ValueError):
    """Raised when a request or the client configuration is missing required parts."""


class AuthorizationFailedError(WordpressClientError):
    """Raised when a request requires authorization that could not be resolved."""


class TransportError(WordpressClientError):
    """Raised by transports for network, timeout and protocol failures."""


class RequestCancelledError(TransportError):
    """Raised by transports when the request's cancellation token fired."""


class DecodeError(WordpressClientError):
    """Raised when a payload cannot be decoded into a domain model."""
