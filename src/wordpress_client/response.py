"""The uniform result envelope returned by every dispatch."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta
from typing import Generic, Mapping, Sequence, TypeVar

T = TypeVar("T")
U = TypeVar("U")

EXCEPTION_MESSAGE = "Exception occurred."
FILTER_REJECTED_MESSAGE = "Request aborted by user in global filter"
VALIDATOR_REJECTED_MESSAGE = "Request aborted by user in validator()"
EMPTY_PAYLOAD_MESSAGE = "Response carried no payload"


def normalize_headers(headers: Mapping[str, Sequence[str]] | None) -> list[tuple[str, str]]:
    """Flatten multi-valued response headers into ``(name, "v1;v2")`` pairs."""
    if not headers:
        return []
    return [(name, ";".join(values)) for name, values in headers.items()]


@dataclass(frozen=True)
class ResponseEnvelope(Generic[T]):
    payload: T | None
    success: bool
    status_code: int | None = None
    headers: list[tuple[str, str]] = field(default_factory=list)
    elapsed: timedelta = timedelta(0)
    error_message: str | None = None
    captured_error: BaseException | None = None

    def __post_init__(self) -> None:
        if self.success and self.payload is None:
            raise ValueError("successful response must carry a payload")
        if self.success and self.error_message is not None:
            raise ValueError("successful response cannot carry an error message")
        if not self.success and self.payload is not None:
            raise ValueError("failed response cannot carry a payload")

    @classmethod
    def succeeded(
        cls,
        payload: T,
        *,
        status_code: int,
        headers: list[tuple[str, str]],
        elapsed: timedelta,
    ) -> ResponseEnvelope[T]:
        return cls(payload, True, status_code=status_code, headers=headers, elapsed=elapsed)

    @classmethod
    def failed(
        cls,
        *,
        error_message: str | None,
        status_code: int | None = None,
        headers: list[tuple[str, str]] | None = None,
        elapsed: timedelta = timedelta(0),
        captured_error: BaseException | None = None,
    ) -> ResponseEnvelope[T]:
        return cls(
            None,
            False,
            status_code=status_code,
            headers=headers or [],
            elapsed=elapsed,
            error_message=error_message,
            captured_error=captured_error,
        )

    def with_payload(self, payload: U | None) -> ResponseEnvelope[U]:
        """Re-wrap with a new payload, keeping every metadata field unchanged."""
        return ResponseEnvelope(
            payload if self.success else None,
            self.success,
            status_code=self.status_code,
            headers=list(self.headers),
            elapsed=self.elapsed,
            error_message=self.error_message,
            captured_error=self.captured_error,
        )
