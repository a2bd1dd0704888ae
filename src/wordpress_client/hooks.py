"""Interception points evaluated around a dispatch."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable

from .request import ErrorCallback, Request, ResponseCallback, ResponseValidator

logger = logging.getLogger(__name__)

ResponseFilter = Callable[[Any], bool]


@dataclass(frozen=True)
class HookChain:
    """Global filter, success notification, validator and error notification, in that order."""

    response_filter: ResponseFilter | None = None
    on_success: ResponseCallback | None = None
    validator: ResponseValidator | None = None
    on_unhandled_error: ErrorCallback | None = None

    @classmethod
    def for_request(cls, request: Request, response_filter: ResponseFilter | None = None) -> HookChain:
        return cls(
            response_filter=response_filter,
            on_success=request.on_success,
            validator=request.validator,
            on_unhandled_error=request.on_unhandled_error,
        )

    def accepts(self, payload: Any) -> bool:
        return self.response_filter is None or bool(self.response_filter(payload))

    def notify_success(self, payload: Any) -> None:
        if self.on_success is not None:
            self.on_success(payload)

    def validates(self, payload: Any) -> bool:
        return self.validator is None or bool(self.validator(payload))

    def notify_error(self, error: BaseException) -> None:
        if self.on_unhandled_error is None:
            return
        try:
            self.on_unhandled_error(error)
        except Exception:
            logger.exception("Unhandled-error callback raised")
