"""Timed execution of transport requests, normalized into response envelopes.

Neither dispatcher raises: transport failures, cancellations and exceptions
thrown by hooks all come back as a failed :class:`ResponseEnvelope`.
"""

from __future__ import annotations

import logging
import time
from datetime import timedelta
from typing import Any

from .hooks import HookChain
from .response import (
    EMPTY_PAYLOAD_MESSAGE,
    EXCEPTION_MESSAGE,
    FILTER_REJECTED_MESSAGE,
    VALIDATOR_REJECTED_MESSAGE,
    ResponseEnvelope,
    normalize_headers,
)
from .transport import AsyncTransport, Transport, TransportRequest, TransportResponse

logger = logging.getLogger(__name__)

SUCCESS_STATUS = 200
EXCEPTION_STATUS = 400


def _elapsed_since(started: float) -> timedelta:
    return timedelta(seconds=time.perf_counter() - started)


class _BaseDispatcher:
    @staticmethod
    def _failed(error: BaseException, elapsed: timedelta, hooks: HookChain) -> ResponseEnvelope[Any]:
        logger.debug("Dispatch failed: %r", error)
        hooks.notify_error(error)
        return ResponseEnvelope.failed(
            error_message=EXCEPTION_MESSAGE,
            status_code=EXCEPTION_STATUS,
            elapsed=elapsed,
            captured_error=error,
        )

    @staticmethod
    def _complete(response: TransportResponse, elapsed: timedelta, hooks: HookChain) -> ResponseEnvelope[Any]:
        headers = normalize_headers(response.headers)
        if response.status_code != SUCCESS_STATUS:
            return ResponseEnvelope.failed(
                error_message=response.status_message,
                status_code=response.status_code,
                headers=headers,
                elapsed=elapsed,
            )

        payload = response.data
        if payload is None:
            return ResponseEnvelope.failed(
                error_message=EMPTY_PAYLOAD_MESSAGE,
                status_code=response.status_code,
                headers=headers,
                elapsed=elapsed,
            )

        if not hooks.accepts(payload):
            return ResponseEnvelope.failed(
                error_message=FILTER_REJECTED_MESSAGE,
                status_code=response.status_code,
                headers=headers,
                elapsed=elapsed,
            )

        hooks.notify_success(payload)

        if not hooks.validates(payload):
            return ResponseEnvelope.failed(
                error_message=VALIDATOR_REJECTED_MESSAGE,
                status_code=response.status_code,
                headers=headers,
                elapsed=elapsed,
            )

        return ResponseEnvelope.succeeded(
            payload,
            status_code=response.status_code,
            headers=headers,
            elapsed=elapsed,
        )


class Dispatcher(_BaseDispatcher):
    def __init__(self, transport: Transport) -> None:
        self.transport = transport

    def execute(self, request: TransportRequest, hooks: HookChain | None = None) -> ResponseEnvelope[Any]:
        hooks = hooks or HookChain()
        started = time.perf_counter()
        try:
            response = self.transport.execute(request)
        except Exception as exc:
            return self._failed(exc, _elapsed_since(started), hooks)
        elapsed = _elapsed_since(started)
        try:
            return self._complete(response, elapsed, hooks)
        except Exception as exc:
            return self._failed(exc, elapsed, hooks)


class AsyncDispatcher(_BaseDispatcher):
    def __init__(self, transport: AsyncTransport) -> None:
        self.transport = transport

    async def execute(self, request: TransportRequest, hooks: HookChain | None = None) -> ResponseEnvelope[Any]:
        hooks = hooks or HookChain()
        started = time.perf_counter()
        try:
            response = await self.transport.execute(request)
        except Exception as exc:
            return self._failed(exc, _elapsed_since(started), hooks)
        elapsed = _elapsed_since(started)
        try:
            return self._complete(response, elapsed, hooks)
        except Exception as exc:
            return self._failed(exc, elapsed, hooks)
