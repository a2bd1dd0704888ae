"""Transport-ready requests and the httpx adapters that execute them."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Mapping, Protocol

import httpx

from .exceptions import RequestCancelledError, TransportError
from .request import CancellationToken
from .security import sanitize_headers

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TransportRequest:
    method: str
    url: str
    headers: list[tuple[str, str]] = field(default_factory=list)
    data: Mapping[str, Any] | None = None
    content: bytes | None = None
    cancel_token: CancellationToken | None = None


@dataclass(frozen=True)
class TransportResponse:
    status_code: int
    status_message: str
    headers: dict[str, list[str]]
    data: Any


class Transport(Protocol):
    def execute(self, request: TransportRequest) -> TransportResponse: ...


class AsyncTransport(Protocol):
    async def execute(self, request: TransportRequest) -> TransportResponse: ...


def _raise_if_cancelled(token: CancellationToken | None) -> None:
    if token is not None and token.cancelled:
        raise RequestCancelledError(token.reason or "Request was cancelled")


def _collect_headers(headers: httpx.Headers) -> dict[str, list[str]]:
    collected: dict[str, list[str]] = {}
    for key, value in headers.multi_items():
        collected.setdefault(key, []).append(value)
    return collected


def _parse_body(response: httpx.Response) -> Any:
    if not response.content:
        return ""
    content_type = response.headers.get("content-type", "")
    if "json" not in content_type.lower():
        return response.text
    return response.json()


def _to_transport_response(response: httpx.Response) -> TransportResponse:
    return TransportResponse(
        status_code=response.status_code,
        status_message=response.reason_phrase,
        headers=_collect_headers(response.headers),
        data=_parse_body(response),
    )


def _request_kwargs(request: TransportRequest) -> dict[str, Any]:
    kwargs: dict[str, Any] = {
        "method": request.method,
        "url": request.url,
        "headers": request.headers,
    }
    if request.data is not None:
        kwargs["data"] = dict(request.data)
    if request.content is not None:
        kwargs["content"] = request.content
    return kwargs


class HttpxTransport:
    """Synchronous transport over a borrowed ``httpx.Client``."""

    def __init__(self, client: httpx.Client) -> None:
        self._client = client

    def execute(self, request: TransportRequest) -> TransportResponse:
        _raise_if_cancelled(request.cancel_token)
        logger.debug("%s %s headers=%s", request.method, request.url, sanitize_headers(request.headers))
        try:
            response = self._client.request(**_request_kwargs(request))
        except httpx.TimeoutException as exc:
            raise TransportError("Request timed out", cause=exc) from exc
        except httpx.HTTPError as exc:
            raise TransportError("Network error", cause=exc) from exc
        _raise_if_cancelled(request.cancel_token)
        return _to_transport_response(response)


class AsyncHttpxTransport:
    """Asynchronous transport over a borrowed ``httpx.AsyncClient``."""

    def __init__(self, client: httpx.AsyncClient) -> None:
        self._client = client

    async def execute(self, request: TransportRequest) -> TransportResponse:
        _raise_if_cancelled(request.cancel_token)
        logger.debug("%s %s headers=%s", request.method, request.url, sanitize_headers(request.headers))
        try:
            response = await self._client.request(**_request_kwargs(request))
        except httpx.TimeoutException as exc:
            raise TransportError("Request timed out", cause=exc) from exc
        except httpx.HTTPError as exc:
            raise TransportError("Network error", cause=exc) from exc
        _raise_if_cancelled(request.cancel_token)
        return _to_transport_response(response)
