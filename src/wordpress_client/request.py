"""Immutable request descriptors and the fluent builder that produces them."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, Iterable, Mapping, Union

from .exceptions import ConstructionError
from .security import join_url

if TYPE_CHECKING:
    from .authorization import AuthorizationScheme


ResponseCallback = Callable[[Any], None]
ErrorCallback = Callable[[BaseException], None]
ResponseValidator = Callable[[Any], bool]


class HttpMethod(str, Enum):
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"
    HEAD = "HEAD"
    OPTIONS = "OPTIONS"


@dataclass(frozen=True)
class FormBody:
    """Form fields sent as the request body as-is."""

    fields: Mapping[str, Any]


@dataclass(frozen=True)
class MediaBody:
    """A single binary file sent as the raw request body.

    The filename, content type and any extra ``fields`` travel as request
    headers. No multipart framing is produced: this is a one-part upload,
    which is what the WordPress media endpoint accepts.
    """

    content: bytes
    filename: str
    content_type: str = "application/octet-stream"
    fields: Mapping[str, str] = field(default_factory=dict)

    def promoted_headers(self) -> list[tuple[str, str]]:
        headers = [
            ("Content-Disposition", f'attachment; filename="{self.filename}"'),
            ("Content-Type", self.content_type),
        ]
        headers.extend((str(key), str(value)) for key, value in self.fields.items())
        return headers


RequestBody = Union[FormBody, MediaBody]


class CancellationToken:
    """Opaque cancellation handle checked by the transport around the round trip."""

    def __init__(self) -> None:
        self._event = threading.Event()
        self.reason: str | None = None

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self, reason: str | None = None) -> None:
        self.reason = reason
        self._event.set()


@dataclass(frozen=True)
class Request:
    """Description of one outgoing call, ready to be assembled."""

    uri: str | None
    method: HttpMethod = HttpMethod.GET
    headers: tuple[tuple[str, str], ...] = ()
    query: tuple[tuple[str, Any], ...] = ()
    body: RequestBody | None = None
    requires_authorization: bool = False
    authorization: AuthorizationScheme | None = None
    cancel_token: CancellationToken | None = None
    on_success: ResponseCallback | None = None
    on_unhandled_error: ErrorCallback | None = None
    validator: ResponseValidator | None = None


@dataclass(frozen=True)
class RequestBuilder:
    """Fluent, immutable builder: every ``with_*`` call returns a new builder.

    Scalar settings follow "later call wins"; headers and query parameters
    accumulate in call order.
    """

    base_endpoint: str | None = None
    endpoint: str | None = None
    method: HttpMethod | None = HttpMethod.GET
    headers: tuple[tuple[str, str], ...] = ()
    query: tuple[tuple[str, Any], ...] = ()
    body: RequestBody | None = None
    requires_authorization: bool = False
    authorization: AuthorizationScheme | None = None
    cancel_token: CancellationToken | None = None
    on_success: ResponseCallback | None = None
    on_unhandled_error: ErrorCallback | None = None
    validator: ResponseValidator | None = None

    def with_base_and_endpoint(self, base_endpoint: str, endpoint: str) -> RequestBuilder:
        return replace(self, base_endpoint=base_endpoint, endpoint=endpoint)

    def with_endpoint(self, endpoint: str) -> RequestBuilder:
        return replace(self, endpoint=endpoint)

    def with_method(self, method: HttpMethod | str) -> RequestBuilder:
        if not isinstance(method, HttpMethod):
            method = HttpMethod(method.upper())
        return replace(self, method=method)

    def with_header(self, name: str, value: str) -> RequestBuilder:
        return replace(self, headers=self.headers + ((str(name), str(value)),))

    def with_headers(self, headers: Iterable[tuple[str, str]]) -> RequestBuilder:
        return replace(self, headers=self.headers + tuple((str(k), str(v)) for k, v in headers))

    def with_query(self, name: str, value: Any) -> RequestBuilder:
        return replace(self, query=self.query + ((name, value),))

    def with_form_body(self, fields: Mapping[str, Any]) -> RequestBuilder:
        return replace(self, body=FormBody(dict(fields)))

    def with_media_body(
        self,
        content: bytes,
        filename: str,
        *,
        content_type: str = "application/octet-stream",
        fields: Mapping[str, str] | None = None,
    ) -> RequestBuilder:
        body = MediaBody(content, filename, content_type, dict(fields or {}))
        return replace(self, body=body)

    def with_authorization(self, authorization: AuthorizationScheme) -> RequestBuilder:
        """Override the client default for this request.

        ``NoAuthorization`` sends the request anonymously; any other scheme
        makes authorization required.
        """
        from .authorization import NoAuthorization

        required = not isinstance(authorization, NoAuthorization)
        return replace(self, authorization=authorization, requires_authorization=required)

    def with_authorization_required(self, required: bool = True) -> RequestBuilder:
        return replace(self, requires_authorization=required)

    def with_cancellation(self, token: CancellationToken) -> RequestBuilder:
        return replace(self, cancel_token=token)

    def with_callbacks(
        self,
        *,
        on_success: ResponseCallback | None = None,
        on_unhandled_error: ErrorCallback | None = None,
    ) -> RequestBuilder:
        return replace(
            self,
            on_success=on_success if on_success is not None else self.on_success,
            on_unhandled_error=on_unhandled_error if on_unhandled_error is not None else self.on_unhandled_error,
        )

    def with_validator(self, validator: ResponseValidator) -> RequestBuilder:
        return replace(self, validator=validator)

    def build(self) -> Request:
        if not self.base_endpoint or not self.endpoint:
            raise ConstructionError("Request URI is not set")
        if self.method is None:
            raise ConstructionError("Request method is not set")
        return Request(
            uri=join_url(self.base_endpoint, self.endpoint),
            method=self.method,
            headers=self.headers,
            query=self.query,
            body=self.body,
            requires_authorization=self.requires_authorization,
            authorization=self.authorization,
            cancel_token=self.cancel_token,
            on_success=self.on_success,
            on_unhandled_error=self.on_unhandled_error,
            validator=self.validator,
        )
