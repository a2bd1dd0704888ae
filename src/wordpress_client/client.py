"""Synchronous and asynchronous clients for the WordPress REST API."""

from __future__ import annotations

import asyncio
import logging
import os
import threading
from http.cookiejar import CookieJar
from typing import Any, Callable, Sequence, Union

import httpx

from .assembler import RequestAssembler, merge_headers
from .authorization import (
    AuthorizationNegotiator,
    AuthorizationScheme,
    AuthorizationState,
    Resolved,
    Unresolved,
)
from .dispatcher import AsyncDispatcher, Dispatcher
from .exceptions import ConstructionError
from .hooks import HookChain, ResponseFilter
from .models import Post, decode, decode_list
from .request import Request, RequestBuilder
from .response import ResponseEnvelope
from .security import join_url, validate_base_url
from .transport import AsyncHttpxTransport, HttpxTransport, TransportRequest

logger = logging.getLogger(__name__)

RequestFactory = Callable[[RequestBuilder], Union[RequestBuilder, Request]]


def _build(factory: RequestFactory | None, builder: RequestBuilder) -> Request:
    built = factory(builder) if factory is not None else builder
    if isinstance(built, RequestBuilder):
        return built.build()
    return built


def _normalize_headers(headers: Sequence[tuple[str, str]] | None) -> list[tuple[str, str]]:
    if not headers:
        return []
    return [(str(key), str(value)) for key, value in headers]


class _BaseWordpressClient:
    default_path = "wp-json/wp/v2"
    default_timeout = 60.0
    default_user_agent = "wordpress-client-python/0.1.0"
    max_redirects = 5

    def __init__(
        self,
        *,
        base_url: str | None = None,
        path: str = default_path,
        cookies: CookieJar | None = None,
        user_agent: str | None = None,
        default_headers: Sequence[tuple[str, str]] | None = None,
        response_filter: ResponseFilter | None = None,
        authorization: AuthorizationScheme | None = None,
        timeout: float = default_timeout,
        follow_redirects: bool = True,
        allow_http: bool = False,
        base_url_env_var: str = "WORDPRESS_BASE_URL",
    ) -> None:
        base_url = base_url or os.getenv(base_url_env_var)
        if not base_url:
            raise ConstructionError("Base URL is invalid.")
        if not path or not path.strip("/"):
            raise ConstructionError("Endpoint is invalid.")
        self.base_url = base_url.rstrip("/")
        validate_base_url(self.base_url, allow_http=allow_http)
        self.path = path.strip("/")
        self.base_endpoint = join_url(self.base_url, self.path)
        if timeout <= 0:
            raise ConstructionError("timeout must be greater than 0")
        self.timeout = timeout

        self.cookies = cookies if cookies is not None else CookieJar()
        self.response_filter = response_filter
        self.authorization = authorization
        self._authorization_state: AuthorizationState = Unresolved()
        self._default_headers = [
            ("Accept", "application/json"),
            ("User-Agent", user_agent or self.default_user_agent),
        ]
        self._default_headers.extend(_normalize_headers(default_headers))

        self._assembler = RequestAssembler()
        self._negotiator = AuthorizationNegotiator()
        self._client_kwargs = {
            "timeout": timeout,
            "follow_redirects": follow_redirects,
            "max_redirects": self.max_redirects,
            "cookies": self.cookies,
            "trust_env": False,
        }

    @property
    def authorization_state(self) -> AuthorizationState:
        return self._authorization_state

    @property
    def default_headers(self) -> list[tuple[str, str]]:
        return list(self._default_headers)

    def builder(self, endpoint: str | None = None) -> RequestBuilder:
        """Return a request builder rooted at this client's API endpoint."""
        builder = RequestBuilder(base_endpoint=self.base_endpoint)
        if endpoint is not None:
            builder = builder.with_endpoint(endpoint)
        return builder

    def _default_scheme(self, scheme: AuthorizationScheme | None) -> AuthorizationScheme | None:
        if scheme is not None:
            self.authorization = scheme
        return self.authorization

    def _store_authorization(self, state: AuthorizationState) -> AuthorizationState:
        self._authorization_state = state
        if isinstance(state, Resolved):
            self._default_headers = merge_headers(self._default_headers, [state.header])
        return state

    def _bind_cookies(self, httpx_client: httpx.Client | httpx.AsyncClient, cookies: CookieJar | None) -> None:
        if cookies is not None:
            httpx_client.cookies = self.cookies
        else:
            self.cookies = httpx_client.cookies.jar

    def _keep_resolved(self) -> bool:
        if isinstance(self._authorization_state, Resolved):
            logger.debug("Default authorization already resolved, skipping negotiation")
            return True
        return False

    def _assemble(self, request: Request | None, state: AuthorizationState) -> TransportRequest:
        return self._assembler.assemble(request, state, self._default_headers)

    def _hooks(self, request: Request) -> HookChain:
        return HookChain.for_request(request, self.response_filter)

    @staticmethod
    def _posts(envelope: ResponseEnvelope[Any]) -> ResponseEnvelope[list[Post]]:
        if not envelope.success:
            return envelope.with_payload(None)
        return envelope.with_payload(decode_list(Post, envelope.payload))

    @staticmethod
    def _post(envelope: ResponseEnvelope[Any]) -> ResponseEnvelope[Post]:
        if not envelope.success:
            return envelope.with_payload(None)
        return envelope.with_payload(decode(Post, envelope.payload))


class WordpressClient(_BaseWordpressClient):
    """Synchronous client."""

    def __init__(
        self,
        *,
        base_url: str | None = None,
        path: str = _BaseWordpressClient.default_path,
        cookies: CookieJar | None = None,
        user_agent: str | None = None,
        default_headers: Sequence[tuple[str, str]] | None = None,
        response_filter: ResponseFilter | None = None,
        authorization: AuthorizationScheme | None = None,
        timeout: float = _BaseWordpressClient.default_timeout,
        follow_redirects: bool = True,
        allow_http: bool = False,
        httpx_client: httpx.Client | None = None,
    ) -> None:
        super().__init__(
            base_url=base_url,
            path=path,
            cookies=cookies,
            user_agent=user_agent,
            default_headers=default_headers,
            response_filter=response_filter,
            authorization=authorization,
            timeout=timeout,
            follow_redirects=follow_redirects,
            allow_http=allow_http,
        )
        self._owns_httpx = httpx_client is None
        self._httpx = httpx_client or httpx.Client(**self._client_kwargs)
        if httpx_client is not None:
            self._bind_cookies(httpx_client, cookies)
        self._transport = HttpxTransport(self._httpx)
        self._dispatcher = Dispatcher(self._transport)
        self._authorization_lock = threading.Lock()

    def __enter__(self) -> "WordpressClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_httpx:
            self._httpx.close()

    def authorize(self, scheme: AuthorizationScheme | None = None) -> AuthorizationState:
        """Negotiate the default authorization once.

        A failed token exchange does not raise: the client stays usable and
        the returned :class:`~wordpress_client.authorization.Failed` state
        explains why. Requests that require authorization then fail fast.
        """
        with self._authorization_lock:
            if self._keep_resolved():
                return self._authorization_state
            state = self._negotiator.resolve(
                self._default_scheme(scheme),
                self.base_endpoint,
                self._transport,
                self._authorization_state,
            )
            return self._store_authorization(state)

    def _authorization_for(self, request: Request | None) -> AuthorizationState:
        if request is None or not request.requires_authorization or request.authorization is None:
            return self._authorization_state
        return self._negotiator.resolve(request.authorization, self.base_endpoint, self._transport)

    def send(self, request: Request) -> ResponseEnvelope[Any]:
        transport_request = self._assemble(request, self._authorization_for(request))
        return self._dispatcher.execute(transport_request, self._hooks(request))

    def fetch_posts(self, build: RequestFactory | None = None) -> ResponseEnvelope[list[Post]]:
        return self._posts(self.send(_build(build, self.builder("posts"))))

    def fetch_post(self, post_id: int, build: RequestFactory | None = None) -> ResponseEnvelope[Post]:
        return self._post(self.send(_build(build, self.builder(f"posts/{post_id}"))))


class AsyncWordpressClient(_BaseWordpressClient):
    """Asynchronous client."""

    def __init__(
        self,
        *,
        base_url: str | None = None,
        path: str = _BaseWordpressClient.default_path,
        cookies: CookieJar | None = None,
        user_agent: str | None = None,
        default_headers: Sequence[tuple[str, str]] | None = None,
        response_filter: ResponseFilter | None = None,
        authorization: AuthorizationScheme | None = None,
        timeout: float = _BaseWordpressClient.default_timeout,
        follow_redirects: bool = True,
        allow_http: bool = False,
        httpx_client: httpx.AsyncClient | None = None,
    ) -> None:
        super().__init__(
            base_url=base_url,
            path=path,
            cookies=cookies,
            user_agent=user_agent,
            default_headers=default_headers,
            response_filter=response_filter,
            authorization=authorization,
            timeout=timeout,
            follow_redirects=follow_redirects,
            allow_http=allow_http,
        )
        self._owns_httpx = httpx_client is None
        self._httpx = httpx_client or httpx.AsyncClient(**self._client_kwargs)
        if httpx_client is not None:
            self._bind_cookies(httpx_client, cookies)
        self._transport = AsyncHttpxTransport(self._httpx)
        self._dispatcher = AsyncDispatcher(self._transport)
        self._authorization_lock = asyncio.Lock()

    async def __aenter__(self) -> "AsyncWordpressClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_httpx:
            await self._httpx.aclose()

    async def authorize(self, scheme: AuthorizationScheme | None = None) -> AuthorizationState:
        async with self._authorization_lock:
            if self._keep_resolved():
                return self._authorization_state
            state = await self._negotiator.aresolve(
                self._default_scheme(scheme),
                self.base_endpoint,
                self._transport,
                self._authorization_state,
            )
            return self._store_authorization(state)

    async def _authorization_for(self, request: Request | None) -> AuthorizationState:
        if request is None or not request.requires_authorization or request.authorization is None:
            return self._authorization_state
        return await self._negotiator.aresolve(request.authorization, self.base_endpoint, self._transport)

    async def send(self, request: Request) -> ResponseEnvelope[Any]:
        transport_request = self._assemble(request, await self._authorization_for(request))
        return await self._dispatcher.execute(transport_request, self._hooks(request))

    async def fetch_posts(self, build: RequestFactory | None = None) -> ResponseEnvelope[list[Post]]:
        return self._posts(await self.send(_build(build, self.builder("posts"))))

    async def fetch_post(self, post_id: int, build: RequestFactory | None = None) -> ResponseEnvelope[Post]:
        return self._post(await self.send(_build(build, self.builder(f"posts/{post_id}"))))
