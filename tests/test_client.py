from __future__ import annotations

import asyncio
from http.cookiejar import CookieJar
from urllib.parse import parse_qs

import httpx
import pytest

from wordpress_client import (
    AsyncWordpressClient,
    AuthorizationFailedError,
    CancellationToken,
    ConstructionError,
    DecodeError,
    Failed,
    NoAuthorization,
    Post,
    RequestCancelledError,
    Resolved,
    StaticAuthorization,
    TokenExchangeAuthorization,
    TransportError,
    WordpressClient,
)

BASE_URL = "https://site.test"
POSTS = [
    {"id": 1, "title": {"rendered": "Hello"}, "date": "2024-01-01T10:00:00", "categories": [3]},
    {"id": 2, "title": {"rendered": "World"}, "status": "publish"},
]


def _client(handler, **kwargs) -> WordpressClient:
    transport = httpx.MockTransport(handler)
    return WordpressClient(
        base_url=BASE_URL,
        path="wp-json/wp/v2",
        httpx_client=httpx.Client(transport=transport),
        **kwargs,
    )


def test_fetch_posts_decodes_list() -> None:
    captured: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        captured.append(request)
        return httpx.Response(200, json=POSTS, headers={"X-WP-Total": "2"})

    with _client(handler) as client:
        envelope = client.fetch_posts(lambda builder: builder.with_query("per_page", 2))

    assert envelope.success is True
    assert envelope.status_code == 200
    assert len(envelope.payload) == 2
    assert all(isinstance(post, Post) for post in envelope.payload)
    assert envelope.payload[0].title.rendered == "Hello"
    assert ("x-wp-total", "2") in envelope.headers
    assert str(captured[0].url) == "https://site.test/wp-json/wp/v2/posts?per_page=2"
    assert captured[0].headers["Accept"] == "application/json"
    assert "Authorization" not in captured[0].headers


def test_fetch_posts_failure_is_rewrapped_without_decoding() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, json={"code": "internal_error"})

    with _client(handler) as client:
        envelope = client.fetch_posts()

    assert envelope.success is False
    assert envelope.payload is None
    assert envelope.status_code == 500
    assert envelope.error_message == "Internal Server Error"


def test_fetch_posts_decode_error_propagates() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=[{"title": "missing id"}])

    with _client(handler) as client:
        with pytest.raises(DecodeError):
            client.fetch_posts()


def test_fetch_post_decodes_single_entity() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/wp-json/wp/v2/posts/2"
        return httpx.Response(200, json=POSTS[1])

    with _client(handler) as client:
        envelope = client.fetch_post(2)

    assert envelope.payload == Post.model_validate(POSTS[1])


def test_required_authorization_without_credentials_fails_before_transport() -> None:
    calls: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(200, json=[])

    with _client(handler) as client:
        with pytest.raises(AuthorizationFailedError):
            client.fetch_posts(lambda builder: builder.with_authorization_required())

    assert calls == []


def test_authorize_exchanges_token_once_and_attaches_it() -> None:
    calls: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        if request.url.path.endswith("/jwt-auth/v1/token"):
            assert parse_qs(request.content.decode()) == {"username": ["admin"], "password": ["secret"]}
            return httpx.Response(200, json={"token": "jwt"})
        return httpx.Response(200, json=POSTS)

    with _client(handler, authorization=TokenExchangeAuthorization("admin", "secret")) as client:
        first = client.authorize()
        second = client.authorize(TokenExchangeAuthorization("other", "pw"))
        envelope = client.fetch_posts(lambda builder: builder.with_authorization_required())

    assert first == Resolved("Bearer", "jwt")
    assert second is first
    assert envelope.success is True
    assert len(calls) == 2
    assert calls[1].headers["Authorization"] == "Bearer jwt"


def test_failed_token_exchange_leaves_client_usable_but_unauthenticated() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/jwt-auth/v1/token"):
            return httpx.Response(403, json={"code": "jwt_auth_failed"})
        return httpx.Response(200, json=POSTS)

    with _client(handler) as client:
        state = client.authorize(TokenExchangeAuthorization("admin", "wrong"))
        anonymous = client.fetch_posts()
        with pytest.raises(AuthorizationFailedError, match="403"):
            client.fetch_posts(lambda builder: builder.with_authorization_required())

    assert isinstance(state, Failed)
    assert client.authorization_state == state
    assert anonymous.success is True


def test_per_request_authorization_overrides_default() -> None:
    seen: list[str | None] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.headers.get("Authorization"))
        return httpx.Response(200, json=[])

    with _client(handler, authorization=StaticAuthorization.bearer("default")) as client:
        client.authorize()
        client.fetch_posts(lambda builder: builder.with_authorization(StaticAuthorization("Basic", "override")))
        client.fetch_posts(lambda builder: builder.with_authorization_required())

    assert seen == ["Basic override", "Bearer default"]


def test_timeout_is_captured_in_envelope() -> None:
    errors: list[BaseException] = []

    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    with _client(handler) as client:
        envelope = client.send(client.builder("posts").with_callbacks(on_unhandled_error=errors.append).build())

    assert envelope.success is False
    assert envelope.status_code == 400
    assert envelope.error_message == "Exception occurred."
    assert isinstance(envelope.captured_error, TransportError)
    assert isinstance(envelope.captured_error.cause, httpx.ReadTimeout)
    assert errors == [envelope.captured_error]


def test_cancelled_request_never_reaches_server() -> None:
    calls: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(200, json=[])

    token = CancellationToken()
    token.cancel("user navigated away")
    with _client(handler) as client:
        envelope = client.send(client.builder("posts").with_cancellation(token).build())

    assert calls == []
    assert envelope.success is False
    assert isinstance(envelope.captured_error, RequestCancelledError)


def test_global_filter_and_validator_hooks() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=POSTS)

    with _client(handler, response_filter=lambda payload: isinstance(payload, list)) as client:
        accepted = client.send(client.builder("posts").with_validator(lambda payload: len(payload) == 2).build())
        rejected = client.send(client.builder("posts").with_validator(lambda payload: False).build())

    assert accepted.success is True
    assert rejected.error_message == "Request aborted by user in validator()"


def test_default_headers_and_user_agent_are_sent() -> None:
    seen: list[httpx.Headers] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.headers)
        return httpx.Response(200, json=[])

    with _client(handler, user_agent="my-agent/1.0", default_headers=[("X-Site", "blog")]) as client:
        client.fetch_posts(lambda builder: builder.with_header("X-Site", "override"))

    assert seen[0]["User-Agent"] == "my-agent/1.0"
    assert seen[0]["X-Site"] == "override"


def test_supplied_cookie_jar_receives_and_replays_cookies() -> None:
    sent_cookies: list[str | None] = []

    def handler(request: httpx.Request) -> httpx.Response:
        sent_cookies.append(request.headers.get("Cookie"))
        return httpx.Response(200, json=[], headers={"Set-Cookie": "sid=abc; Path=/"})

    jar = CookieJar()
    with _client(handler, cookies=jar) as client:
        client.fetch_posts()
        client.fetch_posts()

    assert client.cookies is jar
    assert [cookie.name for cookie in jar] == ["sid"]
    assert sent_cookies == [None, "sid=abc"]


def test_injected_client_jar_is_used_when_none_supplied() -> None:
    httpx_client = httpx.Client(transport=httpx.MockTransport(lambda request: httpx.Response(200, json=[])))
    with WordpressClient(base_url=BASE_URL, httpx_client=httpx_client) as client:
        assert client.cookies is httpx_client.cookies.jar


@pytest.mark.parametrize(
    ("kwargs", "message"),
    [
        ({"base_url": ""}, "Base URL"),
        ({"base_url": BASE_URL, "path": ""}, "Endpoint"),
        ({"base_url": "ftp://site.test"}, "scheme"),
        ({"base_url": "http://site.test"}, "Non-HTTPS"),
    ],
)
def test_invalid_configuration_is_rejected(monkeypatch, kwargs, message) -> None:
    monkeypatch.delenv("WORDPRESS_BASE_URL", raising=False)
    with pytest.raises(ConstructionError, match=message):
        WordpressClient(**kwargs)


def test_base_url_falls_back_to_environment(monkeypatch) -> None:
    monkeypatch.setenv("WORDPRESS_BASE_URL", "https://env.test/")
    with WordpressClient() as client:
        assert client.base_endpoint == "https://env.test/wp-json/wp/v2"


def test_async_client_fetches_posts_with_token_exchange() -> None:
    calls: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        if request.url.path.endswith("/jwt-auth/v1/token"):
            return httpx.Response(200, json={"token": "jwt"})
        return httpx.Response(200, json=POSTS)

    async def run():
        client = AsyncWordpressClient(
            base_url=BASE_URL,
            httpx_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
        )
        async with client:
            await client.authorize(TokenExchangeAuthorization("admin", "secret"))
            await client.authorize()
            return await client.fetch_posts(lambda builder: builder.with_authorization_required())

    envelope = asyncio.run(run())

    assert envelope.success is True
    assert [post.id for post in envelope.payload] == [1, 2]
    assert len(calls) == 2
    assert calls[1].headers["Authorization"] == "Bearer jwt"


def test_authorized_token_becomes_a_default_header() -> None:
    seen: list[str | None] = []

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/jwt-auth/v1/token"):
            return httpx.Response(200, json={"token": "jwt"})
        seen.append(request.headers.get("Authorization"))
        return httpx.Response(200, json=POSTS)

    with _client(handler) as client:
        client.authorize(TokenExchangeAuthorization("admin", "secret"))
        client.authorize()
        client.fetch_posts()
        client.fetch_posts(lambda builder: builder.with_authorization(StaticAuthorization("Basic", "override")))

    assert [value for name, value in client.default_headers if name == "Authorization"] == ["Bearer jwt"]
    assert seen == ["Bearer jwt", "Basic override"]


def test_no_authorization_override_sends_request_anonymously() -> None:
    seen: list[str | None] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.headers.get("Authorization"))
        return httpx.Response(200, json=[])

    with _client(handler, authorization=StaticAuthorization.bearer("default")) as client:
        client.authorize()
        envelope = client.fetch_posts(lambda builder: builder.with_authorization(NoAuthorization()))

    assert envelope.success is True
    assert seen == [None]


def test_null_json_body_is_not_a_success() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=b"null", headers={"Content-Type": "application/json"})

    with _client(handler) as client:
        envelope = client.send(client.builder("posts").build())

    assert envelope.success is False
    assert envelope.payload is None
    assert envelope.status_code == 200
    assert envelope.error_message == "Response carried no payload"
