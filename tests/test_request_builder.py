from __future__ import annotations

import pytest

from wordpress_client.authorization import NoAuthorization, StaticAuthorization
from wordpress_client.exceptions import ConstructionError
from wordpress_client.request import FormBody, HttpMethod, MediaBody, RequestBuilder


def test_builder_steps_return_new_builders() -> None:
    base = RequestBuilder()
    with_endpoint = base.with_base_and_endpoint("https://site.test/wp-json/wp/v2", "posts")

    assert base.endpoint is None
    assert with_endpoint is not base
    assert with_endpoint.build().uri == "https://site.test/wp-json/wp/v2/posts"


def test_builder_later_call_wins_for_scalars() -> None:
    request = (
        RequestBuilder()
        .with_base_and_endpoint("https://site.test/wp-json/wp/v2", "posts")
        .with_method("post")
        .with_method(HttpMethod.PUT)
        .with_endpoint("pages")
        .build()
    )

    assert request.method is HttpMethod.PUT
    assert request.uri == "https://site.test/wp-json/wp/v2/pages"


def test_builder_keeps_duplicate_headers_in_order() -> None:
    request = (
        RequestBuilder()
        .with_base_and_endpoint("https://site.test", "posts")
        .with_header("X-Tag", "a")
        .with_headers([("X-Tag", "b"), ("X-Other", "c")])
        .build()
    )

    assert request.headers == (("X-Tag", "a"), ("X-Tag", "b"), ("X-Other", "c"))


def test_builder_without_uri_is_a_construction_error() -> None:
    with pytest.raises(ConstructionError, match="URI"):
        RequestBuilder().with_method("GET").build()


def test_builder_without_method_is_a_construction_error() -> None:
    builder = RequestBuilder(method=None).with_base_and_endpoint("https://site.test", "posts")
    with pytest.raises(ConstructionError, match="method"):
        builder.build()


def test_with_authorization_marks_request_as_requiring_it() -> None:
    scheme = StaticAuthorization.bearer("abc")
    request = RequestBuilder().with_base_and_endpoint("https://site.test", "posts").with_authorization(scheme).build()

    assert request.requires_authorization is True
    assert request.authorization == scheme


def test_body_builders_produce_tagged_bodies() -> None:
    builder = RequestBuilder().with_base_and_endpoint("https://site.test", "media")

    form = builder.with_form_body({"title": "Hello"}).build()
    media = builder.with_media_body(b"\x89PNG", "cat.png", content_type="image/png").build()

    assert form.body == FormBody({"title": "Hello"})
    assert isinstance(media.body, MediaBody)
    assert media.body.promoted_headers() == [
        ("Content-Disposition", 'attachment; filename="cat.png"'),
        ("Content-Type", "image/png"),
    ]


def test_with_callbacks_keeps_previous_callback_when_not_replaced() -> None:
    def on_success(payload: object) -> None:
        return None

    def on_error(error: BaseException) -> None:
        return None

    builder = RequestBuilder().with_callbacks(on_success=on_success).with_callbacks(on_unhandled_error=on_error)

    assert builder.on_success is on_success
    assert builder.on_unhandled_error is on_error


def test_no_authorization_override_does_not_require_authorization() -> None:
    request = (
        RequestBuilder()
        .with_base_and_endpoint("https://site.test", "posts")
        .with_authorization(NoAuthorization())
        .build()
    )

    assert request.requires_authorization is False
    assert request.authorization == NoAuthorization()
