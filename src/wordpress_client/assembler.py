"""Turns request descriptors into transport-ready requests."""

from __future__ import annotations

from typing import Iterable, Sequence

import httpx

from .authorization import AuthorizationState, Failed, NoAuthorization, Resolved
from .exceptions import AuthorizationFailedError, ConstructionError
from .request import FormBody, MediaBody, Request
from .transport import TransportRequest


def merge_headers(*sources: Iterable[tuple[str, str]]) -> list[tuple[str, str]]:
    """Merge header sources in order.

    A name present in a later source drops every earlier entry with the same
    name (case-insensitive); repeated names inside one source are kept.
    """
    merged: list[tuple[str, str]] = []
    for source in sources:
        pairs = [(str(name), str(value)) for name, value in source]
        names = {name.lower() for name, _ in pairs}
        merged = [pair for pair in merged if pair[0].lower() not in names]
        merged.extend(pairs)
    return merged


def _final_url(uri: str, query: Sequence[tuple[str, object]]) -> str:
    if not query:
        return uri
    params = [(name, value) for name, value in query if value is not None]
    return str(httpx.URL(uri).copy_merge_params(params))


class RequestAssembler:
    def assemble(
        self,
        request: Request | None,
        authorization: AuthorizationState,
        default_headers: Sequence[tuple[str, str]] = (),
    ) -> TransportRequest:
        if request is None:
            raise ConstructionError("Request object is missing")
        if not request.uri:
            raise ConstructionError("Request URI is missing")
        if request.method is None:
            raise ConstructionError("Request method is missing")

        auth_headers: list[tuple[str, str]] = []
        if request.requires_authorization:
            if not isinstance(authorization, Resolved):
                reason = authorization.reason if isinstance(authorization, Failed) else "no credentials configured"
                raise AuthorizationFailedError(f"Authorization required but not available: {reason}")
            auth_headers.append(authorization.header)
        elif isinstance(request.authorization, NoAuthorization):
            default_headers = [pair for pair in default_headers if pair[0].lower() != "authorization"]

        data = None
        content = None
        body_headers: list[tuple[str, str]] = []
        body = request.body
        if isinstance(body, FormBody):
            data = body.fields
        elif isinstance(body, MediaBody):
            content = body.content
            body_headers = body.promoted_headers()

        return TransportRequest(
            method=request.method.value,
            url=_final_url(request.uri, request.query),
            headers=merge_headers(default_headers, auth_headers, request.headers, body_headers),
            data=data,
            content=content,
            cancel_token=request.cancel_token,
        )
