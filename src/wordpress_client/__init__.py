"""Typed client for the WordPress REST API."""

from .authorization import (
    AuthorizationNegotiator,
    AuthorizationScheme,
    AuthorizationState,
    Failed,
    NoAuthorization,
    Resolved,
    StaticAuthorization,
    TokenExchangeAuthorization,
    Unresolved,
)
from .client import AsyncWordpressClient, WordpressClient
from .exceptions import (
    AuthorizationFailedError,
    ConstructionError,
    DecodeError,
    RequestCancelledError,
    TransportError,
    WordpressClientError,
)
from .models import JwtToken, Post
from .request import CancellationToken, FormBody, HttpMethod, MediaBody, Request, RequestBuilder
from .response import ResponseEnvelope

__all__ = [
    "AsyncWordpressClient",
    "AuthorizationFailedError",
    "AuthorizationNegotiator",
    "AuthorizationScheme",
    "AuthorizationState",
    "CancellationToken",
    "ConstructionError",
    "DecodeError",
    "Failed",
    "FormBody",
    "HttpMethod",
    "JwtToken",
    "MediaBody",
    "NoAuthorization",
    "Post",
    "Request",
    "RequestBuilder",
    "RequestCancelledError",
    "Resolved",
    "ResponseEnvelope",
    "StaticAuthorization",
    "TokenExchangeAuthorization",
    "TransportError",
    "Unresolved",
    "WordpressClient",
    "WordpressClientError",
]
