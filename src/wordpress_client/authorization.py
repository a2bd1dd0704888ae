"""Authorization schemes and the negotiation state machine.

A scheme describes how a request should be credentialed. Negotiation turns
a scheme into an :data:`AuthorizationState`:

* ``NoAuthorization`` leaves the state :class:`Unresolved`.
* ``StaticAuthorization`` resolves immediately, without network activity.
* ``TokenExchangeAuthorization`` posts the credentials to the JWT endpoint
  once and caches the returned bearer token in a :class:`Resolved` state.
  Any failure is recorded as :class:`Failed` instead of being raised, so a
  client stays usable (but unauthenticated) after a failed login.
"""

from __future__ import annotations

import base64
import logging
from dataclasses import dataclass
from typing import Union, cast

from .exceptions import ConstructionError, DecodeError, TransportError
from .models import JwtToken, decode
from .security import join_url
from .transport import AsyncTransport, Transport, TransportRequest, TransportResponse

logger = logging.getLogger(__name__)

JWT_TOKEN_PATH = "jwt-auth/v1/token"


@dataclass(frozen=True)
class NoAuthorization:
    pass


@dataclass(frozen=True)
class StaticAuthorization:
    scheme: str
    token: str

    @classmethod
    def basic(cls, username: str, password: str) -> StaticAuthorization:
        encoded = base64.b64encode(f"{username}:{password}".encode()).decode("ascii")
        return cls("Basic", encoded)

    @classmethod
    def bearer(cls, token: str) -> StaticAuthorization:
        return cls("Bearer", token)


@dataclass(frozen=True)
class TokenExchangeAuthorization:
    username: str
    password: str
    scheme: str = "Bearer"

    def __repr__(self) -> str:
        return f"TokenExchangeAuthorization(username={self.username!r}, password='[REDACTED]')"


AuthorizationScheme = Union[NoAuthorization, StaticAuthorization, TokenExchangeAuthorization]


@dataclass(frozen=True)
class Unresolved:
    pass


@dataclass(frozen=True)
class Resolved:
    scheme: str
    token: str

    @property
    def header(self) -> tuple[str, str]:
        return ("Authorization", f"{self.scheme} {self.token}")


@dataclass(frozen=True)
class Failed:
    reason: str
    error: BaseException | None = None


AuthorizationState = Union[Unresolved, Resolved, Failed]


class AuthorizationNegotiator:
    token_path = JWT_TOKEN_PATH

    def _pending(
        self,
        scheme: AuthorizationScheme | None,
        current: AuthorizationState,
    ) -> AuthorizationState | None:
        """Return the final state when no network call is needed, else ``None``."""
        if isinstance(current, Resolved):
            return current
        if scheme is None or isinstance(scheme, NoAuthorization):
            return Unresolved()
        if isinstance(scheme, StaticAuthorization):
            return Resolved(scheme.scheme, scheme.token)
        if isinstance(scheme, TokenExchangeAuthorization):
            return None
        raise ConstructionError(f"Unsupported authorization scheme: {type(scheme).__name__}")

    def token_request(self, scheme: TokenExchangeAuthorization, base_endpoint: str) -> TransportRequest:
        return TransportRequest(
            method="POST",
            url=join_url(base_endpoint, self.token_path),
            headers=[("Accept", "application/json")],
            data={"username": scheme.username, "password": scheme.password},
        )

    def _read_token(self, scheme: TokenExchangeAuthorization, response: TransportResponse) -> AuthorizationState:
        if response.status_code != 200:
            logger.warning(
                "Token exchange for %s rejected: %s %s",
                scheme.username,
                response.status_code,
                response.status_message,
            )
            return Failed(f"{response.status_code} {response.status_message}")
        try:
            token = decode(JwtToken, response.data)
        except DecodeError as exc:
            logger.warning("Token exchange for %s returned an unreadable body", scheme.username)
            return Failed("Token response could not be decoded", exc)
        logger.debug("Token exchange for %s succeeded", scheme.username)
        return Resolved(scheme.scheme, token.token)

    def _transport_failed(self, scheme: TokenExchangeAuthorization, exc: Exception) -> AuthorizationState:
        logger.warning("Token exchange for %s failed: %s", scheme.username, exc)
        return Failed(str(exc), exc)

    def resolve(
        self,
        scheme: AuthorizationScheme | None,
        base_endpoint: str,
        transport: Transport,
        current: AuthorizationState = Unresolved(),
    ) -> AuthorizationState:
        settled = self._pending(scheme, current)
        if settled is not None:
            return settled
        scheme = cast(TokenExchangeAuthorization, scheme)
        try:
            response = transport.execute(self.token_request(scheme, base_endpoint))
        except (TransportError, ValueError) as exc:
            return self._transport_failed(scheme, exc)
        return self._read_token(scheme, response)

    async def aresolve(
        self,
        scheme: AuthorizationScheme | None,
        base_endpoint: str,
        transport: AsyncTransport,
        current: AuthorizationState = Unresolved(),
    ) -> AuthorizationState:
        settled = self._pending(scheme, current)
        if settled is not None:
            return settled
        scheme = cast(TokenExchangeAuthorization, scheme)
        try:
            response = await transport.execute(self.token_request(scheme, base_endpoint))
        except (TransportError, ValueError) as exc:
            return self._transport_failed(scheme, exc)
        return self._read_token(scheme, response)
