"""Security and validation helpers."""

from __future__ import annotations

from typing import Iterable
from urllib.parse import urlparse

from .exceptions import ConstructionError


SENSITIVE_HEADERS = {
    "authorization",
    "cookie",
    "x-wp-nonce",
}


def sanitize_headers(headers: Iterable[tuple[str, str]]) -> list[tuple[str, str]]:
    """Return headers with sensitive values redacted for logging."""
    redacted: list[tuple[str, str]] = []
    for key, value in headers:
        if key.lower() in SENSITIVE_HEADERS:
            redacted.append((key, "[REDACTED]"))
        else:
            redacted.append((key, value))
    return redacted


def validate_base_url(url: str, *, allow_http: bool = False) -> None:
    """Validate the site URL to avoid scheme abuse and plaintext credentials."""
    parsed = urlparse(url)
    if not parsed.scheme or not parsed.netloc:
        raise ConstructionError("base_url must include scheme and host")
    if parsed.scheme not in {"http", "https"}:
        raise ConstructionError(f"Unsupported base_url scheme: {parsed.scheme}")
    if parsed.scheme == "http" and not allow_http:
        allowed = {"localhost", "127.0.0.1", "::1"}
        host = (parsed.hostname or "").lower()
        if host not in allowed:
            raise ConstructionError("Non-HTTPS base_url is not allowed without allow_http=True")
    if "\x00" in url:
        raise ConstructionError("Invalid base_url")


def join_url(base: str, path: str) -> str:
    """Join a base URL and a relative path with exactly one slash between them."""
    if not path:
        return base.rstrip("/")
    return f"{base.rstrip('/')}/{path.strip('/')}"
