"""Typed WordPress REST API entities."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .exceptions import DecodeError

ModelT = TypeVar("ModelT", bound="WordpressModel")


class WordpressModel(BaseModel):
    model_config = ConfigDict(extra="ignore")


class Rendered(WordpressModel):
    rendered: str = ""
    protected: bool | None = None


class Post(WordpressModel):
    id: int
    date: datetime | None = None
    date_gmt: datetime | None = None
    guid: Rendered | None = None
    modified: datetime | None = None
    modified_gmt: datetime | None = None
    slug: str | None = None
    status: str | None = None
    type: str | None = None
    link: str | None = None
    title: Rendered | None = None
    content: Rendered | None = None
    excerpt: Rendered | None = None
    author: int | None = None
    featured_media: int | None = None
    comment_status: str | None = None
    ping_status: str | None = None
    sticky: bool = False
    template: str | None = None
    format: str | None = None
    meta: dict[str, Any] | list[Any] | None = None
    categories: list[int] = Field(default_factory=list)
    tags: list[int] = Field(default_factory=list)


class JwtToken(WordpressModel):
    """Body returned by the JWT token-exchange endpoint."""

    token: str = Field(min_length=1)
    user_email: str | None = None
    user_nicename: str | None = None
    user_display_name: str | None = None


def decode(model: Type[ModelT], raw: Any) -> ModelT:
    try:
        return model.model_validate(raw)
    except ValidationError as exc:
        raise DecodeError(f"Could not decode {model.__name__}", body=raw, cause=exc) from exc


def decode_list(model: Type[ModelT], raw: Any) -> list[ModelT]:
    if not isinstance(raw, (list, tuple)):
        raise DecodeError(f"Expected a list of {model.__name__}", body=raw)
    return [decode(model, item) for item in raw]
