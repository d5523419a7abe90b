from __future__ import annotations

from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class PhotoSize(BaseModel):
    url: str = ""
    width: Optional[int] = None
    height: Optional[int] = None

    model_config = ConfigDict(extra="allow")


class TumblrPhoto(BaseModel):
    caption: Optional[str] = None
    original_size: Optional[PhotoSize] = None
    alt_sizes: list[PhotoSize] = Field(default_factory=list)

    model_config = ConfigDict(extra="allow")

    @property
    def url(self) -> str:
        if self.original_size and self.original_size.url:
            return self.original_size.url
        # alt_sizes are ordered largest first
        for size in self.alt_sizes:
            if size.url:
                return size.url
        return ""


class ChatLine(BaseModel):
    name: Optional[str] = None
    label: Optional[str] = None
    phrase: Optional[str] = None

    model_config = ConfigDict(extra="allow")

    @property
    def speaker(self) -> str:
        if self.name and self.name.strip():
            return self.name.strip()
        return (self.label or "").strip().rstrip(":").strip()


class TumblrPost(BaseModel):
    """One post record as returned by the Tumblr v2 ``/posts`` endpoint.

    Only ``id`` is required.  Type specific fields are optional and must be
    read through the renderer registered for ``type``: Tumblr happily fills
    ``body`` on photo posts, for example.
    """

    model_config = ConfigDict(extra="allow", frozen=True, populate_by_name=True)

    id: str
    type: str = "text"
    timestamp: int = 0
    tags: list[str] = Field(default_factory=list)
    slug: Optional[str] = None
    title: Optional[str] = None
    post_url: Optional[str] = None
    summary: Optional[str] = None

    body: Optional[str] = None
    caption: Optional[str] = None
    photos: list[TumblrPhoto] = Field(default_factory=list)

    quote_text: Optional[str] = Field(None, alias="text")
    quote_source: Optional[str] = Field(None, alias="source")

    link_url: Optional[str] = Field(None, alias="url")
    description: Optional[str] = None
    source_title: Optional[str] = None

    dialogue: list[ChatLine] = Field(default_factory=list, alias="chat")

    audio_url: Optional[str] = Field(None, alias="audio_source_url")
    video_url: Optional[str] = None
    thumbnail_url: Optional[str] = None
    player: Optional[Union[str, list[dict[str, Any]]]] = None

    question: Optional[str] = None
    answer: Optional[str] = None
    asking_name: Optional[str] = None

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, v: Any) -> str:
        if v is None or (isinstance(v, str) and not v.strip()):
            raise ValueError("post id is required")
        return str(v)

    @field_validator("type", mode="before")
    @classmethod
    def _normalize_type(cls, v: Any) -> str:
        if not v:
            return "text"
        return str(v).strip().lower()

    @field_validator("timestamp", mode="before")
    @classmethod
    def _coerce_timestamp(cls, v: Any) -> int:
        if v in (None, ""):
            return 0
        return int(v)

    @field_validator("tags", mode="before")
    @classmethod
    def _drop_empty_tags(cls, v: Any) -> list[str]:
        if not v:
            return []
        return [str(t) for t in v if t is not None and str(t).strip()]

    @field_validator("photos", "dialogue", mode="before")
    @classmethod
    def _none_to_list(cls, v: Any) -> Any:
        return v or []
