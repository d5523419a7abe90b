from __future__ import annotations

from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


DEFAULT_AUTHOR_NAME = "Imported User"
DEFAULT_AUTHOR_EMAIL = "imported@example.com"
DEFAULT_AUTHOR_SLUG = "imported-user"


class AuthorConfig(BaseModel):
    """The single Ghost user every imported post is attributed to."""

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    name: str = DEFAULT_AUTHOR_NAME
    email: str = DEFAULT_AUTHOR_EMAIL
    slug: str = DEFAULT_AUTHOR_SLUG

    @field_validator("name", "email", "slug", mode="before")
    @classmethod
    def _blank_to_default(cls, v: Optional[str], info):  # type: ignore[override]
        if v is None or not str(v).strip():
            return {
                "name": DEFAULT_AUTHOR_NAME,
                "email": DEFAULT_AUTHOR_EMAIL,
                "slug": DEFAULT_AUTHOR_SLUG,
            }[info.field_name]
        return v


class GhostPost(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: str
    uuid: str
    title: str
    slug: str
    html: Optional[str] = None
    mobiledoc: Optional[str] = None
    lexical: Optional[str] = None
    comment_id: Optional[str] = None
    feature_image: Optional[str] = None
    featured: bool = False
    type: str = "post"
    status: str = "published"
    visibility: str = "public"
    created_at: str
    updated_at: str
    published_at: str
    custom_excerpt: Optional[str] = None

    # Carried for the exporter's join tables, never serialised.
    tag_labels: list[str] = Field(default_factory=list, exclude=True)
    author_slug: Optional[str] = Field(None, exclude=True)
    source_url: Optional[str] = Field(None, exclude=True)

    def to_export_dict(self) -> dict:
        return self.model_dump(exclude_none=True)


class GhostTag(BaseModel):
    id: str
    name: str
    slug: str
    description: Optional[str] = None
    visibility: str = "public"

    def to_export_dict(self) -> dict:
        return self.model_dump(exclude_none=True)


class GhostUser(BaseModel):
    id: str
    name: str
    slug: str
    email: str
    status: str = "active"
    created_at: str
    updated_at: str

    def to_export_dict(self) -> dict:
        return self.model_dump(exclude_none=True)


class GhostRole(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    created_at: str
    updated_at: str

    def to_export_dict(self) -> dict:
        return self.model_dump(exclude_none=True)


class PostTag(BaseModel):
    post_id: str
    tag_id: str
    sort_order: int = 0


class PostAuthor(BaseModel):
    post_id: str
    author_id: str
    sort_order: int = 0


class RoleUser(BaseModel):
    role_id: str
    user_id: str


class Violation(BaseModel):
    """A single failed export check: which record, which field, what is wrong."""

    model_config = ConfigDict(frozen=True)

    entity: str
    entity_id: Optional[Union[str, int]] = None
    field: str
    message: str

    def __str__(self) -> str:
        ident = f"{self.entity} {self.entity_id}" if self.entity_id not in (None, "") else self.entity
        return f"{ident}: {self.field} - {self.message}"
