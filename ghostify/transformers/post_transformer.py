"""
Tumblr post → Ghost post transformation.

:class:`PostTransformer` maps one :class:`~ghostify.models.TumblrPost` to one
:class:`~ghostify.models.GhostPost`.  It holds only configuration (the
import author and the content options), so transforming a post has no side
effects and posts can be transformed in any order.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from ghostify.models.ghost_post import AuthorConfig, GhostPost
from ghostify.models.tumblr_post import TumblrPost
from ghostify.parsers.content_schema import CONTENT_FORMATS, content_fields
from ghostify.parsers.html_cleaner import html_to_text
from ghostify.parsers.renderers import GALLERY_SCOPES, PostRenderer, renderer_for
from ghostify.utils.ids import stable_id, stable_uuid
from ghostify.utils.slugs import is_valid_slug, slugify
from ghostify.utils.tags import normalize_tags
from ghostify.utils.titles import derive_title

EXCERPT_LENGTH = 300


@dataclass(frozen=True)
class TransformOptions:
    content_format: str = "mobiledoc"
    gallery_scope: str = "all"

    def __post_init__(self) -> None:
        if self.content_format not in CONTENT_FORMATS:
            raise ValueError(f"content_format must be one of {CONTENT_FORMATS}, got {self.content_format!r}")
        if self.gallery_scope not in GALLERY_SCOPES:
            raise ValueError(f"gallery_scope must be one of {GALLERY_SCOPES}, got {self.gallery_scope!r}")


def format_timestamp(timestamp: int) -> str:
    """Unix seconds → ISO-8601 UTC with millisecond precision, as Ghost exports it."""
    moment = datetime.fromtimestamp(int(timestamp or 0), tz=timezone.utc)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.000Z")


def truncate_text(text: str, max_length: int) -> str:
    if len(text) <= max_length:
        return text
    return text[: max_length - 3].rstrip() + "..."


class PostTransformer:
    def __init__(self, author: AuthorConfig, options: Optional[TransformOptions] = None) -> None:
        self.author = author
        self.options = options or TransformOptions()

    def transform(self, post: TumblrPost) -> GhostPost:
        renderer = renderer_for(post.type)
        title = self.extract_title(post, renderer)
        timestamp = format_timestamp(post.timestamp)
        html = self.convert_to_html(post, renderer)

        return GhostPost(
            id=stable_id("post", post.id),
            uuid=stable_uuid(post.id),
            title=title,
            slug=self.generate_slug(post, title),
            comment_id=post.id,
            feature_image=renderer.feature_image(post),
            created_at=timestamp,
            updated_at=timestamp,
            published_at=timestamp,
            custom_excerpt=self.extract_excerpt(post, renderer),
            tag_labels=normalize_tags(post.tags),
            author_slug=self.author.slug,
            source_url=post.post_url,
            **content_fields(html, self.options.content_format),
        )

    def extract_title(self, post: TumblrPost, renderer: Optional[PostRenderer] = None) -> str:
        renderer = renderer or renderer_for(post.type)
        return derive_title(
            title=post.title,
            summary=lambda: renderer.summary_source(post),
            slug=post.slug,
            timestamp=post.timestamp,
        )

    def generate_slug(self, post: TumblrPost, title: Optional[str] = None) -> str:
        """
        Platform slug when it is already URL safe, otherwise a slug of the
        platform slug or of the title.  Never empty: posts whose title has no
        ASCII letters or digits fall back to ``post-<id>``.
        """
        platform = (post.slug or "").strip()
        if platform:
            if is_valid_slug(platform):
                return platform
            slug = slugify(platform)
            if slug:
                return slug
        slug = slugify(title if title is not None else self.extract_title(post))
        if slug:
            return slug
        return f"post-{slugify(post.id) or stable_id('post', post.id)[:12]}"

    def convert_to_html(self, post: TumblrPost, renderer: Optional[PostRenderer] = None) -> str:
        renderer = renderer or renderer_for(post.type)
        galleries = renderer.galleries_enabled(self.options.gallery_scope)
        return renderer.render_html(post, galleries=galleries)

    def extract_excerpt(self, post: TumblrPost, renderer: Optional[PostRenderer] = None) -> Optional[str]:
        renderer = renderer or renderer_for(post.type)
        text = html_to_text(renderer.summary_source(post))
        return truncate_text(text, EXCERPT_LENGTH) if text else None
