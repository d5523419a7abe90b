"""
One renderer per Tumblr post type.

Each renderer knows which fields are meaningful for its type and turns a
:class:`~ghostify.models.tumblr_post.TumblrPost` into an HTML fragment, the
text used for title derivation and an optional feature image.  Supporting a
new post type means adding a subclass and registering it in
:data:`RENDERERS`; :func:`renderer_for` falls back to
:class:`UnsupportedRenderer` so an unknown type never raises.

Text that came from the source as HTML (bodies, captions, descriptions) is
cleaned; plain text we interpolate into our own markup (quotes, chat lines,
link titles, questions and answers) is escaped.
"""

from __future__ import annotations

import re
from typing import Callable, Dict, List, Optional

from ghostify.models.tumblr_post import TumblrPost

from .gallery import reconstruct_galleries
from .html_cleaner import (
    clean_html,
    escape_html,
    escape_text,
    extract_images,
    html_to_text,
    image_tag,
    inline_html,
    render_text_with_images,
)

GALLERY_SCOPES = ("all", "text_photo", "none")


def placeholder(message: str) -> str:
    return f"<p>{escape_html(message)}</p>"


def as_paragraph(fragment: str) -> str:
    """Wrap bare inline text in a paragraph; leave block markup alone."""
    if not fragment:
        return ""
    if fragment.lstrip().startswith("<"):
        return fragment
    return f"<p>{fragment}</p>"


class PostRenderer:
    post_type: str = ""

    def render_html(self, post: TumblrPost, *, galleries: bool = False) -> str:
        raise NotImplementedError

    def summary_source(self, post: TumblrPost) -> str:
        """HTML (or plain text) the title fallback chain reads from."""
        return ""

    def feature_image(self, post: TumblrPost) -> Optional[str]:
        return None

    def galleries_enabled(self, scope: str) -> bool:
        if scope == "all":
            return True
        if scope == "text_photo":
            return self.post_type in ("text", "photo")
        return False

    @staticmethod
    def source_html(
        markup: Optional[str],
        *,
        galleries: bool,
        clean: Callable[[str], str] = clean_html,
    ) -> str:
        if not markup or not markup.strip():
            return ""
        if galleries:
            rebuilt = reconstruct_galleries(markup, clean=clean)
            if rebuilt is not None:
                return rebuilt
        return clean(markup)


class TextRenderer(PostRenderer):
    post_type = "text"

    def render_html(self, post: TumblrPost, *, galleries: bool = False) -> str:
        html = self.source_html(post.body, galleries=galleries, clean=render_text_with_images)
        return html or placeholder("No text content")

    def summary_source(self, post: TumblrPost) -> str:
        return post.body or ""

    def feature_image(self, post: TumblrPost) -> Optional[str]:
        images = extract_images(post.body)
        return images[0]["src"] if images else None


class PhotoRenderer(PostRenderer):
    post_type = "photo"

    def render_html(self, post: TumblrPost, *, galleries: bool = False) -> str:
        parts: List[str] = []
        caption = self.source_html(post.caption, galleries=galleries)
        if caption:
            parts.append(as_paragraph(caption))
        figures = 0
        for photo in post.photos:
            if not photo.url:
                continue
            text = html_to_text(photo.caption)
            figure = f'<figure class="kg-card kg-image-card">{image_tag(photo.url, text)}'
            if text:
                figure += f"<figcaption>{escape_html(text)}</figcaption>"
            parts.append(figure + "</figure>")
            figures += 1
        if not figures:
            parts.append(placeholder("No photos found"))
        return "".join(parts)

    def summary_source(self, post: TumblrPost) -> str:
        return post.caption or ""

    def feature_image(self, post: TumblrPost) -> Optional[str]:
        for photo in post.photos:
            if photo.url:
                return photo.url
        return None


class QuoteRenderer(PostRenderer):
    post_type = "quote"

    def render_html(self, post: TumblrPost, *, galleries: bool = False) -> str:
        text = (post.quote_text or "").strip()
        if not text:
            return placeholder("No quote text")
        html = f"<blockquote><p>{escape_text(text)}</p></blockquote>"
        source = inline_html(post.quote_source)
        if source:
            html += f"<p><cite>— {source}</cite></p>"
        return html

    def summary_source(self, post: TumblrPost) -> str:
        return post.quote_text or ""


class LinkRenderer(PostRenderer):
    post_type = "link"

    def render_html(self, post: TumblrPost, *, galleries: bool = False) -> str:
        url = (post.link_url or "").strip()
        title = (post.title or "").strip() or url or "Link"
        if url:
            heading = f'<h2><a href="{escape_html(url)}">{escape_text(title)}</a></h2>'
        else:
            heading = f"<h2>{escape_text(title)}</h2>"
        parts = [heading]
        description = self.source_html(post.description, galleries=galleries)
        if description:
            parts.append(as_paragraph(description))
        if post.source_title:
            parts.append(f"<p>via {escape_text(post.source_title)}</p>")
        return "".join(parts)

    def summary_source(self, post: TumblrPost) -> str:
        return post.description or ""


class ChatRenderer(PostRenderer):
    post_type = "chat"

    def lines(self, post: TumblrPost) -> List[str]:
        lines: List[str] = []
        for message in post.dialogue:
            phrase = (message.phrase or "").strip()
            speaker = message.speaker
            if speaker and phrase:
                lines.append(f"{speaker}: {phrase}")
            elif phrase or speaker:
                lines.append(phrase or speaker)
        if not lines and post.body:
            # Chat posts without dialogue still carry the conversation as text.
            lines = [line.strip() for line in re.split(r"<br\s*/?>|\r?\n", post.body)]
            lines = [line for line in lines if line]
        return lines

    def render_html(self, post: TumblrPost, *, galleries: bool = False) -> str:
        lines = self.lines(post)
        if not lines:
            return placeholder("No chat content")
        return "".join(f"<p>{escape_text(line)}</p>" for line in lines)

    def summary_source(self, post: TumblrPost) -> str:
        return escape_text(" ".join(self.lines(post)))


class _MediaRenderer(PostRenderer):
    element = ""
    missing_message = ""

    def media_url(self, post: TumblrPost) -> str:
        raise NotImplementedError

    def embed_html(self, post: TumblrPost) -> str:
        player = post.player
        if isinstance(player, str):
            return clean_html(player)
        if isinstance(player, list):
            embeds = [p for p in player if isinstance(p, dict) and p.get("embed_code")]
            if embeds:
                widest = max(embeds, key=lambda p: p.get("width") or 0)
                return clean_html(str(widest["embed_code"]))
        return ""

    def render_html(self, post: TumblrPost, *, galleries: bool = False) -> str:
        url = (self.media_url(post) or "").strip()
        if url:
            media = f'<{self.element} controls src="{escape_html(url)}"></{self.element}>'
        else:
            media = self.embed_html(post) or placeholder(self.missing_message)
        caption = self.source_html(post.caption, galleries=galleries)
        return media + (as_paragraph(caption) if caption else "")

    def summary_source(self, post: TumblrPost) -> str:
        return post.caption or ""


class AudioRenderer(_MediaRenderer):
    post_type = "audio"
    element = "audio"
    missing_message = "No audio found"

    def media_url(self, post: TumblrPost) -> str:
        return post.audio_url or ""


class VideoRenderer(_MediaRenderer):
    post_type = "video"
    element = "video"
    missing_message = "No video found"

    def media_url(self, post: TumblrPost) -> str:
        return post.video_url or ""

    def feature_image(self, post: TumblrPost) -> Optional[str]:
        return post.thumbnail_url or None


class AnswerRenderer(PostRenderer):
    """
    Question and answer as bold paragraphs.

    Both fields are escaped as plain text, including ``answer`` although
    Tumblr stores it as HTML, so markup in an answer shows up literally.
    """

    post_type = "answer"

    def render_html(self, post: TumblrPost, *, galleries: bool = False) -> str:
        parts: List[str] = []
        question = (post.question or "").strip()
        if question:
            asker = (post.asking_name or "").strip()
            prefix = f"{asker} asked" if asker else "Q"
            parts.append(f"<p><strong>{escape_text(prefix)}: {escape_text(question)}</strong></p>")
        answer = (post.answer or "").strip()
        if answer:
            parts.append(f"<p><strong>A: {escape_text(answer)}</strong></p>")
        return "".join(parts) or placeholder("No answer content")

    def summary_source(self, post: TumblrPost) -> str:
        return post.question or ""


class UnsupportedRenderer(PostRenderer):
    def __init__(self, post_type: str) -> None:
        self.post_type = post_type

    def render_html(self, post: TumblrPost, *, galleries: bool = False) -> str:
        return placeholder(f"Unsupported post type: {self.post_type}")

    def summary_source(self, post: TumblrPost) -> str:
        return post.body or ""

    def galleries_enabled(self, scope: str) -> bool:
        return False


RENDERERS: Dict[str, PostRenderer] = {
    r.post_type: r
    for r in (
        TextRenderer(),
        PhotoRenderer(),
        QuoteRenderer(),
        LinkRenderer(),
        ChatRenderer(),
        AudioRenderer(),
        VideoRenderer(),
        AnswerRenderer(),
    )
}


def renderer_for(post_type: Optional[str]) -> PostRenderer:
    key = (post_type or "").strip().lower()
    return RENDERERS.get(key) or UnsupportedRenderer(key or "unknown")


def is_supported(post_type: Optional[str]) -> bool:
    return (post_type or "").strip().lower() in RENDERERS
