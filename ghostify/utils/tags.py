from __future__ import annotations

from html import unescape
import re
from typing import Iterable, List

from .ids import stable_id
from .slugs import slugify


def normalize_label(value: str) -> str:
    """Unescape HTML entities and collapse inner whitespace.

    Preserves original casing but trims leading/trailing spaces
    and converts sequences of whitespace to a single space.  A leading
    ``#`` (how Tumblr users often type tags) is dropped.
    """
    if not value:
        return ""
    text = unescape(value).strip()
    text = re.sub(r"\s+", " ", text)
    return text.lstrip("#").strip()


def normalize_tags(tags: Iterable[str]) -> List[str]:
    """
    Clean a post's tag list.

    - Unescapes HTML entities (e.g., '&amp;' -> '&')
    - Trims spaces, collapses inner whitespace
    - Deduplicates by slug while preserving first-seen casing
    """
    seen = set()
    result: List[str] = []
    for raw in tags or []:
        label = normalize_label(raw)
        if not label:
            continue
        key = tag_slug(label)
        if key not in seen:
            seen.add(key)
            result.append(label)
    return result


def tag_slug(label: str) -> str:
    """
    Slug used to deduplicate tags across the whole import.

    Labels without any ASCII letters or digits (e.g. ``日本``) would slugify
    to an empty string, so they get a stable hashed slug instead.
    """
    slug = slugify(normalize_label(label))
    if slug:
        return slug
    return f"tag-{stable_id('tag-label', normalize_label(label).lower())[:8]}"
