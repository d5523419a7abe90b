from __future__ import annotations

import re
import unicodedata
from typing import Optional

SLUG_RE = re.compile(r"[a-z0-9-]+")
EMAIL_RE = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")

# Ghost's posts.slug column is varchar(191)
MAX_SLUG_LENGTH = 191


def _strip_accents(text: str) -> str:
    return "".join(
        c for c in unicodedata.normalize("NFKD", text) if unicodedata.category(c) != "Mn"
    )


def is_valid_slug(value: Optional[str]) -> bool:
    return bool(value) and bool(SLUG_RE.fullmatch(value))


def slugify(text: Optional[str], max_length: int = MAX_SLUG_LENGTH) -> str:
    """
    Convert arbitrary text into a Ghost compatible slug.

    Accents are folded (``café`` -> ``cafe``), everything outside word
    characters, spaces and hyphens is dropped, runs of whitespace,
    underscores and hyphens become a single hyphen and the ends are
    trimmed.  Characters with no ASCII equivalent disappear, so the result
    may be empty.
    """
    if not text:
        return ""
    t = _strip_accents(text).lower()
    t = re.sub(r"[^\w\s-]", "", t, flags=re.ASCII)
    t = re.sub(r"[\s_-]+", "-", t)
    return t.strip("-")[:max_length].strip("-")


def humanize_slug(slug: Optional[str], max_words: int = 12) -> str:
    """``my-cool-post`` -> ``My Cool Post``, keeping at most ``max_words``."""
    if not slug:
        return ""
    words = [w for w in slug.replace("-", " ").split() if w]
    return " ".join(w[:1].upper() + w[1:] for w in words[:max_words])
