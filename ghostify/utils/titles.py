from __future__ import annotations

from datetime import datetime, timezone
import re
from typing import Callable, List, Optional, Tuple

from ghostify.parsers.html_cleaner import html_to_text

from .slugs import humanize_slug

TITLE_WORDS = 10
SLUG_TITLE_WORDS = 12

_SENTENCE_RE = re.compile(r"^(.+?[.!?])(?=\s|$)", re.DOTALL)


def first_sentence(text: str) -> str:
    match = _SENTENCE_RE.match(text.strip())
    return match.group(1).strip() if match else ""


def first_words(text: str, count: int = TITLE_WORDS) -> List[str]:
    """The first ``count`` words, minus one-character words."""
    return [w for w in text.split()[:count] if len(w) > 1]


def fallback_title(timestamp: int) -> str:
    day = datetime.fromtimestamp(int(timestamp or 0), tz=timezone.utc).strftime("%Y-%m-%d")
    return f"Post from {day}"


def _from_explicit(title: Optional[str]) -> Optional[str]:
    return (title or "").strip() or None


def _from_text(markup: Optional[str]) -> Optional[str]:
    text = html_to_text(markup)
    if not text:
        return None
    sentence = first_sentence(text)
    if sentence and (len(sentence) > 10 or len(sentence.split()) > 3):
        return sentence
    words = first_words(text)
    if len(words) >= 3:
        return " ".join(words)
    return None


def _from_slug(slug: Optional[str]) -> Optional[str]:
    title = humanize_slug(slug, max_words=SLUG_TITLE_WORDS)
    return title if len(title) > 5 else None


def derive_title(
    *,
    title: Optional[str],
    summary: Callable[[], Optional[str]],
    slug: Optional[str],
    timestamp: int,
) -> str:
    """
    First acceptable title from the fallback chain:

    1. the explicit title, trimmed
    2. the first sentence of the post text, else its first words
    3. the platform slug, humanized
    4. ``Post from YYYY-MM-DD``

    ``summary`` is a callable so that the post text is only stripped and
    decoded when there is no explicit title.
    """
    candidates: Tuple[Callable[[], Optional[str]], ...] = (
        lambda: _from_explicit(title),
        lambda: _from_text(summary()),
        lambda: _from_slug(slug),
    )
    for candidate in candidates:
        value = candidate()
        if value:
            return value
    return fallback_title(timestamp)
