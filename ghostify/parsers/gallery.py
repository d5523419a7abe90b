"""
Reconstruction of Tumblr photo galleries as Ghost gallery cards.

Tumblr lays multi-image posts out as consecutive row containers
(``<div class="npf_row">`` in NPF-rendered HTML, ``photoset_row`` in legacy
photosets), each holding one or more images.  Those rows are a
presentation artifact; Ghost's gallery card wants 2-3 images per row.  All
images found in the source rows are therefore collected in document order
and packed again with :func:`repack_rows`.
"""

from __future__ import annotations

from typing import Callable, Dict, List, Optional, Sequence, TypeVar

from bs4 import NavigableString, Tag

from .html_cleaner import clean_html, decode_entities, escape_html, parse_html

T = TypeVar("T")

GALLERY_ROW_CLASSES = ("npf_row", "photoset_row")
MAX_ROW_SIZE = 3

_MARKER = "GHOSTIFY-GALLERY-ROW-{}"


def _is_gallery_row(tag: Tag) -> bool:
    classes = tag.get("class") or []
    if isinstance(classes, str):
        classes = classes.split()
    return any(c in GALLERY_ROW_CLASSES for c in classes)


def find_gallery_rows(soup: Tag) -> List[Tag]:
    """Outermost gallery row containers in document order."""
    rows = soup.find_all(_is_gallery_row)
    return [
        row for row in rows
        if not any(isinstance(p, Tag) and _is_gallery_row(p) for p in row.parents)
    ]


def row_images(row: Tag) -> List[Dict[str, str]]:
    images: List[Dict[str, str]] = []
    for img in row.find_all("img"):
        src = img.get("src") or ""
        if isinstance(src, list):
            src = src[0] if src else ""
        src = decode_entities(src).strip()
        if src:
            alt = img.get("alt") or ""
            images.append({"src": src, "alt": decode_entities(alt if isinstance(alt, str) else "").strip()})
    return images


def repack_rows(source_rows: Sequence[Sequence[T]]) -> List[List[T]]:
    """
    Regroup images from arbitrary source rows into rows of at most three.

    Images accumulate in a buffer across source rows; whenever the buffer
    holds more than three, the first three are emitted and the rest carried
    over, and a buffer of exactly three is emitted as a row.  Whatever is
    left at the end becomes the last row.  Every row but the last therefore
    holds exactly three images.

    >>> repack_rows([["A"], ["B"], ["C"], ["D"]])
    [['A', 'B', 'C'], ['D']]
    >>> repack_rows([["A", "B"], ["C"]])
    [['A', 'B', 'C']]
    """
    rows: List[List[T]] = []
    buffer: List[T] = []
    for source_row in source_rows:
        buffer.extend(source_row)
        while len(buffer) > MAX_ROW_SIZE:
            rows.append(buffer[:MAX_ROW_SIZE])
            buffer = buffer[MAX_ROW_SIZE:]
        if len(buffer) == MAX_ROW_SIZE:
            rows.append(buffer)
            buffer = []
    if buffer:
        rows.append(buffer)
    return rows


def gallery_card(rows: Sequence[Sequence[Dict[str, str]]]) -> str:
    parts = ['<figure class="kg-card kg-gallery-card kg-width-wide"><div class="kg-gallery-container">']
    for row in rows:
        parts.append('<div class="kg-gallery-row">')
        for image in row:
            parts.append(
                f'<div class="kg-gallery-image"><img src="{escape_html(image["src"])}" '
                f'alt="{escape_html(image.get("alt", ""))}"></div>'
            )
        parts.append("</div>")
    parts.append("</div></figure>")
    return "".join(parts)


def reconstruct_galleries(
    markup: Optional[str],
    *,
    clean: Callable[[str], str] = clean_html,
) -> Optional[str]:
    """
    Replace the gallery rows in ``markup`` with one repacked gallery card.

    Returns ``None`` when ``markup`` holds no gallery rows, so callers can
    fall back to their normal rendering.  Text before the first row stays
    before the card; text after it (including anything between rows) follows
    the card.  Each text part goes through ``clean`` and is dropped only when
    nothing but whitespace remains.
    """
    if not markup:
        return None
    soup = parse_html(markup)
    rows = find_gallery_rows(soup)
    if not rows:
        return None

    source_rows = []
    for index, row in enumerate(rows):
        source_rows.append(row_images(row))
        row.replace_with(NavigableString(_MARKER.format(index)))

    serialized = str(soup)
    parts: List[str] = []
    for index in range(len(rows)):
        head, _, serialized = serialized.partition(_MARKER.format(index))
        parts.append(head)
    parts.append(serialized)

    before = clean(parts[0])
    after = [clean(p) for p in parts[1:]]

    images = [row for row in source_rows if row]
    card = gallery_card(repack_rows(images)) if images else ""
    return "".join(p for p in [before, card, *after] if p.strip())
