"""
HTML repair helpers shared by every post renderer.

Tumblr markup arrives full of presentation attributes (``class``,
``data-*``, responsive ``srcset``/``sizes``), empty spacer paragraphs and
entity-encoded text, sometimes encoded twice.  :func:`clean_html` turns it
into compact markup Ghost renders as-is; :func:`escape_html` is for the
opposite case, user text interpolated into markup we generate ourselves.
"""

from __future__ import annotations

import html as _html
import re
from typing import Dict, List, Optional, Tuple

from bs4 import BeautifulSoup, Comment, NavigableString, Tag

_STRIP_ATTRS = {"class", "srcset", "sizes"}
_COLLAPSIBLE = ["p", "div"]
# An element holding any of these is never "empty".
_CONTENT_TAGS = ["img", "iframe", "video", "audio", "source", "embed", "object", "hr", "svg", "canvas"]
_BLOCK_TAGS = [
    "p", "div", "li", "blockquote", "figure", "figcaption", "section", "article",
    "h1", "h2", "h3", "h4", "h5", "h6", "tr", "td", "th", "pre",
]


def decode_entities(text: Optional[str]) -> str:
    """Decode HTML entities until nothing changes; ``&nbsp;`` becomes a space.

    Decoding to a fixpoint makes the function idempotent, and also repairs
    text Tumblr encoded twice (``&amp;amp;``).
    """
    if not text:
        return ""
    current = text
    while True:
        decoded = _html.unescape(current).replace("\xa0", " ")
        if decoded == current:
            return decoded
        current = decoded


def escape_html(text: Optional[str]) -> str:
    """Escape ``& < > " '`` for interpolation into generated markup."""
    return _html.escape(text or "", quote=True)


def escape_text(text: Optional[str]) -> str:
    """Decode first, then escape, so already-encoded input is not double escaped."""
    return escape_html(decode_entities(text))


def collapse_whitespace(text: Optional[str]) -> str:
    return re.sub(r"\s+", " ", text or "").strip()


def parse_html(markup: Optional[str]) -> BeautifulSoup:
    soup = BeautifulSoup(markup or "", "html.parser")
    for bad in soup.find_all(["script", "style"]):
        bad.decompose()
    for comment in soup.find_all(string=lambda s: isinstance(s, Comment)):
        comment.extract()
    return soup


def _attr(tag: Tag, name: str) -> str:
    value = tag.get(name)
    if isinstance(value, list):
        return " ".join(value)
    return value or ""


def _strip_attributes(soup: BeautifulSoup) -> None:
    for tag in soup.find_all(True):
        for attr in list(tag.attrs):
            if attr in _STRIP_ATTRS or attr.startswith("data-"):
                del tag.attrs[attr]


def _decode_tree(soup: BeautifulSoup) -> None:
    for node in list(soup.find_all(string=True)):
        text = str(node)
        decoded = decode_entities(text)
        if decoded != text:
            node.replace_with(NavigableString(decoded))
    for tag in soup.find_all(True):
        for attr, value in list(tag.attrs.items()):
            if isinstance(value, str):
                tag[attr] = decode_entities(value)


def _is_empty(tag: Tag) -> bool:
    if tag.find(_CONTENT_TAGS):
        return False
    return not tag.get_text().replace("\xa0", " ").strip()


def _collapse_empty(soup: BeautifulSoup, names: List[str]) -> None:
    # Reverse document order visits children before their parents, so a
    # div that only wrapped empty paragraphs collapses too.
    for tag in reversed(soup.find_all(names)):
        if _is_empty(tag):
            tag.decompose()


def _serialize(soup: BeautifulSoup) -> str:
    return collapse_whitespace(soup.decode(formatter=None))


def clean_soup(soup: BeautifulSoup) -> BeautifulSoup:
    _strip_attributes(soup)
    _decode_tree(soup)
    _collapse_empty(soup, _COLLAPSIBLE)
    return soup


def clean_html(markup: Optional[str]) -> str:
    """
    Clean raw source HTML for re-emission.

    - removes ``script``/``style`` elements and comments
    - drops ``class``, ``data-*``, ``srcset`` and ``sizes`` attributes
    - decodes entities in text and attribute values
    - removes ``p``/``div`` elements left without text or media
    - collapses runs of whitespace to single spaces
    """
    if not markup or not markup.strip():
        return ""
    return _serialize(clean_soup(parse_html(markup)))


def inline_html(markup: Optional[str]) -> str:
    """Cleaned ``markup`` with its paragraph/div wrappers unwrapped, for use inside inline elements."""
    if not markup or not markup.strip():
        return ""
    soup = clean_soup(parse_html(markup))
    for block in soup.find_all(_COLLAPSIBLE):
        block.insert_after(" ")
        block.unwrap()
    return _serialize(soup)


def html_to_text(markup: Optional[str]) -> str:
    """Plain text of ``markup``: tags stripped, entities decoded, whitespace collapsed."""
    if not markup:
        return ""
    soup = parse_html(markup)
    for br in soup.find_all("br"):
        br.replace_with(" ")
    for block in soup.find_all(_BLOCK_TAGS):
        block.insert_after(" ")
    return collapse_whitespace(decode_entities(soup.get_text()))


def extract_images(markup: Optional[str]) -> List[Dict[str, str]]:
    """Return ``{"src", "alt"}`` for every ``<img>`` with a source, in document order."""
    if not markup:
        return []
    images: List[Dict[str, str]] = []
    for img in parse_html(markup).find_all("img"):
        src = decode_entities(_attr(img, "src")).strip()
        if src:
            images.append({"src": src, "alt": decode_entities(_attr(img, "alt")).strip()})
    return images


def image_tag(src: str, alt: str = "") -> str:
    return f'<img src="{escape_html(src)}" alt="{escape_html(alt)}">'


def hoist_images(markup: Optional[str]) -> Tuple[str, List[Dict[str, str]]]:
    """
    Split ``markup`` into cleaned text without images and the images it held.

    Figures and links that only existed to wrap an image are removed along
    with it.
    """
    if not markup or not markup.strip():
        return "", []
    soup = parse_html(markup)
    images: List[Dict[str, str]] = []
    for img in soup.find_all("img"):
        src = _attr(img, "src").strip()
        if src:
            images.append({"src": decode_entities(src), "alt": decode_entities(_attr(img, "alt")).strip()})
        img.decompose()
    clean_soup(soup)
    _collapse_empty(soup, ["figure", "a", "span"])
    _collapse_empty(soup, _COLLAPSIBLE)
    return _serialize(soup), images


def render_text_with_images(markup: Optional[str]) -> str:
    """Cleaned text followed by the images that were embedded in it."""
    text, images = hoist_images(markup)
    return text + "".join(image_tag(i["src"], i["alt"]) for i in images)
