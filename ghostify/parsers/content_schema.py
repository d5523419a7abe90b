from __future__ import annotations

import json
from typing import Any, Dict

CONTENT_FORMATS = ("mobiledoc", "html", "lexical")

MOBILEDOC_VERSION = "0.3.1"


# --- Builders for Ghost content documents ---

def html_card(html: str) -> list:
    return ["html", {"html": html or ""}]


def mobiledoc(html: str) -> Dict[str, Any]:
    """Mobiledoc with a single HTML card section (section type 10 = card)."""
    return {
        "version": MOBILEDOC_VERSION,
        "atoms": [],
        "cards": [html_card(html)],
        "markups": [],
        "sections": [[10, 0]],
    }


def lexical_html_node(html: str) -> Dict[str, Any]:
    return {"type": "html", "version": 1, "html": html or ""}


def lexical(html: str) -> Dict[str, Any]:
    return {
        "root": {
            "children": [lexical_html_node(html)],
            "direction": None,
            "format": "",
            "indent": 0,
            "type": "root",
            "version": 1,
        }
    }


def content_fields(html: str, content_format: str) -> Dict[str, str]:
    """
    Map rendered HTML onto the post field(s) Ghost expects for ``content_format``.

    Ghost stores mobiledoc and lexical documents as JSON strings.
    """
    if content_format == "html":
        return {"html": html}
    if content_format == "mobiledoc":
        return {"mobiledoc": json.dumps(mobiledoc(html), ensure_ascii=False)}
    if content_format == "lexical":
        return {"lexical": json.dumps(lexical(html), ensure_ascii=False)}
    raise ValueError(f"Unknown content format: {content_format!r}")


def _html_of(node: Any) -> str:
    html = node.get("html") if isinstance(node, dict) else None
    return html if isinstance(html, str) else ""


def document_html(value: str, content_format: str) -> str:
    """Read the HTML back out of a stored content field (used by validation)."""
    if content_format == "html":
        return value if isinstance(value, str) else ""
    try:
        document = json.loads(value or "")
    except (TypeError, ValueError):
        return ""
    if not isinstance(document, dict):
        return ""
    if content_format == "mobiledoc":
        cards = document.get("cards") or []
        if not isinstance(cards, list):
            return ""
        return "".join(
            _html_of(card[1])
            for card in cards
            if isinstance(card, list) and len(card) == 2 and card[0] == "html"
        )
    if content_format == "lexical":
        root = document.get("root")
        children = root.get("children") if isinstance(root, dict) else None
        if not isinstance(children, list):
            return ""
        return "".join(_html_of(c) for c in children if isinstance(c, dict) and c.get("type") == "html")
    raise ValueError(f"Unknown content format: {content_format!r}")
