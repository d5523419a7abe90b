"""
HTML parsers and content builders used by the migration pipeline.

* :mod:`ghostify.parsers.html_cleaner` – cleaning, escaping, entity decoding
* :mod:`ghostify.parsers.gallery` – Tumblr photo rows → Ghost gallery card
* :mod:`ghostify.parsers.renderers` – one HTML renderer per post type
* :mod:`ghostify.parsers.content_schema` – mobiledoc / lexical documents
"""

from .content_schema import CONTENT_FORMATS, content_fields
from .gallery import reconstruct_galleries, repack_rows
from .html_cleaner import clean_html, decode_entities, escape_html, html_to_text
from .renderers import GALLERY_SCOPES, RENDERERS, renderer_for

__all__ = [
    "CONTENT_FORMATS",
    "GALLERY_SCOPES",
    "RENDERERS",
    "clean_html",
    "content_fields",
    "decode_entities",
    "escape_html",
    "html_to_text",
    "reconstruct_galleries",
    "renderer_for",
    "repack_rows",
]
