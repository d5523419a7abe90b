"""
Typed records used by the migration pipeline.

:mod:`ghostify.models.tumblr_post` describes what the Tumblr API returns;
:mod:`ghostify.models.ghost_post` describes the records of a Ghost import
file.
"""

from .ghost_post import (
    AuthorConfig,
    GhostPost,
    GhostRole,
    GhostTag,
    GhostUser,
    PostAuthor,
    PostTag,
    RoleUser,
    Violation,
)
from .tumblr_post import ChatLine, PhotoSize, TumblrPhoto, TumblrPost

__all__ = [
    "AuthorConfig",
    "ChatLine",
    "GhostPost",
    "GhostRole",
    "GhostTag",
    "GhostUser",
    "PhotoSize",
    "PostAuthor",
    "PostTag",
    "RoleUser",
    "TumblrPhoto",
    "TumblrPost",
    "Violation",
]
