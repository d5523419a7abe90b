"""
Loading and checking of the migration configuration.

The configuration is a plain dictionary with three sections, ``tumblr``,
``author`` and ``migration``.  It can be read from a JSON file; anything the
file leaves out is filled with a default, and the API key, blog name and
author identity may also come from the environment (``TUMBLR_API_KEY``,
``TUMBLR_BLOG_NAME``, ``GHOST_AUTHOR_NAME``, ``GHOST_AUTHOR_EMAIL``,
``GHOST_AUTHOR_SLUG``).
"""

from __future__ import annotations

import json
import os
import re
from typing import Any, Dict, Optional

from ghostify.models.ghost_post import (
    DEFAULT_AUTHOR_EMAIL,
    DEFAULT_AUTHOR_NAME,
    DEFAULT_AUTHOR_SLUG,
    AuthorConfig,
)
from ghostify.parsers.content_schema import CONTENT_FORMATS
from ghostify.parsers.renderers import GALLERY_SCOPES
from ghostify.utils.errors import REPORT_DIR, ConfigError

PLACEHOLDER_API_KEY = "your_tumblr_api_key_here"
LAYOUTS = ("flat", "wrapped")


def load_config(config_file: Optional[str] = None, overrides: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    config: Dict[str, Any] = {}
    if config_file:
        try:
            with open(config_file, "r", encoding="utf-8") as f:
                config = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigError(f"Cannot read config file {config_file}: {e}") from e
        if not isinstance(config, dict):
            raise ConfigError(f"Config file {config_file} must contain a JSON object")

    for section, values in (overrides or {}).items():
        config.setdefault(section, {})
        config[section].update({k: v for k, v in values.items() if v is not None})

    config.setdefault("tumblr", {})
    config["tumblr"].setdefault("api_key", os.getenv("TUMBLR_API_KEY", ""))
    config["tumblr"].setdefault("blog_name", os.getenv("TUMBLR_BLOG_NAME", ""))
    config["tumblr"].setdefault("base_url", "https://api.tumblr.com/v2")
    config["tumblr"].setdefault("page_size", 20)
    config["tumblr"].setdefault("request_interval", 1.0)
    config["tumblr"].setdefault("timeout", 30)
    config["tumblr"].setdefault("max_attempts", 3)
    config["tumblr"].setdefault("retry_delay", 2.0)

    config.setdefault("author", {})
    config["author"].setdefault("name", os.getenv("GHOST_AUTHOR_NAME", DEFAULT_AUTHOR_NAME))
    config["author"].setdefault("email", os.getenv("GHOST_AUTHOR_EMAIL", DEFAULT_AUTHOR_EMAIL))
    config["author"].setdefault("slug", os.getenv("GHOST_AUTHOR_SLUG", DEFAULT_AUTHOR_SLUG))

    config.setdefault("migration", {})
    config["migration"].setdefault("limit", 1000)
    config["migration"].setdefault("output", None)
    config["migration"].setdefault("content_format", "mobiledoc")
    config["migration"].setdefault("layout", "flat")
    config["migration"].setdefault("gallery_scope", "all")
    config["migration"].setdefault("ghost_version", "5.0.0")
    config["migration"].setdefault("import_tag", None)
    config["migration"].setdefault("backup", True)
    config["migration"].setdefault("report_dir", REPORT_DIR)
    config["migration"].setdefault("ghost_site_url", "")
    return config


def validate_config(config: Dict[str, Any], *, require_api_key: bool = True) -> None:
    """
    Check the values a run depends on.

    :raises ConfigError: for a missing or placeholder API key (when
        ``require_api_key``), an unknown content format, layout or gallery
        scope, or a non-positive limit.
    """
    tumblr = config.get("tumblr", {})
    migration = config.get("migration", {})

    if require_api_key:
        api_key = (tumblr.get("api_key") or "").strip()
        if not api_key or api_key == PLACEHOLDER_API_KEY:
            raise ConfigError(
                "Tumblr API key is not configured. Set TUMBLR_API_KEY or tumblr.api_key "
                "(register an application at https://www.tumblr.com/oauth/apps)."
            )

    for key, allowed in (
        ("content_format", CONTENT_FORMATS),
        ("layout", LAYOUTS),
        ("gallery_scope", GALLERY_SCOPES),
    ):
        if migration.get(key) not in allowed:
            raise ConfigError(f"migration.{key} must be one of {', '.join(allowed)}, got {migration.get(key)!r}")

    limit = migration.get("limit")
    if limit is not None:
        try:
            if int(limit) < 1:
                raise ValueError
        except (TypeError, ValueError):
            raise ConfigError(f"migration.limit must be a positive integer, got {limit!r}") from None


def author_from_config(config: Dict[str, Any]) -> AuthorConfig:
    author = config.get("author", {})
    return AuthorConfig(
        name=author.get("name") or DEFAULT_AUTHOR_NAME,
        email=author.get("email") or DEFAULT_AUTHOR_EMAIL,
        slug=author.get("slug") or DEFAULT_AUTHOR_SLUG,
    )


def sanitize_blog_name(blog_name: str) -> str:
    """
    File-name-safe form of a blog identifier.

    >>> sanitize_blog_name("myblog.tumblr.com")
    'myblog'
    >>> sanitize_blog_name("https://Some.Blog.example/")
    'some-blog-example'
    """
    name = (blog_name or "").strip().lower()
    name = re.sub(r"^[a-z]+://", "", name).strip("/")
    name = re.sub(r"\.tumblr\.com$", "", name)
    name = re.sub(r"[^a-z0-9-]+", "-", name).strip("-")
    return name or "tumblr-export"
