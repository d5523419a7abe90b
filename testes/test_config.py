import json
import os
import sys

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

import pytest

from ghostify.utils.config import author_from_config, load_config, sanitize_blog_name, validate_config
from ghostify.utils.errors import ConfigError


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("TUMBLR_API_KEY", "TUMBLR_BLOG_NAME", "GHOST_AUTHOR_NAME", "GHOST_AUTHOR_EMAIL", "GHOST_AUTHOR_SLUG"):
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    cfg = load_config()
    assert cfg["tumblr"]["base_url"] == "https://api.tumblr.com/v2"
    assert cfg["tumblr"]["page_size"] == 20
    assert cfg["migration"]["limit"] == 1000
    assert cfg["migration"]["content_format"] == "mobiledoc"
    assert cfg["migration"]["layout"] == "flat"
    assert cfg["migration"]["gallery_scope"] == "all"
    assert cfg["migration"]["import_tag"] is None


def test_environment_fills_secrets(monkeypatch):
    monkeypatch.setenv("TUMBLR_API_KEY", "from-env")
    monkeypatch.setenv("GHOST_AUTHOR_EMAIL", "me@example.org")
    cfg = load_config()
    assert cfg["tumblr"]["api_key"] == "from-env"
    assert cfg["author"]["email"] == "me@example.org"


def test_file_values_win_over_environment(tmp_path, monkeypatch):
    monkeypatch.setenv("TUMBLR_API_KEY", "from-env")
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"tumblr": {"api_key": "from-file"}, "migration": {"layout": "wrapped"}}), encoding="utf-8")
    cfg = load_config(str(path))
    assert cfg["tumblr"]["api_key"] == "from-file"
    assert cfg["migration"]["layout"] == "wrapped"
    assert cfg["migration"]["limit"] == 1000


def test_overrides_skip_none_values():
    cfg = load_config(overrides={"migration": {"limit": 5, "layout": None}})
    assert cfg["migration"]["limit"] == 5
    assert cfg["migration"]["layout"] == "flat"


def test_unreadable_file_raises(tmp_path):
    with pytest.raises(ConfigError):
        load_config(str(tmp_path / "missing.json"))
    bad = tmp_path / "bad.json"
    bad.write_text("[1, 2]", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_config(str(bad))


@pytest.mark.parametrize("key", ["", "   ", "your_tumblr_api_key_here"])
def test_missing_or_placeholder_api_key_rejected(key):
    cfg = load_config(overrides={"tumblr": {"api_key": key}})
    with pytest.raises(ConfigError, match="API key"):
        validate_config(cfg)
    validate_config(cfg, require_api_key=False)


@pytest.mark.parametrize(
    "key, value",
    [("content_format", "markdown"), ("layout", "nested"), ("gallery_scope", "photos"), ("limit", 0)],
)
def test_unknown_variant_values_rejected(key, value):
    cfg = load_config(overrides={"migration": {key: value}})
    with pytest.raises(ConfigError, match=key):
        validate_config(cfg, require_api_key=False)


def test_author_defaults_for_blank_values():
    author = author_from_config({"author": {"name": " ", "email": "", "slug": None}})
    assert (author.name, author.email, author.slug) == ("Imported User", "imported@example.com", "imported-user")


def test_author_from_config_keeps_given_values():
    author = author_from_config({"author": {"name": "Jo", "email": "jo@example.com", "slug": "jo"}})
    assert author.slug == "jo"


@pytest.mark.parametrize(
    "name, expected",
    [
        ("myblog.tumblr.com", "myblog"),
        ("MyBlog.Tumblr.com", "myblog"),
        ("https://myblog.tumblr.com/", "myblog"),
        ("art.example.org", "art-example-org"),
        ("", "tumblr-export"),
    ],
)
def test_sanitize_blog_name(name, expected):
    assert sanitize_blog_name(name) == expected
