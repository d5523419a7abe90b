import json
import os
import sys

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

import pytest
pytest.importorskip("bs4")

from main import main, parse_args


@pytest.fixture(autouse=True)
def isolated(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    for name in ("TUMBLR_API_KEY", "TUMBLR_BLOG_NAME"):
        monkeypatch.delenv(name, raising=False)


def test_parse_args_defaults():
    args = parse_args(["myblog.tumblr.com"])
    assert args.blog == "myblog.tumblr.com"
    assert args.config == "config/migration_config.json"
    assert args.content_format is None and not args.dry_run


def test_parse_args_rejects_unknown_format():
    with pytest.raises(SystemExit):
        parse_args(["--content-format", "markdown"])


def test_main_converts_dump(tmp_path):
    dump = tmp_path / "dump.json"
    dump.write_text(json.dumps([{"id": 1, "type": "text", "body": "<p>Hello world. More text.</p>"}]), encoding="utf-8")
    out = tmp_path / "export.json"

    code = main(["--input", str(dump), "--output", str(out), "--layout", "wrapped", "--content-format", "lexical"])

    assert code == 0
    doc = json.loads(out.read_text(encoding="utf-8"))
    post = doc["db"][0]["data"]["posts"][0]
    assert post["title"] == "Hello world."
    assert "lexical" in post and "html" not in post


def test_main_default_output_from_dump_name(tmp_path):
    dump = tmp_path / "myblog.json"
    dump.write_text(json.dumps([{"id": 1, "title": "One"}]), encoding="utf-8")
    assert main(["--input", str(dump)]) == 0
    assert (tmp_path / "myblog-ghost.json").exists()


def test_main_fails_without_blog():
    assert main(["--skip-preflight"]) == 1


def test_main_fails_preflight_without_key():
    assert main(["myblog"]) == 1


def test_main_fails_on_missing_explicit_config():
    assert main(["--config", "nope.json", "myblog"]) == 1
