import csv
import json
import os
import sys

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

import pytest
pytest.importorskip("bs4")
requests = pytest.importorskip("requests")

from ghostify.extractors import tumblr_extractor
from ghostify.migration_tool import TumblrMigrationTool
from ghostify.utils.errors import ConfigError, PreFlightCheckError
from ghostify.utils.pre_flight_checks import run_tumblr_pre_flight_checks

DUMP = {
    "meta": {"status": 200, "msg": "OK"},
    "response": {
        "posts": [
            {"id": 10, "type": "text", "body": "<p>First post body here.</p>", "tags": ["Cats"],
             "post_url": "https://myblog.tumblr.com/post/10/first"},
            {"id": 11, "type": "poll", "post_url": "https://myblog.tumblr.com/post/11"},
            {"type": "text", "body": "<p>no id</p>"},
            {"id": 10, "type": "text", "body": "<p>Duplicate of the first.</p>"},
            {"id": 12, "type": "quote", "text": "Be yourself.", "tags": ["cats", "quotes"]},
        ]
    },
}


def read_jsonl(path):
    with open(path, encoding="utf-8") as f:
        return [json.loads(line) for line in f if line.strip()]


@pytest.fixture
def dump_path(tmp_path):
    path = tmp_path / "myblog.json"
    path.write_text(json.dumps(DUMP), encoding="utf-8")
    return str(path)


@pytest.fixture
def tool(tmp_path, monkeypatch):
    monkeypatch.delenv("TUMBLR_API_KEY", raising=False)
    monkeypatch.delenv("TUMBLR_BLOG_NAME", raising=False)
    return TumblrMigrationTool({
        "migration": {
            "report_dir": str(tmp_path / "reports"),
            "content_format": "html",
            "ghost_site_url": "https://ghost.example/",
        }
    })


def test_run_from_dump_writes_valid_export(tool, dump_path, tmp_path):
    out = tmp_path / "out" / "ghost.json"
    result = tool.run(input_path=dump_path, output=str(out))

    assert out.exists()
    data = json.loads(out.read_text(encoding="utf-8"))["data"]
    assert [p["comment_id"] for p in data["posts"]] == ["10", "11", "12"]
    assert "poll" in data["posts"][1]["html"]
    assert [t["slug"] for t in data["tags"]] == ["cats", "quotes"]
    assert len(data["posts_tags"]) == 3
    assert tool.exporter.validate_export(result.document) == []


def test_run_reports_problems_per_post(tool, dump_path, tmp_path):
    tool.run(input_path=dump_path, output=str(tmp_path / "ghost.json"))
    report_dir = tmp_path / "reports"

    codes = [e["code"] for e in read_jsonl(report_dir / "errors.jsonl")]
    assert codes.count("TRANSFORM_FAILED") == 1
    assert codes.count("UNSUPPORTED_TYPE") == 1
    assert codes.count("DUPLICATE_POST") == 1

    ok_codes = [e["code"] for e in read_jsonl(report_dir / "success.jsonl")]
    assert ok_codes.count("POST_TRANSFORMED") == 4
    assert ok_codes[-1] == "EXPORT_WRITTEN"

    log = (report_dir / "migration.log").read_text(encoding="utf-8")
    assert "ERROR: Post record 2" in log


def test_redirect_csv_maps_tumblr_urls(tool, dump_path, tmp_path):
    tool.run(input_path=dump_path, output=str(tmp_path / "ghost.json"))
    with open(tmp_path / "reports" / "redirect_map.csv", newline="", encoding="utf-8") as f:
        rows = list(csv.reader(f))
    assert rows[0] == ["OldURL", "NewURL"]
    assert rows[1] == ["https://myblog.tumblr.com/post/10/first", "https://ghost.example/first-post-body-here/"]
    assert len(rows) == 3


def test_dry_run_writes_nothing(tool, dump_path, tmp_path):
    out = tmp_path / "ghost.json"
    assert tool.run(input_path=dump_path, output=str(out), dry_run=True) is None
    assert not out.exists()


def test_limit_applies_to_dump(tmp_path, dump_path, monkeypatch):
    monkeypatch.delenv("TUMBLR_API_KEY", raising=False)
    tool = TumblrMigrationTool({"migration": {"report_dir": str(tmp_path / "r"), "limit": 1}})
    assert len(tool.load_posts(dump_path)) == 1


def test_run_without_blog_or_input_raises(tool):
    with pytest.raises(ConfigError):
        tool.run()


def test_fetch_requires_api_key(tool):
    with pytest.raises(ConfigError):
        tool.fetch_posts("myblog")


def test_fetch_failure_keeps_partial_results(tmp_path, monkeypatch):
    calls = []

    def fake_get(url, params=None, timeout=None):
        calls.append(params)
        if len(calls) == 1:
            return _Response({"meta": {"status": 200}, "response": {
                "posts": [{"id": 1, "type": "text"}],
                "_links": {"next": {"query_params": {"before": "99"}}},
            }})
        raise requests.ConnectionError("boom")

    monkeypatch.setattr(tumblr_extractor.requests, "get", fake_get)
    tool = TumblrMigrationTool({
        "tumblr": {"api_key": "k", "request_interval": 0, "max_attempts": 1},
        "migration": {"report_dir": str(tmp_path / "r")},
    })
    records = tool.fetch_posts("myblog")
    assert [r["id"] for r in records] == [1]
    codes = [e["code"] for e in read_jsonl(tmp_path / "r" / "errors.jsonl")]
    assert codes == ["FETCH_FAILED"]


def test_unknown_layout_in_config_rejected(tmp_path):
    with pytest.raises(ConfigError):
        TumblrMigrationTool({"migration": {"layout": "nested", "report_dir": str(tmp_path)}})


class _Response:
    def __init__(self, payload, status_code=200):
        self._payload = payload
        self.status_code = status_code

    def json(self):
        return self._payload

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(str(self.status_code), response=self)


@pytest.mark.parametrize("status, message", [(401, "invalid"), (404, "not found")])
def test_pre_flight_maps_status_codes(monkeypatch, status, message):
    monkeypatch.setattr(tumblr_extractor.requests, "get", lambda *a, **k: _Response({}, status))
    with pytest.raises(PreFlightCheckError, match=message):
        run_tumblr_pre_flight_checks({"tumblr": {"api_key": "k"}}, "myblog")


def test_pre_flight_returns_blog(monkeypatch):
    payload = {"meta": {"status": 200}, "response": {"blog": {"name": "myblog"}}}
    monkeypatch.setattr(tumblr_extractor.requests, "get", lambda *a, **k: _Response(payload))
    assert run_tumblr_pre_flight_checks({"tumblr": {"api_key": "k"}}, "myblog") == {"name": "myblog"}


def test_pre_flight_needs_key():
    with pytest.raises(PreFlightCheckError):
        run_tumblr_pre_flight_checks({"tumblr": {}}, "myblog")


def test_pre_flight_uses_configured_base_url(monkeypatch):
    calls = []

    def fake_get(url, params=None, timeout=None):
        calls.append(url)
        return _Response({"meta": {"status": 200}, "response": {"blog": {"name": "myblog"}}})

    monkeypatch.setattr(tumblr_extractor.requests, "get", fake_get)
    run_tumblr_pre_flight_checks({"tumblr": {"api_key": "k", "base_url": "https://api.example/v2"}}, "myblog")
    assert calls == ["https://api.example/v2/blog/myblog/info"]


def test_pre_flight_maps_api_meta_errors(monkeypatch):
    payload = {"meta": {"status": 403, "msg": "Forbidden"}, "response": []}
    monkeypatch.setattr(tumblr_extractor.requests, "get", lambda *a, **k: _Response(payload))
    with pytest.raises(PreFlightCheckError, match="Forbidden"):
        run_tumblr_pre_flight_checks({"tumblr": {"api_key": "k"}}, "myblog")
