import json
import os
import sys

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

import pytest
requests = pytest.importorskip("requests")

from ghostify.extractors import tumblr_extractor
from ghostify.extractors.tumblr_extractor import (
    RateLimiter,
    extract_posts_from_json,
    fetch_all_posts,
    fetch_posts_page,
    get_blog_info,
    next_before,
    parse_posts,
    with_retries,
)
from ghostify.utils.errors import TumblrAPIError

CFG = {"api_key": "k", "base_url": "https://api.example/v2", "request_interval": 0, "max_attempts": 2, "retry_delay": 5}


class FakeResponse:
    def __init__(self, payload=None, status_code=200):
        self._payload = payload
        self.status_code = status_code
        self.headers = {}

    def json(self):
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code}", response=self)


def ok(response):
    return FakeResponse({"meta": {"status": 200, "msg": "OK"}, "response": response})


def page(ids, timestamp_start=1000, next_before_value=None):
    posts = [{"id": i, "type": "text", "timestamp": timestamp_start - n} for n, i in enumerate(ids)]
    response = {"posts": posts}
    if next_before_value is not None:
        response["_links"] = {"next": {"href": "/v2/blog/x/posts", "query_params": {"before": str(next_before_value)}}}
    else:
        response["_links"] = {}
    return ok(response)


class FakeGet:
    def __init__(self, responses):
        self.responses = list(responses)
        self.calls = []

    def __call__(self, url, params=None, timeout=None):
        self.calls.append({"url": url, "params": dict(params or {}), "timeout": timeout})
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


def test_fetch_posts_page_builds_request(monkeypatch):
    fake = FakeGet([page([1, 2])])
    monkeypatch.setattr(tumblr_extractor.requests, "get", fake)
    response = fetch_posts_page(CFG, "myblog.tumblr.com", before=123, limit=50, sleep_fn=lambda s: None)
    assert [p["id"] for p in response["posts"]] == [1, 2]
    call = fake.calls[0]
    assert call["url"] == "https://api.example/v2/blog/myblog.tumblr.com/posts"
    assert call["params"] == {"api_key": "k", "limit": 20, "before": 123}


def test_fetch_all_follows_cursor_and_honours_limit(monkeypatch):
    fake = FakeGet([
        page(range(20), next_before_value=500),
        page(range(20, 40), next_before_value=400),
    ])
    monkeypatch.setattr(tumblr_extractor.requests, "get", fake)
    result = fetch_all_posts(CFG, "blog", limit=25, limiter=RateLimiter(0), sleep_fn=lambda s: None)
    assert result.complete
    assert [p["id"] for p in result.posts] == list(range(25))
    assert [c["params"]["limit"] for c in fake.calls] == [20, 5]
    assert "before" not in fake.calls[0]["params"]
    assert fake.calls[1]["params"]["before"] == 500


def test_fetch_all_stops_when_no_next_page(monkeypatch):
    fake = FakeGet([page([1, 2, 3])])
    monkeypatch.setattr(tumblr_extractor.requests, "get", fake)
    result = fetch_all_posts(CFG, "blog", limit=100, limiter=RateLimiter(0), sleep_fn=lambda s: None)
    assert [p["id"] for p in result.posts] == [1, 2, 3]
    assert len(fake.calls) == 1


def test_fetch_all_stops_on_empty_page(monkeypatch):
    fake = FakeGet([ok({"posts": []})])
    monkeypatch.setattr(tumblr_extractor.requests, "get", fake)
    result = fetch_all_posts(CFG, "blog", limit=100, limiter=RateLimiter(0), sleep_fn=lambda s: None)
    assert result.posts == [] and result.complete


def test_fetch_all_keeps_partial_results_after_failure(monkeypatch):
    fake = FakeGet([
        page(range(20), next_before_value=500),
        requests.ConnectionError("down"),
        requests.ConnectionError("still down"),
    ])
    monkeypatch.setattr(tumblr_extractor.requests, "get", fake)
    sleeps = []
    result = fetch_all_posts(CFG, "blog", limit=100, limiter=RateLimiter(0), sleep_fn=sleeps.append)
    assert len(result.posts) == 20
    assert isinstance(result.error, requests.ConnectionError)
    assert not result.complete
    assert sleeps == [5.0]


def test_meta_error_status_raises(monkeypatch):
    fake = FakeGet([FakeResponse({"meta": {"status": 404, "msg": "Not Found"}, "response": []})])
    monkeypatch.setattr(tumblr_extractor.requests, "get", fake)
    with pytest.raises(TumblrAPIError, match="Not Found"):
        fetch_posts_page(CFG, "blog", sleep_fn=lambda s: None)


def test_non_json_response_raises(monkeypatch):
    fake = FakeGet([FakeResponse(ValueError("no json"))])
    monkeypatch.setattr(tumblr_extractor.requests, "get", fake)
    with pytest.raises(TumblrAPIError):
        fetch_posts_page(CFG, "blog", sleep_fn=lambda s: None)


def test_get_blog_info(monkeypatch):
    fake = FakeGet([ok({"blog": {"name": "myblog", "posts": 42}})])
    monkeypatch.setattr(tumblr_extractor.requests, "get", fake)
    assert get_blog_info(CFG, "myblog")["posts"] == 42
    assert fake.calls[0]["url"].endswith("/blog/myblog/info")


def test_with_retries_retries_429_then_succeeds():
    responses = [FakeResponse({}, 429), FakeResponse({}, 503), FakeResponse({"ok": True})]
    sleeps = []
    resp = with_retries(lambda: responses.pop(0), max_attempts=3, delay=2.0, sleep_fn=sleeps.append)
    assert resp.json() == {"ok": True}
    assert sleeps == [2.0, 2.0]


def test_with_retries_does_not_retry_client_errors():
    calls = []

    def do_request():
        calls.append(1)
        return FakeResponse({}, 401)

    with pytest.raises(requests.HTTPError):
        with_retries(do_request, max_attempts=3, sleep_fn=lambda s: None)
    assert len(calls) == 1


def test_with_retries_gives_up_after_max_attempts():
    sleeps = []
    with pytest.raises(requests.HTTPError):
        with_retries(lambda: FakeResponse({}, 500), max_attempts=3, delay=1.0, sleep_fn=sleeps.append)
    assert sleeps == [1.0, 1.0]


def test_rate_limiter_spaces_requests():
    clock = iter([0.0, 0.0, 0.4, 1.0])
    sleeps = []
    limiter = RateLimiter(1.0)
    limiter.wait(time_fn=lambda: next(clock), sleep_fn=sleeps.append)
    limiter.wait(time_fn=lambda: next(clock), sleep_fn=sleeps.append)
    assert sleeps == [pytest.approx(0.6)]


def test_next_before_fallback_uses_oldest_timestamp():
    full = {"posts": [{"timestamp": 30}, {"timestamp": 10}, {"timestamp": 20}]}
    assert next_before(full, requested=3) == 10
    assert next_before(full, requested=5) is None
    assert next_before({"posts": [], "_links": {}}, requested=3) is None


def test_extract_posts_from_json_shapes(tmp_path):
    posts = [{"id": 1}, {"id": 2}]
    for i, payload in enumerate([{"meta": {}, "response": {"posts": posts}}, {"posts": posts}, posts]):
        path = tmp_path / f"dump{i}.json"
        path.write_text(json.dumps(payload), encoding="utf-8")
        assert extract_posts_from_json(str(path)) == posts


def test_extract_posts_from_json_rejects_other_shapes(tmp_path):
    path = tmp_path / "dump.json"
    path.write_text('{"items": []}', encoding="utf-8")
    with pytest.raises(ValueError):
        extract_posts_from_json(str(path))


def test_parse_posts_reports_record_index():
    posts = parse_posts([{"id": 1, "type": "PHOTO", "tags": ["a", ""]}])
    assert posts[0].id == "1" and posts[0].type == "photo" and posts[0].tags == ["a"]
    with pytest.raises(ValueError, match="Post record 1"):
        parse_posts([{"id": 1}, {"type": "text"}])
    with pytest.raises(ValueError, match="Post record 0"):
        parse_posts(["not a dict"])
