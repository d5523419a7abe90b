"""
Tumblr API helper functions and dump reader for the Tumblr → Ghost migration.

This module implements the read-only interactions with the Tumblr v2 REST
API that the migration needs: paging through a blog's public posts with the
``/blog/{blog}/posts`` endpoint and reading ``/blog/{blog}/info``.  Requests
carry only the application's ``api_key``; private posts, which need OAuth,
are out of reach.  A simple rate limiter keeps to one request per
``request_interval`` and a retry wrapper handles transient network errors
and server-side rate limiting responses (429 or 5xx) with a fixed delay.

Posts can also be read from a JSON file saved earlier, so a migration can
be re-run without touching the network.

Usage example::

    from ghostify.extractors.tumblr_extractor import fetch_all_posts, parse_posts

    cfg = {"api_key": ..., "base_url": "https://api.tumblr.com/v2"}
    result = fetch_all_posts(cfg, "myblog.tumblr.com", limit=100)
    posts = parse_posts(result.posts)

"""

from __future__ import annotations

import json
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

import requests
from pydantic import ValidationError

from ghostify.models.tumblr_post import TumblrPost
from ghostify.utils.errors import TumblrAPIError

DEFAULT_BASE_URL = "https://api.tumblr.com/v2"
MAX_PAGE_SIZE = 20
RETRY_STATUSES = (429, 500, 502, 503, 504)

###############################################################################
# Rate limiting and retry utilities
###############################################################################


class RateLimiter:
    """
    Simple time-based rate limiter.  Ensures that consecutive requests are
    at least ``interval`` seconds apart.  Tumblr does not publish a
    per-second limit for key-authenticated reads; one request per second
    keeps well inside the daily quota.
    """

    def __init__(self, interval: float = 1.0) -> None:
        self.interval = max(0.0, float(interval))
        self._last: Optional[float] = None

    def wait(self, time_fn: Callable[[], float] = time.time, sleep_fn: Callable[[float], None] = time.sleep) -> None:
        now = time_fn()
        if self._last is not None:
            dt = now - self._last
            if dt < self.interval:
                sleep_fn(self.interval - dt)
        self._last = time_fn()


def with_retries(
    fn: Callable[[], requests.Response],
    *,
    max_attempts: int = 3,
    delay: float = 2.0,
    sleep_fn: Callable[[float], None] = time.sleep,
) -> requests.Response:
    """
    Execute a function returning a ``requests.Response``, retrying on
    transient HTTP errors.  Retries are attempted on status codes 429
    (too many requests), 5xx server errors and connection-level failures,
    waiting ``delay`` seconds between attempts.

    :param fn: A zero-argument callable that performs the HTTP request.
    :param max_attempts: Maximum number of attempts before giving up.
    :param delay: Seconds to wait between attempts.
    :param sleep_fn: Sleep function, replaceable in tests.
    :return: The successful ``requests.Response``.
    :raises requests.HTTPError: if all attempts fail or the status is not retryable.
    """
    attempt = 0
    while True:
        try:
            resp = fn()
            resp.raise_for_status()
            return resp
        except requests.HTTPError as e:
            status = e.response.status_code if e.response is not None else None
            if status not in RETRY_STATUSES or attempt >= max_attempts - 1:
                raise
            sleep_fn(delay)
            attempt += 1
        except requests.RequestException:
            if attempt >= max_attempts - 1:
                raise
            sleep_fn(delay)
            attempt += 1


###############################################################################
# API calls
###############################################################################


def _get(
    cfg: Dict[str, Any],
    blog_name: str,
    endpoint: str,
    params: Dict[str, Any],
    *,
    limiter: Optional[RateLimiter] = None,
    sleep_fn: Callable[[float], None] = time.sleep,
) -> Dict[str, Any]:
    base_url = (cfg.get("base_url") or DEFAULT_BASE_URL).rstrip("/")
    url = f"{base_url}/blog/{blog_name}/{endpoint}"
    query = {"api_key": cfg.get("api_key", ""), **params}

    def do_request() -> requests.Response:
        if limiter is not None:
            limiter.wait(sleep_fn=sleep_fn)
        return requests.get(url, params=query, timeout=cfg.get("timeout", 30))

    resp = with_retries(
        do_request,
        max_attempts=int(cfg.get("max_attempts", 3)),
        delay=float(cfg.get("retry_delay", 2.0)),
        sleep_fn=sleep_fn,
    )
    try:
        payload = resp.json()
    except ValueError as e:
        raise TumblrAPIError(f"Tumblr API returned a response that is not JSON: {e}") from e

    if not isinstance(payload, dict):
        raise TumblrAPIError("Tumblr API payload is not a JSON object")
    meta = payload.get("meta") or {}
    status = meta.get("status", resp.status_code)
    if status != 200:
        raise TumblrAPIError(f"Tumblr API error {status}: {meta.get('msg', 'unknown error')}")
    response = payload.get("response")
    if not isinstance(response, dict):
        raise TumblrAPIError("Tumblr API payload has no 'response' object")
    return response


def fetch_posts_page(
    cfg: Dict[str, Any],
    blog_name: str,
    before: Optional[int] = None,
    limit: int = MAX_PAGE_SIZE,
    *,
    limiter: Optional[RateLimiter] = None,
    sleep_fn: Callable[[float], None] = time.sleep,
) -> Dict[str, Any]:
    """
    Fetch one page of posts, newest first.

    :param before: Only return posts published before this Unix timestamp.
    :param limit: Posts per page, capped at Tumblr's maximum of 20.
    :return: The ``response`` object: ``posts``, ``blog`` and, when there is
        another page, ``_links.next``.
    """
    params: Dict[str, Any] = {"limit": max(1, min(MAX_PAGE_SIZE, int(limit)))}
    if before:
        params["before"] = before
    return _get(cfg, blog_name, "posts", params, limiter=limiter, sleep_fn=sleep_fn)


def next_before(response: Dict[str, Any], requested: int) -> Optional[int]:
    """
    Cursor for the page after ``response``.

    Tumblr names the next page in ``_links.next.query_params.before``.  When
    a response carries no ``_links`` at all, a full page continues from its
    oldest timestamp; a short page is the last one.
    """
    if "_links" in response:
        links = response.get("_links") or {}
        before = ((links.get("next") or {}).get("query_params") or {}).get("before")
        try:
            return int(before) if before else None
        except (TypeError, ValueError):
            return None

    posts = response.get("posts") or []
    if not posts or len(posts) < requested:
        return None
    oldest = min((int(p.get("timestamp") or 0) for p in posts if isinstance(p, dict)), default=0)
    return oldest or None


@dataclass
class FetchResult:
    posts: List[Dict[str, Any]] = field(default_factory=list)
    error: Optional[Exception] = None

    @property
    def complete(self) -> bool:
        return self.error is None


def fetch_all_posts(
    cfg: Dict[str, Any],
    blog_name: str,
    limit: int = 1000,
    *,
    limiter: Optional[RateLimiter] = None,
    sleep_fn: Callable[[float], None] = time.sleep,
) -> FetchResult:
    """
    Page through a blog's posts, newest first, until ``limit`` posts are
    collected, a page comes back empty, or there is no next page.

    A request that still fails after its retries ends the loop; the posts
    fetched up to that point are kept and the exception is returned in
    :attr:`FetchResult.error`.
    """
    if limiter is None:
        limiter = RateLimiter(cfg.get("request_interval", 1.0))
    page_size = max(1, min(MAX_PAGE_SIZE, int(cfg.get("page_size", MAX_PAGE_SIZE))))

    result = FetchResult()
    before: Optional[int] = None
    while len(result.posts) < limit:
        requested = min(page_size, limit - len(result.posts))
        try:
            response = fetch_posts_page(cfg, blog_name, before, requested, limiter=limiter, sleep_fn=sleep_fn)
        except (requests.RequestException, TumblrAPIError) as e:
            result.error = e
            break

        posts = [p for p in response.get("posts") or [] if isinstance(p, dict)]
        if not posts:
            break
        result.posts.extend(posts[: limit - len(result.posts)])

        cursor = next_before(response, requested)
        if cursor is None or cursor == before:
            break
        before = cursor
    return result


def get_blog_info(
    cfg: Dict[str, Any],
    blog_name: str,
    *,
    sleep_fn: Callable[[float], None] = time.sleep,
) -> Dict[str, Any]:
    response = _get(cfg, blog_name, "info", {}, sleep_fn=sleep_fn)
    return response.get("blog") or {}


###############################################################################
# Offline input
###############################################################################


def extract_posts_from_json(file_path: str) -> List[Dict[str, Any]]:
    """Read raw post records from a saved file.

    Accepts a full API response (``{"meta": ..., "response": {"posts": [...]}}``),
    an object with a ``posts`` list, or a bare list of posts.

    :raises ValueError: if the file holds none of these shapes.
    """
    with open(file_path, "r", encoding="utf-8") as f:
        data = json.load(f)

    if isinstance(data, dict) and isinstance(data.get("response"), dict):
        data = data["response"]
    if isinstance(data, dict) and "posts" in data:
        data = data["posts"]
    if not isinstance(data, list):
        raise ValueError(f"{file_path}: expected a list of posts or an object with a 'posts' list")
    return data


def parse_post(record: Any, index: int = 0) -> TumblrPost:
    if not isinstance(record, dict):
        raise ValueError(f"Post record {index} is not an object")
    try:
        return TumblrPost.model_validate(record)
    except ValidationError as e:
        raise ValueError(f"Post record {index} is malformed: {e}") from e


def parse_posts(records: List[Any]) -> List[TumblrPost]:
    return [parse_post(record, index) for index, record in enumerate(records)]
