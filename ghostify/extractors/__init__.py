"""
Post sources: the Tumblr v2 API and saved JSON dumps.
"""

from .tumblr_extractor import (
    FetchResult,
    RateLimiter,
    extract_posts_from_json,
    fetch_all_posts,
    fetch_posts_page,
    get_blog_info,
    parse_posts,
    with_retries,
)

__all__ = [
    "FetchResult",
    "RateLimiter",
    "extract_posts_from_json",
    "fetch_all_posts",
    "fetch_posts_page",
    "get_blog_info",
    "parse_posts",
    "with_retries",
]
