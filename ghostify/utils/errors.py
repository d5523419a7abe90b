"""
Structured logging helpers and exception types for the migration.

Every noteworthy event for a post (a fetch failure, a skipped post, a
successful export) is appended as one JSON object per line to a file under
``reports/migration`` so that a run can be reviewed after the fact.

``report_error``
    Record an error that occurred for a post.  An optional exception can be
    supplied and will be serialized to the log.

``report_ok``
    Record a successful step for a post.  Additional key/value information can
    be attached to the entry via the ``extra`` parameter.

The ``ERRORS`` dictionary maps event codes to human readable messages.
Codes not present in the dictionary fall back to the code itself.
"""

from __future__ import annotations

import json
import os
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

ERRORS: Dict[str, str] = {
    "FETCH_FAILED": "Failed to fetch posts from Tumblr",
    "UNSUPPORTED_TYPE": "Post type is not supported, placeholder rendered",
    "TRANSFORM_FAILED": "Failed to transform post",
    "DUPLICATE_POST": "Duplicate post id, later copy dropped",
    "VALIDATION_FAILED": "Export failed validation",
    "POST_TRANSFORMED": "Post transformed successfully",
    "EXPORT_WRITTEN": "Ghost import file written",
}

REPORT_DIR = os.path.join("reports", "migration")


class ConfigError(RuntimeError):
    """Raised when configuration is missing or invalid."""


class TumblrAPIError(RuntimeError):
    """Raised when the Tumblr API answers with an error status or bad payload."""


class PreFlightCheckError(Exception):
    """Raised when a pre-flight check against the Tumblr API fails."""


class ExportValidationError(ValueError):
    """Raised when an assembled export violates the Ghost import rules.

    ``violations`` holds every failed check, not just the first one.
    """

    def __init__(self, violations: Iterable[Any]) -> None:
        self.violations: List[Any] = list(violations)
        lines = "\n".join(f"  - {v}" for v in self.violations)
        super().__init__(f"Export failed validation with {len(self.violations)} violation(s):\n{lines}")


PostLike = Union[Mapping[str, Any], Any]


def _post_field(post: PostLike, name: str) -> Any:
    if isinstance(post, Mapping):
        return post.get(name)
    return getattr(post, name, None)


def _write_jsonl(path: str, data: Dict[str, Any]) -> None:
    """Append ``data`` as a JSON object followed by a newline to ``path``."""
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    with open(path, "a", encoding="utf-8") as f:
        json.dump(data, f, ensure_ascii=False)
        f.write("\n")


def _entry(code: str, post: PostLike) -> Dict[str, Any]:
    return {
        "code": code,
        "message": ERRORS.get(code, code),
        "id": _post_field(post, "id"),
        "slug": _post_field(post, "slug"),
        "title": _post_field(post, "title"),
    }


def report_error(
    code: str,
    post: PostLike,
    exc: Optional[BaseException] = None,
    *,
    report_dir: str = REPORT_DIR,
) -> Dict[str, Any]:
    """Log an error event for ``post``.

    Parameters
    ----------
    code:
        A key identifying the type of error.  If ``code`` is present in
        :data:`ERRORS` its value will be used as the message.
    post:
        The post associated with the error, either a mapping or a model.
        Only ``id``, ``slug`` and ``title`` are referenced.
    exc:
        Optional exception instance that triggered the error.  The string
        representation of the exception will be included in the log entry.
    report_dir:
        Directory holding ``errors.jsonl``.
    """
    entry = _entry(code, post)
    if exc is not None:
        entry["error"] = str(exc)
    print(f"[ERROR] {entry['message']} - {entry['id'] or ''}")
    _write_jsonl(os.path.join(report_dir, "errors.jsonl"), entry)
    return entry


def report_ok(
    code: str,
    post: PostLike,
    extra: Optional[Dict[str, Any]] = None,
    *,
    report_dir: str = REPORT_DIR,
) -> Dict[str, Any]:
    """Log a successful event for ``post``.

    Parameters
    ----------
    code:
        A key identifying the type of event.
    post:
        The post associated with the event.
    extra:
        Optional dictionary of additional fields to merge into the log entry.
    report_dir:
        Directory holding ``success.jsonl``.
    """
    entry = _entry(code, post)
    if extra:
        entry.update(extra)
    print(f"[OK] {entry['message']} - {entry['slug'] or entry['id'] or ''}")
    _write_jsonl(os.path.join(report_dir, "success.jsonl"), entry)
    return entry
