from __future__ import annotations

import hashlib
import uuid


def stable_id(kind: str, key: str) -> str:
    """Deterministic 24-hex-char identifier (the length of a Ghost ObjectId)."""
    return hashlib.sha1(f"{kind}:{key}".encode("utf-8")).hexdigest()[:24]


def stable_uuid(key: str) -> str:
    return str(uuid.uuid5(uuid.NAMESPACE_URL, f"tumblr:{key}"))
