from __future__ import annotations

import base64
import hashlib
import hmac


def generate_hash(data: str, secret: str) -> str:
    """base64 HMAC-SHA-256 of ``data`` keyed by ``secret``."""
    digest = hmac.new(secret.encode("utf-8"), data.encode("utf-8"), hashlib.sha256).digest()
    return base64.b64encode(digest).decode("ascii")


def verify_hash(data: str, tag: str, secret: str) -> bool:
    return hmac.compare_digest(generate_hash(data, secret), tag)
