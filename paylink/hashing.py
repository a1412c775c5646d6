"""
One-way digests for client security codes.
"""

from __future__ import annotations

import hashlib
import hmac


def hash_secret(plaintext: str) -> str:
    return hashlib.sha256(plaintext.encode("utf-8")).hexdigest()


def digests_match(presented: str, stored: str) -> bool:
    """Constant-time comparison of two hex digests."""
    return hmac.compare_digest(presented.encode("ascii"), stored.encode("ascii"))
