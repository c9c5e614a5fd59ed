"""
Content hashing helpers — canonical digests for identities and store paths.
"""

from __future__ import annotations

import hashlib
import json
from typing import Any

# Length of the hash prefix used in store paths
STORE_HASH_LEN = 32


def canonical_json(data: Any) -> str:
    """Serialize to JSON with sorted keys and no whitespace variance."""
    return json.dumps(data, sort_keys=True, separators=(",", ":"), default=str)


def content_hash(data: Any) -> str:
    """SHA-256 hex digest of the canonical JSON form of ``data``."""
    return hashlib.sha256(canonical_json(data).encode("utf-8")).hexdigest()


def short_hash(digest: str) -> str:
    """Trim a digest to the store-path prefix length."""
    return digest[:STORE_HASH_LEN]
