"""
Content hashing for change detection
"""

import hashlib
import json
from typing import Any


def canonical_json(payload: Any) -> str:
    """Serialize with sorted keys and no whitespace so equal payloads hash equal."""
    return json.dumps(payload, sort_keys=True, separators=(",", ":"), default=str, ensure_ascii=False)


def hash_payload(payload: Any) -> str:
    """SHA-256 hex digest of the canonical JSON form."""
    return hashlib.sha256(canonical_json(payload).encode("utf-8")).hexdigest()
