# events/serialization.py
"""
Canonical serialization for event payloads.

Identical payloads produce identical hashes regardless of dict ordering,
so a stored payload can be verified after retrieval.
"""

import hashlib
import json
from typing import Any, Dict


def canonical_json(data: Dict[str, Any]) -> str:
    """
    Convert a dictionary to a canonical JSON string.

    Keys are sorted recursively and whitespace is minimal.

    Example:
        >>> canonical_json({"b": 2, "a": 1})
        '{"a":1,"b":2}'
    """
    return json.dumps(
        data,
        sort_keys=True,
        separators=(',', ':'),
        ensure_ascii=False,
        default=str,
    )


def compute_payload_hash(data: Dict[str, Any]) -> str:
    """Return the 64-character SHA-256 hex digest of ``canonical_json(data)``."""
    return hashlib.sha256(canonical_json(data).encode("utf-8")).hexdigest()
