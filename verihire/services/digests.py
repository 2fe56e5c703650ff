"""Keyed digests over canonical JSON.

Credentials and attestation outcomes are fingerprinted with HMAC-SHA256
so that a leaked digest cannot be recomputed from public inputs alone.
"""

from __future__ import annotations

import hashlib
import hmac
import json
from typing import Any


def canonical_json(payload: Any) -> str:
    """Serialise *payload* deterministically: sorted keys, no whitespace."""
    return json.dumps(payload, sort_keys=True, separators=(",", ":"), default=str)


def keyed_digest(payload: Any, key: str) -> str:
    """Return the hex HMAC-SHA256 of ``canonical_json(payload)`` under *key*."""
    return hmac.new(
        key.encode("utf-8"),
        canonical_json(payload).encode("utf-8"),
        hashlib.sha256,
    ).hexdigest()
