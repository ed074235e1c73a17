"""
Canonical serialization of room state.

Used wherever state is written out or compared across runs: the CLI's JSON
output, the preference file, the event stream recorder, and state hashes.
"""

import hashlib
import json
from typing import Any


def canonicalize(obj: Any) -> Any:
    """
    Convert arbitrary nested dict/list to canonical form.

    Rules:
    - dict keys sorted alphabetically
    - tuples converted to lists
    - recursive normalization
    """
    if isinstance(obj, dict):
        return {k: canonicalize(obj[k]) for k in sorted(obj.keys())}
    if isinstance(obj, (list, tuple)):
        return [canonicalize(x) for x in obj]
    return obj


def canonical_json_bytes(obj: Any) -> bytes:
    """Deterministic UTF-8 JSON bytes without whitespace."""
    canon = canonicalize(obj)
    s = json.dumps(canon, sort_keys=True, separators=(",", ":"), ensure_ascii=False)
    return s.encode("utf-8")


def canonical_json_str(obj: Any) -> str:
    return canonical_json_bytes(obj).decode("utf-8")


def state_hash(state_dict: Any) -> str:
    """SHA-256 over the canonical bytes of a serialized state."""
    return hashlib.sha256(canonical_json_bytes(state_dict)).hexdigest()
