"""Stable structural hashing for model and statement objects."""

from __future__ import annotations

import hashlib
import json
from typing import Any


def stable_hash(*parts: Any) -> int:
    """Hash an ordered tuple of components reproducibly across processes.

    Components must be JSON-serializable (nested tuples/lists are fine);
    anything else is rendered with ``str``. The digest is truncated to 60 bits
    so the result is always a positive machine-sized int.
    """
    canonical = json.dumps(parts, sort_keys=True, separators=(",", ":"), default=str)
    return int(hashlib.sha256(canonical.encode()).hexdigest()[:15], 16)
