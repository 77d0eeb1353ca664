
from __future__ import annotations

from .encoding import b64d, b64e, canonical_json, to_bytes

__all__ = [
    "b64d",
    "b64e",
    "canonical_json",
    "to_bytes",
]
