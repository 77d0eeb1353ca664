
from __future__ import annotations

import base64
import binascii
import json
import re
from typing import Any, Mapping


def b64e(data: bytes) -> str:
    """URL-safe base64 encode without padding"""
    return base64.urlsafe_b64encode(data).decode("ascii").rstrip("=")


_B64URL = re.compile(r"[A-Za-z0-9_-]*")


def b64d(value: str) -> bytes:
    """URL-safe base64 decode that tolerates missing padding"""
    if not _B64URL.fullmatch(value):
        raise binascii.Error(f"Not base64url: {value!r}")
    pad = "=" * (-len(value) % 4)
    return base64.urlsafe_b64decode((value + pad).encode("ascii"))


def canonical_json(obj: Mapping[str, Any]) -> bytes:
    """Stable JSON encoding (sorted keys, compact separators) used for headers and thumbprints"""
    return json.dumps(obj, separators=(",", ":"), sort_keys=True).encode("utf-8")


def to_bytes(value: bytes | str) -> bytes:
    if isinstance(value, str):
        return value.encode("utf-8")
    return bytes(value)
