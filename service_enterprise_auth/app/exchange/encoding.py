"""
Wire encoding helpers for the verification gateway.

The gateway hashes the base64 *text* of ``reqData``/``respData`` rather than
the decoded bytes, and its form replies are split without percent-decoding.
Both behaviours are part of the gateway protocol and are reproduced here
as-is.
"""

from __future__ import annotations

import base64
import hashlib
import json
import random
import time
from datetime import datetime
from typing import Any, Callable, Dict, Mapping, Optional
from urllib.parse import urlencode


def compact_json(value: Any) -> str:
    """Compact JSON in insertion order, non-ASCII kept as UTF-8."""
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False)


def b64encode_text(text: str) -> str:
    return base64.b64encode(text.encode("utf-8")).decode("ascii")


def sha512_hex(text: str) -> str:
    """SHA-512 over the UTF-8 bytes of ``text``, lowercase hex."""
    return hashlib.sha512(text.encode("utf-8")).hexdigest()


def encode_form(fields: Mapping[str, Any]) -> str:
    """URL-form-encode ``fields``; ``None`` values are skipped."""
    return urlencode(
        [(key, str(value)) for key, value in fields.items() if value is not None],
        encoding="utf-8",
    )


def parse_form(body: Optional[str]) -> Dict[str, str]:
    """Split a form body into a mapping without percent-decoding values.

    Pairs without ``=`` are dropped; later duplicates win.
    """
    result: Dict[str, str] = {}
    if body is None or not body.strip():
        return result

    for pair in body.split("&"):
        key, sep, value = pair.partition("=")
        if sep:
            result[key] = value
    return result


def generate_order_id(
    current: datetime,
    *,
    ticks: Callable[[], int] = time.monotonic_ns,
    rng: Optional[random.Random] = None,
) -> str:
    """Return ``YYYYMMDD`` + 14-digit tick counter + 4-digit random suffix.

    Uniqueness is best-effort: the suffix only lowers the chance of two
    callers sharing a tick value.
    """
    suffix = (rng or random).randrange(10000)
    return f"{current:%Y%m%d}{ticks() % 10**14:014d}{suffix:04d}"
