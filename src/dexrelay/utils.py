"""Helpers shared by order construction and request building."""

import random
import time
from datetime import datetime, timezone
from typing import Any, Mapping
from urllib.parse import quote

MAX_UINT256 = 2**256 - 1


def generate_pseudo_random_256_bit_number() -> int:
    """Generate an order salt uniformly distributed over [0, 2**256).

    Uses the module-level Mersenne Twister, which is NOT cryptographically
    secure. Salts only need to make otherwise-identical orders hash
    differently; they never need to be unpredictable.
    """
    return random.getrandbits(256)


def get_real_expiration(expiration: int) -> int:
    """Convert a relative expiration (seconds) into a unix timestamp.

    0 means "never expires" and is passed through unchanged.
    """
    if expiration == 0:
        return 0
    return int(time.time()) + expiration


def to_iso8601(value: datetime) -> str:
    """Render a datetime as ISO-8601 UTC with millisecond precision.

    Naive datetimes are taken to be UTC already.

    Example: 2020-01-02T03:04:05.678Z
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    millis = value.microsecond // 1000
    return value.strftime("%Y-%m-%dT%H:%M:%S") + f".{millis:03d}Z"


def _encode(value: Any) -> str:
    if isinstance(value, bool):
        value = "true" if value else "false"
    return quote(str(value), safe="")


def stringify_query(params: Mapping[str, Any]) -> str:
    """Build a query string from a mapping of filters.

    Keys are emitted in sorted order. None values are dropped. Lists are
    rendered in comma format: each element is encoded on its own and the
    elements are joined with a literal comma. Callers that want a single
    pre-joined string (where the comma itself gets encoded) pass a str.
    """
    parts = []
    for key in sorted(params):
        value = params[key]
        if value is None:
            continue
        if isinstance(value, (list, tuple)):
            if not value:
                continue
            encoded = ",".join(_encode(item) for item in value)
        else:
            encoded = _encode(value)
        parts.append(f"{_encode(key)}={encoded}")
    return "&".join(parts)
