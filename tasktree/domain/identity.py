from __future__ import annotations

import secrets
import string
import time
from datetime import datetime, timezone

_ALPHABET = string.digits + string.ascii_lowercase


def _now_ms() -> int:
    return int(time.time() * 1000)


class IdGenerator:
    """Builds ids shaped ``<epoch-ms>-<sequence>-<random>``.

    The sequence starts at the epoch-ms of construction and grows by one per
    call, so two ids from the same generator never collide even inside the
    same millisecond.
    """

    def __init__(self, seed: int | None = None) -> None:
        self._counter = _now_ms() if seed is None else seed

    def __call__(self) -> str:
        self._counter += 1
        suffix = "".join(secrets.choice(_ALPHABET) for _ in range(9))
        return f"{_now_ms()}-{self._counter}-{suffix}"


generate_id = IdGenerator()


def timestamp_from_id(entity_id: object) -> int | None:
    """Epoch-ms prefix of an id, if it carries one."""
    if isinstance(entity_id, bool):
        return None
    if isinstance(entity_id, (int, float)):
        raw: object = entity_id
    elif isinstance(entity_id, str):
        raw = entity_id.split("-", 1)[0]
        if not raw.isdigit():
            return None
    else:
        return None
    try:
        return int(raw)
    except (ValueError, OverflowError):
        return None


def datetime_from_ms(millis: int | float) -> datetime | None:
    """UTC datetime for an epoch-ms value; ``None`` when out of range."""
    try:
        return datetime.fromtimestamp(millis / 1000, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return None
