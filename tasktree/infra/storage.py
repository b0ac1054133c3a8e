from __future__ import annotations

import logging
from typing import Protocol

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from .models import KeyValueModel

logger = logging.getLogger(__name__)


class StorageError(RuntimeError):
    """The backing store could not be read or written."""


class StorageQuotaExceeded(StorageError):
    """A write was refused because the value exceeds the store capacity."""


class KeyValueStore(Protocol):
    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...


def _check_quota(key: str, value: str, max_bytes: int | None) -> None:
    if max_bytes is None:
        return
    size = len(value.encode("utf-8"))
    if size > max_bytes:
        raise StorageQuotaExceeded(
            f"value for {key!r} is {size} bytes, limit is {max_bytes}"
        )


class InMemoryKeyValueStore:
    def __init__(self, max_bytes: int | None = None) -> None:
        self._data: dict[str, str] = {}
        self._max_bytes = max_bytes

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        _check_quota(key, value, self._max_bytes)
        self._data[key] = value


class SqlKeyValueStore:
    """Key-value rows in the ``kv_store`` table, one session per call."""

    def __init__(self, session_factory: sessionmaker, max_bytes: int | None = None) -> None:
        self._session_factory = session_factory
        self._max_bytes = max_bytes

    def get(self, key: str) -> str | None:
        try:
            with self._session_factory() as session:
                row = session.get(KeyValueModel, key)
                return row.value if row else None
        except SQLAlchemyError as exc:
            raise StorageError(f"failed to read {key!r}") from exc

    def set(self, key: str, value: str) -> None:
        _check_quota(key, value, self._max_bytes)
        try:
            with self._session_factory() as session:
                row = session.get(KeyValueModel, key)
                if row is None:
                    session.add(KeyValueModel(key=key, value=value))
                else:
                    row.value = value
                session.commit()
        except SQLAlchemyError as exc:
            raise StorageError(f"failed to write {key!r}") from exc
        logger.debug("Stored key=%s bytes=%s", key, len(value))
