"""Durable single-slot storage for the ticket store mirror.

Every backend maps a key to one serialized string, read once at startup and
overwritten wholesale after each mutation.  Three interchangeable backends:

* ``MemorySlotStorage`` — dict, for tests and throwaway sessions
* ``FileSlotStorage``   — one ``<key>.json`` file per slot, atomic replace
* ``RedisSlotStorage``  — ``GET`` / ``SET`` on a prefixed Redis key
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Protocol

from helpdesk.config import REDIS_KEY_PREFIX, REDIS_URL, STORAGE_BACKEND, STORAGE_DIR

logger = logging.getLogger(__name__)


class SlotStorage(Protocol):
    def read(self, key: str) -> str | None: ...

    def write(self, key: str, value: str) -> None: ...


class MemorySlotStorage:
    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._slots: dict[str, str] = dict(initial or {})

    def read(self, key: str) -> str | None:
        return self._slots.get(key)

    def write(self, key: str, value: str) -> None:
        self._slots[key] = value


class FileSlotStorage:
    """Stores each slot as ``<directory>/<key>.json``."""

    def __init__(self, directory: str | Path) -> None:
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def read(self, key: str) -> str | None:
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def write(self, key: str, value: str) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        # The slot holds either the previous or the new payload, never a partial one.
        fd, tmp = tempfile.mkstemp(dir=self.directory, prefix=f".{key}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(value)
            os.replace(tmp, self._path(key))
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise


class RedisSlotStorage:
    """Redis-backed slot.

    Parameters
    ----------
    redis_url : str
        Connection URL, used when no *client* is given.
    client :
        Any object exposing ``get(key)`` / ``set(key, value)``; a
        ``redis.Redis`` with ``decode_responses=True`` in production.
    """

    def __init__(
        self,
        redis_url: str | None = None,
        *,
        client=None,
        prefix: str = REDIS_KEY_PREFIX,
    ) -> None:
        if client is None:
            import redis
            client = redis.Redis.from_url(
                redis_url or REDIS_URL,
                decode_responses=True,
                socket_connect_timeout=2,
            )
        self._redis = client
        self._prefix = prefix

    def read(self, key: str) -> str | None:
        value = self._redis.get(self._prefix + key)
        if isinstance(value, bytes):
            value = value.decode("utf-8")
        return value

    def write(self, key: str, value: str) -> None:
        self._redis.set(self._prefix + key, value)


def storage_from_config(backend: str | None = None) -> SlotStorage:
    """Build the backend named by ``HELPDESK_STORAGE_BACKEND``."""
    backend = (backend or STORAGE_BACKEND).lower()
    if backend == "memory":
        return MemorySlotStorage()
    if backend == "file":
        return FileSlotStorage(STORAGE_DIR)
    if backend == "redis":
        return RedisSlotStorage(REDIS_URL)
    raise ValueError(f"Unknown storage backend: {backend!r}")
