"""Durable key/value storage for store snapshots.

Backends only move raw strings. Serialization and the decision to fall back
to a cold cache live in the stores; backends let their errors propagate.
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Protocol

import redis

from coco.core.config import Settings

logger = logging.getLogger(__name__)


class StateStorage(Protocol):
    def load(self, key: str) -> str | None: ...

    def save(self, key: str, raw: str) -> None: ...


class MemoryStorage:
    """Dict-backed storage. Contents vanish with the process."""

    def __init__(self) -> None:
        self._data: dict[str, str] = {}

    def load(self, key: str) -> str | None:
        return self._data.get(key)

    def save(self, key: str, raw: str) -> None:
        self._data[key] = raw


class FileStorage:
    """One JSON file per key under ``directory``."""

    def __init__(self, directory: str | Path) -> None:
        self._directory = Path(directory).expanduser()

    def _path(self, key: str) -> Path:
        return self._directory / f"{key}.json"

    def load(self, key: str) -> str | None:
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def save(self, key: str, raw: str) -> None:
        self._directory.mkdir(parents=True, exist_ok=True)
        # Readers see the old snapshot or the new one, never a partial write
        fd, tmp_name = tempfile.mkstemp(dir=self._directory, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(raw)
            os.replace(tmp_name, self._path(key))
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise


class RedisStorage:
    """One Redis string per key. Snapshots never expire."""

    def __init__(self, client: redis.Redis, prefix: str = "coco:") -> None:
        self.client = client
        self._prefix = prefix

    @classmethod
    def from_url(cls, url: str, *, socket_timeout: float | None = None) -> RedisStorage:
        return cls(
            redis.Redis.from_url(
                url,
                socket_timeout=socket_timeout,
                socket_connect_timeout=socket_timeout,
            )
        )

    def load(self, key: str) -> str | None:
        data = self.client.get(self._prefix + key)
        if data is None:
            return None
        if isinstance(data, bytes):
            return data.decode("utf-8")
        return data

    def save(self, key: str, raw: str) -> None:
        self.client.set(self._prefix + key, raw)


def build_storage(settings: Settings) -> StateStorage:
    """Pick the storage backend named by ``settings.storage_backend``."""
    if settings.storage_backend == "redis":
        logger.debug("Using Redis storage at %s", settings.redis_url)
        return RedisStorage.from_url(
            settings.redis_url, socket_timeout=settings.redis_socket_timeout_seconds
        )
    if settings.storage_backend == "memory":
        return MemoryStorage()
    logger.debug("Using file storage under %s", settings.storage_path)
    return FileStorage(settings.storage_path)
