from __future__ import annotations

import abc
import logging
from collections.abc import Callable
from pathlib import Path
from typing import Generic, TypeVar

from anyio import to_thread
from pydantic import TypeAdapter, ValidationError
from redis.asyncio import Redis
from redis.exceptions import RedisError

from saferoutes.core.exceptions import StorageUnavailableError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class StorageBackend(abc.ABC):
    """Durable key/value storage for serialized client state."""

    @abc.abstractmethod
    async def read(self, key: str) -> str | None:
        raise NotImplementedError

    @abc.abstractmethod
    async def write(self, key: str, value: str) -> None:
        raise NotImplementedError


class FileStorageBackend(StorageBackend):
    def __init__(self, directory: str | Path) -> None:
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def _read_sync(self, key: str) -> str | None:
        path = self._path(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as exc:
            raise StorageUnavailableError(f"Cannot read {path}: {exc}") from exc

    def _write_sync(self, key: str, value: str) -> None:
        path = self._path(key)
        tmp_path = path.with_suffix(".json.tmp")
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(value, encoding="utf-8")
            tmp_path.replace(path)
        except OSError as exc:
            raise StorageUnavailableError(f"Cannot write {path}: {exc}") from exc

    async def read(self, key: str) -> str | None:
        return await to_thread.run_sync(self._read_sync, key)

    async def write(self, key: str, value: str) -> None:
        await to_thread.run_sync(self._write_sync, key, value)


class RedisStorageBackend(StorageBackend):
    def __init__(self, redis: Redis) -> None:
        self.redis = redis

    async def read(self, key: str) -> str | None:
        try:
            value = await self.redis.get(key)
            if isinstance(value, bytes):
                value = value.decode("utf-8")
        except (RedisError, UnicodeDecodeError) as exc:
            raise StorageUnavailableError(f"Cannot read {key}: {exc}") from exc
        return value

    async def write(self, key: str, value: str) -> None:
        try:
            await self.redis.set(key, value)
        except RedisError as exc:
            raise StorageUnavailableError(f"Cannot write {key}: {exc}") from exc


class PersistentValue(Generic[T]):
    """A typed value stored under one namespaced key.

    ``load`` is total: a missing entry, unreadable storage or undecodable data
    all produce ``default_factory()``. ``save`` raises ``StorageUnavailableError``.
    """

    def __init__(
        self,
        backend: StorageBackend,
        key: str,
        adapter: TypeAdapter[T],
        default_factory: Callable[[], T],
    ) -> None:
        self.backend = backend
        self.key = key
        self.adapter = adapter
        self.default_factory = default_factory

    async def load(self) -> T:
        try:
            raw = await self.backend.read(self.key)
        except StorageUnavailableError as exc:
            logger.warning("Persistent value unreadable, using default", extra={"key": self.key, "error": exc.message})
            return self.default_factory()
        if raw is None:
            return self.default_factory()
        try:
            return self.adapter.validate_json(raw)
        except ValidationError:
            logger.warning("Persistent value is corrupt, using default", extra={"key": self.key})
            return self.default_factory()

    async def save(self, value: T) -> None:
        await self.backend.write(self.key, self.adapter.dump_json(value).decode("utf-8"))
