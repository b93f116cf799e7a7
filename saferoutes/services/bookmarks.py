from __future__ import annotations

import logging
import time

from pydantic import TypeAdapter

from saferoutes.core.exceptions import NotFoundError, StorageUnavailableError
from saferoutes.schemas.bookmark import Bookmark
from saferoutes.schemas.geo import GeoPoint
from saferoutes.services.storage import PersistentValue, StorageBackend

logger = logging.getLogger(__name__)

DEFAULT_NAMESPACE = "saferoutes.bookmarks"
DEFAULT_LIMIT = 20

_bookmark_list = TypeAdapter(list[Bookmark])


class BookmarkStore:
    """Client-local, most-recent-first bookmark collection.

    Storage failures never reach the caller: the store logs them and keeps
    working in memory for the rest of the session (``persistent`` turns False).
    """

    def __init__(
        self,
        backend: StorageBackend,
        namespace: str = DEFAULT_NAMESPACE,
        limit: int = DEFAULT_LIMIT,
    ) -> None:
        self.limit = max(1, limit)
        self.persistent = True
        self._value: PersistentValue[list[Bookmark]] = PersistentValue(
            backend=backend,
            key=namespace,
            adapter=_bookmark_list,
            default_factory=list,
        )
        self._items: list[Bookmark] = []

    async def load(self) -> list[Bookmark]:
        self._items = (await self._value.load())[: self.limit]
        return self.items()

    def items(self) -> list[Bookmark]:
        return list(self._items)

    def get(self, bookmark_id: str) -> Bookmark:
        for item in self._items:
            if item.id == bookmark_id:
                return item
        raise NotFoundError("Bookmark not found", details={"bookmark_id": bookmark_id})

    def _new_id(self) -> str:
        candidate = int(time.time() * 1000)
        taken = {item.id for item in self._items}
        while str(candidate) in taken:
            candidate += 1
        return str(candidate)

    async def add(self, name: str, start: GeoPoint, end: GeoPoint) -> Bookmark | None:
        normalized = name.strip()
        if not normalized:
            return None

        bookmark = Bookmark(id=self._new_id(), name=normalized, start=start, end=end)
        self._items = [bookmark, *self._items][: self.limit]
        await self._persist()
        return bookmark

    async def remove(self, bookmark_id: str) -> bool:
        remaining = [item for item in self._items if item.id != bookmark_id]
        if len(remaining) == len(self._items):
            return False
        self._items = remaining
        await self._persist()
        return True

    @staticmethod
    def use(bookmark: Bookmark) -> tuple[GeoPoint, GeoPoint]:
        return bookmark.start, bookmark.end

    async def _persist(self) -> None:
        if not self.persistent:
            return
        try:
            await self._value.save(self._items)
        except StorageUnavailableError as exc:
            logger.warning(
                "Bookmark storage unavailable, keeping bookmarks in memory",
                extra={"key": self._value.key, "error": exc.message},
            )
            self.persistent = False
