from __future__ import annotations

from fastapi import APIRouter, Depends, Request, status

from saferoutes.api.deps import get_bookmark_store, get_planning_session
from saferoutes.core.exceptions import NotFoundError
from saferoutes.core.responses import success_response
from saferoutes.schemas.bookmark import BookmarkCreate
from saferoutes.services.bookmarks import BookmarkStore
from saferoutes.services.planning import RoutePlanningSession

router = APIRouter(prefix="/bookmarks", tags=["Bookmarks"])


def _listing(store: BookmarkStore) -> dict:
    return {
        "items": store.items(),
        "persistent": store.persistent,
    }


@router.get("")
async def list_bookmarks(request: Request, store: BookmarkStore = Depends(get_bookmark_store)):
    return success_response(data=_listing(store), request=request)


@router.post("", status_code=status.HTTP_201_CREATED)
async def add_bookmark(
    payload: BookmarkCreate,
    request: Request,
    store: BookmarkStore = Depends(get_bookmark_store),
):
    created = await store.add(payload.name, payload.start, payload.end)
    data = _listing(store)
    data["created"] = created
    return success_response(data=data, request=request)


@router.delete("/{bookmark_id}")
async def remove_bookmark(
    bookmark_id: str,
    request: Request,
    store: BookmarkStore = Depends(get_bookmark_store),
):
    if not await store.remove(bookmark_id):
        raise NotFoundError("Bookmark not found", details={"bookmark_id": bookmark_id})
    return success_response(data=_listing(store), request=request)


@router.post("/{bookmark_id}/use")
async def use_bookmark(
    bookmark_id: str,
    request: Request,
    store: BookmarkStore = Depends(get_bookmark_store),
    session: RoutePlanningSession = Depends(get_planning_session),
):
    bookmark = store.get(bookmark_id)
    await session.use_bookmark(bookmark)
    return success_response(data=session.snapshot(), request=request)
