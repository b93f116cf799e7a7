from fastapi import APIRouter

from saferoutes.api.v1.endpoints import bookmarks, safety, session, trips

api_router = APIRouter()
api_router.include_router(session.router)
api_router.include_router(trips.router)
api_router.include_router(bookmarks.router)
api_router.include_router(safety.router)
