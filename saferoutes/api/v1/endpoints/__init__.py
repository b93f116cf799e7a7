from saferoutes.api.v1.endpoints import bookmarks, safety, session, trips

__all__ = [
    "session",
    "trips",
    "bookmarks",
    "safety",
]
