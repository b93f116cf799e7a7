from saferoutes.services.backend_client import SafeRoutesApiClient
from saferoutes.services.bookmarks import BookmarkStore
from saferoutes.services.coordinates import CoordinateSelection
from saferoutes.services.planning import RoutePlanningSession
from saferoutes.services.trips import TripHistoryClient

__all__ = [
    "SafeRoutesApiClient",
    "BookmarkStore",
    "CoordinateSelection",
    "RoutePlanningSession",
    "TripHistoryClient",
]
