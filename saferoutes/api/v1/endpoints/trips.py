from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Request

from saferoutes.api.deps import get_trip_history, get_user_uid
from saferoutes.core.enums import RouteMode
from saferoutes.core.responses import success_response
from saferoutes.services.trips import TripHistoryClient

router = APIRouter(prefix="/trips", tags=["Trips"])


@router.get("")
async def list_trips(
    request: Request,
    mode: RouteMode | None = Query(default=None),
    refresh: bool = Query(default=False),
    user_uid: str = Depends(get_user_uid),
    trips: TripHistoryClient = Depends(get_trip_history),
):
    if refresh:
        await trips.load(user_uid)
    return success_response(data=trips.read(user_uid, mode), request=request)


@router.post("/reload")
async def reload_trips(
    request: Request,
    user_uid: str = Depends(get_user_uid),
    trips: TripHistoryClient = Depends(get_trip_history),
):
    await trips.load(user_uid)
    return success_response(data=trips.read(user_uid), request=request)


@router.delete("/{trip_id}")
async def delete_trip(
    trip_id: str,
    request: Request,
    user_uid: str = Depends(get_user_uid),
    trips: TripHistoryClient = Depends(get_trip_history),
):
    await trips.remove(trip_id)
    await trips.load(user_uid)
    return success_response(data=trips.read(user_uid), request=request)
