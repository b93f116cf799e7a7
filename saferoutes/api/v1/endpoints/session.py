from __future__ import annotations

from fastapi import APIRouter, Depends, Request, status

from saferoutes.api.deps import get_planning_session
from saferoutes.core.config import get_settings
from saferoutes.core.responses import success_response
from saferoutes.schemas.geo import GeoPoint
from saferoutes.schemas.session import OptionsUpdate, PickRequest, PlanOverrides, PointsUpdate, PreferencesUpdate
from saferoutes.schemas.trip import TripLogRequest
from saferoutes.services.coordinates import PRESETS
from saferoutes.services.planning import RoutePlanningSession

router = APIRouter(prefix="/session", tags=["Session"])


@router.get("")
async def get_session_state(request: Request, session: RoutePlanningSession = Depends(get_planning_session)):
    return success_response(data=session.snapshot(), request=request)


@router.get("/render")
async def get_render_model(request: Request, session: RoutePlanningSession = Depends(get_planning_session)):
    return success_response(data=session.render(), request=request)


@router.post("/pick")
async def arm_pick_target(
    payload: PickRequest,
    request: Request,
    session: RoutePlanningSession = Depends(get_planning_session),
):
    session.set_pick_target(payload.target)
    return success_response(data=session.snapshot(), request=request)


@router.post("/click")
async def map_click(
    payload: GeoPoint,
    request: Request,
    session: RoutePlanningSession = Depends(get_planning_session),
):
    await session.consume_click(payload)
    return success_response(data=session.snapshot(), request=request)


@router.patch("/points")
async def update_points(
    payload: PointsUpdate,
    request: Request,
    session: RoutePlanningSession = Depends(get_planning_session),
):
    await session.update(start=payload.start, end=payload.end)
    return success_response(data=session.snapshot(), request=request)


@router.patch("/options")
async def update_options(
    payload: OptionsUpdate,
    request: Request,
    session: RoutePlanningSession = Depends(get_planning_session),
):
    if payload.auto_refresh is not None:
        session.set_auto_refresh(payload.auto_refresh)
    await session.update(mode=payload.mode, time_of_day=payload.time_of_day)
    return success_response(data=session.snapshot(), request=request)


@router.patch("/preferences")
async def update_preferences(
    payload: PreferencesUpdate,
    request: Request,
    session: RoutePlanningSession = Depends(get_planning_session),
):
    for key, value in payload.model_dump(exclude_none=True).items():
        setattr(session.preferences, key, value)
    data = {
        "preferences": session.preferences,
        "badges": session.preferences.badges(),
    }
    return success_response(data=data, request=request)


@router.post("/plan")
async def plan_route(
    request: Request,
    payload: PlanOverrides | None = None,
    session: RoutePlanningSession = Depends(get_planning_session),
):
    overrides = payload or PlanOverrides()
    await session.plan(mode=overrides.mode, time_of_day=overrides.time_of_day)
    return success_response(data=session.snapshot(), request=request)


@router.post("/alternatives/{index}/select")
async def select_alternative(
    index: int,
    request: Request,
    session: RoutePlanningSession = Depends(get_planning_session),
):
    session.select_alternative_at(index)
    return success_response(data=session.snapshot(), request=request)


@router.post("/trips", status_code=status.HTTP_201_CREATED)
async def log_current_trip(
    payload: TripLogRequest,
    request: Request,
    session: RoutePlanningSession = Depends(get_planning_session),
):
    outcome = await session.log_current_trip(payload.user_uid or get_settings().default_user_uid)
    return success_response(data=outcome, request=request)


@router.get("/presets")
async def list_presets(request: Request):
    return success_response(data=PRESETS, request=request)


@router.post("/presets/{index}/apply")
async def apply_preset(
    index: int,
    request: Request,
    session: RoutePlanningSession = Depends(get_planning_session),
):
    await session.apply_preset(index)
    return success_response(data=session.snapshot(), request=request)
