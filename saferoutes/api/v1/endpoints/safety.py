from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Request, status

from saferoutes.api.deps import get_api_client, get_user_uid
from saferoutes.core.enums import TimeBucket
from saferoutes.core.responses import success_response
from saferoutes.schemas.route import ScoreRequest
from saferoutes.schemas.safety import (
    AutoSOSSignals,
    CommunityReportCreate,
    CompanionRequestCreate,
    GuardianNotifyRequest,
    LiveShareRequest,
    SOSTriggerRequest,
)
from saferoutes.services.backend_client import SafeRoutesApiClient
from saferoutes.services.coordinates import make_point

router = APIRouter(prefix="/safety", tags=["Safety"])


@router.get("/alerts")
async def list_alerts(
    request: Request,
    lat: float = Query(ge=-90, le=90),
    lon: float = Query(ge=-180, le=180),
    time_of_day: TimeBucket = Query(default=TimeBucket.DAY),
    api: SafeRoutesApiClient = Depends(get_api_client),
):
    alerts = await api.alerts(make_point(lat, lon), time_of_day)
    return success_response(data=alerts, request=request)


@router.post("/score")
async def score_segments(
    payload: ScoreRequest,
    request: Request,
    api: SafeRoutesApiClient = Depends(get_api_client),
):
    result = await api.score_segments(payload)
    return success_response(data=result, request=request)


@router.post("/reports", status_code=status.HTTP_201_CREATED)
async def submit_report(
    payload: CommunityReportCreate,
    request: Request,
    api: SafeRoutesApiClient = Depends(get_api_client),
):
    report_id = await api.submit_report(payload)
    return success_response(data={"report_id": report_id}, request=request)


@router.post("/sos")
async def trigger_sos(
    payload: SOSTriggerRequest,
    request: Request,
    api: SafeRoutesApiClient = Depends(get_api_client),
):
    ack = await api.trigger_sos(payload)
    return success_response(data=ack, request=request)


@router.post("/sos/auto-check")
async def auto_sos_check(
    payload: AutoSOSSignals,
    request: Request,
    api: SafeRoutesApiClient = Depends(get_api_client),
):
    result = await api.auto_sos_check(payload)
    return success_response(data=result, request=request)


@router.post("/companions/request", status_code=status.HTTP_201_CREATED)
async def request_companion(
    payload: CompanionRequestCreate,
    request: Request,
    api: SafeRoutesApiClient = Depends(get_api_client),
):
    request_id = await api.request_companion(payload)
    return success_response(data={"request_id": request_id}, request=request)


@router.get("/companions/match")
async def match_companions(
    request: Request,
    user_uid: str = Depends(get_user_uid),
    api: SafeRoutesApiClient = Depends(get_api_client),
):
    matches = await api.match_companions(user_uid)
    return success_response(data=matches, request=request)


@router.post("/share")
async def share_location(
    payload: LiveShareRequest,
    request: Request,
    api: SafeRoutesApiClient = Depends(get_api_client),
):
    text = await api.share_location(payload)
    return success_response(data={"text": text}, request=request)


@router.post("/guardians/notify")
async def notify_guardians(
    payload: GuardianNotifyRequest,
    request: Request,
    api: SafeRoutesApiClient = Depends(get_api_client),
):
    ack = await api.notify_guardians(payload)
    return success_response(data=ack, request=request)
