from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import BaseModel, TypeAdapter, ValidationError

from saferoutes.core.config import get_settings
from saferoutes.core.enums import TimeBucket
from saferoutes.core.exceptions import NotFoundError, TransportError
from saferoutes.schemas.geo import GeoPoint
from saferoutes.schemas.route import PlanRequest, PlanResponse, ScoreRequest, ScoreResponse
from saferoutes.schemas.safety import (
    Alert,
    AutoSOSResult,
    AutoSOSSignals,
    CommunityReportCreate,
    CompanionMatch,
    CompanionRequestCreate,
    GuardianNotifyRequest,
    LiveShareRequest,
    SOSTriggerRequest,
)
from saferoutes.schemas.trip import Trip, TripCreate, TripSummary

logger = logging.getLogger(__name__)

_trip_list = TypeAdapter(list[Trip])
_alert_list = TypeAdapter(list[Alert])
_match_list = TypeAdapter(list[CompanionMatch])


def _parse(model: type[BaseModel], data: Any, operation: str):
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        raise TransportError(f"{operation}: malformed response", details={"error_count": exc.error_count()}) from exc


class SafeRoutesApiClient:
    """HTTP client for the SafeRoutes backend.

    Every network or decoding failure surfaces as ``TransportError``. The client
    never retries; callers decide whether to try again.
    """

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        settings = get_settings()
        self.base_url = (base_url or settings.backend_url).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.backend_timeout_sec
        self._transport = transport

    async def _request(
        self,
        method: str,
        path: str,
        *,
        payload: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
    ) -> Any:
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.request(
                    method,
                    f"{self.base_url}{path}",
                    json=payload,
                    params=params,
                )
        except httpx.TimeoutException as exc:
            logger.warning("Backend request timed out", extra={"method": method, "path": path})
            raise TransportError(f"timeout:{method} {path}") from exc
        except httpx.HTTPError as exc:
            logger.warning("Backend request failed", extra={"method": method, "path": path, "error": str(exc)})
            raise TransportError(f"network:{method} {path}:{exc}") from exc

        if response.status_code == 404:
            raise NotFoundError(f"{path} not found", details={"body": response.text[:240]})
        if response.status_code >= 400:
            logger.warning(
                "Backend responded with an error",
                extra={"method": method, "path": path, "status_code": response.status_code},
            )
            raise TransportError(
                f"http_{response.status_code}:{method} {path}",
                details={"status_code": response.status_code, "body": response.text[:240]},
            )

        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as exc:
            # JSONDecodeError and UnicodeDecodeError both derive from ValueError.
            raise TransportError(f"invalid_json:{method} {path}") from exc

    async def _get_dict(self, path: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        data = await self._request("GET", path, params=params)
        if not isinstance(data, dict):
            raise TransportError(f"invalid_payload:GET {path}")
        return data

    async def _post_dict(self, path: str, payload: dict[str, Any]) -> dict[str, Any]:
        data = await self._request("POST", path, payload=payload)
        if not isinstance(data, dict):
            raise TransportError(f"invalid_payload:POST {path}")
        return data

    async def plan_route(self, request: PlanRequest) -> PlanResponse:
        data = await self._post_dict("/api/routes/plan", request.model_dump(mode="json"))
        return _parse(PlanResponse, data, "plan_route")

    async def score_segments(self, request: ScoreRequest) -> ScoreResponse:
        data = await self._post_dict("/api/routes/score", request.model_dump(mode="json"))
        return _parse(ScoreResponse, data, "score_segments")

    async def list_trips(self, user_uid: str) -> list[Trip]:
        data = await self._get_dict("/api/trips", {"user_uid": user_uid})
        try:
            return _trip_list.validate_python(data.get("trips") or [])
        except ValidationError as exc:
            raise TransportError("list_trips: malformed response") from exc

    async def trip_summary(self, user_uid: str) -> TripSummary:
        data = await self._get_dict("/api/trips/summary", {"user_uid": user_uid})
        return _parse(TripSummary, data, "trip_summary")

    async def create_trip(self, trip: TripCreate) -> str | None:
        data = await self._post_dict("/api/trips", trip.model_dump(mode="json"))
        trip_id = data.get("trip_id")
        if trip_id is None or str(trip_id).strip() == "":
            return None
        return str(trip_id)

    async def delete_trip(self, trip_id: str) -> dict[str, Any]:
        data = await self._request("DELETE", f"/api/trips/{trip_id}")
        return data if isinstance(data, dict) else {"ok": True}

    async def alerts(self, point: GeoPoint, time_of_day: TimeBucket) -> list[Alert]:
        data = await self._get_dict(
            "/api/alerts",
            {"lat": point.lat, "lon": point.lon, "time_of_day": time_of_day.value},
        )
        try:
            return _alert_list.validate_python(data.get("alerts") or [])
        except ValidationError as exc:
            raise TransportError("alerts: malformed response") from exc

    async def request_companion(self, request: CompanionRequestCreate) -> str | None:
        data = await self._post_dict("/api/companions/request", request.model_dump(mode="json"))
        request_id = data.get("request_id")
        return str(request_id) if request_id is not None else None

    async def match_companions(self, user_uid: str) -> list[CompanionMatch]:
        data = await self._request("GET", "/api/companions/match", params={"user_uid": user_uid})
        if isinstance(data, dict):
            data = data.get("matches") or []
        try:
            return _match_list.validate_python(data)
        except ValidationError as exc:
            raise TransportError("match_companions: malformed response") from exc

    async def submit_report(self, report: CommunityReportCreate) -> str | None:
        data = await self._post_dict("/api/reports", report.model_dump(mode="json"))
        report_id = data.get("report_id")
        return str(report_id) if report_id is not None else None

    async def trigger_sos(self, request: SOSTriggerRequest) -> dict[str, Any]:
        return await self._post_dict("/api/sos/trigger", request.model_dump(mode="json"))

    async def auto_sos_check(self, signals: AutoSOSSignals) -> AutoSOSResult:
        data = await self._post_dict("/api/sos/auto-check", signals.model_dump(mode="json", exclude_none=True))
        return _parse(AutoSOSResult, data, "auto_sos_check")

    async def share_location(self, request: LiveShareRequest) -> str:
        data = await self._post_dict("/api/location/share", request.model_dump(mode="json"))
        return str(data.get("text") or "")

    async def notify_guardians(self, request: GuardianNotifyRequest) -> dict[str, Any]:
        return await self._post_dict("/api/guardians/notify", request.model_dump(mode="json"))
