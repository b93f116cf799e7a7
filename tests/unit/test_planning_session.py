from __future__ import annotations

import asyncio

import pytest

from saferoutes.core.enums import PickTarget, RouteMode, SafetyLevel, SessionPhase, TimeBucket
from saferoutes.core.exceptions import NoActiveRouteError, TransportError, ValidationAppError
from saferoutes.schemas.bookmark import Bookmark
from saferoutes.schemas.geo import GeoPoint
from saferoutes.services.planning import PLAN_FAILED_MESSAGE, TRIP_SAVE_FAILED_MESSAGE
from tests.factories import make_candidate, make_plan_response


@pytest.mark.asyncio
async def test_plan_scenario_displays_distance_with_three_decimals(planning_session, fake_api):
    assert planning_session.phase == SessionPhase.IDLE

    response = await planning_session.plan()

    assert response is not None
    request = fake_api.plan_requests[0]
    assert request.start == GeoPoint(lat=28.6315, lon=77.2167)
    assert request.end == GeoPoint(lat=28.6129, lon=77.2295)
    assert request.mode == RouteMode.BALANCED
    assert request.time_of_day == TimeBucket.DAY

    assert planning_session.phase == SessionPhase.PLANNED
    assert planning_session.chosen is response.chosen
    assert len(planning_session.alternatives) == 2
    summary = planning_session.summary
    assert summary.distance_km == 1.65
    assert f"{summary.distance_km:.3f}" == "1.650"
    assert summary.mode == RouteMode.BALANCED
    assert summary.eta_minutes == 21.0
    assert summary.average_safety_score == 78.5


@pytest.mark.asyncio
async def test_plan_overrides_apply_to_single_call(planning_session, fake_api):
    await planning_session.plan(mode=RouteMode.SAFEST, time_of_day=TimeBucket.NIGHT)

    assert fake_api.plan_requests[0].mode == RouteMode.SAFEST
    assert fake_api.plan_requests[0].time_of_day == TimeBucket.NIGHT
    assert planning_session.mode == RouteMode.BALANCED
    assert planning_session.time_of_day == TimeBucket.DAY
    assert planning_session.summary.mode == RouteMode.SAFEST


@pytest.mark.asyncio
async def test_plan_failure_stays_in_planning_and_allows_retry(planning_session, fake_api):
    await planning_session.plan()
    previous_summary = planning_session.summary
    fake_api.plan_outcomes = [TransportError("network:POST /api/routes/plan")]

    with pytest.raises(TransportError):
        await planning_session.plan()

    assert planning_session.phase == SessionPhase.PLANNING
    assert planning_session.chosen is None
    assert planning_session.alternatives == []
    assert planning_session.summary == previous_summary
    assert planning_session.last_error == PLAN_FAILED_MESSAGE
    assert len(fake_api.plan_requests) == 2

    await planning_session.plan()

    assert planning_session.phase == SessionPhase.PLANNED
    assert planning_session.last_error is None
    assert len(fake_api.plan_requests) == 3


@pytest.mark.asyncio
async def test_auto_refresh_mode_change_triggers_exactly_one_plan(planning_session, fake_api):
    planning_session.set_auto_refresh(True)
    await planning_session.plan()

    await planning_session.set_mode(RouteMode.NIGHT_SAFE)

    assert len(fake_api.plan_requests) == 2
    latest = fake_api.plan_requests[-1]
    assert latest.mode == RouteMode.NIGHT_SAFE
    assert latest.start == fake_api.plan_requests[0].start
    assert latest.end == fake_api.plan_requests[0].end


@pytest.mark.asyncio
async def test_auto_refresh_waits_for_first_plan(planning_session, fake_api):
    planning_session.set_auto_refresh(True)

    await planning_session.set_mode(RouteMode.SAFEST)
    await planning_session.set_time_of_day(TimeBucket.NIGHT)

    assert fake_api.plan_requests == []


@pytest.mark.asyncio
async def test_changes_without_auto_refresh_do_not_plan(planning_session, fake_api):
    await planning_session.plan()

    await planning_session.set_mode(RouteMode.FASTEST)
    await planning_session.set_start(GeoPoint(lat=28.62, lon=77.21))

    assert len(fake_api.plan_requests) == 1


@pytest.mark.asyncio
async def test_coalesced_update_plans_once_and_noop_update_never(planning_session, fake_api):
    planning_session.set_auto_refresh(True)
    await planning_session.plan()

    await planning_session.update(
        start=GeoPoint(lat=28.62, lon=77.21),
        end=GeoPoint(lat=28.60, lon=77.23),
        mode=RouteMode.SAFEST,
        time_of_day=TimeBucket.DAWN_DUSK,
    )
    assert len(fake_api.plan_requests) == 2

    await planning_session.set_mode(RouteMode.SAFEST)
    assert len(fake_api.plan_requests) == 2


@pytest.mark.asyncio
async def test_map_clicks_each_trigger_recompute(planning_session, fake_api):
    planning_session.set_auto_refresh(True)
    await planning_session.plan()
    planning_session.set_pick_target(PickTarget.START)

    await planning_session.consume_click(GeoPoint(lat=40.7812, lon=-73.9665))
    await planning_session.consume_click(GeoPoint(lat=40.758, lon=-73.9855))
    await planning_session.consume_click(GeoPoint(lat=1.0, lon=1.0))

    assert len(fake_api.plan_requests) == 3
    assert fake_api.plan_requests[1].start == GeoPoint(lat=40.7812, lon=-73.9665)
    assert fake_api.plan_requests[2].end == GeoPoint(lat=40.758, lon=-73.9855)
    assert planning_session.selection.picking == PickTarget.NONE


@pytest.mark.asyncio
async def test_implicit_plan_failure_is_recorded_not_raised(planning_session, fake_api):
    planning_session.set_auto_refresh(True)
    await planning_session.plan()
    fake_api.plan_outcomes = [TransportError("timeout:POST /api/routes/plan")]

    result = await planning_session.set_mode(RouteMode.FASTEST)

    assert result is None
    assert planning_session.last_error == PLAN_FAILED_MESSAGE
    assert planning_session.phase == SessionPhase.PLANNING


@pytest.mark.asyncio
async def test_select_alternative_rebinds_by_identity(planning_session):
    await planning_session.plan()
    original = planning_session.chosen
    alternative = planning_session.alternatives[0]

    render_before = planning_session.render()
    assert len([line for line in render_before.polylines if not line.chosen]) == 2

    summary = planning_session.select_alternative(alternative)

    assert planning_session.chosen is alternative
    assert planning_session.chosen is not original
    assert summary.distance_km == 1.9
    assert planning_session.summary == summary
    render_after = planning_session.render()
    assert len([line for line in render_after.polylines if not line.chosen]) == 1
    assert render_after.polylines[-1].chosen is True


@pytest.mark.asyncio
async def test_select_alternative_rejects_value_equal_copy(planning_session):
    await planning_session.plan()
    copy = make_candidate(distance_m=1900.0, eta_minutes=24.0, safety=81.0)
    assert copy == planning_session.alternatives[0]

    with pytest.raises(ValidationAppError):
        planning_session.select_alternative(copy)


@pytest.mark.asyncio
async def test_newer_plan_request_wins_over_late_response(planning_session, fake_api):
    gate = asyncio.Event()
    late = make_plan_response(RouteMode.FASTEST, distance_m=3000.0)
    fresh = make_plan_response(RouteMode.SAFEST, distance_m=2000.0)
    fake_api.plan_outcomes = [(gate, late), fresh]

    first = asyncio.create_task(planning_session.plan(mode=RouteMode.FASTEST))
    await asyncio.sleep(0)
    second = await planning_session.plan(mode=RouteMode.SAFEST)
    gate.set()
    first_result = await first

    assert first_result is None
    assert second is fresh
    assert planning_session.chosen is fresh.chosen
    assert planning_session.summary.mode == RouteMode.SAFEST
    assert planning_session.summary.distance_km == 2.0


@pytest.mark.asyncio
async def test_last_resolved_wins_when_stale_guard_disabled(planning_session, fake_api):
    planning_session.discard_stale_plans = False
    gate = asyncio.Event()
    late = make_plan_response(RouteMode.FASTEST, distance_m=3000.0)
    fake_api.plan_outcomes = [(gate, late), make_plan_response(RouteMode.SAFEST)]

    first = asyncio.create_task(planning_session.plan(mode=RouteMode.FASTEST))
    await asyncio.sleep(0)
    await planning_session.plan(mode=RouteMode.SAFEST)
    gate.set()
    await first

    assert planning_session.chosen is late.chosen
    assert planning_session.summary.mode == RouteMode.FASTEST


@pytest.mark.asyncio
async def test_failure_of_superseded_request_is_ignored(planning_session, fake_api):
    gate = asyncio.Event()
    fake_api.plan_outcomes = [(gate, TransportError("timeout")), make_plan_response()]

    first = asyncio.create_task(planning_session.plan())
    await asyncio.sleep(0)
    await planning_session.plan()
    gate.set()

    assert await first is None
    assert planning_session.last_error is None
    assert planning_session.phase == SessionPhase.PLANNED


@pytest.mark.asyncio
async def test_route_id_is_none_without_chosen_and_stable_across_identical_plans(planning_session):
    assert planning_session.compute_route_id() is None

    await planning_session.plan()
    first_id = planning_session.compute_route_id()
    await planning_session.plan()

    assert first_id is not None
    assert planning_session.compute_route_id() == first_id


@pytest.mark.asyncio
async def test_log_trip_without_route_fails_before_network(planning_session, fake_api):
    with pytest.raises(NoActiveRouteError):
        await planning_session.log_current_trip("user_a")

    assert fake_api.created == []
    assert fake_api.list_calls == 0


@pytest.mark.asyncio
async def test_log_trip_saves_and_refreshes_history(planning_session, fake_api, trip_history):
    await planning_session.plan()

    outcome = await planning_session.log_current_trip("user_a")

    assert outcome.saved is True
    assert outcome.trip_id == "trip-1"
    assert outcome.route_id == planning_session.compute_route_id()
    payload = fake_api.created[0]
    assert payload.distance_km == 1.65
    assert payload.mode == RouteMode.BALANCED
    assert payload.origin == GeoPoint(lat=28.6315, lon=77.2167)
    assert payload.destination == GeoPoint(lat=28.6129, lon=77.2295)
    assert payload.safety_score == 78.5
    assert fake_api.list_calls == 1
    assert [trip.id for trip in trip_history.cached("user_a").trips] == ["trip-1"]


@pytest.mark.asyncio
async def test_log_trip_without_identifier_is_non_fatal(planning_session, fake_api):
    await planning_session.plan()
    fake_api.next_trip_id = None

    outcome = await planning_session.log_current_trip("user_a")

    assert outcome.saved is False
    assert outcome.message == TRIP_SAVE_FAILED_MESSAGE
    assert fake_api.list_calls == 0


@pytest.mark.asyncio
async def test_log_trip_transport_failure_is_non_fatal(planning_session, fake_api):
    await planning_session.plan()
    fake_api.create_error = TransportError("http_503:POST /api/trips")

    outcome = await planning_session.log_current_trip("user_a")

    assert outcome.saved is False
    assert len(fake_api.created) == 0


@pytest.mark.asyncio
async def test_bookmark_and_preset_replace_points_only(planning_session):
    await planning_session.set_mode(RouteMode.NIGHT_SAFE)
    bookmark = Bookmark(
        id="1",
        name="Home to office",
        start=GeoPoint(lat=1.283, lon=103.86),
        end=GeoPoint(lat=1.279, lon=103.854),
    )

    await planning_session.use_bookmark(bookmark)

    assert planning_session.selection.start == bookmark.start
    assert planning_session.selection.end == bookmark.end
    assert planning_session.mode == RouteMode.NIGHT_SAFE

    await planning_session.apply_preset(0)
    assert planning_session.selection.start == GeoPoint(lat=40.7812, lon=-73.9665)


@pytest.mark.asyncio
async def test_render_limits_segments_and_shows_badges(planning_session, fake_api):
    planning_session.preferences.night_shield = True
    candidate = make_candidate(segment_scores=[90, 60, 40, 71, 50, 51, 70, 80, 99, 10])
    response = make_plan_response()
    fake_api.plan_outcomes = [response.model_copy(update={"chosen": candidate})]

    await planning_session.plan()
    render = planning_session.render()

    assert len(render.segments) == 8
    assert render.segments_truncated is True
    assert [item.level for item in render.segments[:3]] == [SafetyLevel.SAFE, SafetyLevel.CAUTION, SafetyLevel.DANGER]
    assert render.segments[4].level == SafetyLevel.DANGER
    assert render.segments[5].level == SafetyLevel.CAUTION
    assert render.badges == ["High-contrast UI + frequent guardian updates"]
    assert render.center == pytest.approx([(28.6315 + 28.6129) / 2, (77.2167 + 77.2295) / 2])
    assert render.polylines[-1].positions[0] == [28.6315, 77.2167]
