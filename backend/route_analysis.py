"""GuardianAI Backend — Route analysis orchestration

live directions → heuristic (or Gemini) narrative → nearest help → persist.

Any failure in the live chain swaps in a whole canned scenario; there is no
partial recovery. Persistence is best-effort.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

import numpy as np

from config import GOOGLE_MAPS_API_KEY, GEMINI_API_KEY, AI_NARRATIVE_ENABLED
from data_fetchers import fetch_directions
from emergency import find_nearest_help
from gemini import generate_route_narrative
from models import AnalyzeRouteRequest, AnalyzeRouteResponse, RouteData, LatLng, Scenario
from reports import build_safety_context
from scenarios import get_scenario, select_mock_scenario
from scoring import (
    calculate_risk_score, classify_risk, default_rng, is_night_time, parse_travel_time,
    generate_short_reason, generate_detailed_reason, generate_recommended_route,
    build_chat_lines,
)
from store import DataStore, StoreError

logger = logging.getLogger("guardian.route_analysis")


def _from_scenario(scenario: Scenario, source: str) -> AnalyzeRouteResponse:
    return AnalyzeRouteResponse(
        risk_score=scenario.risk_score,
        risk_level=classify_risk(scenario.risk_score),
        short_reason=scenario.short_reason,
        detailed_reason=list(scenario.detailed_reason),
        recommended_route=scenario.recommended_route,
        nearest_help=list(scenario.nearest_help),
        chat_lines=list(scenario.chat_lines),
        route_data=None,
        source=source,
    )


async def _live_analysis(
    req: AnalyzeRouteRequest,
    is_night: bool,
    store: DataStore,
    rng: np.random.Generator,
) -> Optional[AnalyzeRouteResponse]:
    directions = await fetch_directions(req.origin, req.destination)
    if not directions:
        return None

    summary = directions.get("summary", "")
    duration_s = directions.get("duration_seconds", 0)
    distance_m = directions.get("distance_meters", 0)

    breakdown = calculate_risk_score(duration_s, distance_m, is_night, summary, rng)
    risk_score = breakdown.score
    short_reason = generate_short_reason(risk_score, is_night, summary)
    detailed_reason = generate_detailed_reason(duration_s, distance_m, is_night, summary, rng)
    recommended_route = generate_recommended_route(risk_score, summary)
    source = "live"

    if GEMINI_API_KEY and AI_NARRATIVE_ENABLED:
        context = await build_safety_context(store)
        narrative = await generate_route_narrative(
            origin=req.origin,
            destination=req.destination,
            route_summary=summary,
            duration_text=directions.get("duration") or "",
            distance_text=directions.get("distance") or "",
            is_night=is_night,
            heuristic_score=risk_score,
            safety_context=context,
        )
        if narrative:
            risk_score = narrative["risk_score"]
            short_reason = narrative["short_reason"]
            detailed_reason = narrative["detailed_reason"]
            recommended_route = narrative["recommended_route"]
            source = "ai"
            logger.info(f"Gemini narrative applied: {breakdown.score} → {risk_score}")

    start = directions.get("start_location")
    end = directions.get("end_location")
    nearest_help = await find_nearest_help(store, req.city, start)

    route_data = RouteData(
        duration=directions.get("duration"),
        distance=directions.get("distance"),
        summary=summary,
        start_location=LatLng(**start) if start else None,
        end_location=LatLng(**end) if end else None,
        polyline=directions.get("points", []),
        risk_breakdown=breakdown,
    )

    return AnalyzeRouteResponse(
        risk_score=risk_score,
        risk_level=classify_risk(risk_score),
        short_reason=short_reason,
        detailed_reason=detailed_reason,
        recommended_route=recommended_route,
        nearest_help=nearest_help,
        chat_lines=build_chat_lines(short_reason),
        route_data=route_data,
        source=source,
    )


async def save_analysis(
    store: DataStore,
    user_id: str,
    req: AnalyzeRouteRequest,
    travel_time: Optional[datetime],
    result: AnalyzeRouteResponse,
):
    """Persist a result. Failures are logged, never raised."""
    when = travel_time or datetime.now(timezone.utc)
    try:
        await store.insert("route_analyses", {
            "user_id": user_id,
            "origin_address": req.origin,
            "destination_address": req.destination,
            "travel_time": when.isoformat(),
            "risk_score": result.risk_score,
            "short_reason": result.short_reason,
            "detailed_reason": result.detailed_reason,
            "recommended_route": result.recommended_route,
            "analysis_data": result.route_data.model_dump() if result.route_data else None,
        })
    except StoreError as e:
        logger.error(f"Error saving route analysis for {user_id}: {e}")
    except Exception as e:
        logger.error(f"Database error saving route analysis: {e}")


async def analyze_route(
    req: AnalyzeRouteRequest,
    store: DataStore,
    rng: Optional[np.random.Generator] = None,
) -> AnalyzeRouteResponse:
    rng = rng or default_rng()
    logger.info(f"Analyzing route: {req.origin} → {req.destination} (time={req.time}, city={req.city})")

    travel_time = parse_travel_time(req.time)
    is_night = is_night_time(travel_time.hour) if travel_time else False

    result: Optional[AnalyzeRouteResponse] = None

    if req.preset:
        scenario = get_scenario(req.preset)
        if scenario:
            result = _from_scenario(scenario, "preset")
        else:
            logger.warning(f"Unknown preset '{req.preset}', analyzing normally")

    if result is None and GOOGLE_MAPS_API_KEY:
        try:
            result = await _live_analysis(req, is_night, store, rng)
        except Exception as e:
            logger.error(f"Live route analysis failed, using mock scenario: {e}")
            result = None

    if result is None:
        scenario = select_mock_scenario(req.origin, req.destination, is_night)
        logger.info(f"Using mock scenario {scenario.key}")
        result = _from_scenario(scenario, "mock")

    if req.userId:
        await save_analysis(store, req.userId, req, travel_time, result)

    return result


async def list_analyses(store: DataStore, user_id: str, limit: int = 20) -> list[dict]:
    return await store.select(
        "route_analyses", {"user_id": user_id}, order_by="created_at", descending=True, limit=limit,
    )
