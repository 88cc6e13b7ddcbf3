"""GuardianAI Backend — Route Risk Scoring Logic

The score is a placeholder heuristic, not a model:

    30 base
  + 25 at night (22:00–06:59)
  + 10 for trips longer than an hour
  - 10 for highway / expressway routes
  + uniform jitter in [0, 20)
  clamped to [0, 100]

The jitter is drawn from a numpy Generator (seedable via RISK_JITTER_SEED)
and always reported in the breakdown.
"""

import logging
from datetime import datetime
from typing import Optional

import numpy as np

from config import (
    RISK_JITTER_SEED, SAFETY_FACTORS, HINDI_PHRASES, HINDI_DEFAULT,
    HIGH_RISK_THRESHOLD, MODERATE_RISK_THRESHOLD,
)
from models import RiskBreakdown

logger = logging.getLogger("guardian.scoring")

BASE_SCORE = 30
NIGHT_PENALTY = 25
LONG_TRIP_PENALTY = 10
LONG_TRIP_SECONDS = 3600
HIGHWAY_BONUS = -10
JITTER_MAX = 20  # exclusive

_rng = np.random.default_rng(RISK_JITTER_SEED)


def default_rng() -> np.random.Generator:
    return _rng


def is_night_time(hour: int) -> bool:
    return hour >= 22 or hour <= 6


def parse_travel_time(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO datetime or "HH:MM" string. Returns None if absent or invalid."""
    if not value or not value.strip():
        return None
    text = value.strip()
    if ":" not in text:
        # Date-only values carry no hour; they must not read as midnight
        logger.warning(f"Travel time '{value}' has no time of day, treating as daytime")
        return None
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        pass
    try:
        hour_str, _, minute_str = text.partition(":")
        hour = int(hour_str)
        minute = int(minute_str or 0)
        return datetime.now().replace(hour=hour, minute=minute, second=0, microsecond=0)
    except ValueError:
        logger.warning(f"Unparsable travel time '{value}', treating as daytime")
        return None


def _is_highway(summary: str) -> bool:
    s = (summary or "").lower()
    return "highway" in s or "expressway" in s


def calculate_risk_score(
    duration_seconds: float,
    distance_meters: float,
    is_night: bool,
    route_summary: str,
    rng: Optional[np.random.Generator] = None,
) -> RiskBreakdown:
    """Score a route. Distance is accepted for parity with the narrative helpers but does not weigh in."""
    rng = rng or _rng
    night = NIGHT_PENALTY if is_night else 0
    long_duration = LONG_TRIP_PENALTY if duration_seconds > LONG_TRIP_SECONDS else 0
    highway = HIGHWAY_BONUS if _is_highway(route_summary) else 0
    jitter = int(rng.integers(0, JITTER_MAX))

    raw = BASE_SCORE + night + long_duration + highway + jitter
    score = max(0, min(100, raw))

    breakdown = RiskBreakdown(
        base=BASE_SCORE, night=night, long_duration=long_duration,
        highway=highway, jitter=jitter, raw_total=raw, score=score,
    )
    logger.info(
        f"Risk score {score} (night={night}, long={long_duration}, "
        f"highway={highway}, jitter={jitter}, {distance_meters / 1000:.1f} km)"
    )
    return breakdown


def classify_risk(score: int) -> str:
    if score > HIGH_RISK_THRESHOLD:
        return "high"
    if score > MODERATE_RISK_THRESHOLD:
        return "moderate"
    return "low"


def generate_short_reason(risk_score: int, is_night: bool, route_summary: str) -> str:
    level = classify_risk(risk_score)
    if level == "high":
        if is_night:
            return f"High risk due to late hour and limited visibility on {route_summary}"
        return f"Elevated risk detected along {route_summary} route"
    if level == "moderate":
        return f"Moderate safety concerns on {route_summary} - exercise caution"
    return f"Safe route via {route_summary} with good visibility"


def generate_detailed_reason(
    duration_seconds: float,
    distance_meters: float,
    is_night: bool,
    route_summary: str,
    rng: Optional[np.random.Generator] = None,
) -> list[str]:
    rng = rng or _rng
    reasons = []
    if is_night:
        reasons.append("Travel during night hours with reduced visibility")
    if duration_seconds > LONG_TRIP_SECONDS:
        reasons.append("Extended travel time increases exposure to potential risks")
    reasons.append(f"Route via {route_summary} - {int(distance_meters // 1000)}km distance")
    reasons.append(SAFETY_FACTORS[int(rng.integers(0, len(SAFETY_FACTORS)))])
    return reasons


def generate_recommended_route(risk_score: int, route_summary: str) -> str:
    level = classify_risk(risk_score)
    if level == "high":
        return "Consider alternative main road routes with better lighting and higher traffic volume"
    if level == "moderate":
        return "Current route is acceptable - stay alert and consider traveling in groups if possible"
    return f"Current route via {route_summary} is recommended - good safety profile"


def translate_to_hindi(text: str) -> str:
    """Phrase-table translation; unknown text gets a generic Hindi line."""
    for en, hi in HINDI_PHRASES.items():
        if en in text:
            return text.replace(en, hi, 1)
    return HINDI_DEFAULT


def build_chat_lines(short_reason: str) -> list[str]:
    return [f"EN: {short_reason}", f"HI: {translate_to_hindi(short_reason)}"]
