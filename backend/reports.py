"""GuardianAI Backend — Incidents, risk factors, profiles and the safety context string"""

import logging
from datetime import datetime, timezone
from typing import Optional

from config import SAFETY_CONTEXT_LIMIT
from models import IncidentReport, RiskFactorReport, ProfileUpdate
from store import DataStore, StoreError

logger = logging.getLogger("guardian.reports")


# ─────────────────────────── Incidents ──────────────────────────

async def report_incident(store: DataStore, report: IncidentReport) -> dict:
    """New reports are unverified and public until an authority verifies them."""
    row = await store.insert("safety_incidents", {
        "incident_type": report.incident_type,
        "location_name": report.location_name,
        "description": report.description,
        "severity": report.severity,
        "incident_date": report.incident_date,
        "lat": report.lat,
        "lng": report.lng,
        "reported_by": report.userId,
        "verified": False,
        "public_data": True,
    })
    logger.info(f"Incident reported: {report.incident_type} at {report.location_name} (severity {report.severity})")
    return row


async def list_incidents(store: DataStore, verified_only: bool = False, limit: int = 50) -> list[dict]:
    filters = {"verified": True} if verified_only else {"public_data": True}
    return await store.select("safety_incidents", filters, order_by="created_at", descending=True, limit=limit)


async def verify_incident(store: DataStore, incident_id: str) -> dict:
    row = await store.update("safety_incidents", incident_id, {"verified": True})
    logger.info(f"Incident {incident_id} verified")
    return row


# ─────────────────────────── Risk Factors ───────────────────────

async def report_risk_factor(store: DataStore, report: RiskFactorReport) -> dict:
    return await store.insert("risk_factors", {
        "factor_type": report.factor_type,
        "location_name": report.location_name,
        "lat": report.lat,
        "lng": report.lng,
        "risk_level": report.risk_level,
        "description": report.description,
        "time_periods": report.time_periods,
        "reported_by": report.userId,
        "verified": False,
    })


async def list_risk_factors(store: DataStore, limit: int = 50) -> list[dict]:
    return await store.select("risk_factors", order_by="created_at", descending=True, limit=limit)


# ─────────────────────────── Safety Context ─────────────────────

async def build_safety_context(store: DataStore, limit: int = SAFETY_CONTEXT_LIMIT) -> str:
    """Summarise recent verified incidents and risk factors for an AI prompt.

    Rows are not ranked by distance or relevance. Store errors yield "".
    """
    try:
        incidents = await store.select("safety_incidents", {"verified": True}, limit=limit)
        risk_factors = await store.select("risk_factors", limit=limit)
    except StoreError as e:
        logger.error(f"Could not load safety context: {e}")
        return ""

    context = ""
    if incidents:
        context += "Recent verified incidents in area: " + ", ".join(
            f"{i.get('incident_type')} (severity: {i.get('severity')}/10) at {i.get('location_name')}"
            for i in incidents
        ) + ". "
    if risk_factors:
        context += "Area risk factors: " + ", ".join(
            f"{r.get('factor_type')} (risk level: {r.get('risk_level')}/10) at {r.get('location_name')}"
            for r in risk_factors
        ) + ". "
    return context.strip()


# ─────────────────────────── Profiles ───────────────────────────

async def get_profile(store: DataStore, user_id: str) -> Optional[dict]:
    rows = await store.select("profiles", {"user_id": user_id}, limit=1)
    return rows[0] if rows else None


async def upsert_profile(store: DataStore, user_id: str, update: ProfileUpdate) -> dict:
    values = update.model_dump(exclude_none=True)
    existing = await get_profile(store, user_id)
    if existing:
        return await store.update("profiles", existing["id"], values)
    return await store.insert("profiles", {
        "user_id": user_id,
        "preferred_language": "en",
        **values,
        "updated_at": datetime.now(timezone.utc).isoformat(),
    })
