"""GuardianAI Backend — FastAPI Routes"""

import logging
import time

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config import GOOGLE_MAPS_API_KEY, MAPBOX_PUBLIC_TOKEN, RATE_LIMIT, CORS_ORIGINS
from models import (
    AnalyzeRouteRequest, AnalyzeRouteResponse,
    EmergencyServicesRequest, EmergencyServicesResponse,
    EmergencyContactCreate,
    EmergencyCallRequest, EmergencyCallResponse,
    EmergencySMSRequest, EmergencySMSResponse,
    SafetyChatRequest, SafetyChatResponse,
    IncidentReport, RiskFactorReport, ProfileUpdate, Scenario,
)
import chat
import emergency
import reports
import route_analysis
from scenarios import list_scenarios
from store import DataStore, NotFoundError, StoreError, get_store

logger = logging.getLogger("guardian")


# ─────────────────────────── App Setup ──────────────────────────

app = FastAPI(title="GuardianAI Safety API", version="1.0.0")

_allowed_origins = [
    f"http://localhost:{p}" for p in range(3000, 3010)
] + [
    f"http://localhost:{p}" for p in range(5173, 5180)
] + [
    f"http://localhost:{p}" for p in range(8080, 8090)
] + [
    f"http://127.0.0.1:{p}" for p in range(5173, 5180)
] + [
    f"http://127.0.0.1:{p}" for p in range(8080, 8090)
] + CORS_ORIGINS

app.add_middleware(
    CORSMiddleware,
    allow_origins=_allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
async def startup_event():
    get_store()
    logger.info(
        f"Providers: maps={'on' if GOOGLE_MAPS_API_KEY else 'off (mock scenarios)'}, "
        f"rate limit={RATE_LIMIT or 'off'}/min"
    )


@app.on_event("shutdown")
async def shutdown_event():
    await get_store().close()


# ─────────────────────────── Rate Limiting ──────────────────────

_rate_store: dict[str, list[float]] = {}
RATE_WINDOW = 60  # seconds
_RATE_EVICT_INTERVAL = 300  # evict stale IPs every 5 minutes
_last_rate_evict = 0.0


@app.middleware("http")
async def rate_limit_middleware(request: Request, call_next):
    if RATE_LIMIT <= 0:
        return await call_next(request)

    client_ip = request.client.host if request.client else "unknown"
    now = time.time()

    # Periodically evict stale IPs to prevent memory leak
    global _last_rate_evict
    if now - _last_rate_evict > _RATE_EVICT_INTERVAL:
        stale_ips = [ip for ip, timestamps in _rate_store.items()
                     if not timestamps or now - timestamps[-1] > RATE_WINDOW * 2]
        for ip in stale_ips:
            del _rate_store[ip]
        _last_rate_evict = now

    recent = [t for t in _rate_store.get(client_ip, []) if now - t < RATE_WINDOW]
    if len(recent) >= RATE_LIMIT:
        _rate_store[client_ip] = recent
        return JSONResponse(
            status_code=429,
            content={"detail": "Rate limit exceeded. Try again in a minute."},
        )

    recent.append(now)
    _rate_store[client_ip] = recent
    return await call_next(request)


@app.exception_handler(StoreError)
async def store_error_handler(request: Request, exc: StoreError):
    logger.error(f"Store error on {request.url.path}: {exc}")
    return JSONResponse(status_code=502, content={"detail": "Data store unavailable"})


# ─────────────────────────── Route Analysis ─────────────────────

@app.post("/api/analyze-route", response_model=AnalyzeRouteResponse)
async def analyze_route(req: AnalyzeRouteRequest, store: DataStore = Depends(get_store)):
    return await route_analysis.analyze_route(req, store)


@app.get("/api/route-analyses")
async def get_route_analyses(userId: str, limit: int = 20, store: DataStore = Depends(get_store)):
    rows = await route_analysis.list_analyses(store, userId, limit=max(1, min(limit, 100)))
    return {"analyses": rows, "total": len(rows)}


@app.get("/api/scenarios", response_model=list[Scenario])
async def get_scenarios():
    return list_scenarios()


# ─────────────────────────── Emergency ──────────────────────────

@app.post("/api/emergency-services", response_model=EmergencyServicesResponse)
async def get_emergency_services(req: EmergencyServicesRequest, store: DataStore = Depends(get_store)):
    logger.info(f"Emergency services for ({req.lat}, {req.lng}) city={req.city} type={req.contactType}")
    services = await emergency.get_emergency_services(store, req.lat, req.lng, req.city, req.contactType)
    return EmergencyServicesResponse(services=services, total=len(services))


@app.get("/api/emergency-contacts")
async def list_emergency_contacts(userId: str, store: DataStore = Depends(get_store)):
    contacts = await store.select(
        "emergency_contacts", {"user_id": userId}, order_by="created_at", descending=True,
    )
    return {"contacts": contacts}


@app.post("/api/emergency-contacts", status_code=201)
async def create_emergency_contact(contact: EmergencyContactCreate, store: DataStore = Depends(get_store)):
    row = await store.insert("emergency_contacts", {
        "user_id": contact.userId,
        "name": contact.name,
        "phone_number": contact.phone_number,
        "contact_type": contact.contact_type,
        "address": contact.address,
        "city": contact.city,
        "state": contact.state,
        "lat": contact.lat,
        "lng": contact.lng,
        "is_active": True,
    })
    logger.info(f"Emergency contact added for {contact.userId}: {contact.name}")
    return row


@app.delete("/api/emergency-contacts/{contact_id}")
async def delete_emergency_contact(contact_id: str, store: DataStore = Depends(get_store)):
    if not await store.delete("emergency_contacts", contact_id):
        raise HTTPException(status_code=404, detail="Contact not found")
    return {"id": contact_id, "status": "deleted"}


@app.post("/api/emergency/call", response_model=EmergencyCallResponse)
async def emergency_call(req: EmergencyCallRequest):
    return emergency.simulate_call(req)


@app.post("/api/emergency/sms", response_model=EmergencySMSResponse)
async def emergency_sms(req: EmergencySMSRequest, store: DataStore = Depends(get_store)):
    return await emergency.simulate_sms(store, req)


# ─────────────────────────── Safety Chat ────────────────────────

@app.post("/api/safety-chat", response_model=SafetyChatResponse)
async def safety_chat(req: SafetyChatRequest, store: DataStore = Depends(get_store)):
    return await chat.answer(req, store)


@app.get("/api/safety-chat/history")
async def safety_chat_history(userId: str, store: DataStore = Depends(get_store)):
    return {"messages": await chat.load_history(store, userId)}


# ─────────────────────────── Incidents & Risk Factors ───────────

@app.post("/api/incidents", status_code=201)
async def submit_incident(report: IncidentReport, store: DataStore = Depends(get_store)):
    row = await reports.report_incident(store, report)
    return {"id": row["id"], "status": "submitted", "verified": False}


@app.get("/api/incidents")
async def get_incidents(verified: bool = False, limit: int = 50, store: DataStore = Depends(get_store)):
    rows = await reports.list_incidents(store, verified_only=verified, limit=max(1, min(limit, 200)))
    return {"incidents": rows}


@app.post("/api/incidents/{incident_id}/verify")
async def verify_incident(incident_id: str, store: DataStore = Depends(get_store)):
    try:
        row = await reports.verify_incident(store, incident_id)
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Incident not found")
    return {"id": row["id"], "verified": row["verified"]}


@app.post("/api/risk-factors", status_code=201)
async def submit_risk_factor(report: RiskFactorReport, store: DataStore = Depends(get_store)):
    return await reports.report_risk_factor(store, report)


@app.get("/api/risk-factors")
async def get_risk_factors(limit: int = 50, store: DataStore = Depends(get_store)):
    return {"risk_factors": await reports.list_risk_factors(store, limit=max(1, min(limit, 200)))}


# ─────────────────────────── Profiles ───────────────────────────

@app.get("/api/profiles/{user_id}")
async def get_profile(user_id: str, store: DataStore = Depends(get_store)):
    profile = await reports.get_profile(store, user_id)
    if not profile:
        raise HTTPException(status_code=404, detail="Profile not found")
    return profile


@app.put("/api/profiles/{user_id}")
async def update_profile(user_id: str, update: ProfileUpdate, store: DataStore = Depends(get_store)):
    return await reports.upsert_profile(store, user_id, update)


# ─────────────────────────── Utility Endpoints ──────────────────

@app.get("/api/maps-key")
async def get_maps_key():
    token = GOOGLE_MAPS_API_KEY or MAPBOX_PUBLIC_TOKEN
    if not token:
        logger.info("Maps API key not configured in environment")
        return {"error": "Google Maps API key not configured", "token": None}
    logger.info(f"Returning maps key: {token[:10]}...")
    return {"token": token}


@app.get("/api/health")
async def health():
    return {"status": "ok", "service": "guardian", "version": "1.0.0"}
