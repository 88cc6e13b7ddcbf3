"""GuardianAI Backend — Emergency services, nearest help and simulated SOS"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Optional

from config import (
    DEFAULT_CITY, PLACE_TYPE_MAP, DEFAULT_PHONE_MAP,
    DEFAULT_EMERGENCY_SERVICES, DEFAULT_NEAREST_HELP, SOS_MESSAGE_TEMPLATE,
)
from data_fetchers import fetch_nearby_places
from models import (
    EmergencyService, NearestHelp,
    EmergencyCallRequest, EmergencyCallResponse,
    EmergencySMSRequest, EmergencySMSResponse,
)
from store import DataStore, StoreError

logger = logging.getLogger("guardian.emergency")


def default_emergency_services(contact_type: str, city: str) -> list[EmergencyService]:
    """Hardcoded national numbers. Unknown types fall back to police."""
    city = city or DEFAULT_CITY
    templates = DEFAULT_EMERGENCY_SERVICES.get(contact_type, DEFAULT_EMERGENCY_SERVICES["police"])
    return [
        EmergencyService(
            name=t["name"].format(city=city),
            phone_number=t["phone_number"],
            contact_type=contact_type,
            address=f"{city}, India",
            distance_km=t["distance_km"],
        )
        for t in templates
    ]


async def _places_services(lat: float, lng: float, contact_type: str) -> list[EmergencyService]:
    place_type = PLACE_TYPE_MAP.get(contact_type, "police")
    default_phone = DEFAULT_PHONE_MAP.get(contact_type, "+91-100")
    places = await fetch_nearby_places(lat, lng, place_type, radius=5000, limit=5)
    return [
        EmergencyService(
            name=p["name"],
            phone_number=p.get("phone") or default_phone,
            contact_type=contact_type,
            address=p.get("address"),
            lat=p["lat"],
            lng=p["lng"],
            distance_km=p["distance_km"],
            rating=p.get("rating") or 0,
        )
        for p in places
    ]


async def _db_services(store: DataStore, city: str, contact_type: str) -> list[EmergencyService]:
    rows = await store.select(
        "emergency_contacts",
        {"city": city or DEFAULT_CITY, "contact_type": contact_type, "is_active": True},
        order_by="distance_km",
        limit=5,
    )
    return [
        EmergencyService(
            name=row["name"],
            phone_number=row["phone_number"],
            contact_type=row.get("contact_type", contact_type),
            address=row.get("address"),
            lat=row.get("lat"),
            lng=row.get("lng"),
            distance_km=row.get("distance_km") or 1.5,
        )
        for row in rows
    ]


async def get_emergency_services(
    store: DataStore,
    lat: Optional[float],
    lng: Optional[float],
    city: str,
    contact_type: str = "police",
) -> list[EmergencyService]:
    """Places API → DB contacts → hardcoded defaults. Never empty."""
    services: list[EmergencyService] = []

    if lat is not None and lng is not None:
        try:
            services = await _places_services(lat, lng, contact_type)
        except Exception as e:
            logger.warning(f"Places lookup failed for {contact_type}: {e}")
            services = []

    if not services:
        logger.info(f"Using database emergency contacts ({city or DEFAULT_CITY}, {contact_type})")
        try:
            services = await _db_services(store, city, contact_type)
        except StoreError as e:
            logger.error(f"Database error fetching emergency contacts: {e}")
            services = []

    if not services:
        services = default_emergency_services(contact_type, city)

    return services


async def find_nearest_help(
    store: DataStore,
    city: str,
    location: Optional[dict] = None,
) -> list[NearestHelp]:
    """Help list for a route result: DB contacts for the city → Places near the start → defaults."""
    if city:
        try:
            rows = await store.select(
                "emergency_contacts", {"city": city, "is_active": True}, limit=3,
            )
            if rows:
                return [
                    NearestHelp(
                        name=row["name"],
                        distance_km=row.get("distance_km") or 1.5,
                        phone=row["phone_number"],
                    )
                    for row in rows
                ]
        except StoreError as e:
            logger.error(f"Error fetching emergency contacts for {city}: {e}")

    if location and location.get("lat") is not None and location.get("lng") is not None:
        try:
            services = await _places_services(location["lat"], location["lng"], "police")
            if services:
                return [
                    NearestHelp(name=s.name, distance_km=s.distance_km, phone=s.phone_number)
                    for s in services[:3]
                ]
        except Exception as e:
            logger.warning(f"Places lookup for nearest help failed: {e}")

    return [NearestHelp(**h) for h in DEFAULT_NEAREST_HELP]


# ─────────────────────────── Simulated SOS ──────────────────────

def simulate_call(req: EmergencyCallRequest) -> EmergencyCallResponse:
    """No telephony is contacted; the call is logged and acknowledged."""
    call_id = f"CALL-{uuid.uuid4().hex[:6]}"
    logger.info(f"Simulated call {call_id} to {req.contact_name} ({req.phone_number}) for user {req.userId}")
    return EmergencyCallResponse(
        status="simulated",
        call_id=call_id,
        phone_number=req.phone_number,
        message=f"Calling {req.contact_name}... (call simulated)",
        timestamp=datetime.now(timezone.utc).isoformat(),
    )


def format_sos_message(template: str, lat: Optional[float], lng: Optional[float], share_location: bool) -> str:
    message = template
    if share_location and lat is not None and lng is not None:
        message += f"\n\nLocation: https://maps.google.com/?q={lat},{lng}"
    return message


async def resolve_sms_recipients(store: DataStore, req: EmergencySMSRequest) -> list[str]:
    """Explicit recipients → user's active contacts → profile emergency phone → women helpline."""
    if req.recipients:
        return req.recipients

    if req.userId:
        try:
            contacts = await store.select("emergency_contacts", {"user_id": req.userId})
            phones = [c["phone_number"] for c in contacts if c.get("is_active", True) and c.get("phone_number")]
            if phones:
                return phones
            profiles = await store.select("profiles", {"user_id": req.userId}, limit=1)
            if profiles and profiles[0].get("emergency_contact_phone"):
                return [profiles[0]["emergency_contact_phone"]]
        except StoreError as e:
            logger.error(f"Could not load SOS recipients for {req.userId}: {e}")

    return [DEFAULT_PHONE_MAP["helpline"]]


async def simulate_sms(store: DataStore, req: EmergencySMSRequest) -> EmergencySMSResponse:
    recipients = await resolve_sms_recipients(store, req)
    message = format_sos_message(req.message or SOS_MESSAGE_TEMPLATE, req.lat, req.lng, req.shareLocation)
    sms_id = f"SMS-{uuid.uuid4().hex[:6]}"
    logger.info(f"Simulated SOS SMS {sms_id} to {len(recipients)} recipient(s) for user {req.userId}")
    return EmergencySMSResponse(
        status="simulated",
        sms_id=sms_id,
        recipients=recipients,
        message_sent=message,
        timestamp=datetime.now(timezone.utc).isoformat(),
    )
