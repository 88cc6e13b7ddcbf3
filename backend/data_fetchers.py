"""GuardianAI Backend — External Data Fetchers (Google Directions, Places)"""

import asyncio
import logging
import math

import httpx

from config import GOOGLE_MAPS_API_KEY
from cache import directions_cache, places_cache, place_phone_cache

logger = logging.getLogger("guardian.fetchers")

# Shared async HTTP client
client = httpx.AsyncClient(timeout=15.0)

DIRECTIONS_URL = "https://maps.googleapis.com/maps/api/directions/json"
NEARBY_SEARCH_URL = "https://maps.googleapis.com/maps/api/place/nearbysearch/json"
PLACE_DETAILS_URL = "https://maps.googleapis.com/maps/api/place/details/json"


def haversine_km(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Great-circle distance in kilometres."""
    R = 6371.0
    dlat = math.radians(lat2 - lat1)
    dlng = math.radians(lng2 - lng1)
    a = (math.sin(dlat / 2) ** 2
         + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(dlng / 2) ** 2)
    return R * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


# ─────────────────────────── Directions ─────────────────────────

async def fetch_directions(origin: str, destination: str) -> dict:
    """Get the first route between two free-text addresses.

    Returns {} when no key is configured, the provider errors, or no route
    exists. Raises nothing for HTTP failures; malformed payloads propagate so
    the caller can fall back to a mock scenario.
    """
    if not GOOGLE_MAPS_API_KEY:
        return {}

    cache_key = f"dir:{origin.strip().lower()}|{destination.strip().lower()}"
    cached = directions_cache.get(cache_key)
    if cached is not None:
        return cached

    try:
        r = await client.get(
            DIRECTIONS_URL,
            params={"origin": origin, "destination": destination, "key": GOOGLE_MAPS_API_KEY},
        )
    except httpx.HTTPError as e:
        logger.warning(f"Directions API error: {e}")
        return {}

    if r.status_code != 200:
        logger.warning(f"Directions API error {r.status_code}: {r.text[:200]}")
        return {}

    data = r.json()
    routes = data.get("routes", [])
    if not routes:
        logger.info(f"Directions API found no route ({data.get('status', 'UNKNOWN')})")
        return {}

    route = routes[0]
    leg = route["legs"][0]
    encoded = route.get("overview_polyline", {}).get("points", "")

    result = {
        "summary": route.get("summary", ""),
        "duration": leg.get("duration", {}).get("text"),
        "duration_seconds": leg.get("duration", {}).get("value", 0),
        "distance": leg.get("distance", {}).get("text"),
        "distance_meters": leg.get("distance", {}).get("value", 0),
        "start_location": leg.get("start_location"),
        "end_location": leg.get("end_location"),
        "points": _decode_polyline(encoded) if encoded else [],
    }
    directions_cache.set(cache_key, result)
    return result


def _decode_polyline(encoded: str) -> list[list[float]]:
    """Decode Google's encoded polyline format."""
    points = []
    index = 0
    lat = 0
    lng = 0
    while index < len(encoded):
        for coord in range(2):
            shift = 0
            result = 0
            while True:
                b = ord(encoded[index]) - 63
                index += 1
                result |= (b & 0x1F) << shift
                shift += 5
                if b < 0x20:
                    break
            delta = ~(result >> 1) if (result & 1) else (result >> 1)
            if coord == 0:
                lat += delta
            else:
                lng += delta
        points.append([lat / 1e5, lng / 1e5])
    return points


# ─────────────────────────── Places ─────────────────────────────

async def fetch_place_phone(place_id: str) -> str:
    """Phone number for a place, or "" when Place Details has none."""
    cached = place_phone_cache.get(place_id)
    if cached is not None:
        return cached

    phone = ""
    try:
        r = await client.get(
            PLACE_DETAILS_URL,
            params={
                "place_id": place_id,
                "fields": "formatted_phone_number,international_phone_number",
                "key": GOOGLE_MAPS_API_KEY,
            },
        )
        if r.status_code == 200:
            details = r.json().get("result", {})
            phone = details.get("formatted_phone_number") or details.get("international_phone_number") or ""
    except httpx.HTTPError as e:
        logger.warning(f"Place Details error ({place_id}): {e}")
        return ""

    place_phone_cache.set(place_id, phone)
    return phone


async def fetch_nearby_places(
    lat: float, lng: float, place_type: str,
    radius: int = 5000, limit: int = 5,
) -> list[dict]:
    """Nearby places of one type, sorted by distance, phone numbers resolved.

    Each place: {name, place_id, address, lat, lng, distance_km, rating, phone}.
    """
    if not GOOGLE_MAPS_API_KEY:
        return []

    cache_key = f"places:{lat:.3f},{lng:.3f}:{place_type}:{radius}"
    cached = places_cache.get(cache_key)
    if cached is not None:
        return cached[:limit]

    try:
        r = await client.get(
            NEARBY_SEARCH_URL,
            params={
                "location": f"{lat},{lng}",
                "radius": radius,
                "type": place_type,
                "key": GOOGLE_MAPS_API_KEY,
            },
        )
    except httpx.HTTPError as e:
        logger.warning(f"Places API error ({place_type}): {e}")
        return []

    if r.status_code != 200:
        logger.warning(f"Places API error {r.status_code} ({place_type})")
        return []

    results = r.json().get("results", [])[:limit]
    places = []
    for place in results:
        ploc = place.get("geometry", {}).get("location", {})
        plat = ploc.get("lat")
        plng = ploc.get("lng")
        if plat is None or plng is None:
            continue
        places.append({
            "name": place.get("name", ""),
            "place_id": place.get("place_id", ""),
            "address": place.get("vicinity") or place.get("formatted_address"),
            "lat": plat,
            "lng": plng,
            "distance_km": round(haversine_km(lat, lng, plat, plng), 2),
            "rating": place.get("rating", 0),
        })

    # Details lookups in parallel
    phones = await asyncio.gather(*(fetch_place_phone(p["place_id"]) for p in places if p["place_id"]))
    phone_iter = iter(phones)
    for p in places:
        p["phone"] = next(phone_iter) if p["place_id"] else ""

    places.sort(key=lambda p: p["distance_km"])
    places_cache.set(cache_key, places)
    return places
