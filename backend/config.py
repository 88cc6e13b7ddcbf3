"""GuardianAI Backend — Configuration & Constants"""

import os
from pathlib import Path
from dotenv import load_dotenv

# Load .env from project root (one level up from backend/)
_env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_env_path)

# ── API Keys ──
GOOGLE_MAPS_API_KEY = os.environ.get("GOOGLE_MAPS_API_KEY", "")
MAPBOX_PUBLIC_TOKEN = os.environ.get("MAPBOX_PUBLIC_TOKEN", "")
GEMINI_API_KEY = os.environ.get("GEMINI_API_KEY", "")
GEMINI_MODEL = os.environ.get("GEMINI_MODEL", "gemini-1.5-flash")

# ── Supabase (PostgREST) ──
SUPABASE_URL = os.environ.get("SUPABASE_URL", "").rstrip("/")
SUPABASE_SERVICE_ROLE_KEY = os.environ.get("SUPABASE_SERVICE_ROLE_KEY", "")

# ── Behaviour switches ──
AI_NARRATIVE_ENABLED = os.environ.get("AI_NARRATIVE_ENABLED", "true").lower() == "true"
_seed = os.environ.get("RISK_JITTER_SEED", "")
RISK_JITTER_SEED = int(_seed) if _seed.strip().isdigit() else None
RATE_LIMIT = int(os.environ.get("RATE_LIMIT", "30"))  # requests per minute per IP, 0 = off
CORS_ORIGINS = [o.strip() for o in os.environ.get("CORS_ORIGINS", "").split(",") if o.strip()]
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()

DEFAULT_CITY = "Mumbai"
CHAT_HISTORY_LIMIT = 10
CHAT_SESSION_TYPE = "safety_chat"
SAFETY_CONTEXT_LIMIT = 5

# Risk score bands (shared by narrative text and the gauge colour)
HIGH_RISK_THRESHOLD = 66
MODERATE_RISK_THRESHOLD = 33

# Emergency contact type → Google Places type
PLACE_TYPE_MAP = {
    "police": "police",
    "hospital": "hospital",
    "fire": "fire_station",
    "helpline": "local_government_office",
}

# Emergency contact type → national number (India)
DEFAULT_PHONE_MAP = {
    "police": "+91-100",
    "hospital": "+91-108",
    "fire": "+91-101",
    "helpline": "+91-1091",
}

# Last-resort services per contact type; "{city}" is filled in at lookup time
DEFAULT_EMERGENCY_SERVICES = {
    "police": [
        {"name": "Police Control Room", "phone_number": "+91-100", "distance_km": 1.0},
        {"name": "{city} Police Station", "phone_number": "+91-100", "distance_km": 1.5},
    ],
    "hospital": [
        {"name": "Emergency Medical Services", "phone_number": "+91-108", "distance_km": 1.2},
        {"name": "{city} General Hospital", "phone_number": "+91-108", "distance_km": 2.0},
    ],
    "fire": [
        {"name": "Fire Department", "phone_number": "+91-101", "distance_km": 1.8},
    ],
    "helpline": [
        {"name": "Women Helpline", "phone_number": "+91-1091", "distance_km": 0.5},
        {"name": "Child Helpline", "phone_number": "+91-1098", "distance_km": 0.5},
    ],
}

# Fallback nearest help for a route when neither the DB nor Places has anything
DEFAULT_NEAREST_HELP = [
    {"name": "Local Police Station", "distance_km": 1.2, "phone": "+91-100"},
    {"name": "Emergency Services", "distance_km": 0.8, "phone": "+91-108"},
    {"name": "Women Helpline", "distance_km": 1.5, "phone": "+91-1091"},
]

# Simulated safety observations mixed into live route reasons
SAFETY_FACTORS = [
    "Well-lit main roads with regular traffic",
    "CCTV coverage available on major intersections",
    "Police patrol routes include this area",
    "Limited street lighting in some sections",
    "Isolated stretches with minimal foot traffic",
]

# English phrase → Hindi, matched by substring
HINDI_PHRASES = {
    "Dim street lights and low foot traffic at night": "रात में कम रोशनी और कम पैदल यातायात",
    "Moderate traffic with good visibility": "अच्छी दृश्यता के साथ मध्यम ट्रैफिक",
    "High risk due to late hour": "देर रात के कारण उच्च जोखिम",
    "Safe route with good visibility": "अच्छी दृश्यता के साथ सुरक्षित रास्ता",
}
HINDI_DEFAULT = "मार्ग विश्लेषण पूर्ण - सावधानी बरतें"

SOS_MESSAGE_TEMPLATE = (
    "Emergency Alert: I need assistance. My current location is being shared. "
    "Please contact me immediately. - Sent via GuardianAI"
)
