"""GuardianAI Backend — Pydantic Models"""

from typing import Literal, Optional
from pydantic import BaseModel, Field


# ─────────────────────────── Route Analysis ─────────────────────

class AnalyzeRouteRequest(BaseModel):
    origin: str = Field(min_length=1)
    destination: str = Field(min_length=1)
    time: Optional[str] = None  # ISO datetime or "HH:MM"
    city: str = ""
    userId: Optional[str] = None
    preset: Optional[str] = None  # "college", "bus" or a scenario key


class NearestHelp(BaseModel):
    name: str
    distance_km: float
    phone: str


class LatLng(BaseModel):
    lat: float
    lng: float


class RiskBreakdown(BaseModel):
    base: int
    night: int
    long_duration: int
    highway: int
    jitter: int
    raw_total: int
    score: int


class RouteData(BaseModel):
    duration: Optional[str] = None
    distance: Optional[str] = None
    summary: str = ""
    start_location: Optional[LatLng] = None
    end_location: Optional[LatLng] = None
    polyline: list[list[float]] = []  # [[lat, lng], ...]
    risk_breakdown: Optional[RiskBreakdown] = None


class AnalyzeRouteResponse(BaseModel):
    risk_score: int = Field(ge=0, le=100)
    risk_level: str
    short_reason: str
    detailed_reason: list[str]
    recommended_route: str
    nearest_help: list[NearestHelp]
    chat_lines: list[str]
    route_data: Optional[RouteData] = None
    source: Literal["live", "ai", "mock", "preset"] = "mock"


class Scenario(BaseModel):
    key: str
    risk_score: int
    short_reason: str
    detailed_reason: list[str]
    recommended_route: str
    nearest_help: list[NearestHelp]
    chat_lines: list[str]


# ─────────────────────────── Emergency ──────────────────────────

class EmergencyServicesRequest(BaseModel):
    lat: Optional[float] = None
    lng: Optional[float] = None
    city: str = ""
    contactType: str = "police"


class EmergencyService(BaseModel):
    name: str
    phone_number: str
    contact_type: str
    address: Optional[str] = None
    lat: Optional[float] = None
    lng: Optional[float] = None
    distance_km: float
    rating: Optional[float] = None


class EmergencyServicesResponse(BaseModel):
    services: list[EmergencyService]
    total: int


class EmergencyContactCreate(BaseModel):
    userId: str
    name: str = Field(min_length=1)
    phone_number: str = Field(min_length=1)
    city: str = Field(min_length=1)
    contact_type: str = "family"
    address: str = ""
    state: str = ""
    lat: Optional[float] = None
    lng: Optional[float] = None


class EmergencyCallRequest(BaseModel):
    phone_number: str = "+91-100"
    contact_name: str = "Police"
    userId: Optional[str] = None
    lat: Optional[float] = None
    lng: Optional[float] = None


class EmergencyCallResponse(BaseModel):
    status: Literal["simulated"]
    call_id: str
    phone_number: str
    message: str
    timestamp: str


class EmergencySMSRequest(BaseModel):
    userId: Optional[str] = None
    message: Optional[str] = None
    recipients: list[str] = []
    lat: Optional[float] = None
    lng: Optional[float] = None
    shareLocation: bool = True


class EmergencySMSResponse(BaseModel):
    status: Literal["simulated"]
    sms_id: str
    recipients: list[str]
    message_sent: str
    timestamp: str


# ─────────────────────────── Chat ───────────────────────────────

class ChatMessage(BaseModel):
    role: Literal["user", "assistant"]
    content: str
    timestamp: Optional[str] = None


class ChatLocation(BaseModel):
    lat: Optional[float] = None
    lng: Optional[float] = None
    name: str = ""


class SafetyChatRequest(BaseModel):
    message: str = Field(min_length=1)
    userId: Optional[str] = None
    location: Optional[ChatLocation] = None
    chatHistory: list[ChatMessage] = []


class SafetyChatResponse(BaseModel):
    response: str
    timestamp: str


# ─────────────────────────── Reports ────────────────────────────

class IncidentReport(BaseModel):
    incident_type: str = Field(min_length=1)
    location_name: str = Field(min_length=1)
    incident_date: str = Field(min_length=1)
    description: str = ""
    severity: int = Field(default=5, ge=1, le=10)
    lat: Optional[float] = None
    lng: Optional[float] = None
    userId: Optional[str] = None


class RiskFactorReport(BaseModel):
    factor_type: str = Field(min_length=1)
    location_name: str = Field(min_length=1)
    lat: float
    lng: float
    risk_level: int = Field(ge=1, le=10)
    description: str = ""
    time_periods: list[str] = []
    userId: Optional[str] = None


class ProfileUpdate(BaseModel):
    full_name: Optional[str] = None
    phone_number: Optional[str] = None
    emergency_contact_name: Optional[str] = None
    emergency_contact_phone: Optional[str] = None
    preferred_language: Optional[Literal["en", "hi"]] = None
