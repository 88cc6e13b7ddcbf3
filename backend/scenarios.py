"""GuardianAI Backend — Canned route scenarios

Used whenever live directions are unavailable, and for the demo presets on
the home form.
"""

from typing import Optional

from models import NearestHelp, Scenario

SCENARIOS: dict[str, Scenario] = {
    "scenario_college_night": Scenario(
        key="scenario_college_night",
        risk_score=78,
        short_reason="Dim street lights and low foot traffic at night near Link Road.",
        detailed_reason=[
            "3 incidents reported in past 12 months within 500m",
            "Low streetlight density, CCTV coverage minimal",
            "Isolated stretch with low pedestrian traffic after 10 PM",
        ],
        recommended_route="Take Main Road (Route B) — slightly longer but better lit and passes by police chowki.",
        nearest_help=[
            NearestHelp(name="Bandra Police Station", distance_km=1.2, phone="+91-22-2642-2222"),
        ],
        chat_lines=[
            "EN: This route has poor lighting and past incidents — I recommend Route B via Main Road.",
            "HI: यह रास्ता रात में कम रोशनी और पहले की रिपोर्ट्स के कारण जोखिम भरा है — मैं Main Road सुझाता हूँ।",
        ],
    ),
    "scenario_bus_deviate": Scenario(
        key="scenario_bus_deviate",
        risk_score=45,
        short_reason="Bus deviated from its geofence; ETA increased.",
        detailed_reason=[
            "Bus off the planned path by 1.3 km",
            "ETA increased by 8 minutes",
        ],
        recommended_route="Notify driver and ask to rejoin designated route. Alert parent with current location.",
        nearest_help=[
            NearestHelp(name="Local Police Chowki", distance_km=0.8, phone="+91-22-2642-3333"),
        ],
        chat_lines=[
            "EN: Bus is off-route. ETA +8 mins. Should I alert parent and request driver to rejoin?",
            "HI: बस निर्धारित रूट से भटक गई है। ETA +8 मिनट। क्या मैं पेरेंट को अलर्ट करूँ?",
        ],
    ),
    "scenario_daytime": Scenario(
        key="scenario_daytime",
        risk_score=45,
        short_reason="Moderate traffic with good visibility during daytime hours.",
        detailed_reason=[
            "Regular daytime traffic provides natural surveillance",
            "Well-maintained roads with adequate lighting",
            "Multiple alternative routes available",
        ],
        recommended_route="Current route is suitable for daytime travel. Consider main roads for evening travel.",
        nearest_help=[
            NearestHelp(name="Local Police Chowki", distance_km=0.8, phone="+91-100"),
        ],
        chat_lines=[
            "EN: Moderate traffic with good visibility during daytime hours.",
            "HI: अच्छी दृश्यता के साथ मध्यम ट्रैफिक during daytime hours.",
        ],
    ),
}

# Home-form demo presets
PRESETS = {
    "college": "scenario_college_night",
    "bus": "scenario_bus_deviate",
}


def get_scenario(name: str) -> Optional[Scenario]:
    """Look up a scenario by preset name or full scenario key."""
    key = PRESETS.get(name.strip().lower(), name.strip())
    return SCENARIOS.get(key)


def list_scenarios() -> list[Scenario]:
    return list(SCENARIOS.values())


def select_mock_scenario(origin: str, destination: str, is_night: bool) -> Scenario:
    """Pick a canned scenario from the trip text."""
    o = (origin or "").lower()
    d = (destination or "").lower()

    if is_night or "college" in o or "college" in d or "night" in o or "night" in d or "home" in d:
        return SCENARIOS["scenario_college_night"]
    if "bus" in o or "bus" in d:
        return SCENARIOS["scenario_bus_deviate"]
    return SCENARIOS["scenario_daytime"]
