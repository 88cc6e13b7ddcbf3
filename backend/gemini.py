"""GuardianAI Backend — Gemini (google-generativeai) calls"""

import json
import logging
import math
from typing import Optional

from config import GEMINI_API_KEY, GEMINI_MODEL

logger = logging.getLogger("guardian.gemini")

SAFETY_SETTINGS = {
    "HARM_CATEGORY_HARASSMENT": "BLOCK_MEDIUM_AND_ABOVE",
    "HARM_CATEGORY_HATE_SPEECH": "BLOCK_MEDIUM_AND_ABOVE",
    "HARM_CATEGORY_SEXUALLY_EXPLICIT": "BLOCK_MEDIUM_AND_ABOVE",
    "HARM_CATEGORY_DANGEROUS_CONTENT": "BLOCK_MEDIUM_AND_ABOVE",
}


class GeminiUnavailable(Exception):
    """No API key, or the provider call failed."""


def extract_json_object(text: str) -> Optional[dict]:
    """Pull the outermost {...} out of a model reply. None if it does not parse."""
    if not text:
        return None
    start_idx = text.find("{")
    end_idx = text.rfind("}")
    if start_idx == -1 or end_idx <= start_idx:
        return None
    try:
        parsed = json.loads(text[start_idx:end_idx + 1])
    except json.JSONDecodeError:
        return None
    return parsed if isinstance(parsed, dict) else None


def _configure():
    if not GEMINI_API_KEY:
        raise GeminiUnavailable("Gemini API key not configured")
    import google.generativeai as genai
    genai.configure(api_key=GEMINI_API_KEY)
    return genai


async def generate_route_narrative(
    *,
    origin: str,
    destination: str,
    route_summary: str,
    duration_text: str,
    distance_text: str,
    is_night: bool,
    heuristic_score: int,
    safety_context: str,
) -> Optional[dict]:
    """Ask Gemini for a risk narrative of a route.

    Returns {risk_score, short_reason, detailed_reason, recommended_route} or
    None when Gemini is unavailable or the reply is malformed.
    """
    try:
        genai = _configure()
    except GeminiUnavailable:
        return None

    prompt = f"""You are a women's safety analyst for Indian cities. Assess the risk of this trip.

Trip:
- From: {origin}
- To: {destination}
- Route: {route_summary or 'unnamed roads'} ({distance_text or '?'}, {duration_text or '?'})
- Time: {"night (22:00-06:59)" if is_night else "daytime"}
- Heuristic risk score: {heuristic_score}/100

Local safety data:
{safety_context or "No recent incidents or risk factors on record."}

Rules:
1. risk_score is an integer 0-100 (higher = riskier) and should stay close to the heuristic unless the data says otherwise
2. detailed_reason is 2-4 short factual lines
3. Be practical, not alarming

Return ONLY valid JSON (no markdown):
{{"risk_score": <int>, "short_reason": "1 sentence", "detailed_reason": ["..."], "recommended_route": "1 sentence"}}"""

    try:
        model = genai.GenerativeModel(GEMINI_MODEL)
        result = await model.generate_content_async(
            prompt,
            generation_config=genai.types.GenerationConfig(
                response_mime_type="application/json",
                temperature=0.4,
            ),
            safety_settings=SAFETY_SETTINGS,
        )
        text = result.text.strip()
    except Exception as e:
        logger.warning(f"Gemini narrative error (keeping heuristic): {e}")
        return None

    parsed = extract_json_object(text)
    if not _valid_narrative(parsed):
        logger.warning(f"Discarding malformed Gemini narrative: {text[:200]}")
        return None

    parsed["risk_score"] = max(0, min(100, int(float(parsed["risk_score"]))))
    parsed["detailed_reason"] = [str(r) for r in parsed["detailed_reason"]]
    return parsed


def _valid_narrative(parsed: Optional[dict]) -> bool:
    if not parsed:
        return False
    try:
        if not math.isfinite(float(parsed.get("risk_score"))):
            return False
    except (TypeError, ValueError):
        return False
    return (
        isinstance(parsed.get("short_reason"), str) and parsed["short_reason"].strip() != ""
        and isinstance(parsed.get("detailed_reason"), list) and len(parsed["detailed_reason"]) > 0
        and isinstance(parsed.get("recommended_route"), str)
    )


async def generate_chat_reply(system_prompt: str, history: list[dict], message: str) -> str:
    """One assistant turn. history items are {"role": "user"|"assistant", "content": str}.

    Raises GeminiUnavailable when there is no key or the call fails.
    """
    genai = _configure()

    model = genai.GenerativeModel(GEMINI_MODEL, system_instruction=system_prompt)
    gemini_history = _alternate_turns(history)
    # An unanswered user turn at the end is folded into the outgoing message
    if gemini_history and gemini_history[-1]["role"] == "user":
        message = "\n\n".join(gemini_history.pop()["parts"] + [message])
    try:
        chat = model.start_chat(history=gemini_history)
        result = await chat.send_message_async(
            message,
            generation_config=genai.types.GenerationConfig(
                temperature=0.7,
                top_p=0.9,
                max_output_tokens=1024,
            ),
            safety_settings=SAFETY_SETTINGS,
        )
        text = result.text.strip()
    except Exception as e:
        raise GeminiUnavailable(f"Gemini chat error: {e}") from e

    if not text:
        return "Sorry, I could not process your request."
    return text


def _alternate_turns(history: list[dict]) -> list[dict]:
    """Map roles to Gemini's user/model and merge consecutive same-role turns."""
    turns: list[dict] = []
    for msg in history:
        role = "user" if msg["role"] == "user" else "model"
        if turns and turns[-1]["role"] == role:
            turns[-1]["parts"].append(msg["content"])
        else:
            turns.append({"role": role, "parts": [msg["content"]]})
    return turns
