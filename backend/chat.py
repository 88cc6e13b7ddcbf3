"""GuardianAI Backend — Safety chat assistant"""

import logging
from datetime import datetime, timezone

from config import CHAT_HISTORY_LIMIT, CHAT_SESSION_TYPE
from gemini import GeminiUnavailable, generate_chat_reply
from models import SafetyChatRequest, SafetyChatResponse, ChatMessage
from reports import build_safety_context
from store import DataStore, StoreError

logger = logging.getLogger("guardian.chat")

FALLBACK_REPLY = (
    "I'm having trouble connecting right now. For immediate help call Police 100, "
    "Women Helpline 1091 or Emergency 108."
)


def build_system_prompt(context_info: str) -> str:
    return f"""You are GuardianAI, a women's safety assistant. You provide helpful, accurate, and supportive information about:
- Route safety and risk assessment
- Emergency procedures and contacts
- Crime prevention tips
- Personal safety strategies
- Legal rights and resources
- Mental health support

Current safety context: {context_info or "none available"}

Guidelines:
- Be empathetic and supportive
- Provide practical, actionable advice
- Include emergency numbers when relevant (India: Police-100, Women Helpline-1091, Emergency-108)
- Encourage reporting incidents to authorities
- Prioritize user safety and well-being
- Be culturally sensitive for Indian context
- Provide information in both English and Hindi when helpful"""


def trim_history(history: list[ChatMessage], limit: int = CHAT_HISTORY_LIMIT) -> list[dict]:
    return [{"role": m.role, "content": m.content} for m in history[-limit:]] if limit > 0 else []


async def _active_session(store: DataStore, user_id: str) -> dict | None:
    rows = await store.select(
        "chat_sessions",
        {"user_id": user_id, "is_active": True, "session_type": CHAT_SESSION_TYPE},
        limit=1,
    )
    return rows[0] if rows else None


async def append_to_session(store: DataStore, user_id: str, new_messages: list[dict]) -> dict:
    """Append to the user's active session, creating it on first use. Never drops messages."""
    session = await _active_session(store, user_id)
    if session:
        messages = list(session.get("messages") or []) + new_messages
        return await store.update("chat_sessions", session["id"], {"messages": messages})
    return await store.insert("chat_sessions", {
        "user_id": user_id,
        "session_type": CHAT_SESSION_TYPE,
        "messages": new_messages,
        "is_active": True,
    })


async def load_history(store: DataStore, user_id: str) -> list[dict]:
    session = await _active_session(store, user_id)
    return list(session.get("messages") or []) if session else []


async def answer(req: SafetyChatRequest, store: DataStore) -> SafetyChatResponse:
    logger.info(f"Chat request from {req.userId or 'anonymous'} ({len(req.chatHistory)} prior messages)")

    context_info = await build_safety_context(store) if req.location else ""
    system_prompt = build_system_prompt(context_info)

    try:
        reply = await generate_chat_reply(system_prompt, trim_history(req.chatHistory), req.message)
    except GeminiUnavailable as e:
        logger.warning(f"Safety chat degraded to fallback reply: {e}")
        reply = FALLBACK_REPLY

    timestamp = datetime.now(timezone.utc).isoformat()

    if req.userId:
        try:
            await append_to_session(store, req.userId, [
                {"role": "user", "content": req.message, "timestamp": timestamp},
                {"role": "assistant", "content": reply, "timestamp": timestamp},
            ])
        except StoreError as e:
            logger.error(f"Error saving chat session for {req.userId}: {e}")

    return SafetyChatResponse(response=reply, timestamp=timestamp)
