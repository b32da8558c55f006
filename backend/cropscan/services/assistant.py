# backend/cropscan/services/assistant.py
import logging

import httpx

from cropscan.config import Settings
from cropscan.tools import gemini

log = logging.getLogger("cropscan.assistant")

NO_REPLY = "Gemini didn't reply"


def farmer_prompt(question: str) -> str:
    return (
        f"You are a farming assistant. A farmer asked: \"{question}\". "
        "Reply in English with concise, practical advice. "
        "Avoid bold or italics. Use simple language. Don't include any greetings or introductions."
    )


async def ask_advice(client: httpx.AsyncClient, settings: Settings, question: str) -> str:
    log.info("📝 Advice requested (%s chars)", len(question))
    reply = await gemini.generate_text(client, settings, farmer_prompt(question))
    return reply or NO_REPLY
