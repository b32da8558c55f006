# backend/cropscan/tools/gemini.py
import logging
import time
from typing import List, Optional

import httpx
from pydantic import BaseModel, Field, ValidationError as SchemaError

from cropscan.config import Settings
from cropscan.errors import UpstreamError
from cropscan.http import upstream_body

log = logging.getLogger("cropscan.gemini")

GEMINI_URL = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"

def t(): return time.perf_counter()


class _Part(BaseModel):
    text: Optional[str] = None

class _Content(BaseModel):
    parts: List[_Part] = Field(default_factory=list)

class _Candidate(BaseModel):
    content: Optional[_Content] = None

class GenerateContentResponse(BaseModel):
    candidates: List[_Candidate] = Field(default_factory=list)

    def first_text(self) -> Optional[str]:
        if not self.candidates:
            return None
        content = self.candidates[0].content
        if content is None or not content.parts:
            return None
        text = content.parts[0].text
        return text.strip() if text and text.strip() else None


async def generate_text(client: httpx.AsyncClient, settings: Settings, prompt: str) -> Optional[str]:
    """
    Send a single-turn prompt to Gemini.
    Returns the first candidate's text (stripped), or None when the model returned nothing.
    Raises UpstreamError on transport failure or a non-2xx status.
    """
    start = t()
    url = GEMINI_URL.format(model=settings.GEMINI_MODEL)
    body = {"contents": [{"parts": [{"text": prompt}]}]}

    try:
        r = await client.post(url, params={"key": settings.GEMINI_API_KEY}, json=body)
    except httpx.HTTPError as e:
        log.error("Gemini request failed: %s", e)
        raise UpstreamError("Failed to reach Gemini API", details=str(e)) from e

    if r.is_error:
        err = upstream_body(r)
        log.warning("Gemini returned %s: %s", r.status_code, err)
        raise UpstreamError("Gemini API error", details=err)

    try:
        data = GenerateContentResponse.model_validate(r.json())
    except (ValueError, SchemaError) as e:
        raise UpstreamError("Invalid response from Gemini API", details=r.text[:500]) from e

    log.info("⏱️  Gemini generation: %sms (~%s prompt chars)", round((t() - start) * 1000), len(prompt))
    return data.first_text()
