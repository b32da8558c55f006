# backend/cropscan/tools/speech.py
import base64
import logging
from typing import List, Optional

import httpx
from pydantic import BaseModel, Field, ValidationError as SchemaError

from cropscan.config import Settings
from cropscan.errors import UpstreamError
from cropscan.http import upstream_body

log = logging.getLogger("cropscan.speech")

SPEECH_URL = "https://speech.googleapis.com/v1/speech:recognize"


class _Alternative(BaseModel):
    transcript: Optional[str] = None

class _Result(BaseModel):
    alternatives: List[_Alternative] = Field(default_factory=list)

class RecognizeResponse(BaseModel):
    results: List[_Result] = Field(default_factory=list)

    def transcription(self) -> str:
        lines = [r.alternatives[0].transcript or "" for r in self.results if r.alternatives]
        return "\n".join(lines)


async def transcribe(client: httpx.AsyncClient, settings: Settings, audio: bytes) -> str:
    """Google Speech-to-Text (v1, synchronous recognize). Returns '' when nothing was recognised."""
    payload = {
        "config": {
            "encoding": settings.SPEECH_ENCODING,
            "sampleRateHertz": settings.SPEECH_SAMPLE_RATE_HZ,
            "languageCode": settings.SPEECH_LANGUAGE_CODE,
        },
        "audio": {"content": base64.b64encode(audio).decode("ascii")},
    }

    try:
        r = await client.post(SPEECH_URL, params={"key": settings.GOOGLE_API_KEY}, json=payload)
    except httpx.HTTPError as e:
        log.error("Speech-to-Text request failed: %s", e)
        raise UpstreamError("Speech-to-Text failed", details=str(e)) from e

    if r.is_error:
        body = upstream_body(r)
        log.warning("STT error %s: %s", r.status_code, body)
        raise UpstreamError("Speech-to-Text failed", details=body)

    try:
        data = RecognizeResponse.model_validate(r.json())
    except (ValueError, SchemaError) as e:
        raise UpstreamError("Speech-to-Text failed", details=r.text[:300]) from e

    text = data.transcription()
    log.info("Transcribed %s result(s), %s chars", len(data.results), len(text))
    return text
