# backend/cropscan/tools/tts.py
import base64
import binascii
import logging
from typing import Optional

import httpx
from pydantic import BaseModel, ValidationError as SchemaError

from cropscan.config import Settings
from cropscan.errors import UpstreamError
from cropscan.http import upstream_body

log = logging.getLogger("cropscan.tts")

TTS_URL = "https://texttospeech.googleapis.com/v1/text:synthesize"


class SynthesizeResponse(BaseModel):
    audioContent: Optional[str] = None


async def synthesize_speech(client: httpx.AsyncClient, settings: Settings, text: str) -> bytes:
    """Google Text-to-Speech (MP3). Returns raw audio bytes."""
    body = {
        "input": {"text": text},
        "voice": {"languageCode": settings.TTS_LANGUAGE_CODE, "ssmlGender": "NEUTRAL"},
        "audioConfig": {"audioEncoding": "MP3"},
    }

    try:
        r = await client.post(TTS_URL, params={"key": settings.GOOGLE_API_KEY}, json=body)
    except httpx.HTTPError as e:
        log.error("Text-to-Speech request failed: %s", e)
        raise UpstreamError("Text-to-Speech failed", details=str(e)) from e

    if r.is_error:
        err = upstream_body(r)
        log.warning("TTS error %s: %s", r.status_code, err)
        raise UpstreamError("Text-to-Speech failed", details=err)

    try:
        data = SynthesizeResponse.model_validate(r.json())
    except (ValueError, SchemaError) as e:
        raise UpstreamError("Text-to-Speech failed", details=r.text[:300]) from e

    if not data.audioContent:
        raise UpstreamError("Text-to-Speech returned no audio")
    try:
        return base64.b64decode(data.audioContent)
    except binascii.Error as e:
        raise UpstreamError("Text-to-Speech returned undecodable audio") from e
