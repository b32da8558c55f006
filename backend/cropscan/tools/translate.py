# backend/cropscan/tools/translate.py
import logging
from typing import List, Optional

import httpx
from pydantic import BaseModel, Field, ValidationError as SchemaError

from cropscan.config import Settings
from cropscan.errors import UpstreamError
from cropscan.http import upstream_body

log = logging.getLogger("cropscan.translate")

TRANSLATE_URL = "https://translation.googleapis.com/language/translate/v2"


class _Translation(BaseModel):
    translatedText: Optional[str] = None

class _Data(BaseModel):
    translations: List[_Translation] = Field(default_factory=list)

class TranslateV2Response(BaseModel):
    data: Optional[_Data] = None


async def translate_text(client: httpx.AsyncClient, settings: Settings, text: str, target: str) -> str:
    """
    Google Translate v2, plain-text format.
    Fail safe on shape: if no translation comes back, return the original text.
    """
    body = {"q": text, "target": target, "format": "text"}

    try:
        r = await client.post(TRANSLATE_URL, params={"key": settings.GOOGLE_API_KEY}, json=body)
    except httpx.HTTPError as e:
        log.error("Translate request failed: %s", e)
        raise UpstreamError("Translation failed.", details=str(e)) from e

    if r.is_error:
        err = upstream_body(r)
        log.warning("Translate error %s: %s", r.status_code, err)
        raise UpstreamError("Translation failed.", details=err)

    try:
        data = TranslateV2Response.model_validate(r.json())
    except (ValueError, SchemaError) as e:
        raise UpstreamError("Translation failed.", details=r.text[:300]) from e

    if data.data and data.data.translations and data.data.translations[0].translatedText:
        return data.data.translations[0].translatedText
    log.warning("Translate returned no translation for target=%s; echoing input", target)
    return text
