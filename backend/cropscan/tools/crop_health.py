# backend/cropscan/tools/crop_health.py
import logging
import time
from typing import Any, Dict, List, Optional, Union

import httpx
from pydantic import BaseModel, Field, ValidationError as SchemaError

from cropscan.config import Settings
from cropscan.errors import UpstreamError
from cropscan.http import upstream_body

log = logging.getLogger("cropscan.crop_health")

def t(): return time.perf_counter()


class RawSuggestion(BaseModel):
    id: Optional[Union[str, int]] = None
    name: Optional[str] = None
    probability: Optional[float] = None
    scientific_name: Optional[str] = None

class _Disease(BaseModel):
    suggestions: List[RawSuggestion] = Field(default_factory=list)

class _Result(BaseModel):
    disease: Optional[_Disease] = None

class IdentificationResponse(BaseModel):
    result: Optional[_Result] = None


async def identify(client: httpx.AsyncClient, settings: Settings, image_b64: str) -> List[RawSuggestion]:
    """
    Submit one base64 image to crop.health and return its raw disease suggestions.
    No geolocation is attached; similar images are requested.
    """
    start = t()
    payload: Dict[str, Any] = {
        "images": [image_b64],
        "similar_images": True,
    }
    headers = {"Api-Key": settings.CROP_HEALTH_API_KEY, "Content-Type": "application/json"}

    try:
        r = await client.post(settings.CROP_HEALTH_API_URL, json=payload, headers=headers)
    except httpx.HTTPError as e:
        log.error("crop.health request failed: %s", e)
        raise UpstreamError("Failed to reach crop health API", details=str(e)) from e

    if r.is_error:
        body = upstream_body(r)
        log.warning("crop.health returned %s: %s", r.status_code, body)
        raise UpstreamError("Crop health API error", details=body)

    try:
        data = IdentificationResponse.model_validate(r.json())
    except (ValueError, SchemaError) as e:
        log.warning("crop.health returned an unexpected body: %s", r.text[:500])
        raise UpstreamError("Invalid response from crop health API", details=r.text[:500]) from e

    suggestions = data.result.disease.suggestions if data.result and data.result.disease else []
    log.info("⏱️  crop.health identification: %sms (%s suggestions)", round((t() - start) * 1000), len(suggestions))
    return suggestions
