# backend/cropscan/tools/weather.py
import logging
import time
from typing import List, Optional

import httpx
from pydantic import BaseModel, Field, ValidationError as SchemaError

from cropscan.errors import UpstreamError
from cropscan.http import upstream_body

log = logging.getLogger("cropscan.weather")

OPEN_METEO_URL = "https://api.open-meteo.com/v1/forecast"
DAILY_FIELDS = "temperature_2m_max,temperature_2m_min,precipitation_sum,wind_speed_10m_max"

def t(): return time.perf_counter()


class DailyBlock(BaseModel):
    time: List[str]
    temperature_2m_max: List[Optional[float]] = Field(default_factory=list)
    temperature_2m_min: List[Optional[float]] = Field(default_factory=list)
    precipitation_sum: List[Optional[float]] = Field(default_factory=list)
    wind_speed_10m_max: List[Optional[float]] = Field(default_factory=list)

class ForecastPayload(BaseModel):
    daily: DailyBlock


async def daily_forecast(client: httpx.AsyncClient, lat: float, lon: float, tz: str = "auto") -> DailyBlock:
    """
    Daily max/min temperature, precipitation and wind from Open-Meteo (no API key).
    Raises UpstreamError if the response has no daily date array.
    """
    start = t()
    params = {
        "latitude": lat,
        "longitude": lon,
        "daily": DAILY_FIELDS,
        "timezone": tz,
    }

    try:
        r = await client.get(OPEN_METEO_URL, params=params)
    except httpx.HTTPError as e:
        log.error("Open-Meteo request failed: %s", e)
        raise UpstreamError("Failed to fetch weather data", details=str(e)) from e

    if r.is_error:
        body = upstream_body(r)
        log.warning("Open-Meteo returned %s: %s", r.status_code, body)
        raise UpstreamError("Failed to fetch weather data", details=body)

    try:
        data = ForecastPayload.model_validate(r.json())
    except (ValueError, SchemaError) as e:
        log.warning("Open-Meteo response missing daily.time: %s", r.text[:300])
        raise UpstreamError("Invalid response from weather API") from e

    log.info("⏱️  Weather forecast: %sms (%s days)", round((t() - start) * 1000), len(data.daily.time))
    return data.daily
