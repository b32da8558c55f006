# backend/cropscan/services/advisory.py
import asyncio
import logging
import re
import time
from typing import List, Optional

import httpx

from cropscan.config import Settings
from cropscan.errors import UpstreamError
from cropscan.schemas import FarmingAdvice, GeoPoint, WeatherMetrics, WeatherResponse
from cropscan.tools import gemini
from cropscan.tools.earth_engine import DATASETS, EarthEngineSatellite
from cropscan.utils.concurrency import gather_settled

log = logging.getLogger("cropscan.advisory")

NO_DATA = "No Data"
ENGLISH_FALLBACK = "⚠️ No English advice available."
HINDI_FALLBACK = "⚠️ No Hindi advice available."

# A section runs from its marker ("Hindi" / "English", colon optional) to the
# next marker of the other language, or to the end of the text.
_MARKER_RE = re.compile(r"\b(Hindi|English)\b\s*:*", re.IGNORECASE)
_NOISE_RE = re.compile(r"[*#\s]+")

def t(): return time.perf_counter()


def _clean(section: str) -> str:
    return _NOISE_RE.sub(" ", section).strip()


def _section(text: str, markers: List[re.Match], lang: str) -> Optional[str]:
    start = next((m for m in markers if m.group(1).lower() == lang), None)
    if start is None:
        return None
    end = next((m.start() for m in markers
                if m.start() > start.end() and m.group(1).lower() != lang), len(text))
    return _clean(text[start.end():end]) or None


def parse_bilingual_advice(text: Optional[str]) -> FarmingAdvice:
    """
    Split a model reply into Hindi and English sections, in either order.
    A missing (or empty) section keeps its fallback string; nothing here raises.
    """
    advice = FarmingAdvice(english=ENGLISH_FALLBACK, hindi=HINDI_FALLBACK)
    if not text:
        return advice

    markers = list(_MARKER_RE.finditer(text))
    advice.hindi = _section(text, markers, "hindi") or HINDI_FALLBACK
    advice.english = _section(text, markers, "english") or ENGLISH_FALLBACK
    return advice


def format_metric(value: Optional[float], suffix: str = "") -> str:
    if value is None:
        return NO_DATA
    return f"{value:.4f}{suffix}"


def weather_prompt(metrics: WeatherMetrics) -> str:
    return (
        "Given the following weather conditions:\n"
        f"- Rainfall: {metrics.rainfall}\n"
        f"- NDVI: {metrics.ndvi}\n"
        f"- Soil Moisture (Top 0-7cm): {metrics.soil_moisture_top}\n\n"
        "Provide farming advice in Hindi first, followed by English.\n\n"
        "1. Explain how these weather conditions affect farming.\n"
        "2. Suggest suitable crops based on the data.\n"
        "3. Warn about potential crop diseases.\n"
        "4. Keep the response clear, farmer-friendly, and practical.\n"
        "5. Avoid unnecessary introductions.\n"
        "6. No bold or italic or anything like that.\n"
        "Answer exactly in this layout:\n"
        "Hindi:\n<advice in Hindi>\n\n"
        "English:\n<the same advice in English>\n"
    )


async def collect_metrics(satellite: EarthEngineSatellite, point: GeoPoint) -> WeatherMetrics:
    """
    Query the three datasets concurrently. An empty or failed dataset becomes "No Data";
    only when every query raised is the request failed.
    """
    start = t()
    results = await gather_settled(
        *(asyncio.to_thread(satellite.mean_value, ds, point.latitude, point.longitude) for ds in DATASETS),
        labels=[f"earth engine {ds.field}" for ds in DATASETS],
    )

    if all(not r.ok for r in results):
        raise UpstreamError("Failed to fetch weather data", details=str(results[0].error))

    values = {ds.field: r.value for ds, r in zip(DATASETS, results)}
    log.info("⏱️  Earth Engine metrics: %sms %s", round((t() - start) * 1000), values)
    return WeatherMetrics(
        ndvi=format_metric(values["ndvi"]),
        soil_moisture_top=format_metric(values["soil_moisture_top"]),
        rainfall=format_metric(values["rainfall"], " mm"),
    )


async def compose_weather(client: httpx.AsyncClient, settings: Settings,
                          satellite: EarthEngineSatellite, point: GeoPoint) -> WeatherResponse:
    """Satellite metrics plus bilingual farming advice; advice failures degrade to fallbacks."""
    log.info("📡 Fetching Earth Engine data for (%s, %s)...", point.latitude, point.longitude)
    metrics = await collect_metrics(satellite, point)

    advice = parse_bilingual_advice(None)
    try:
        text = await gemini.generate_text(client, settings, weather_prompt(metrics))
    except UpstreamError as e:
        log.warning("Farming advice unavailable: %s", e.message)
    else:
        if text:
            advice = parse_bilingual_advice(text)
        else:
            log.warning("Gemini returned no advice text")

    return WeatherResponse(**metrics.model_dump(), advice=advice)
