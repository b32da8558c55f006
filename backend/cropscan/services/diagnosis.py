# backend/cropscan/services/diagnosis.py
import logging
import time
from typing import List

import httpx

from cropscan.config import Settings
from cropscan.schemas import AnalyzeResponse, DiseaseResult, DiseaseSuggestion
from cropscan.tools import crop_health, gemini
from cropscan.tools.crop_health import RawSuggestion
from cropscan.utils.concurrency import gather_settled
from cropscan.utils.staging import staged_upload

log = logging.getLogger("cropscan.diagnosis")

SUMMARY_FALLBACK = "Failed to fetch details."
UNKNOWN_DISEASE = "Unknown Disease"

def t(): return time.perf_counter()


def rank_suggestions(raw: List[RawSuggestion], top_k: int = 4) -> List[DiseaseSuggestion]:
    """
    Highest probability first, at most `top_k` entries, never padded.
    Ties keep their upstream order (sorted() is stable under reverse=True).
    """
    ranked = sorted(raw, key=lambda s: s.probability or 0, reverse=True)[:top_k]
    return [
        DiseaseSuggestion(
            id=s.id,
            name=s.name or UNKNOWN_DISEASE,
            probability=s.probability or 0,
            scientific_name=s.scientific_name,
        )
        for s in ranked
    ]


def summary_prompt(name: str) -> str:
    return (
        f"Give a short summary of the crop disease \"{name}\" for a farmer. "
        "Cover symptoms, cause and practical treatment or prevention in 3-5 sentences. "
        "Plain text only: no bold, italics, headings or bullet symbols."
    )


async def _summary(client: httpx.AsyncClient, settings: Settings, name: str) -> str:
    text = await gemini.generate_text(client, settings, summary_prompt(name))
    if not text:
        raise ValueError(f"empty summary for {name!r}")
    return text


async def summarize_all(client: httpx.AsyncClient, settings: Settings,
                        diseases: List[DiseaseSuggestion]) -> List[DiseaseSuggestion]:
    """Attach a summary to every disease concurrently; a failed branch gets the fallback text only."""
    results = await gather_settled(
        *(_summary(client, settings, d.name) for d in diseases),
        labels=[f"summary[{d.name}]" for d in diseases],
    )
    return [
        d.model_copy(update={"summary": r.value if r.ok else SUMMARY_FALLBACK})
        for d, r in zip(diseases, results)
    ]


async def analyze_image(client: httpx.AsyncClient, settings: Settings, image: bytes) -> AnalyzeResponse:
    """
    Stage the upload, identify diseases, keep the top results and enrich each with a summary.
    The staged file is removed when this returns or raises.
    """
    start = t()
    with staged_upload(image, settings.UPLOAD_DIR) as staged:
        raw = await crop_health.identify(client, settings, staged.base64)
        diseases = rank_suggestions(raw, settings.DISEASE_TOP_K)
        diseases = await summarize_all(client, settings, diseases)

    log.info("⏱️  Image analysis: %sms (%s of %s suggestions kept)",
             round((t() - start) * 1000), len(diseases), len(raw))
    return AnalyzeResponse(result=DiseaseResult(diseases=diseases))
