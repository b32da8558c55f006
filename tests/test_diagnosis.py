import asyncio
import base64
import json
import os
import re

import httpx

from cropscan.services.diagnosis import SUMMARY_FALLBACK, rank_suggestions, summarize_all
from cropscan.schemas import DiseaseSuggestion
from cropscan.tools.crop_health import RawSuggestion
from cropscan.utils import staging

from conftest import gemini_reply, prompt_of

CROP_HEALTH = "crop.kindwise.com"
GEMINI = "generativelanguage.googleapis.com"
IMAGE = b"\xff\xd8\xff\xe0fake-jpeg-bytes"


def identification(*suggestions):
    return httpx.Response(201, json={"result": {"disease": {"suggestions": list(suggestions)}}})


def suggestion(name, probability, **extra):
    return {"id": f"id-{name}", "name": name, "probability": probability, **extra}


def disease_in(request):
    return re.search(r"\"(.+?)\"", prompt_of(request)).group(1)


def raw(*pairs):
    return [RawSuggestion(name=n, probability=p) for n, p in pairs]


# ---------- ranking ----------

def test_rank_keeps_top_four_sorted():
    ranked = rank_suggestions(raw(("a", 0.1), ("b", 0.9), ("c", 0.3), ("d", 0.5), ("e", 0.7), ("f", 0.2)))
    assert [d.name for d in ranked] == ["b", "e", "d", "c"]
    assert [d.probability for d in ranked] == sorted((d.probability for d in ranked), reverse=True)


def test_rank_never_pads_short_lists():
    ranked = rank_suggestions(raw(("a", 0.2), ("b", 0.6)))
    assert [d.name for d in ranked] == ["b", "a"]
    assert rank_suggestions([]) == []


def test_rank_ties_keep_upstream_order():
    ranked = rank_suggestions(raw(("first", 0.5), ("top", 0.8), ("second", 0.5), ("third", 0.5)))
    assert [d.name for d in ranked] == ["top", "first", "second", "third"]


def test_rank_applies_defaults():
    [d] = rank_suggestions([RawSuggestion(id="x")])
    assert d.name == "Unknown Disease"
    assert d.probability == 0
    assert d.scientific_name is None


# ---------- summary fan-out ----------

def test_summaries_run_concurrently(settings):
    started = []
    all_started = asyncio.Event()

    async def handler(request):
        started.append(prompt_of(request))
        if len(started) == 3:
            all_started.set()
        # Sequential calls would never reach 3 in-flight requests
        await asyncio.wait_for(all_started.wait(), timeout=2)
        return gemini_reply("summary")

    async def run():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            diseases = [DiseaseSuggestion(name=n, probability=0.5) for n in ("a", "b", "c")]
            return await summarize_all(client, settings, diseases)

    result = asyncio.run(run())
    assert [d.summary for d in result] == ["summary"] * 3


def test_empty_summary_uses_fallback(settings):
    async def run():
        transport = httpx.MockTransport(lambda r: httpx.Response(200, json={"candidates": []}))
        async with httpx.AsyncClient(transport=transport) as client:
            return await summarize_all(client, settings, [DiseaseSuggestion(name="rust", probability=0.4)])

    [d] = asyncio.run(run())
    assert d.summary == SUMMARY_FALLBACK


# ---------- /analyze ----------

def test_analyze_returns_top_four_with_summaries(client, upstream):
    upstream.on(CROP_HEALTH, lambda r: identification(
        suggestion("leaf blight", 0.42, scientific_name="Alternaria solani"),
        suggestion("powdery mildew", 0.91),
        suggestion("rust", 0.05),
        suggestion("mosaic virus", 0.33),
        suggestion("early blight", 0.64),
    ))
    upstream.on(GEMINI, lambda r: gemini_reply(f"About: {disease_in(r)}"))

    resp = client.post("/analyze", content=IMAGE, headers={"Content-Type": "image/jpeg"})
    assert resp.status_code == 200
    diseases = resp.json()["result"]["diseases"]
    assert [d["name"] for d in diseases] == ["powdery mildew", "early blight", "leaf blight", "mosaic virus"]
    assert diseases[2]["scientific_name"] == "Alternaria solani"
    assert diseases[0]["summary"] == "About: powdery mildew"
    assert len(upstream.to(GEMINI)) == 4


def test_analyze_sends_base64_image_without_geolocation(client, upstream, settings):
    upstream.on(CROP_HEALTH, lambda r: identification())
    client.post("/analyze", content=IMAGE)

    [sent] = upstream.to(CROP_HEALTH)
    assert sent.headers["Api-Key"] == settings.CROP_HEALTH_API_KEY
    payload = json.loads(sent.content)
    assert payload["similar_images"] is True
    assert "latitude" not in payload and "longitude" not in payload
    assert base64.b64decode(payload["images"][0]) == IMAGE


def test_analyze_failed_summary_does_not_leak(client, upstream):
    upstream.on(CROP_HEALTH, lambda r: identification(
        suggestion("rust", 0.8), suggestion("blight", 0.6), suggestion("mildew", 0.4)))

    def gemini(request):
        if '"blight"' in prompt_of(request):
            return httpx.Response(500, json={"error": {"message": "quota"}})
        return gemini_reply("real summary")

    upstream.on(GEMINI, gemini)
    diseases = client.post("/analyze", content=IMAGE).json()["result"]["diseases"]
    summaries = {d["name"]: d["summary"] for d in diseases}
    assert summaries == {"rust": "real summary", "blight": SUMMARY_FALLBACK, "mildew": "real summary"}


def test_analyze_upstream_error_carries_details(client, upstream):
    upstream.on(CROP_HEALTH, lambda r: httpx.Response(401, json={"error": "invalid api key"}))

    resp = client.post("/analyze", content=IMAGE)
    assert resp.status_code == 500
    assert resp.json()["details"] == {"error": "invalid api key"}
    assert upstream.to(GEMINI) == []


def test_analyze_empty_body_is_rejected(client, upstream):
    resp = client.post("/analyze", content=b"")
    assert resp.status_code == 400
    assert "error" in resp.json()
    assert upstream.requests == []


def _count_removals(monkeypatch):
    removed = []
    real_remove = os.remove

    def counting_remove(path):
        removed.append(str(path))
        real_remove(path)

    monkeypatch.setattr(staging.os, "remove", counting_remove)
    return removed


def test_analyze_deletes_staged_file_once_on_success(client, upstream, settings, monkeypatch):
    removed = _count_removals(monkeypatch)
    upstream.on(CROP_HEALTH, lambda r: identification(suggestion("rust", 0.8)))
    upstream.on(GEMINI, lambda r: gemini_reply("ok"))

    assert client.post("/analyze", content=IMAGE).status_code == 200
    assert len(removed) == 1
    assert os.listdir(settings.UPLOAD_DIR) == []


def test_analyze_deletes_staged_file_once_on_failure(client, upstream, settings, monkeypatch):
    removed = _count_removals(monkeypatch)
    upstream.on(CROP_HEALTH, lambda r: httpx.Response(503, text="unavailable"))

    assert client.post("/analyze", content=IMAGE).status_code == 500
    assert len(removed) == 1
    assert os.listdir(settings.UPLOAD_DIR) == []
