"""
/analyze: raw image body → crop.health diseases with Gemini summaries
"""
import httpx
from fastapi import APIRouter, Depends, Request

from cropscan.config import Settings
from cropscan.di import get_http, get_settings
from cropscan.schemas import AnalyzeResponse
from cropscan.services.diagnosis import analyze_image

router = APIRouter(tags=["diagnosis"])


@router.post("/analyze", response_model=AnalyzeResponse)
async def analyze(request: Request,
                  client: httpx.AsyncClient = Depends(get_http),
                  settings: Settings = Depends(get_settings)):
    """
    The mobile client posts the photo as the raw request body (e.g. `Content-Type: image/jpeg`).
    """
    image = await request.body()
    return await analyze_image(client, settings, image)
