"""
Voice assistant endpoints: speech-to-text, advice, translation, text-to-speech
"""
import httpx
from fastapi import APIRouter, Depends, File, UploadFile
from fastapi.responses import Response

from cropscan.config import Settings
from cropscan.di import get_http, get_settings
from cropscan.errors import ValidationError
from cropscan.schemas import (
    AdviceRequest, AdviceResponse, SpeechRequest, TranscriptionResponse,
    TranslateRequest, TranslateResponse,
)
from cropscan.services.assistant import ask_advice
from cropscan.tools.speech import transcribe
from cropscan.tools.translate import translate_text
from cropscan.tools.tts import synthesize_speech

router = APIRouter(tags=["voice"])


@router.post("/speech-to-text", response_model=TranscriptionResponse)
async def speech_to_text(audio: UploadFile = File(...),
                         client: httpx.AsyncClient = Depends(get_http),
                         settings: Settings = Depends(get_settings)):
    data = await audio.read()
    if not data:
        raise ValidationError("Audio file is required")
    return TranscriptionResponse(transcription=await transcribe(client, settings, data))


@router.post("/gemini-advice", response_model=AdviceResponse)
async def gemini_advice(req: AdviceRequest,
                        client: httpx.AsyncClient = Depends(get_http),
                        settings: Settings = Depends(get_settings)):
    return AdviceResponse(advice=await ask_advice(client, settings, req.text))


@router.post("/translate", response_model=TranslateResponse)
async def translate(req: TranslateRequest,
                    client: httpx.AsyncClient = Depends(get_http),
                    settings: Settings = Depends(get_settings)):
    translated = await translate_text(client, settings, req.text, req.targetLanguage)
    return TranslateResponse(translatedText=translated)


@router.post("/text-to-speech")
async def text_to_speech(req: SpeechRequest,
                         client: httpx.AsyncClient = Depends(get_http),
                         settings: Settings = Depends(get_settings)):
    if not req.text.strip():
        raise ValidationError("Text is required")
    audio = await synthesize_speech(client, settings, req.text)
    return Response(content=audio, media_type="audio/mpeg")
