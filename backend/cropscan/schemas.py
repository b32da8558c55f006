from typing import Optional, List, Union
from pydantic import BaseModel, Field


# ---------- Shared ----------

class GeoPoint(BaseModel):
    latitude: float = Field(..., description="Latitude in WGS84")
    longitude: float = Field(..., description="Longitude in WGS84")


# ---------- /analyze ----------

class DiseaseSuggestion(BaseModel):
    id: Optional[Union[str, int]] = None
    name: str = "Unknown Disease"
    probability: float = 0
    scientific_name: Optional[str] = None
    summary: str = ""

class DiseaseResult(BaseModel):
    diseases: List[DiseaseSuggestion] = Field(default_factory=list)

class AnalyzeResponse(BaseModel):
    result: DiseaseResult


# ---------- /weather ----------

class FarmingAdvice(BaseModel):
    english: str
    hindi: str

class WeatherMetrics(BaseModel):
    ndvi: str
    soil_moisture_top: str
    rainfall: str

class WeatherResponse(WeatherMetrics):
    advice: FarmingAdvice


# ---------- /forecast ----------

class ForecastDay(BaseModel):
    date: str
    max_temp: float = 0
    min_temp: float = 0
    precipitation: float = 0
    wind_speed: float = 0

class ForecastResponse(BaseModel):
    forecast: List[ForecastDay] = Field(default_factory=list)


# ---------- Voice assistant ----------

class TranscriptionResponse(BaseModel):
    transcription: str

class AdviceRequest(BaseModel):
    text: str = Field(..., description="Farmer's question, usually a transcription")

class AdviceResponse(BaseModel):
    advice: str

class TranslateRequest(BaseModel):
    text: str
    targetLanguage: str = Field(..., description="Target language code, e.g. 'hi'")

class TranslateResponse(BaseModel):
    translatedText: str

class SpeechRequest(BaseModel):
    text: str
