"""
/weather and /forecast: location-based endpoints
"""
from typing import Optional

import httpx
from fastapi import APIRouter, Depends, Query

from cropscan.config import Settings
from cropscan.di import get_http, get_satellite, get_settings
from cropscan.errors import ValidationError
from cropscan.schemas import ForecastResponse, GeoPoint, WeatherResponse
from cropscan.services.advisory import compose_weather
from cropscan.services.forecast import get_forecast
from cropscan.tools.earth_engine import EarthEngineSatellite

router = APIRouter(tags=["weather"])


def require_geo(lat: Optional[str] = Query(None), lon: Optional[str] = Query(None)) -> GeoPoint:
    if not lat or not lon:
        raise ValidationError("Latitude and Longitude required")
    try:
        return GeoPoint(latitude=float(lat), longitude=float(lon))
    except ValueError as e:
        raise ValidationError("Latitude and Longitude must be numbers") from e


@router.get("/weather", response_model=WeatherResponse)
async def weather(point: GeoPoint = Depends(require_geo),
                  client: httpx.AsyncClient = Depends(get_http),
                  settings: Settings = Depends(get_settings),
                  satellite: EarthEngineSatellite = Depends(get_satellite)):
    """NDVI, topsoil moisture and rainfall from Earth Engine, plus Hindi/English farming advice."""
    return await compose_weather(client, settings, satellite, point)


@router.get("/forecast", response_model=ForecastResponse)
async def forecast(point: GeoPoint = Depends(require_geo),
                   client: httpx.AsyncClient = Depends(get_http)):
    """Daily forecast from Open-Meteo."""
    return await get_forecast(client, point)
