# backend/cropscan/services/forecast.py
from typing import List, Optional, Sequence

import httpx

from cropscan.schemas import ForecastDay, ForecastResponse, GeoPoint
from cropscan.tools.weather import DailyBlock, daily_forecast


def _at(values: Sequence[Optional[float]], i: int) -> float:
    v = values[i] if i < len(values) else None
    return v if v is not None else 0


def to_forecast_days(daily: DailyBlock) -> List[ForecastDay]:
    """One ForecastDay per upstream date, in upstream order; gaps become 0."""
    return [
        ForecastDay(
            date=date,
            max_temp=_at(daily.temperature_2m_max, i),
            min_temp=_at(daily.temperature_2m_min, i),
            precipitation=_at(daily.precipitation_sum, i),
            wind_speed=_at(daily.wind_speed_10m_max, i),
        )
        for i, date in enumerate(daily.time)
    ]


async def get_forecast(client: httpx.AsyncClient, point: GeoPoint) -> ForecastResponse:
    daily = await daily_forecast(client, point.latitude, point.longitude)
    return ForecastResponse(forecast=to_forecast_days(daily))
