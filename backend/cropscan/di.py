"""
Request-scoped access to the objects built at startup.
Everything lives on `app.state`; handlers receive it through `Depends`.
"""

import httpx
from fastapi import Request

from cropscan.config import Settings
from cropscan.tools.earth_engine import EarthEngineSatellite


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_http(request: Request) -> httpx.AsyncClient:
    client = getattr(request.app.state, "http", None)
    if client is None:
        raise RuntimeError("HTTP client not initialized. Start the app through its lifespan.")
    return client


def get_satellite(request: Request) -> EarthEngineSatellite:
    return request.app.state.satellite
