import logging
import sys
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from cropscan import __version__
from cropscan.config import Settings
from cropscan.errors import ConfigError, CropScanError
from cropscan.http import init_http, close_http
from cropscan.routers import analyze, voice, weather
from cropscan.tools.earth_engine import EarthEngineSatellite

log = logging.getLogger("cropscan.main")


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Earth Engine must authenticate before we accept traffic; failure aborts startup
    app.state.satellite.authenticate()
    app.state.http = init_http()
    log.info("CropScan API ready")

    yield

    await close_http(app.state.http)
    app.state.http = None


async def cropscan_error_handler(request: Request, exc: CropScanError):
    log.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def request_validation_handler(request: Request, exc: RequestValidationError):
    log.warning("%s %s rejected: %s", request.method, request.url.path, exc.errors())
    return JSONResponse(
        status_code=400,
        content={"error": "Invalid request", "details": [e.get("msg") for e in exc.errors()]},
    )


def create_app(settings: Settings, satellite: Optional[EarthEngineSatellite] = None) -> FastAPI:
    app = FastAPI(title="CropScan API", version=__version__, lifespan=lifespan)
    app.state.settings = settings
    app.state.satellite = satellite or EarthEngineSatellite(settings.SERVICE_ACCOUNT)
    app.state.http = None

    # Mobile client talks to us directly
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(CropScanError, cropscan_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)

    @app.get("/")
    async def root():
        return {"ok": True, "service": "CropScan API", "version": app.version}

    @app.get("/health")
    async def health():
        return {
            "ok": True,
            "satellite": app.state.satellite.initialized,
            "disease_top_k": settings.DISEASE_TOP_K,
            "speech_language": settings.SPEECH_LANGUAGE_CODE,
        }

    app.include_router(analyze.router)
    app.include_router(weather.router)
    app.include_router(voice.router)
    return app


def run() -> None:
    """Console entry point: load config, fail fast on bad secrets, then serve."""
    configure_logging()
    try:
        settings = Settings.from_env()
    except ConfigError as e:
        log.critical("Configuration error: %s", e)
        sys.exit(1)

    logging.getLogger().setLevel(settings.LOG_LEVEL)
    log.info("API keys and credentials loaded")
    app = create_app(settings)
    uvicorn.run(app, host=settings.HOST, port=settings.PORT)


if __name__ == "__main__":
    run()
