"""
Vehicle Trip Analytics - FastAPI Backend

Main application entry point and configuration.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from tripcore.api.schemas import ErrorResponse
from tripcore.api.vehicles import decode_router, plates_router, router as vehicles_router
from tripcore.config import Settings
from tripcore.errors import (
    CorruptPayload,
    InvalidRequest,
    InvalidTimeRange,
    NoMovingWaypoints,
    TripCoreError,
    VehicleNotFound,
    WaypointSourceError,
)
from tripcore.services.history import VehicleHistoryService
from tripcore.services.sources import DirectoryWaypointSource, HttpWaypointSource, StaticVehicleRegistry


# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


APP_NAME = "Vehicle Trip Analytics"
APP_VERSION = "0.1.0"


def build_service(settings: Settings) -> VehicleHistoryService:
    """Pick the waypoint source from settings."""
    if settings.waypoint_api_url:
        source = HttpWaypointSource(
            settings.waypoint_api_url,
            token=settings.api_token,
            timeout_s=settings.http_timeout_s,
        )
        logger.info(f"Using waypoint API: {settings.waypoint_api_url}")
    else:
        source = DirectoryWaypointSource(settings.data_folder)
        logger.info(f"Using payload folder: {settings.data_folder}")
    if settings.plates_file is not None:
        registry = StaticVehicleRegistry.from_json_file(settings.plates_file)
    else:
        registry = StaticVehicleRegistry()
    return VehicleHistoryService(source, registry=registry, settings=settings)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    # Startup
    logger.info("Starting Vehicle Trip Analytics Backend")

    # Tests may install their own service before startup
    if getattr(app.state, "history_service", None) is None:
        app.state.history_service = build_service(Settings.from_env())

    yield

    # Shutdown
    logger.info("Shutting down Vehicle Trip Analytics Backend")


# Create FastAPI app
app = FastAPI(
    title=APP_NAME,
    description="""
    Backend API for vehicle GPS history and trip analytics.

    ## Features
    - Decode compressed waypoint payloads (base64 / gzip / base64 / protobuf)
    - Classify every waypoint as running, idle or stop
    - Accumulate great-circle distance and trip statistics

    ## Data Flow
    1. GET /vehicles/{id}/history?start_time=..&end_time=..
    2. GET /vehicles/{id}/trip-summary for moving-only statistics
    3. POST /decode to inspect a captured payload
    """,
    version=APP_VERSION,
    lifespan=lifespan,
)


# CORS middleware (allow all origins for development)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # In production, restrict this
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Include routers
app.include_router(vehicles_router)
app.include_router(plates_router)
app.include_router(decode_router)


def _error(status_code: int, exc: TripCoreError, stage: Optional[str] = None) -> JSONResponse:
    body = ErrorResponse(detail=str(exc), code=exc.code, stage=stage)
    return JSONResponse(status_code=status_code, content=body.model_dump())


@app.exception_handler(CorruptPayload)
async def corrupt_payload_handler(request: Request, exc: CorruptPayload):
    logger.error(f"{request.url.path}: {exc}")
    return _error(502, exc, stage=exc.stage.label)


@app.exception_handler(InvalidTimeRange)
async def invalid_time_range_handler(request: Request, exc: InvalidTimeRange):
    return _error(400, exc)


@app.exception_handler(VehicleNotFound)
async def vehicle_not_found_handler(request: Request, exc: VehicleNotFound):
    return _error(404, exc)


@app.exception_handler(NoMovingWaypoints)
async def no_moving_waypoints_handler(request: Request, exc: NoMovingWaypoints):
    return _error(404, exc)


@app.exception_handler(WaypointSourceError)
async def waypoint_source_handler(request: Request, exc: WaypointSourceError):
    return _error(502, exc)


@app.exception_handler(InvalidRequest)
async def invalid_request_handler(request: Request, exc: InvalidRequest):
    return _error(400, exc)


@app.get("/")
async def root():
    """Root endpoint - basic health check."""
    return {
        "name": APP_NAME,
        "version": APP_VERSION,
        "status": "running",
    }


@app.get("/health")
async def health_check(request: Request):
    """Health check endpoint."""
    service = getattr(request.app.state, "history_service", None)
    vehicles = None
    if service is not None and isinstance(service.source, DirectoryWaypointSource):
        vehicles = service.source.list_vehicles()
    return {
        "status": "healthy",
        "vehicles": vehicles,
        "source": type(service.source).__name__ if service else None,
        "short_idle_seconds": service.settings.short_idle_seconds if service else None,
        "long_idle_seconds": service.settings.long_idle_seconds if service else None,
    }
