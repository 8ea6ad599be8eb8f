"""
Main FastAPI application entrypoint.
"""
import logging
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from sqlalchemy.exc import SQLAlchemyError

from travelplan.config import settings
from travelplan.api.health import router as health_router
from travelplan.api.trips import router as trips_router
from travelplan.api.trip_transfer import router as trip_transfer_router
from travelplan.api.accommodations import router as accommodations_router
from travelplan.api.day_plan_items import router as day_plan_items_router
from travelplan.api.travel_segments import router as travel_segments_router


logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan event handler for startup and shutdown.
    """
    logger.info(f"Starting Travel Plan API on {settings.host}:{settings.port}")
    logger.info(f"Debug mode: {settings.debug}")

    yield

    logger.info("Shutting down Travel Plan API")


app = FastAPI(
    title="Travel Plan API",
    description="Backend API for planning trips day by day",
    version=settings.app_version,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error(f"Database error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": {"code": "server_error", "message": "Unexpected server error"}},
    )


# Register routers
app.include_router(health_router, prefix="/api")
app.include_router(trip_transfer_router, prefix="/api")
app.include_router(trips_router, prefix="/api")
app.include_router(accommodations_router, prefix="/api")
app.include_router(day_plan_items_router, prefix="/api")
app.include_router(travel_segments_router, prefix="/api")


@app.get("/")
async def root():
    """Root endpoint with API information."""
    return {
        "name": "Travel Plan API",
        "version": settings.app_version,
        "status": "running",
        "docs": "/docs",
    }
