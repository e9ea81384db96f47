"""FastAPI application."""

import logging

from fastapi import FastAPI

from itinerary_backend.app.api.routes.health import router as health_router
from itinerary_backend.app.api.routes.metrics import router as metrics_router
from itinerary_backend.app.api.routes.travel import router as travel_router
from itinerary_backend.app.api.routes.trips import router as trips_router
from itinerary_backend.app.config import get_settings

logging.basicConfig(level=get_settings().log_level)

app = FastAPI(title="Itinerary Draft API", version="0.1.0")

# Register routes
app.include_router(health_router, tags=["health"])
app.include_router(metrics_router, tags=["metrics"])
app.include_router(trips_router, tags=["trips"])
app.include_router(travel_router, tags=["travel"])


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint."""
    return {"message": "Itinerary Draft API", "version": "0.1.0"}
