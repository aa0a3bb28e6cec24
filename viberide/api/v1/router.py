from fastapi import APIRouter

from viberide.api.v1.endpoints import itineraries, notes

# Create API router
api_router = APIRouter()

# Include routers
api_router.include_router(notes.router, prefix="/notes", tags=["Itineraries"])
api_router.include_router(itineraries.router, prefix="/itineraries", tags=["Itineraries"])

__all__ = ["api_router"]
