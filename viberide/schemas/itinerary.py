"""Request and response models for the itinerary endpoints."""

from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from viberide.schemas.status import ItineraryStatus


class GenerationRequest(BaseModel):
    """Body of a generation submission."""

    request_id: str = Field(
        ...,
        min_length=1,
        max_length=128,
        description="Client idempotency key; resubmitting it returns the same itinerary",
    )


class ItineraryResponse(BaseModel):
    """Full itinerary record as stored."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    note_id: str
    user_id: str
    version: int
    status: ItineraryStatus
    request_id: str
    title: Optional[str] = None
    total_distance_km: Optional[float] = None
    total_duration_h: Optional[float] = None
    waypoint_count: Optional[int] = None
    route_name: Optional[str] = None
    route_geojson: Optional[Dict[str, Any]] = None
    failure_reason: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class ItinerarySummary(BaseModel):
    """List entry: the record without its geometry."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    version: int
    status: ItineraryStatus
    title: Optional[str] = None
    total_distance_km: Optional[float] = None
    total_duration_h: Optional[float] = None
    waypoint_count: Optional[int] = None
    created_at: datetime


class ItineraryListResponse(BaseModel):
    note_id: str
    total: int
    itineraries: List[ItinerarySummary]


class ItineraryStatusResponse(BaseModel):
    """Polling projection; only the fields relevant to the status are set."""

    id: UUID
    status: ItineraryStatus
    summary: Optional[Dict[str, Any]] = None
    failure_reason: Optional[str] = None
    cancelled_at: Optional[datetime] = None


class NavigationLinkResponse(BaseModel):
    id: UUID
    provider: str = Field(..., description="google or mapy")
    url: str
