"""Itinerary endpoints scoped to a note."""

from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from viberide.api.v1.errors import http_error
from viberide.core.auth import get_current_user_id
from viberide.core.database import get_async_session as get_session
from viberide.core.exceptions import AppError
from viberide.schemas.common import ApiResponse
from viberide.schemas.itinerary import (
    GenerationRequest,
    ItineraryListResponse,
    ItineraryResponse,
    ItinerarySummary,
)
from viberide.schemas.status import ItineraryStatus
from viberide.services.generation.itinerary_service import ItineraryService
from viberide.utils.logging import get_logger
from viberide.utils.responses import create_api_response

LOGGER = get_logger(__name__)

router = APIRouter()


async def get_itinerary_service(
    db_session: Annotated[AsyncSession, Depends(get_session)]
) -> ItineraryService:
    return ItineraryService(db_session)


@router.post(
    "/{note_id}/itineraries",
    response_model=ApiResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Submit an itinerary generation request",
    operation_id="submit_itinerary_generation",
)
async def submit_generation(
    request: Request,
    note_id: str,
    payload: GenerationRequest,
    user_id: Annotated[str, Depends(get_current_user_id)],
    service: Annotated[ItineraryService, Depends(get_itinerary_service)],
) -> ApiResponse:
    """Admit a generation request; resubmitting the same request_id returns the same itinerary."""
    LOGGER.info(f"Submitting generation for note: {note_id}", extra={"user_id": user_id})
    try:
        itinerary = await service.submit_generation(user_id, note_id, payload.request_id)
    except AppError as e:
        raise http_error(e, request) from e

    return create_api_response(
        data=ItineraryResponse.model_validate(itinerary),
        message="Itinerary generation accepted",
        request=request,
    )


@router.get(
    "/{note_id}/itineraries",
    response_model=ApiResponse,
    summary="List a note's itineraries",
    operation_id="list_note_itineraries",
)
async def list_itineraries(
    request: Request,
    note_id: str,
    user_id: Annotated[str, Depends(get_current_user_id)],
    service: Annotated[ItineraryService, Depends(get_itinerary_service)],
    status_filter: Optional[ItineraryStatus] = Query(None, alias="status"),
    limit: int = Query(20, ge=1, le=100),
) -> ApiResponse:
    """List itinerary versions for a note, newest first."""
    try:
        itineraries = await service.list_by_note(note_id, user_id, status=status_filter, limit=limit)
    except AppError as e:
        raise http_error(e, request) from e

    data = ItineraryListResponse(
        note_id=note_id,
        total=len(itineraries),
        itineraries=[ItinerarySummary.model_validate(i) for i in itineraries],
    )
    return create_api_response(
        data=data,
        message="Itineraries retrieved successfully" if itineraries else "No itineraries found",
        request=request,
    )
