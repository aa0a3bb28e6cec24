"""Itinerary lifecycle, download and navigation link endpoints."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from viberide.api.v1.endpoints.notes import get_itinerary_service
from viberide.api.v1.errors import http_error
from viberide.core.auth import get_current_user_id
from viberide.core.database import get_async_session as get_session
from viberide.core.exceptions import AppError
from viberide.schemas.common import ApiResponse
from viberide.schemas.itinerary import (
    ItineraryResponse,
    ItineraryStatusResponse,
    NavigationLinkResponse,
)
from viberide.services.generation.export_service import ExportFormat, ExportService
from viberide.services.generation.itinerary_service import ItineraryService
from viberide.services.route.links import LinkProvider
from viberide.utils.logging import get_logger
from viberide.utils.responses import create_api_response, create_error_detail

LOGGER = get_logger(__name__)

router = APIRouter()


async def get_export_service(
    db_session: Annotated[AsyncSession, Depends(get_session)]
) -> ExportService:
    return ExportService(db_session)


async def require_disclaimer_acknowledged(
    request: Request,
    acknowledged: bool = Query(
        False, description="Confirms the user accepted the GPS accuracy disclaimer"
    ),
) -> None:
    """Reject exports the user has not confirmed against the GPS accuracy disclaimer."""
    if acknowledged:
        return
    LOGGER.warning("Export attempted without acknowledgment", extra={"path": request.url.path})
    error_detail = create_error_detail(
        title="Acknowledgment Required",
        status=status.HTTP_400_BAD_REQUEST,
        detail="You must acknowledge the GPS accuracy disclaimer by setting acknowledged=true",
        request=request,
    )
    raise HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail=error_detail.model_dump(mode="json"),
    )


@router.get(
    "/{itinerary_id}",
    response_model=ApiResponse,
    summary="Get an itinerary",
    operation_id="get_itinerary",
)
async def get_itinerary(
    request: Request,
    itinerary_id: UUID,
    user_id: Annotated[str, Depends(get_current_user_id)],
    service: Annotated[ItineraryService, Depends(get_itinerary_service)],
) -> ApiResponse:
    try:
        itinerary = await service.get_itinerary(itinerary_id, user_id)
    except AppError as e:
        raise http_error(e, request) from e

    return create_api_response(
        data=ItineraryResponse.model_validate(itinerary),
        message="Itinerary retrieved successfully",
        request=request,
    )


@router.get(
    "/{itinerary_id}/status",
    response_model=ApiResponse,
    summary="Poll itinerary status",
    operation_id="get_itinerary_status",
)
async def get_itinerary_status(
    request: Request,
    itinerary_id: UUID,
    user_id: Annotated[str, Depends(get_current_user_id)],
    service: Annotated[ItineraryService, Depends(get_itinerary_service)],
) -> ApiResponse:
    try:
        result = await service.get_status(itinerary_id, user_id)
    except AppError as e:
        raise http_error(e, request) from e

    return create_api_response(
        data=ItineraryStatusResponse(**result),
        message=f"Itinerary is {result['status'].value}",
        request=request,
    )


@router.post(
    "/{itinerary_id}/complete",
    response_model=ApiResponse,
    summary="Store planner output on an itinerary",
    operation_id="complete_itinerary",
)
async def complete_itinerary(
    request: Request,
    itinerary_id: UUID,
    user_id: Annotated[str, Depends(get_current_user_id)],
    service: Annotated[ItineraryService, Depends(get_itinerary_service)],
) -> ApiResponse:
    """Validate the raw request body as a RouteGeo and complete the itinerary."""
    raw_output = await request.body()
    try:
        itinerary = await service.complete_generation(itinerary_id, user_id, raw_output)
    except AppError as e:
        raise http_error(e, request) from e

    return create_api_response(
        data=ItineraryResponse.model_validate(itinerary),
        message="Itinerary completed",
        request=request,
    )


@router.post(
    "/{itinerary_id}/cancel",
    response_model=ApiResponse,
    summary="Cancel a pending or running itinerary",
    operation_id="cancel_itinerary",
)
async def cancel_itinerary(
    request: Request,
    itinerary_id: UUID,
    user_id: Annotated[str, Depends(get_current_user_id)],
    service: Annotated[ItineraryService, Depends(get_itinerary_service)],
) -> ApiResponse:
    try:
        itinerary = await service.cancel_generation(itinerary_id, user_id)
    except AppError as e:
        raise http_error(e, request) from e

    return create_api_response(
        data=ItineraryResponse.model_validate(itinerary),
        message="Itinerary cancelled",
        request=request,
    )


@router.delete(
    "/{itinerary_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a finished itinerary",
    operation_id="delete_itinerary",
)
async def delete_itinerary(
    request: Request,
    itinerary_id: UUID,
    user_id: Annotated[str, Depends(get_current_user_id)],
    service: Annotated[ItineraryService, Depends(get_itinerary_service)],
) -> Response:
    try:
        await service.delete_generation(itinerary_id, user_id)
    except AppError as e:
        raise http_error(e, request) from e
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get(
    "/{itinerary_id}/download",
    summary="Download a completed itinerary",
    operation_id="download_itinerary",
    response_class=Response,
    dependencies=[Depends(require_disclaimer_acknowledged)],
)
async def download_itinerary(
    request: Request,
    itinerary_id: UUID,
    user_id: Annotated[str, Depends(get_current_user_id)],
    export_service: Annotated[ExportService, Depends(get_export_service)],
    export_format: ExportFormat = Query(ExportFormat.GPX, alias="format"),
) -> Response:
    """Download the route as GPX, KML or GeoJSON."""
    LOGGER.info(
        f"Exporting itinerary: {itinerary_id}",
        extra={"user_id": user_id, "format": export_format.value},
    )
    try:
        content, filename, media_type = await export_service.export_artifact(
            itinerary_id, export_format, user_id
        )
    except AppError as e:
        raise http_error(e, request) from e

    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get(
    "/{itinerary_id}/links/{provider}",
    response_model=ApiResponse,
    summary="Open a completed itinerary in a navigation app",
    operation_id="get_itinerary_navigation_link",
    dependencies=[Depends(require_disclaimer_acknowledged)],
)
async def get_navigation_link(
    request: Request,
    response: Response,
    itinerary_id: UUID,
    provider: LinkProvider,
    user_id: Annotated[str, Depends(get_current_user_id)],
    export_service: Annotated[ExportService, Depends(get_export_service)],
) -> ApiResponse:
    """Google Maps or Mapy.com link for the route, thinned to the provider's point limit."""
    try:
        url = await export_service.navigation_link(itinerary_id, provider, user_id)
    except AppError as e:
        raise http_error(e, request) from e

    response.headers["Cache-Control"] = "private, max-age=3600"
    return create_api_response(
        data=NavigationLinkResponse(id=itinerary_id, provider=provider.value, url=url),
        message="Navigation link generated successfully",
        request=request,
    )
