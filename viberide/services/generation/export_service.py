"""Download of completed itineraries as GPX, KML or GeoJSON files, or as navigation app links."""

import json
import uuid
from enum import Enum
from typing import Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from viberide.core.config import settings
from viberide.core.exceptions import ItineraryNotCompletedError, ItineraryNotFoundError
from viberide.database.models import Itinerary
from viberide.repositories.itinerary_repository import ItineraryRepository
from viberide.schemas.status import ItineraryStatus
from viberide.services.route.filenames import sanitize_filename
from viberide.services.route.gpx import to_gpx
from viberide.services.route.gpx_checker import assert_valid_gpx
from viberide.services.route.kml import to_kml
from viberide.services.route.links import LinkProvider, build_google_maps_link, build_mapy_link
from viberide.services.route.options import ExportOptions
from viberide.services.route.validator import validate_route_geo
from viberide.utils.logging import get_logger

LOGGER = get_logger(__name__)


class ExportFormat(str, Enum):
    GPX = "gpx"
    KML = "kml"
    GEOJSON = "geojson"


MEDIA_TYPES = {
    ExportFormat.GPX: "application/gpx+xml",
    ExportFormat.KML: "application/vnd.google-earth.kml+xml",
    ExportFormat.GEOJSON: "application/geo+json",
}


def build_filename(title: str, itinerary_id: uuid.UUID, export_format: ExportFormat) -> str:
    """``route-<title>-<id prefix>.<ext>``; the title part is dropped when it sanitizes to nothing."""
    short_id = str(itinerary_id)[:8]
    safe_title = sanitize_filename(title or "")
    stem = f"route-{safe_title}-{short_id}" if safe_title else f"route-{short_id}"
    return f"{stem}.{export_format.value}"


class ExportService:
    """Renders stored routes into downloadable artifacts."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.itinerary_repo = ItineraryRepository(session)

    async def export_artifact(
        self,
        itinerary_id: uuid.UUID,
        export_format: ExportFormat,
        user_id: str,
    ) -> Tuple[bytes, str, str]:
        """Render a completed itinerary.

        The GPX metadata time is the itinerary's last update, so repeated
        downloads of the same itinerary are byte-identical.

        Args:
            itinerary_id: Itinerary to export
            export_format: gpx, kml or geojson
            user_id: Owner of the itinerary

        Returns:
            Tuple of (content bytes, suggested filename, media type)

        Raises:
            ItineraryNotFoundError: If the itinerary is missing, deleted or not owned
            ItineraryNotCompletedError: If it has not completed
            ConversionError: If the stored route can no longer be rendered
        """
        export_format = ExportFormat(export_format)
        itinerary = await self._get_completed(itinerary_id, user_id)

        options = ExportOptions(
            include_tracks=settings.export.include_tracks,
            creator=settings.export_creator,
            generated_at=itinerary.updated_at,
        )

        if export_format == ExportFormat.GPX:
            text = to_gpx(itinerary.route_geojson, options)
            assert_valid_gpx(text)
        elif export_format == ExportFormat.KML:
            text = to_kml(itinerary.route_geojson, options)
        else:
            text = json.dumps(validate_route_geo(itinerary.route_geojson).to_geojson(), indent=2, ensure_ascii=False)

        filename = build_filename(itinerary.title, itinerary.id, export_format)
        content = text.encode("utf-8")

        LOGGER.info(
            "Exported itinerary",
            extra={
                "itinerary_id": str(itinerary.id),
                "format": export_format.value,
                "size_bytes": len(content),
            },
        )
        return content, filename, MEDIA_TYPES[export_format]

    async def navigation_link(
        self,
        itinerary_id: uuid.UUID,
        provider: LinkProvider,
        user_id: str,
    ) -> str:
        """Build a Google Maps or Mapy.com link for a completed itinerary.

        Raises:
            ItineraryNotFoundError: If the itinerary is missing, deleted or not owned
            ItineraryNotCompletedError: If it has not completed
            TooManyPointsError: If the route exceeds the provider's point limit
            LinkGenerationError: If the stored route cannot be turned into a link
        """
        provider = LinkProvider(provider)
        itinerary = await self._get_completed(itinerary_id, user_id)

        if provider == LinkProvider.GOOGLE_MAPS:
            url = build_google_maps_link(
                itinerary.route_geojson, max_points=settings.export.google_maps_max_points
            )
        else:
            url = build_mapy_link(itinerary.route_geojson, max_points=settings.export.mapy_max_points)

        LOGGER.info(
            "Generated navigation link",
            extra={
                "itinerary_id": str(itinerary.id),
                "provider": provider.value,
                "url_length": len(url),
            },
        )
        return url

    async def _get_completed(self, itinerary_id: uuid.UUID, user_id: str) -> Itinerary:
        itinerary = await self.itinerary_repo.get_owned(itinerary_id, user_id)
        if itinerary is None:
            raise ItineraryNotFoundError(f"Itinerary {itinerary_id} not found")
        if itinerary.status != ItineraryStatus.COMPLETED.value or itinerary.route_geojson is None:
            raise ItineraryNotCompletedError(
                f"Itinerary {itinerary_id} is {itinerary.status}; only completed itineraries can be exported",
                status=itinerary.status,
            )
        return itinerary
