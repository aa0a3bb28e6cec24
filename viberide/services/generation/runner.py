"""Drives one itinerary through the external planner call."""

import asyncio
from typing import Any, Optional, Protocol

from viberide.core.config import settings
from viberide.core.exceptions import IllegalTransitionError, ValidationError
from viberide.database.models import Itinerary
from viberide.schemas.status import ItineraryStatus
from viberide.services.generation.itinerary_service import ItineraryService
from viberide.utils.logging import get_logger

LOGGER = get_logger(__name__)


class Planner(Protocol):
    """External route planner (an LLM call in production)."""

    async def plan(self, itinerary: Itinerary) -> Any:
        ...


class GenerationRunner:
    """Runs ``begin -> planner -> complete | fail`` for a pending itinerary.

    The planner call gets a wall-clock budget. A timeout, a planner error or
    output that fails validation marks the itinerary failed; the runner never
    retries. If the itinerary was cancelled while the planner was working,
    the late result is dropped.
    """

    def __init__(
        self,
        service: ItineraryService,
        planner: Planner,
        timeout_seconds: Optional[float] = None,
    ):
        self.service = service
        self.planner = planner
        self.timeout_seconds = timeout_seconds or settings.generation_timeout_seconds

    async def run(self, itinerary: Itinerary) -> Itinerary:
        user_id = itinerary.user_id
        itinerary = await self.service.begin(itinerary.id, user_id)

        try:
            output = await asyncio.wait_for(
                self.planner.plan(itinerary), timeout=self.timeout_seconds
            )
        except asyncio.TimeoutError:
            LOGGER.warning(
                "Planner timed out",
                extra={"itinerary_id": str(itinerary.id), "timeout_seconds": self.timeout_seconds},
            )
            return await self._fail(itinerary, f"Generation timed out after {self.timeout_seconds:g}s")
        except Exception as e:
            LOGGER.error(
                f"Planner failed: {e}",
                exc_info=True,
                extra={"itinerary_id": str(itinerary.id)},
            )
            return await self._fail(itinerary, f"Planner error: {e}")

        try:
            return await self.service.complete_generation(itinerary.id, user_id, output)
        except ValidationError as e:
            return await self._fail(itinerary, f"Invalid route: {e.message}")
        except IllegalTransitionError:
            return await self._discard_if_cancelled(itinerary)

    async def _fail(self, itinerary: Itinerary, reason: str) -> Itinerary:
        try:
            return await self.service.fail(itinerary.id, itinerary.user_id, reason)
        except IllegalTransitionError:
            return await self._discard_if_cancelled(itinerary)

    async def _discard_if_cancelled(self, itinerary: Itinerary) -> Itinerary:
        current = await self.service.get_itinerary(itinerary.id, itinerary.user_id)
        if current.status != ItineraryStatus.CANCELLED.value:
            raise IllegalTransitionError(
                f"Itinerary {current.id} finished as {current.status} before the planner returned",
                current_status=current.status,
            )
        LOGGER.info(
            "Discarding planner result for cancelled itinerary",
            extra={"itinerary_id": str(current.id)},
        )
        return current
