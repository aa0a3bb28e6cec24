"""Lifecycle of itinerary generation records.

Records move ``pending -> running -> completed | failed | cancelled``.
Every status change is a single guarded UPDATE, and admission relies on the
store's uniqueness constraints instead of in-process locks, so the service
is safe to call from any number of concurrent request handlers.
"""

import json
import uuid
from typing import Any, Dict, Optional, Sequence, Type

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from viberide.core.config import settings
from viberide.core.exceptions import (
    ConcurrencyConflictError,
    DatabaseError,
    IllegalTransitionError,
    ItineraryNotFoundError,
    NonTerminalDeleteError,
    NotCancellableError,
    NoteNotFoundError,
    ValidationError,
)
from viberide.database.models import Itinerary
from viberide.repositories.itinerary_repository import ItineraryRepository
from viberide.repositories.note_repository import NoteRepository
from viberide.schemas.status import (
    TERMINAL_STATUSES,
    ItineraryStatus,
    allowed_sources,
    is_terminal,
)
from viberide.services.route.summary import extract_summary, route_name, waypoint_count
from viberide.services.route.validator import validate_route_geo
from viberide.utils.logging import get_logger

LOGGER = get_logger(__name__)

ILLEGAL_TRANSITION_MESSAGE = "Itinerary {id} cannot move from {status} to {target}"
NOT_CANCELLABLE_MESSAGE = "Itinerary {id} is {status} and cannot be cancelled"
NON_TERMINAL_DELETE_MESSAGE = "Cannot delete itinerary {id} while it is {status}"


def parse_planner_output(raw: Any) -> Any:
    """Decode planner output given as JSON text; mappings pass through."""
    if isinstance(raw, (bytes, bytearray)):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise ValidationError(f"Planner output is not valid UTF-8: {e}", original_error=e) from e
    if isinstance(raw, str):
        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            raise ValidationError(f"Planner output is not valid JSON: {e}", original_error=e) from e
    return raw


class ItineraryService:
    """Owns every mutation of itinerary records."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.itinerary_repo = ItineraryRepository(session)
        self.note_repo = NoteRepository(session)

    async def submit_generation(self, user_id: str, note_id: str, request_id: str) -> Itinerary:
        """Admit a new generation request for a note.

        A repeated ``request_id`` returns the record it created the first
        time. Otherwise a ``pending`` record is inserted with the next version
        for the note, unless the user already has one in flight.

        Raises:
            NoteNotFoundError: If the note is missing, deleted or not owned
            ConcurrencyConflictError: If another generation is pending or running
        """
        existing = await self._replay(user_id, request_id)
        if existing is not None:
            return existing

        note = await self.note_repo.get_owned(note_id, user_id)
        if note is None:
            raise NoteNotFoundError(f"Note {note_id} not found")

        active = await self.itinerary_repo.get_active_for_user(user_id)
        if active is not None:
            # Committed by a concurrent submission with the same key
            if active.request_id == request_id:
                return active
            raise self._conflict(active)

        attempts = settings.generation_version_retries + 1
        for attempt in range(attempts):
            version = await self.itinerary_repo.get_max_version(note_id) + 1
            try:
                itinerary = await self.itinerary_repo.insert_pending(
                    note_id=note_id,
                    user_id=user_id,
                    request_id=request_id,
                    version=version,
                )
            except IntegrityError:
                # Lost a race: same key, the single-flight slot, or the version
                existing = await self._replay(user_id, request_id)
                if existing is not None:
                    return existing
                active = await self.itinerary_repo.get_active_for_user(user_id)
                if active is not None:
                    raise self._conflict(active)
                LOGGER.info(
                    "Version collision during admission, retrying",
                    extra={"note_id": note_id, "version": version, "attempt": attempt + 1},
                )
                continue
            except SQLAlchemyError as e:
                raise DatabaseError(
                    f"Could not store generation request for note {note_id}", original_error=e
                ) from e

            LOGGER.info(
                "Itinerary admitted",
                extra={
                    "itinerary_id": str(itinerary.id),
                    "note_id": note_id,
                    "user_id": user_id,
                    "version": version,
                },
            )
            return itinerary

        LOGGER.warning(
            "Gave up allocating an itinerary version",
            extra={"note_id": note_id, "attempts": attempts},
        )
        raise ConcurrencyConflictError(
            f"Could not allocate a version for note {note_id} after {attempts} attempts"
        )

    async def begin(self, itinerary_id: uuid.UUID, user_id: str) -> Itinerary:
        """Mark a pending itinerary as running."""
        return await self._transition(itinerary_id, user_id, ItineraryStatus.RUNNING)

    async def complete_generation(self, itinerary_id: uuid.UUID, user_id: str, raw_output: Any) -> Itinerary:
        """Validate planner output and store it on the itinerary.

        Invalid output raises :class:`ValidationError` and leaves the record
        as it was.

        Args:
            itinerary_id: Itinerary to complete
            user_id: Owner of the itinerary
            raw_output: RouteGeo as a mapping or JSON text

        Raises:
            ValidationError: If the output is not a valid RouteGeo
            IllegalTransitionError: If the itinerary is already terminal
        """
        itinerary = await self._get_owned(itinerary_id, user_id)
        try:
            geo = validate_route_geo(parse_planner_output(raw_output))
        except ValidationError as e:
            LOGGER.warning(
                "Rejected planner output",
                extra={"itinerary_id": str(itinerary.id), "error": e.message},
            )
            raise

        summary = extract_summary(geo)
        return await self._transition(
            itinerary.id,
            user_id,
            ItineraryStatus.COMPLETED,
            itinerary=itinerary,
            route_geojson=geo.to_geojson(),
            title=summary.title,
            total_distance_km=summary.total_distance_km,
            total_duration_h=summary.total_duration_h,
            waypoint_count=waypoint_count(geo),
            route_name=route_name(geo),
        )

    async def fail(self, itinerary_id: uuid.UUID, user_id: str, reason: str) -> Itinerary:
        """Mark a non-terminal itinerary as failed with ``reason``."""
        return await self._transition(
            itinerary_id, user_id, ItineraryStatus.FAILED, failure_reason=reason
        )

    async def cancel_generation(self, itinerary_id: uuid.UUID, user_id: str) -> Itinerary:
        """Cancel a pending or running itinerary.

        Cancelling does not stop an external planner call already under way;
        its late result is discarded by the caller.

        Raises:
            NotCancellableError: If the itinerary is already terminal
        """
        return await self._transition(
            itinerary_id,
            user_id,
            ItineraryStatus.CANCELLED,
            error_cls=NotCancellableError,
            message=NOT_CANCELLABLE_MESSAGE,
        )

    async def delete_generation(self, itinerary_id: uuid.UUID, user_id: str) -> None:
        """Soft-delete a terminal itinerary.

        Raises:
            NonTerminalDeleteError: If the itinerary is pending or running
            ItineraryNotFoundError: If it does not exist or was already deleted
        """
        itinerary = await self._get_owned(itinerary_id, user_id)
        if not is_terminal(itinerary.status):
            raise self._illegal(NonTerminalDeleteError, NON_TERMINAL_DELETE_MESSAGE, itinerary, "deleted")

        try:
            deleted = await self.itinerary_repo.soft_delete(itinerary.id, TERMINAL_STATUSES)
        except SQLAlchemyError as e:
            raise DatabaseError(f"Could not delete itinerary {itinerary.id}", original_error=e) from e
        if not deleted:
            # Changed underneath us: deleted concurrently, or never terminal
            await self.itinerary_repo.refresh(itinerary)
            if itinerary.deleted_at is not None:
                raise ItineraryNotFoundError(f"Itinerary {itinerary_id} not found")
            raise self._illegal(NonTerminalDeleteError, NON_TERMINAL_DELETE_MESSAGE, itinerary, "deleted")

        LOGGER.info(
            "Itinerary deleted",
            extra={"itinerary_id": str(itinerary.id), "status": itinerary.status},
        )

    async def get_itinerary(self, itinerary_id: uuid.UUID, user_id: str) -> Itinerary:
        return await self._get_owned(itinerary_id, user_id)

    async def get_status(self, itinerary_id: uuid.UUID, user_id: str) -> Dict[str, Any]:
        """Polling view of an itinerary, carrying only what its status needs."""
        itinerary = await self._get_owned(itinerary_id, user_id)
        status = ItineraryStatus(itinerary.status)
        result: Dict[str, Any] = {"id": itinerary.id, "status": status}

        if status == ItineraryStatus.COMPLETED:
            result["summary"] = {
                "title": itinerary.title,
                "total_distance_km": itinerary.total_distance_km,
                "total_duration_h": itinerary.total_duration_h,
                "highlights": list((itinerary.route_geojson or {}).get("properties", {}).get("highlights") or []),
                "waypoint_count": itinerary.waypoint_count,
                "route_name": itinerary.route_name,
            }
        elif status == ItineraryStatus.FAILED:
            result["failure_reason"] = itinerary.failure_reason
        elif status == ItineraryStatus.CANCELLED:
            result["cancelled_at"] = itinerary.updated_at
        return result

    async def list_by_note(
        self,
        note_id: str,
        user_id: str,
        status: Optional[ItineraryStatus] = None,
        limit: Optional[int] = None,
    ) -> Sequence[Itinerary]:
        """List a note's itineraries, newest version first.

        Raises:
            NoteNotFoundError: If the note is missing, deleted or not owned
        """
        note = await self.note_repo.get_owned(note_id, user_id)
        if note is None:
            raise NoteNotFoundError(f"Note {note_id} not found")
        return await self.itinerary_repo.list_by_note(
            note_id,
            user_id,
            status=status,
            limit=limit or settings.generation.list_limit,
        )

    async def _replay(self, user_id: str, request_id: str) -> Optional[Itinerary]:
        existing = await self.itinerary_repo.get_by_request_id(user_id, request_id)
        if existing is None:
            return None
        if existing.deleted_at is not None:
            raise ItineraryNotFoundError(
                f"Itinerary for request {request_id} was deleted"
            )
        LOGGER.info(
            "Idempotent replay of generation request",
            extra={"itinerary_id": str(existing.id), "request_id": request_id},
        )
        return existing

    async def _get_owned(self, itinerary_id: uuid.UUID, user_id: str) -> Itinerary:
        itinerary = await self.itinerary_repo.get_owned(itinerary_id, user_id)
        if itinerary is None:
            raise ItineraryNotFoundError(f"Itinerary {itinerary_id} not found")
        return itinerary

    async def _transition(
        self,
        itinerary_id: uuid.UUID,
        user_id: str,
        target: ItineraryStatus,
        error_cls: Type[IllegalTransitionError] = IllegalTransitionError,
        message: str = ILLEGAL_TRANSITION_MESSAGE,
        itinerary: Optional[Itinerary] = None,
        **values,
    ) -> Itinerary:
        if itinerary is None:
            itinerary = await self._get_owned(itinerary_id, user_id)

        try:
            changed = await self.itinerary_repo.transition(
                itinerary.id, allowed_sources(target), status=target, **values
            )
        except SQLAlchemyError as e:
            raise DatabaseError(
                f"Could not move itinerary {itinerary.id} to {target.value}", original_error=e
            ) from e
        await self.itinerary_repo.refresh(itinerary)

        if not changed:
            if itinerary.deleted_at is not None:
                raise ItineraryNotFoundError(f"Itinerary {itinerary_id} not found")
            raise self._illegal(error_cls, message, itinerary, target.value)

        LOGGER.info(
            f"Itinerary {target.value}",
            extra={"itinerary_id": str(itinerary.id), "version": itinerary.version},
        )
        return itinerary

    @staticmethod
    def _conflict(active: Itinerary) -> ConcurrencyConflictError:
        LOGGER.warning(
            "Generation already in progress",
            extra={"user_id": active.user_id, "active_itinerary_id": str(active.id)},
        )
        return ConcurrencyConflictError(
            f"Itinerary {active.id} (note {active.note_id}, version {active.version}) "
            f"is already {active.status}",
            active_itinerary_id=active.id,
        )

    @staticmethod
    def _illegal(
        error_cls: Type[IllegalTransitionError], message: str, itinerary: Itinerary, target: str
    ) -> IllegalTransitionError:
        LOGGER.warning(
            "Rejected itinerary transition",
            extra={
                "itinerary_id": str(itinerary.id),
                "current_status": itinerary.status,
                "target": target,
            },
        )
        return error_cls(
            message.format(id=itinerary.id, status=itinerary.status, target=target),
            current_status=itinerary.status,
            target_status=target,
        )
