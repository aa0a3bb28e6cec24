import uuid
from datetime import datetime, timezone
from typing import Iterable, Optional, Sequence

from sqlalchemy import and_, func, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from viberide.database.models import Itinerary
from viberide.repositories.base_repository import BaseRepository
from viberide.schemas.status import ACTIVE_STATUSES, ItineraryStatus


def _status_values(statuses: Iterable[ItineraryStatus]) -> list[str]:
    return [ItineraryStatus(s).value for s in statuses]


class ItineraryRepository(BaseRepository[Itinerary]):
    """Repository for versioned itinerary generation records.

    The uniqueness constraints on the ``itineraries`` table are the only
    concurrency guard; callers treat ``IntegrityError`` from
    :meth:`insert_pending` as the signal that another admission won.
    """

    def __init__(self, session: AsyncSession):
        super().__init__(session, Itinerary)

    async def insert_pending(
        self,
        note_id: str,
        user_id: str,
        request_id: str,
        version: int,
    ) -> Itinerary:
        """Insert a new ``pending`` itinerary and commit it.

        Args:
            note_id: Parent note ID
            user_id: Owning user ID
            request_id: Client idempotency key
            version: Version number for the note

        Returns:
            The committed Itinerary

        Raises:
            IntegrityError: If a uniqueness constraint rejected the row
        """
        now = datetime.now(timezone.utc)
        try:
            return await self.create(
                note_id=note_id,
                user_id=user_id,
                request_id=request_id,
                version=version,
                status=ItineraryStatus.PENDING.value,
                created_at=now,
                updated_at=now,
            )
        except IntegrityError:
            self.logger.info(
                "Itinerary insert rejected by uniqueness constraint",
                extra={"note_id": note_id, "user_id": user_id, "version": version},
            )
            raise

    async def get_by_request_id(self, user_id: str, request_id: str) -> Optional[Itinerary]:
        """Get the itinerary a user submitted with ``request_id``, deleted or not."""
        query = select(Itinerary).where(
            and_(Itinerary.user_id == user_id, Itinerary.request_id == request_id)
        )
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def get_active_for_user(self, user_id: str) -> Optional[Itinerary]:
        """Get the user's pending or running itinerary, if any."""
        query = select(Itinerary).where(
            and_(
                Itinerary.user_id == user_id,
                Itinerary.status.in_(_status_values(ACTIVE_STATUSES)),
            )
        )
        result = await self.session.execute(query)
        return result.scalars().first()

    async def get_max_version(self, note_id: str) -> int:
        """Highest version recorded for a note, including deleted rows; 0 if none."""
        query = select(func.max(Itinerary.version)).where(Itinerary.note_id == note_id)
        result = await self.session.execute(query)
        return result.scalar_one_or_none() or 0

    async def get_owned(self, itinerary_id: uuid.UUID, user_id: str) -> Optional[Itinerary]:
        """Get an itinerary owned by ``user_id`` that has not been soft-deleted."""
        query = select(Itinerary).where(
            and_(
                Itinerary.id == itinerary_id,
                Itinerary.user_id == user_id,
                Itinerary.deleted_at.is_(None),
            )
        )
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def list_by_note(
        self,
        note_id: str,
        user_id: str,
        status: Optional[ItineraryStatus] = None,
        limit: int = 20,
    ) -> Sequence[Itinerary]:
        """List a note's live itineraries, newest version first."""
        query = select(Itinerary).where(
            and_(
                Itinerary.note_id == note_id,
                Itinerary.user_id == user_id,
                Itinerary.deleted_at.is_(None),
            )
        )
        if status is not None:
            query = query.where(Itinerary.status == ItineraryStatus(status).value)
        query = query.order_by(Itinerary.version.desc()).limit(limit)
        result = await self.session.execute(query)
        return result.scalars().all()

    async def transition(
        self,
        itinerary_id: uuid.UUID,
        expected_statuses: Iterable[ItineraryStatus],
        **values,
    ) -> bool:
        """Apply ``values`` only if the row is live and in an expected status.

        The status check and the write happen in a single UPDATE statement,
        so two racing transitions cannot both succeed.

        Returns:
            True if a row was updated, False if the guard did not match
        """
        values.setdefault("updated_at", datetime.now(timezone.utc))
        if isinstance(values.get("status"), ItineraryStatus):
            values["status"] = values["status"].value

        stmt = (
            update(Itinerary)
            .where(
                and_(
                    Itinerary.id == itinerary_id,
                    Itinerary.status.in_(_status_values(expected_statuses)),
                    Itinerary.deleted_at.is_(None),
                )
            )
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        try:
            result = await self.session.execute(stmt)
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            self.logger.error(
                f"Error updating itinerary {itinerary_id}: {str(e)}",
                exc_info=True
            )
            raise
        return result.rowcount == 1

    async def soft_delete(
        self,
        itinerary_id: uuid.UUID,
        expected_statuses: Iterable[ItineraryStatus],
    ) -> bool:
        """Set the deletion marker on a live itinerary in an expected status."""
        now = datetime.now(timezone.utc)
        return await self.transition(
            itinerary_id, expected_statuses, deleted_at=now, updated_at=now
        )

    async def refresh(self, itinerary: Itinerary) -> Itinerary:
        """Reload an itinerary's columns after a guarded UPDATE."""
        await self.session.refresh(itinerary)
        return itinerary
