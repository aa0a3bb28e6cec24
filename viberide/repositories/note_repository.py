from typing import Optional

from sqlalchemy import and_, select
from sqlalchemy.ext.asyncio import AsyncSession

from viberide.database.models import Note
from viberide.repositories.base_repository import BaseRepository


class NoteRepository(BaseRepository[Note]):
    """Read access to the notes itineraries are generated from."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, Note)

    async def get_owned(self, note_id: str, user_id: str) -> Optional[Note]:
        """Get a note owned by ``user_id`` that has not been soft-deleted."""
        query = select(Note).where(
            and_(
                Note.id == note_id,
                Note.user_id == user_id,
                Note.deleted_at.is_(None),
            )
        )
        result = await self.session.execute(query)
        return result.scalar_one_or_none()
