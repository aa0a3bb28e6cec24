"""SQLAlchemy models for all database tables."""

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    JSON,
    TIMESTAMP,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
    text,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from viberide.core.database import Base
from viberide.schemas.route_geo import MAX_ROUTE_NAME_LENGTH, MAX_TITLE_LENGTH
from viberide.schemas.status import ItineraryStatus

# The single-flight guard: at most one pending/running itinerary per user
ACTIVE_STATUS_PREDICATE = text("status IN ('pending', 'running')")

JSONType = JSON().with_variant(JSONB(), "postgresql")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Note(Base):
    """Trip note an itinerary is generated from.

    Notes are owned by the notes feature; this core only reads ownership and
    the soft-delete marker.
    """

    __tablename__ = "notes"

    id: Mapped[str] = mapped_column(
        String(64), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(120), nullable=False, default="")
    created_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), default=utcnow, onupdate=utcnow)
    deleted_at: Mapped[datetime | None] = mapped_column(TIMESTAMP(timezone=True), nullable=True)

    itineraries: Mapped[list["Itinerary"]] = relationship(
        "Itinerary", back_populates="note", cascade="all, delete-orphan"
    )


class Itinerary(Base):
    """One versioned generation request for a note."""

    __tablename__ = "itineraries"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    note_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("notes.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[str] = mapped_column(
        String(16), nullable=False, default=ItineraryStatus.PENDING.value
    )  # pending | running | completed | failed | cancelled
    request_id: Mapped[str] = mapped_column(
        String(128), nullable=False, comment="Client idempotency key"
    )

    # Populated on completion only
    route_geojson: Mapped[dict | None] = mapped_column(JSONType, nullable=True)
    title: Mapped[str | None] = mapped_column(String(MAX_TITLE_LENGTH), nullable=True)
    total_distance_km: Mapped[float | None] = mapped_column(Float, nullable=True)
    total_duration_h: Mapped[float | None] = mapped_column(Float, nullable=True)
    waypoint_count: Mapped[int | None] = mapped_column(Integer, nullable=True)
    route_name: Mapped[str | None] = mapped_column(String(MAX_ROUTE_NAME_LENGTH), nullable=True)

    # Populated on failure only
    failure_reason: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), default=utcnow, onupdate=utcnow)
    deleted_at: Mapped[datetime | None] = mapped_column(TIMESTAMP(timezone=True), nullable=True)

    note: Mapped["Note"] = relationship("Note", back_populates="itineraries")

    __table_args__ = (
        UniqueConstraint("note_id", "version", name="uq_itineraries_note_version"),
        UniqueConstraint("user_id", "request_id", name="uq_itineraries_user_request"),
        Index(
            "uq_itineraries_user_active",
            "user_id",
            unique=True,
            postgresql_where=ACTIVE_STATUS_PREDICATE,
            sqlite_where=ACTIVE_STATUS_PREDICATE,
        ),
    )

    def __repr__(self) -> str:
        return f"<Itinerary id={self.id} note={self.note_id} v{self.version} {self.status}>"
