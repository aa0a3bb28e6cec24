"""Database module for SQLAlchemy models."""

from viberide.database.models import Itinerary, Note

__all__ = [
    "Itinerary",
    "Note",
]
