from viberide.repositories.itinerary_repository import ItineraryRepository
from viberide.repositories.note_repository import NoteRepository

__all__ = ["ItineraryRepository", "NoteRepository"]
