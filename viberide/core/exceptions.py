"""Custom exception hierarchy."""

from typing import Optional


class AppError(Exception):
    """Base exception for application errors."""
    def __init__(self, message: str, original_error: Exception = None):
        super().__init__(message)
        self.message = message
        self.original_error = original_error


class DatabaseError(AppError):
    """Raised when a database operation fails."""
    pass


class ValidationError(AppError):
    """Raised when a route structure or planner output fails validation."""
    pass


class ConversionError(AppError):
    """Raised when a route cannot be rendered into an export format."""
    pass


class GPXConversionError(ConversionError):
    """GPX rendering failed."""
    pass


class KMLConversionError(ConversionError):
    """KML rendering failed."""
    pass


class ConcurrencyConflictError(AppError):
    """Raised when another generation is already in flight for the user."""
    def __init__(self, message: str, active_itinerary_id: Optional[object] = None):
        super().__init__(message)
        self.active_itinerary_id = active_itinerary_id


class IllegalTransitionError(AppError):
    """Raised when a status change is not permitted from the current status."""
    def __init__(self, message: str, current_status: Optional[str] = None, target_status: Optional[str] = None):
        super().__init__(message)
        self.current_status = current_status
        self.target_status = target_status


class NotCancellableError(IllegalTransitionError):
    """Only pending or running itineraries can be cancelled."""
    pass


class NonTerminalDeleteError(IllegalTransitionError):
    """Only terminal itineraries can be deleted."""
    pass


class NotFoundError(AppError):
    """Raised when a record is missing, not owned by the caller, or deleted."""
    pass


class ItineraryNotFoundError(NotFoundError):
    pass


class NoteNotFoundError(NotFoundError):
    pass


class ItineraryNotCompletedError(AppError):
    """Raised when exporting an itinerary that has not completed."""
    def __init__(self, message: str, status: Optional[str] = None):
        super().__init__(message)
        self.status = status


class LinkGenerationError(ConversionError):
    """Raised when a navigation app link cannot be built from a route."""
    pass


class TooManyPointsError(LinkGenerationError):
    """Raised when a route still exceeds a provider's point limit after sampling."""
    def __init__(self, message: str, max_points: Optional[int] = None):
        super().__init__(message)
        self.max_points = max_points
