"""Itinerary generation status and its transition table."""

from enum import Enum
from typing import Dict, FrozenSet


class ItineraryStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


ACTIVE_STATUSES: FrozenSet[ItineraryStatus] = frozenset(
    {ItineraryStatus.PENDING, ItineraryStatus.RUNNING}
)
TERMINAL_STATUSES: FrozenSet[ItineraryStatus] = frozenset(
    {ItineraryStatus.COMPLETED, ItineraryStatus.FAILED, ItineraryStatus.CANCELLED}
)

# target status -> statuses it may be entered from
TRANSITIONS: Dict[ItineraryStatus, FrozenSet[ItineraryStatus]] = {
    ItineraryStatus.RUNNING: frozenset({ItineraryStatus.PENDING}),
    ItineraryStatus.COMPLETED: ACTIVE_STATUSES,
    ItineraryStatus.FAILED: ACTIVE_STATUSES,
    ItineraryStatus.CANCELLED: ACTIVE_STATUSES,
}


def is_terminal(status: "ItineraryStatus | str") -> bool:
    return ItineraryStatus(status) in TERMINAL_STATUSES


def is_cancellable(status: "ItineraryStatus | str") -> bool:
    return ItineraryStatus(status) in TRANSITIONS[ItineraryStatus.CANCELLED]


def allowed_sources(target: ItineraryStatus) -> FrozenSet[ItineraryStatus]:
    """Statuses from which ``target`` may be entered; empty for ``pending``."""
    return TRANSITIONS.get(target, frozenset())


def can_transition(current: "ItineraryStatus | str", target: ItineraryStatus) -> bool:
    return ItineraryStatus(current) in allowed_sources(target)
