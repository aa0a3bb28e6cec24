"""Unit tests for the itinerary status transition table."""

import pytest

from viberide.schemas.status import (
    ACTIVE_STATUSES,
    TERMINAL_STATUSES,
    ItineraryStatus,
    allowed_sources,
    can_transition,
    is_cancellable,
    is_terminal,
)

PENDING = ItineraryStatus.PENDING
RUNNING = ItineraryStatus.RUNNING
COMPLETED = ItineraryStatus.COMPLETED
FAILED = ItineraryStatus.FAILED
CANCELLED = ItineraryStatus.CANCELLED


def test_partition():
    assert ACTIVE_STATUSES | TERMINAL_STATUSES == set(ItineraryStatus)
    assert not ACTIVE_STATUSES & TERMINAL_STATUSES


@pytest.mark.parametrize(
    "current,target,allowed",
    [
        (PENDING, RUNNING, True),
        (RUNNING, RUNNING, False),
        (PENDING, COMPLETED, True),
        (RUNNING, COMPLETED, True),
        (PENDING, FAILED, True),
        (RUNNING, FAILED, True),
        (PENDING, CANCELLED, True),
        (RUNNING, CANCELLED, True),
        (RUNNING, PENDING, False),
    ],
)
def test_active_transitions(current, target, allowed):
    assert can_transition(current, target) is allowed


@pytest.mark.parametrize("current", sorted(TERMINAL_STATUSES))
@pytest.mark.parametrize("target", list(ItineraryStatus))
def test_terminal_statuses_are_final(current, target):
    assert can_transition(current, target) is False


def test_string_statuses_accepted():
    assert can_transition("pending", RUNNING)
    assert is_terminal("failed")
    assert is_cancellable("running")
    assert not is_cancellable("cancelled")


def test_pending_has_no_sources():
    assert allowed_sources(PENDING) == frozenset()
