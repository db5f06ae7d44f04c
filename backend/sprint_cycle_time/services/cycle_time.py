"""Time-in-tracked-status accumulation for a single story."""

from datetime import datetime
from typing import Optional

from sprint_cycle_time.services.business_days import count_business_days
from sprint_cycle_time.services.status_history import extract_status_transitions


class TrackedTimeAccumulator:
    """Two-state automaton walking ordered status transitions.

    The accumulator is either idle (current_status is None) or tracking a
    status since a given instant. Each transition is applied as a single
    close-then-maybe-reopen step:

    1. Leaving the tracked status closes the open interval and adds its
       business days to the total and to that status's bucket.
    2. Arriving in a tracked status while idle opens a new interval.

    Re-entering a status after leaving it starts a fresh interval, and moving
    between two tracked statuses closes one and opens the other in the same
    step. Time spent in a status before the first visible transition into it
    is never observed, so it is not counted.
    """

    def __init__(self, tracked_statuses):
        self.tracked_statuses = list(tracked_statuses)
        self.current_status = None
        self.current_since = None
        self.total_business_days = 0
        self.status_breakdown = {}

    @property
    def is_tracking(self) -> bool:
        return self.current_status is not None

    def _close(self, end) -> None:
        business_days = count_business_days(self.current_since, end)
        self.total_business_days += business_days
        self.status_breakdown[self.current_status] = (
            self.status_breakdown.get(self.current_status, 0) + business_days
        )
        self.current_status = None
        self.current_since = None

    def apply(self, transition: dict) -> None:
        """Apply one {"timestamp", "fromStatus", "toStatus"} transition."""
        to_status = transition.get("toStatus")
        timestamp = transition.get("timestamp")

        if self.is_tracking and to_status != self.current_status:
            self._close(timestamp)

        if not self.is_tracking and to_status in self.tracked_statuses:
            self.current_status = to_status
            self.current_since = timestamp

    def finish(self, now: Optional[datetime] = None) -> None:
        """Close an interval left open by the last transition at `now`."""
        if self.is_tracking:
            self._close(now or datetime.now().astimezone())

    def result(self) -> dict:
        return {
            "businessDays": self.total_business_days,
            "statusBreakdown": dict(self.status_breakdown)
        }


def compute_story_cycle_time(histories: Optional[list], tracked_statuses,
                             now: Optional[datetime] = None) -> dict:
    """Calculate business days a story spent in the tracked statuses.

    Args:
        histories: Raw changelog histories for the story, in any order
        tracked_statuses: Status names whose dwell time is measured
        now: End bound for a story still in a tracked status (defaults to
            the current time)

    Returns:
        Dict with "businessDays" (int) and "statusBreakdown" mapping each
        visited tracked status to its business days
    """
    accumulator = TrackedTimeAccumulator(tracked_statuses)

    for transition in extract_status_transitions(histories):
        accumulator.apply(transition)

    accumulator.finish(now)
    return accumulator.result()
