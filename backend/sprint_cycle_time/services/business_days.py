"""Business-day arithmetic for cycle time calculations."""

from datetime import date, datetime, timedelta
import logging

logger = logging.getLogger(__name__)


def _to_date(value) -> date:
    """Reduce a datetime to its calendar date in its own UTC offset."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    raise TypeError(f"Expected date or datetime, got {type(value).__name__}")


def count_business_days(start, end) -> int:
    """Count weekdays between two instants.

    Whole calendar days are walked from the start date up to, but not
    including, the end date. Saturdays and Sundays are skipped; holidays are
    not considered.

    Malformed input yields 0 and a warning instead of an exception so a single
    bad changelog entry never aborts a run.
    """
    try:
        start_date = _to_date(start)
        end_date = _to_date(end)
    except TypeError as e:
        logger.warning(f"Error calculating business days: {e}")
        return 0

    business_days = 0
    current = start_date
    # End date is exclusive
    while current < end_date:
        if current.weekday() < 5:  # Monday = 0, Friday = 4
            business_days += 1
        current += timedelta(days=1)

    return business_days
