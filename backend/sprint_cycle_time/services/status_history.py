"""Status transition extraction from Jira changelogs."""

from datetime import datetime, timezone
from typing import Optional
import logging

logger = logging.getLogger(__name__)

# Jira formats: "2024-10-31T12:11:56.289-0400" or "2024-10-31T12:11:56.289+0000"
JIRA_DATE_FORMATS = [
    "%Y-%m-%dT%H:%M:%S.%f%z",  # With milliseconds and timezone
    "%Y-%m-%dT%H:%M:%S%z",      # Without milliseconds, with timezone
    "%Y-%m-%dT%H:%M:%S.%f",     # With milliseconds, no timezone
    "%Y-%m-%dT%H:%M:%S",        # Basic ISO format
    "%Y-%m-%d"                   # Date only
]

STATUS_FIELD = "status"


def parse_jira_datetime(value: Optional[str]) -> Optional[datetime]:
    """Parse a Jira date string into a timezone-aware datetime.

    Values without an offset are taken as UTC. Returns None when the value is
    empty or matches none of the known formats.
    """
    if not value or not isinstance(value, str):
        return None

    for fmt in JIRA_DATE_FORMATS:
        try:
            parsed = datetime.strptime(value, fmt)
        except ValueError:
            continue
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed

    return None


def extract_status_transitions(histories: Optional[list]) -> list:
    """Build the ordered list of status transitions for one issue.

    Args:
        histories: Raw changelog histories, each with a "created" timestamp
            and a list of changed "items". Order does not matter.

    Returns:
        List of {"timestamp", "fromStatus", "toStatus"} dicts sorted by
        timestamp. Only items for the status field are kept. Entries sharing a
        timestamp keep their original relative order. A transition whose
        timestamp cannot be parsed has timestamp None and stays right after
        the dated transition that preceded it in the input.
    """
    dated = []
    # Undated transitions keyed by the input index of the dated transition before them
    undated_after = {}
    last_dated = None

    for history in histories or []:
        items = [item for item in history.get("items") or [] if item.get("field") == STATUS_FIELD]
        if not items:
            continue

        created = history.get("created")
        timestamp = parse_jira_datetime(created)
        if timestamp is None:
            logger.warning(f"Unparseable changelog timestamp: {created!r}")

        for item in items:
            transition = {
                "timestamp": timestamp,
                "fromStatus": item.get("fromString"),
                "toStatus": item.get("toString")
            }
            if timestamp is None:
                undated_after.setdefault(last_dated, []).append(transition)
            else:
                last_dated = len(dated)
                dated.append((last_dated, transition))

    dated.sort(key=lambda entry: entry[1]["timestamp"])

    transitions = list(undated_after.get(None, []))
    for index, transition in dated:
        transitions.append(transition)
        transitions.extend(undated_after.get(index, []))
    return transitions
