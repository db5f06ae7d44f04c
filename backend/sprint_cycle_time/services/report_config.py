"""Configuration for cycle time reports."""

from datetime import date
import re

from sprint_cycle_time.services.aggregation import DEFAULT_INFLATION_MULTIPLIER

DEFAULT_SPRINT_PATTERN = "Sprint {year}Q{quarter} #"

DEFAULT_TRACKED_STATUSES = [
    "In Development",
    "In Review",
    "Ready for Deploy",
]

DEFAULT_STORY_POINTS_FIELD = "customfield_10105"

QUARTER_BOUNDS = {
    1: ((1, 1), (3, 31)),
    2: ((4, 1), (6, 30)),
    3: ((7, 1), (9, 30)),
    4: ((10, 1), (12, 31)),
}

REQUIRED_ENV_VARS = ["JIRA_EMAIL", "JIRA_API_TOKEN", "JIRA_BASE_URL"]

_NUMBER_PLACEHOLDER = "__NUMBER__"


class ConfigurationError(ValueError):
    """Raised for missing or invalid settings, before anything is fetched."""


class CycleTimeOptions:
    """Options controlling how story durations are measured and reported."""

    def __init__(self, tracked_statuses=None,
                 inflation_multiplier=DEFAULT_INFLATION_MULTIPLIER,
                 show_inflated: bool = False, exclude_inflated: bool = False):
        statuses = [s.strip() for s in (tracked_statuses or DEFAULT_TRACKED_STATUSES) if s and s.strip()]
        if not statuses:
            raise ConfigurationError("At least one tracked status is required")

        try:
            multiplier = float(inflation_multiplier)
        except (TypeError, ValueError):
            raise ConfigurationError(f"Invalid inflation multiplier: {inflation_multiplier!r}")
        if multiplier < 0:
            raise ConfigurationError(f"Inflation multiplier must not be negative: {multiplier}")

        self.tracked_statuses = statuses
        self.inflation_multiplier = int(multiplier) if multiplier.is_integer() else multiplier
        self.show_inflated = show_inflated
        self.exclude_inflated = exclude_inflated

    def to_dict(self) -> dict:
        return {
            "trackedStatuses": list(self.tracked_statuses),
            "inflationMultiplier": self.inflation_multiplier,
            "showInflated": self.show_inflated,
            "excludeInflated": self.exclude_inflated
        }


def normalize_year(year) -> int:
    """Turn a 2-digit ("25") or 4-digit ("2025") year into a full year."""
    try:
        value = int(str(year).strip())
    except (TypeError, ValueError):
        raise ConfigurationError(f"Invalid year: {year!r}")

    if 0 <= value <= 99:
        return 2000 + value
    if 2000 <= value <= 2099:
        return value
    raise ConfigurationError(f"Invalid year: {year!r}. Use 2 digits (25) or 4 digits (2025).")


def normalize_quarter(quarter) -> int:
    try:
        value = int(str(quarter).strip())
    except (TypeError, ValueError):
        raise ConfigurationError(f"Invalid quarter: {quarter!r}. Must be 1-4.")

    if value not in (1, 2, 3, 4):
        raise ConfigurationError(f"Invalid quarter: {value}. Must be 1-4.")
    return value


def quarter_date_range(year, quarter) -> tuple:
    """Get the first and last calendar day of a quarter.

    Returns:
        Tuple of (start_date, end_date) as dates
    """
    full_year = normalize_year(year)
    quarter = normalize_quarter(quarter)

    (start_month, start_day), (end_month, end_day) = QUARTER_BOUNDS[quarter]
    return date(full_year, start_month, start_day), date(full_year, end_month, end_day)


def build_sprint_pattern(template: str, year, quarter) -> str:
    """Fill the {year} and {quarter} placeholders of a sprint name template.

    Sprint names carry the 2-digit year, e.g. "Sprint 25Q4 #3".
    """
    if not template:
        raise ConfigurationError("Sprint pattern template is required")

    short_year = normalize_year(year) % 100
    return (template
            .replace("{year}", f"{short_year:02d}")
            .replace("{quarter}", str(normalize_quarter(quarter))))


def sprint_name_regex(pattern: str):
    """Compile a sprint name pattern where each '#' stands for '#<number>'."""
    escaped = re.escape(pattern.replace("#", _NUMBER_PLACEHOLDER))
    return re.compile(escaped.replace(_NUMBER_PLACEHOLDER, r"#\d+"))


def parse_status_list(value) -> list:
    """Split a comma separated status list, dropping blanks."""
    if not value:
        return []
    if isinstance(value, str):
        value = value.split(",")
    return [s.strip() for s in value if s and s.strip()]


def load_settings_from_env(environ) -> dict:
    """Read Jira connection and report defaults from environment variables.

    Required:
        JIRA_EMAIL, JIRA_API_TOKEN, JIRA_BASE_URL

    Optional:
        JIRA_BOARD_ID, SPRINT_PATTERN, TRACKED_STATUSES, STORY_POINTS_FIELD
    """
    missing = [name for name in REQUIRED_ENV_VARS if not environ.get(name)]
    if missing:
        raise ConfigurationError(
            f"Missing required environment variables: {', '.join(missing)}"
        )

    board_id = environ.get("JIRA_BOARD_ID")
    if board_id:
        try:
            board_id = int(board_id)
        except ValueError:
            raise ConfigurationError(f"Invalid JIRA_BOARD_ID: {board_id!r}")

    return {
        "server": environ["JIRA_BASE_URL"].rstrip("/"),
        "email": environ["JIRA_EMAIL"],
        "token": environ["JIRA_API_TOKEN"],
        "boardId": board_id or None,
        "sprintPattern": environ.get("SPRINT_PATTERN") or DEFAULT_SPRINT_PATTERN,
        "trackedStatuses": parse_status_list(environ.get("TRACKED_STATUSES")) or list(DEFAULT_TRACKED_STATUSES),
        "storyPointsField": environ.get("STORY_POINTS_FIELD") or DEFAULT_STORY_POINTS_FIELD
    }
