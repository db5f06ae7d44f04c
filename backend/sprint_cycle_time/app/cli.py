"""Command line entry point for the sprint cycle time report."""

import argparse
import logging
import os
import sys

from sprint_cycle_time.app.text_report import format_report
from sprint_cycle_time.services.cycle_time_report import CycleTimeReportService
from sprint_cycle_time.services.jira_client import JiraClient, JiraFetchError
from sprint_cycle_time.services.report_config import (
    DEFAULT_INFLATION_MULTIPLIER,
    ConfigurationError,
    CycleTimeOptions,
    load_settings_from_env,
    normalize_quarter,
    normalize_year,
)

EPILOG = """\
Environment Variables:
  Required:
    JIRA_EMAIL         Your Jira email address
    JIRA_API_TOKEN     Your Jira API token
    JIRA_BASE_URL      Your Jira base URL (e.g., https://yourcompany.atlassian.net)

  Optional:
    JIRA_BOARD_ID      Default board ID (can be overridden with -b flag)
    SPRINT_PATTERN     Sprint name pattern with {year} and {quarter} placeholders
                       Default: "Sprint {year}Q{quarter} #"
    TRACKED_STATUSES   Comma-separated statuses to measure
    STORY_POINTS_FIELD Story points custom field (default: customfield_10105)

Examples:
  sprint-cycle-time -y 25 -q 4
  sprint-cycle-time -y 25 -q 4 --show-inflated-stories
  sprint-cycle-time -y 25 -q 4 --exclude-inflated-stories
  sprint-cycle-time -b 500 -y 24 -q 2  # Override board ID
"""


def build_parser():
    parser = argparse.ArgumentParser(
        prog="sprint-cycle-time",
        description="Business days stories spend in tracked statuses, by story points.",
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("-b", "--board", type=int, dest="board_id",
                        help="Jira board ID (required if JIRA_BOARD_ID not set)")
    parser.add_argument("-y", "--year", required=True,
                        help="Year (2-digit format, e.g., 25 for 2025)")
    parser.add_argument("-q", "--quarter", type=int, required=True,
                        help="Quarter (1-4)")
    parser.add_argument("--show-inflated-stories", action="store_true",
                        help="Show potentially inflated stories (business_days > story_points * multiplier)")
    parser.add_argument("--exclude-inflated-stories", action="store_true",
                        help="Exclude inflated stories from the main report")
    parser.add_argument("--tracked-status", action="append", dest="tracked_statuses",
                        metavar="STATUS", help="Status to measure (repeatable, overrides TRACKED_STATUSES)")
    parser.add_argument("--inflation-multiplier", type=float, default=DEFAULT_INFLATION_MULTIPLIER,
                        help="Days allowed per story point before a story counts as inflated (default: 10)")
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="Log every story as it is processed")
    return parser


def run(args, environ=None) -> int:
    """Validate settings, build the report and print it.

    Returns:
        Process exit code
    """
    environ = os.environ if environ is None else environ

    try:
        settings = load_settings_from_env(environ)
        board_id = args.board_id or settings["boardId"]
        if not board_id:
            raise ConfigurationError(
                "Board ID is required. Set via -b flag or JIRA_BOARD_ID environment variable"
            )
        normalize_year(args.year)
        normalize_quarter(args.quarter)
        options = CycleTimeOptions(
            tracked_statuses=args.tracked_statuses or settings["trackedStatuses"],
            inflation_multiplier=args.inflation_multiplier,
            show_inflated=args.show_inflated_stories,
            exclude_inflated=args.exclude_inflated_stories
        )
    except ConfigurationError as e:
        print(f"Error: {e}", file=sys.stderr)
        print("Run with --help for usage information", file=sys.stderr)
        return 1

    client = JiraClient(
        settings["server"], settings["email"], settings["token"],
        story_points_field=settings["storyPointsField"]
    )
    service = CycleTimeReportService(client)

    try:
        report = service.compute_report(
            board_id, args.year, args.quarter, settings["sprintPattern"], options
        )
    except JiraFetchError as e:
        print(f"❌ {e}", file=sys.stderr)
        return 1

    print(format_report(report))
    return 0


def main(argv=None):
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    sys.exit(run(args))


if __name__ == "__main__":
    main()
