"""Cycle time API endpoints."""

from flask import Blueprint, current_app, request, jsonify
from sprint_cycle_time.services.cycle_time_report import CycleTimeReportService
from sprint_cycle_time.services.jira_client import JiraClient, JiraFetchError
from sprint_cycle_time.services.report_config import (
    DEFAULT_INFLATION_MULTIPLIER,
    ConfigurationError,
    CycleTimeOptions,
    build_sprint_pattern,
    parse_status_list,
    sprint_name_regex,
)

bp = Blueprint("cycle_time", __name__, url_prefix="/api/cycle-time")

TRUTHY = {"1", "true", "yes", "on"}


def get_jira_credentials():
    """Extract Jira credentials from request headers."""
    server = request.headers.get("X-Jira-Server", "").rstrip("/")
    email = request.headers.get("X-Jira-Email")
    token = request.headers.get("X-Jira-Token")

    if not all([server, email, token]):
        return None, None, None

    return server, email, token


def get_flag(name):
    return request.args.get(name, "").strip().lower() in TRUTHY


def get_period():
    """Get the required year and quarter from query params.

    Query params:
        - year: 2- or 4-digit year (e.g., "25")
        - quarter: Quarter number (1-4)
    """
    year = request.args.get("year")
    quarter = request.args.get("quarter")
    if not year or not quarter:
        raise ConfigurationError("Both year and quarter query parameters are required")
    return year, quarter


def get_sprint_pattern_template():
    settings = current_app.config["CYCLE_TIME"]
    return request.args.get("sprint_pattern") or settings["sprintPattern"]


def get_options():
    """Build report options from query params and app defaults."""
    settings = current_app.config["CYCLE_TIME"]
    tracked_statuses = parse_status_list(request.args.get("tracked_statuses")) or settings["trackedStatuses"]

    return CycleTimeOptions(
        tracked_statuses=tracked_statuses,
        inflation_multiplier=request.args.get("inflation_multiplier", DEFAULT_INFLATION_MULTIPLIER),
        show_inflated=get_flag("show_inflated"),
        exclude_inflated=get_flag("exclude_inflated")
    )


def make_client(server, email, token):
    settings = current_app.config["CYCLE_TIME"]
    return JiraClient(server, email, token, story_points_field=settings["storyPointsField"])


@bp.route("/<int:board_id>/sprints", methods=["GET"])
def get_matching_sprints(board_id):
    """List the sprints of a board matching the quarter's sprint pattern.

    Query params:
        - year, quarter: Period to analyze (required)
        - sprint_pattern: Optional template override, e.g. "Team {year}Q{quarter} #"
    """
    server, email, token = get_jira_credentials()

    if not server:
        return jsonify({"error": "Missing Jira credentials in headers"}), 401

    try:
        year, quarter = get_period()
        sprint_pattern = build_sprint_pattern(get_sprint_pattern_template(), year, quarter)
        client = make_client(server, email, token)
        sprints = client.list_sprints_matching(board_id, sprint_name_regex(sprint_pattern))
        return jsonify({"data": {"sprintPattern": sprint_pattern, "sprints": sprints}})
    except ConfigurationError as e:
        return jsonify({"error": str(e)}), 400
    except JiraFetchError as e:
        current_app.logger.warning(f"Sprint listing failed for board {board_id}: {e}")
        return jsonify({"error": str(e)}), 502
    except Exception as e:
        current_app.logger.exception(f"Unexpected error listing sprints for board {board_id}")
        return jsonify({"error": str(e)}), 500


@bp.route("/<int:board_id>", methods=["GET"])
def get_cycle_time_report(board_id):
    """Get the cycle time report for a board and quarter.

    Query params:
        - year, quarter: Period to analyze (required)
        - sprint_pattern: Optional sprint name template override
        - tracked_statuses: Optional comma-separated status names
        - inflation_multiplier: Optional, defaults to 10
        - show_inflated: Include the inflated stories section
        - exclude_inflated: Leave inflated stories out of the statistics

    Returns:
        - Matched sprints and summary counts
        - Per story points statistics and status breakdown
        - Per-story business days
    """
    server, email, token = get_jira_credentials()

    if not server:
        return jsonify({"error": "Missing Jira credentials in headers"}), 401

    try:
        year, quarter = get_period()
        options = get_options()
        service = CycleTimeReportService(make_client(server, email, token))
        report = service.compute_report(
            board_id, year, quarter, get_sprint_pattern_template(), options
        )
        return jsonify({"data": report})
    except ConfigurationError as e:
        return jsonify({"error": str(e)}), 400
    except JiraFetchError as e:
        current_app.logger.warning(f"Cycle time report failed for board {board_id}: {e}")
        return jsonify({"error": str(e)}), 502
    except Exception as e:
        current_app.logger.exception(f"Unexpected error building cycle time report for board {board_id}")
        return jsonify({"error": str(e)}), 500
