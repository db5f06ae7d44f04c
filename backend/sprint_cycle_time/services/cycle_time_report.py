"""Sprint cycle time report service."""

from datetime import datetime
from typing import Optional
import logging

from sprint_cycle_time.services.aggregation import aggregate_by_estimate, build_inflated_report, is_inflated
from sprint_cycle_time.services.cycle_time import compute_story_cycle_time
from sprint_cycle_time.services.jira_client import JiraFetchError
from sprint_cycle_time.services.report_config import (
    CycleTimeOptions,
    build_sprint_pattern,
    normalize_quarter,
    normalize_year,
    quarter_date_range,
    sprint_name_regex,
)

logger = logging.getLogger(__name__)


class CycleTimeReportService:
    """Builds cycle time reports for the sprints of one quarter.

    Work is strictly sequential: each story's changelog is fetched in full
    and reduced before the next one is requested.
    """

    def __init__(self, client):
        self.client = client

    def collect_unique_stories(self, sprints: list) -> dict:
        """Collect stories across sprints, keeping the first sighting of each key.

        Returns:
            Dict mapping story key to story dict, in first-seen order
        """
        stories = {}

        for idx, sprint in enumerate(sprints, start=1):
            logger.info(f"[{idx}/{len(sprints)}] Collecting stories from {sprint['name']}")

            for issue in self.client.list_sprint_issues(sprint["id"]):
                key = issue.get("key")
                if not key or key in stories:
                    continue
                stories[key] = {
                    "key": key,
                    "summary": issue.get("summary") or "",
                    "estimate": issue.get("estimate"),
                    "status": issue.get("status")
                }

        logger.info(f"Collected {len(stories)} unique stories")
        return stories

    def _fetch_histories(self, issue_key: str) -> list:
        try:
            return self.client.fetch_changelog(issue_key)
        except JiraFetchError as e:
            logger.warning(f"Could not fetch changelog for {issue_key}, treating it as empty: {e}")
            return []

    def calculate_cycle_times(self, stories: dict, tracked_statuses,
                              now: Optional[datetime] = None) -> list:
        """Attach tracked business days to every collected story.

        A story whose changelog cannot be fetched ends up with zero days; the
        rest of the run is unaffected.
        """
        results = []
        total = len(stories)

        for idx, story in enumerate(stories.values(), start=1):
            logger.debug(f"[{idx}/{total}] Calculating cycle time for {story['key']}")

            histories = self._fetch_histories(story["key"])
            cycle_time = compute_story_cycle_time(histories, tracked_statuses, now)

            results.append({
                **story,
                "businessDays": cycle_time["businessDays"],
                "statusBreakdown": cycle_time["statusBreakdown"]
            })

        return results

    def build_report(self, stories: list, options: CycleTimeOptions) -> dict:
        """Aggregate computed stories into the report body."""
        multiplier = options.inflation_multiplier

        aggregate = aggregate_by_estimate(
            stories, options.tracked_statuses,
            multiplier=multiplier,
            exclude_inflated=options.exclude_inflated
        )
        groups = aggregate.pop("groups")

        report = {
            "trackedStatuses": list(options.tracked_statuses),
            "summary": aggregate,
            "groups": groups,
            "stories": [
                {**story, "inflated": is_inflated(story, multiplier)}
                for story in stories
            ]
        }

        if options.show_inflated:
            report["inflatedStories"] = build_inflated_report(stories, multiplier)

        return report

    def compute_report(self, board_id: int, year, quarter,
                       sprint_pattern_template: str,
                       options: Optional[CycleTimeOptions] = None,
                       now: Optional[datetime] = None) -> dict:
        """Calculate the cycle time report for one board and quarter.

        Args:
            board_id: Jira board ID
            year: 2- or 4-digit year
            quarter: Quarter (1-4)
            sprint_pattern_template: Sprint name template with {year} and
                {quarter} placeholders
            options: Tracked statuses and inflation settings
            now: End bound for stories still in a tracked status

        Returns:
            Report dict with period, matched sprints, summary counts,
            per-estimate groups, per-story results and, when requested, the
            inflated stories section

        Raises:
            ConfigurationError: invalid period or pattern, before any request
            JiraFetchError: sprint or issue listing failed
        """
        options = options or CycleTimeOptions()
        start_date, end_date = quarter_date_range(year, quarter)
        sprint_pattern = build_sprint_pattern(sprint_pattern_template, year, quarter)
        regex = sprint_name_regex(sprint_pattern)

        logger.info(
            f"Cycle time analysis for board {board_id}, {normalize_year(year)} Q{normalize_quarter(quarter)}, "
            f"pattern {sprint_pattern!r}, tracking {', '.join(options.tracked_statuses)}"
        )

        sprints = self.client.list_sprints_matching(board_id, regex)
        stories = self.collect_unique_stories(sprints)
        computed = self.calculate_cycle_times(stories, options.tracked_statuses, now)

        report = {
            "boardId": board_id,
            "period": {
                "year": normalize_year(year),
                "quarter": normalize_quarter(quarter),
                "startDate": start_date.isoformat(),
                "endDate": end_date.isoformat()
            },
            "sprintPattern": sprint_pattern,
            "options": options.to_dict(),
            "sprints": sprints
        }
        report.update(self.build_report(computed, options))
        return report
