"""Jira REST client for sprints, sprint issues and issue changelogs."""

from typing import Optional
import logging
import re
import time

import requests

from sprint_cycle_time.services.report_config import DEFAULT_STORY_POINTS_FIELD, sprint_name_regex

logger = logging.getLogger(__name__)


class JiraFetchError(Exception):
    """Raised when a Jira request fails or returns a non-success status."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class JiraClient:
    """Paginated access to the Jira endpoints the cycle time report needs.

    Every list method follows pagination until Jira signals the last page, so
    callers always receive the complete collection. Failures are not retried.
    """

    SPRINT_PAGE_SIZE = 50
    ISSUE_PAGE_SIZE = 100
    CHANGELOG_PAGE_SIZE = 100

    def __init__(self, server: str, email: str, token: str,
                 story_points_field: str = DEFAULT_STORY_POINTS_FIELD,
                 issue_type: str = "Story", changelog_delay: float = 0.05):
        self.server = server.rstrip("/")
        self.email = email
        self.token = token
        self.story_points_field = story_points_field
        self.issue_type = issue_type
        self.changelog_delay = changelog_delay

    def _request(self, endpoint: str, params: Optional[dict] = None):
        """Make authenticated request to Jira API."""
        try:
            response = requests.get(
                f"{self.server}{endpoint}",
                auth=(self.email, self.token),
                headers={"Accept": "application/json"},
                params=params,
                timeout=30
            )
            response.raise_for_status()
            return response.json()
        except requests.exceptions.HTTPError as e:
            status_code = e.response.status_code if e.response is not None else None
            raise JiraFetchError(f"Jira API error {status_code} for {endpoint}", status_code) from e
        except requests.exceptions.RequestException as e:
            raise JiraFetchError(f"Failed to connect to Jira: {e}") from e

    def list_sprints(self, board_id: int) -> list:
        """Get every sprint of a board, in the order Jira returns them."""
        all_sprints = []
        start_at = 0

        while True:
            data = self._request(
                f"/rest/agile/1.0/board/{board_id}/sprint",
                params={"startAt": start_at, "maxResults": self.SPRINT_PAGE_SIZE}
            )

            sprints = data.get("values", [])
            all_sprints.extend(sprints)

            if data.get("isLast") or not sprints:
                break

            start_at += self.SPRINT_PAGE_SIZE

        return all_sprints

    def list_sprints_matching(self, board_id: int, pattern) -> list:
        """Get the sprints whose name matches a sprint name pattern.

        Args:
            board_id: Jira board ID
            pattern: Sprint name pattern ('#' matches '#<number>') or a
                compiled regex

        Returns:
            List of {"id", "name", "state"} dicts in board order
        """
        regex = pattern if isinstance(pattern, re.Pattern) else sprint_name_regex(pattern)

        matching = []
        for sprint in self.list_sprints(board_id):
            name = sprint.get("name") or ""
            if regex.search(name):
                matching.append({
                    "id": sprint["id"],
                    "name": name,
                    "state": sprint.get("state")
                })

        logger.info(f"Board {board_id}: {len(matching)} sprints match {regex.pattern!r}")
        return matching

    def _get_estimate(self, fields: dict) -> Optional[float]:
        """Extract story points from issue fields."""
        points = fields.get(self.story_points_field)
        if points is None:
            return None
        try:
            points = float(points)
        except (TypeError, ValueError):
            return None
        return points if points >= 0 else None

    def list_sprint_issues(self, sprint_id: int) -> list:
        """Get all stories in a sprint.

        Returns:
            List of {"key", "summary", "estimate", "status"} dicts
        """
        all_issues = []
        start_at = 0

        while True:
            data = self._request(
                f"/rest/agile/1.0/sprint/{sprint_id}/issue",
                params={
                    "startAt": start_at,
                    "maxResults": self.ISSUE_PAGE_SIZE,
                    "fields": f"key,summary,{self.story_points_field},status",
                    "jql": f"issuetype = {self.issue_type}"
                }
            )

            issues = data.get("issues") or []
            all_issues.extend(issues)

            if not issues or len(issues) < self.ISSUE_PAGE_SIZE:
                break

            start_at += self.ISSUE_PAGE_SIZE

        stories = []
        for issue in all_issues:
            fields = issue.get("fields") or {}
            stories.append({
                "key": issue.get("key"),
                "summary": fields.get("summary") or "",
                "estimate": self._get_estimate(fields),
                "status": (fields.get("status") or {}).get("name")
            })
        return stories

    def fetch_changelog(self, issue_key: str) -> list:
        """Get the complete changelog histories of an issue.

        Uses the dedicated changelog endpoint, since the changelog embedded in
        the issue resource is capped and ignores paging. Pages are requested
        until Jira reports the last page, an empty page arrives or the
        reported total has been reached, pausing briefly between pages to
        stay under the Jira rate limit.
        """
        all_histories = []
        start_at = 0

        while True:
            data = self._request(
                f"/rest/api/3/issue/{issue_key}/changelog",
                params={"startAt": start_at, "maxResults": self.CHANGELOG_PAGE_SIZE}
            )

            histories = data.get("values") or []
            all_histories.extend(histories)
            start_at += len(histories)
            total = data.get("total")

            if data.get("isLast") or not histories or (total is not None and start_at >= total):
                break

            if self.changelog_delay:
                time.sleep(self.changelog_delay)

        return all_histories
