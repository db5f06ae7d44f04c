"""Tests for API endpoints."""

import pytest
from unittest.mock import patch, Mock
import json
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from sprint_cycle_time.services.jira_client import JiraFetchError


class TestHealth:

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert json.loads(response.data) == {"status": "ok"}


class TestCycleTimeConfig:
    """Test report defaults loaded at startup."""

    def test_uses_defaults_without_config_file(self, app):
        settings = app.config["CYCLE_TIME"]
        assert settings["sprintPattern"] == "Sprint {year}Q{quarter} #"
        assert settings["trackedStatuses"] == ["In Development", "In Review", "Ready for Deploy"]

    def test_loads_config_file(self, app, tmp_path):
        from sprint_cycle_time.app import load_cycle_time_config

        config_path = tmp_path / "cycle-time-config.json"
        config_path.write_text(json.dumps({
            "sprintPattern": "Team {year}Q{quarter} #",
            "trackedStatuses": ["Doing", "Review"]
        }))

        load_cycle_time_config(app, str(config_path))

        settings = app.config["CYCLE_TIME"]
        assert settings["sprintPattern"] == "Team {year}Q{quarter} #"
        assert settings["trackedStatuses"] == ["Doing", "Review"]
        assert settings["storyPointsField"] == "customfield_10105"

    def test_broken_config_file_falls_back(self, app, tmp_path):
        from sprint_cycle_time.app import load_cycle_time_config

        config_path = tmp_path / "cycle-time-config.json"
        config_path.write_text("{not json")

        load_cycle_time_config(app, str(config_path))

        assert app.config["CYCLE_TIME"]["sprintPattern"] == "Sprint {year}Q{quarter} #"


class TestMatchingSprints:
    """Test matching sprints endpoint."""

    def test_missing_credentials(self, client):
        response = client.get("/api/cycle-time/123/sprints?year=25&quarter=4")
        assert response.status_code == 401

    def test_missing_period(self, client, jira_headers):
        response = client.get("/api/cycle-time/123/sprints", headers=jira_headers)
        assert response.status_code == 400
        assert "error" in json.loads(response.data)

    @patch("sprint_cycle_time.app.api.cycle_time.JiraClient")
    def test_success(self, mock_client_class, client, jira_headers):
        mock_client = Mock()
        mock_client_class.return_value = mock_client
        mock_client.list_sprints_matching.return_value = [
            {"id": 1, "name": "Sprint 25Q4 #1", "state": "closed"}
        ]

        response = client.get("/api/cycle-time/123/sprints?year=25&quarter=4", headers=jira_headers)

        assert response.status_code == 200
        data = json.loads(response.data)
        assert data["data"]["sprintPattern"] == "Sprint 25Q4 #"
        assert data["data"]["sprints"][0]["name"] == "Sprint 25Q4 #1"

        board_id, regex = mock_client.list_sprints_matching.call_args[0]
        assert board_id == 123
        assert regex.search("Sprint 25Q4 #1")

    @patch("sprint_cycle_time.app.api.cycle_time.JiraClient")
    def test_pattern_override(self, mock_client_class, client, jira_headers):
        mock_client_class.return_value.list_sprints_matching.return_value = []

        response = client.get(
            "/api/cycle-time/123/sprints",
            query_string={"year": "25", "quarter": "1", "sprint_pattern": "Team {year}Q{quarter} #"},
            headers=jira_headers
        )

        assert response.status_code == 200
        assert json.loads(response.data)["data"]["sprintPattern"] == "Team 25Q1 #"

    @patch("sprint_cycle_time.app.api.cycle_time.JiraClient")
    def test_jira_failure(self, mock_client_class, client, jira_headers):
        mock_client_class.return_value.list_sprints_matching.side_effect = JiraFetchError("Jira API error 404", 404)

        response = client.get("/api/cycle-time/999/sprints?year=25&quarter=4", headers=jira_headers)

        assert response.status_code == 502

    @patch("sprint_cycle_time.app.api.cycle_time.JiraClient")
    def test_unexpected_error(self, mock_client_class, client, jira_headers):
        mock_client_class.return_value.list_sprints_matching.side_effect = RuntimeError("boom")

        response = client.get("/api/cycle-time/123/sprints?year=25&quarter=4", headers=jira_headers)

        assert response.status_code == 500
        assert json.loads(response.data)["error"] == "boom"


class TestCycleTimeReport:
    """Test cycle time report endpoint."""

    def test_missing_credentials(self, client):
        response = client.get("/api/cycle-time/123?year=25&quarter=4")
        assert response.status_code == 401

    def test_invalid_quarter(self, client, jira_headers):
        response = client.get("/api/cycle-time/123?year=25&quarter=9", headers=jira_headers)
        assert response.status_code == 400
        assert "Must be 1-4" in json.loads(response.data)["error"]

    def test_invalid_multiplier(self, client, jira_headers):
        response = client.get(
            "/api/cycle-time/123?year=25&quarter=4&inflation_multiplier=abc", headers=jira_headers
        )
        assert response.status_code == 400

    @patch("sprint_cycle_time.app.api.cycle_time.CycleTimeReportService")
    def test_success(self, mock_service_class, client, jira_headers):
        mock_service = Mock()
        mock_service_class.return_value = mock_service
        mock_service.compute_report.return_value = {
            "sprintPattern": "Sprint 25Q4 #",
            "summary": {"totalStories": 3},
            "groups": [{"estimate": 3.0, "storyCount": 2, "averageDays": 4.5}]
        }

        response = client.get("/api/cycle-time/123?year=25&quarter=4", headers=jira_headers)

        assert response.status_code == 200
        data = json.loads(response.data)
        assert data["data"]["groups"][0]["averageDays"] == 4.5

        board_id, year, quarter, template, options = mock_service.compute_report.call_args[0]
        assert (board_id, year, quarter, template) == (123, "25", "4", "Sprint {year}Q{quarter} #")
        assert options.tracked_statuses == ["In Development", "In Review", "Ready for Deploy"]
        assert options.show_inflated is False

    @patch("sprint_cycle_time.app.api.cycle_time.CycleTimeReportService")
    def test_passes_options(self, mock_service_class, client, jira_headers):
        mock_service = Mock()
        mock_service_class.return_value = mock_service
        mock_service.compute_report.return_value = {}

        response = client.get(
            "/api/cycle-time/123?year=25&quarter=4&tracked_statuses=Doing,Review"
            "&show_inflated=true&exclude_inflated=1&inflation_multiplier=5",
            headers=jira_headers
        )

        assert response.status_code == 200
        options = mock_service.compute_report.call_args[0][4]
        assert options.tracked_statuses == ["Doing", "Review"]
        assert options.show_inflated is True
        assert options.exclude_inflated is True
        assert options.inflation_multiplier == 5

    @patch("sprint_cycle_time.app.api.cycle_time.CycleTimeReportService")
    def test_jira_failure(self, mock_service_class, client, jira_headers):
        mock_service_class.return_value.compute_report.side_effect = JiraFetchError("Jira API error 500", 500)

        response = client.get("/api/cycle-time/123?year=25&quarter=4", headers=jira_headers)

        assert response.status_code == 502
        assert "error" in json.loads(response.data)

    @patch("sprint_cycle_time.app.api.cycle_time.CycleTimeReportService")
    def test_unexpected_error(self, mock_service_class, client, jira_headers):
        mock_service_class.return_value.compute_report.side_effect = Exception("Service error")

        response = client.get("/api/cycle-time/123?year=25&quarter=4", headers=jira_headers)

        assert response.status_code == 500
        assert json.loads(response.data)["error"] == "Service error"
