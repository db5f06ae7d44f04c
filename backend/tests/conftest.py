"""Shared fixtures for Sprint Cycle Time tests."""

import pytest
from datetime import datetime, timezone


@pytest.fixture
def mock_jira_credentials():
    """Mock Jira credentials for testing."""
    return {
        "server": "https://test.atlassian.net",
        "email": "test@example.com",
        "token": "test-token-123"
    }


@pytest.fixture
def jira_headers():
    """Jira credential headers expected by the API."""
    return {
        "X-Jira-Server": "https://test.atlassian.net",
        "X-Jira-Email": "test@example.com",
        "X-Jira-Token": "token123"
    }


@pytest.fixture
def tracked_statuses():
    return ["In Development", "In Review", "Ready for Deploy"]


@pytest.fixture
def fixed_now():
    """Monday 2024-01-15, used as 'now' for stories still in progress."""
    return datetime(2024, 1, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def sample_sprints():
    """Raw board sprints as returned by the Jira agile API."""
    return [
        {"id": 200, "name": "Sprint 24Q3 #6", "state": "closed"},
        {"id": 201, "name": "Sprint 24Q4 #1", "state": "closed"},
        {"id": 202, "name": "Sprint 24Q4 #2", "state": "active"},
        {"id": 203, "name": "Sprint 24Q4 planning", "state": "future"}
    ]


def _make_history(created, from_status, to_status, extra_items=None):
    """Build one changelog history entry with a status change."""
    items = [{"field": "status", "fromString": from_status, "toString": to_status}]
    items.extend(extra_items or [])
    return {"created": created, "items": items}


@pytest.fixture
def make_history():
    """Factory for changelog history entries."""
    return _make_history


@pytest.fixture
def simple_changelog():
    """To Do -> In Development on Mon Jan 1, -> Done on Mon Jan 8 (5 business days)."""
    return [
        _make_history("2024-01-08T16:00:00.000+0000", "In Development", "Done"),
        _make_history("2024-01-01T10:00:00.000+0000", "To Do", "In Development")
    ]


@pytest.fixture
def full_workflow_changelog():
    """Story moving through every tracked status, with unrelated field changes."""
    return [
        _make_history("2024-01-01T09:00:00.000+0000", "To Do", "In Development", extra_items=[
            {"field": "assignee", "fromString": None, "toString": "Alice"}
        ]),
        _make_history("2024-01-03T11:00:00.000+0000", "In Development", "In Review"),
        {
            "created": "2024-01-04T08:00:00.000+0000",
            "items": [{"field": "Story Points", "fromString": "3", "toString": "5"}]
        },
        _make_history("2024-01-05T15:00:00.000+0000", "In Review", "Ready for Deploy"),
        _make_history("2024-01-08T10:00:00.000+0000", "Ready for Deploy", "Done")
    ]


@pytest.fixture
def app():
    """Create Flask test app."""
    import sys
    import os
    sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

    from sprint_cycle_time.app import create_app
    app = create_app()
    app.config['TESTING'] = True
    return app


@pytest.fixture
def client(app):
    """Create Flask test client."""
    return app.test_client()
