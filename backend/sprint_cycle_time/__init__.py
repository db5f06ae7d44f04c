"""Business-day cycle time statistics for Jira sprint stories."""
