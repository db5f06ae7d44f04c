"""Cycle time aggregation by story points."""

from typing import Optional

DEFAULT_INFLATION_MULTIPLIER = 10


def expected_days(estimate: float, multiplier: float = DEFAULT_INFLATION_MULTIPLIER) -> float:
    """Business days a story of this size is expected to take at most."""
    return estimate * multiplier


def is_inflated(story: dict, multiplier: float = DEFAULT_INFLATION_MULTIPLIER) -> bool:
    """Check if a story took more business days than its estimate allows.

    A story is inflated when business_days > estimate * multiplier. The
    comparison is strict, and a zero-point story with any tracked time
    counts as inflated.
    """
    estimate = story.get("estimate")
    business_days = story.get("businessDays")
    if estimate is None or business_days is None:
        return False

    return business_days > expected_days(estimate, multiplier)


def _group_by_estimate(stories: list) -> dict:
    grouped = {}
    for story in stories:
        grouped.setdefault(story["estimate"], []).append(story)
    return grouped


def summarize_group(estimate: float, stories: list, tracked_statuses) -> Optional[dict]:
    """Descriptive statistics for the stories sharing one estimate."""
    days = sorted(s["businessDays"] for s in stories if s.get("businessDays") is not None)
    if not days:
        return None

    # Index pick, not an interpolated median: [2, 4, 6, 8] -> 6
    median = days[len(days) // 2]

    status_totals = {}
    for story in stories:
        for status, status_days in (story.get("statusBreakdown") or {}).items():
            status_totals[status] = status_totals.get(status, 0) + status_days

    total_days_all_stories = sum(status_totals.values())
    status_breakdown = []
    if total_days_all_stories > 0:
        for status in tracked_statuses:
            status_days = status_totals.get(status, 0)
            status_breakdown.append({
                "status": status,
                "totalDays": status_days,
                "percentage": round(status_days / total_days_all_stories * 100, 1)
            })

    return {
        "estimate": estimate,
        "storyCount": len(stories),
        "averageDays": round(sum(days) / len(days), 1),
        "medianDays": median,
        "minDays": days[0],
        "maxDays": days[-1],
        "statusBreakdown": status_breakdown
    }


def aggregate_by_estimate(stories: list, tracked_statuses,
                          multiplier: float = DEFAULT_INFLATION_MULTIPLIER,
                          exclude_inflated: bool = False) -> dict:
    """Group computed stories by story points and summarize each group.

    Args:
        stories: Story dicts carrying "estimate", "businessDays" and
            "statusBreakdown"
        tracked_statuses: Tracked status names, in display order
        multiplier: Inflation multiplier used when excluding inflated stories
        exclude_inflated: Drop inflated stories before computing anything

    Returns:
        Dict with story counts and per-estimate "groups" in ascending order
        of estimate. Stories without an estimate are only counted.
    """
    excluded_count = 0
    if exclude_inflated:
        kept = [s for s in stories if not is_inflated(s, multiplier)]
        excluded_count = len(stories) - len(kept)
        stories = kept

    with_estimate = [s for s in stories if s.get("estimate") is not None]
    grouped = _group_by_estimate(with_estimate)

    groups = []
    for estimate in sorted(grouped):
        summary = summarize_group(estimate, grouped[estimate], tracked_statuses)
        if summary:
            groups.append(summary)

    return {
        "totalStories": len(stories),
        "storiesWithEstimate": len(with_estimate),
        "storiesWithoutEstimate": len(stories) - len(with_estimate),
        "excludedInflatedCount": excluded_count,
        "groups": groups
    }


def build_inflated_report(stories: list,
                          multiplier: float = DEFAULT_INFLATION_MULTIPLIER) -> dict:
    """List inflated stories grouped by estimate, longest first.

    Returns:
        Dict with the "multiplier", the number of inflated stories and their
        "groups". Each story carries its overage in days and as a percentage
        of the expected duration (0 when nothing was expected).
    """
    inflated = [s for s in stories if is_inflated(s, multiplier)]
    grouped = _group_by_estimate(inflated)

    groups = []
    for estimate in sorted(grouped):
        expected = expected_days(estimate, multiplier)

        entries = []
        for story in sorted(grouped[estimate], key=lambda s: -s["businessDays"]):
            overage = story["businessDays"] - expected
            percent_over = round(overage / expected * 100) if expected > 0 else 0
            entries.append({
                "key": story["key"],
                "summary": story.get("summary") or "",
                "status": story.get("status"),
                "businessDays": story["businessDays"],
                "overageDays": overage,
                "percentOver": percent_over
            })

        groups.append({
            "estimate": estimate,
            "expectedDays": expected,
            "stories": entries
        })

    return {
        "multiplier": multiplier,
        "inflatedCount": len(inflated),
        "groups": groups
    }
