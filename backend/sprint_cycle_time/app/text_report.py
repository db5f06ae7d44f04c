"""Plain-text rendering of cycle time reports for the terminal."""

RULE = "=" * 80
THIN_RULE = "─" * 80
SUMMARY_WIDTH = 75


def format_points(estimate) -> str:
    """Show whole story points without a trailing '.0'."""
    if isinstance(estimate, float) and estimate.is_integer():
        return str(int(estimate))
    return str(estimate)


def _pad(value, width=2) -> str:
    return str(value).rjust(width, "0")


def _truncate(text: str, width: int = SUMMARY_WIDTH) -> str:
    text = text or ""
    return text[:width + 1] + ("..." if len(text) > width else "")


def format_header(report: dict) -> list:
    period = report["period"]
    return [
        RULE,
        "JIRA Cycle Time Analysis",
        RULE,
        f"Board ID: {report['boardId']}",
        f"Period: {period['year']} Q{period['quarter']} ({period['startDate']} to {period['endDate']})",
        f"Sprint Pattern: {report['sprintPattern']}*",
        f"Tracked Statuses: {', '.join(report['trackedStatuses'])}",
        "",
        f"Found {len(report['sprints'])} sprints in this quarter:",
    ] + [f"  • {s['name']} ({s['state']})" for s in report["sprints"]]


def format_groups(report: dict) -> list:
    summary = report["summary"]
    stories = report["stories"]

    if not stories:
        return ["", "❌ No stories found"]

    excluded = summary["excludedInflatedCount"]
    excluded_note = f" ({excluded} inflated stories excluded)" if excluded else ""

    lines = [
        "",
        RULE,
        "CYCLE TIME ANALYSIS",
        RULE,
        "",
        f"Total Stories: {summary['totalStories']}{excluded_note}",
        f"With Story Points: {summary['storiesWithEstimate']}",
        f"Without Story Points: {summary['storiesWithoutEstimate']}",
        "",
        "Average Business Days in Tracked Statuses by Story Points:",
        THIN_RULE,
    ]

    for group in report["groups"]:
        lines.append(
            f"{format_points(group['estimate'])} points ({_pad(group['storyCount'])} stories): "
            f"avg {group['averageDays']} days | median {_pad(group['medianDays'])} | "
            f"min {_pad(group['minDays'])} | max {_pad(group['maxDays'])}"
        )
        if group["statusBreakdown"]:
            lines.append("  Status breakdown:")
            for entry in group["statusBreakdown"]:
                lines.append(
                    f"    {entry['status'].ljust(20)} {str(entry['percentage']).rjust(5)}% "
                    f"({str(entry['totalDays']).rjust(4)} days total)"
                )
        lines.append("")

    return lines


def format_inflated(report: dict) -> list:
    inflated = report["inflatedStories"]
    multiplier = format_points(inflated["multiplier"])
    lines = ["", RULE, "POTENTIALLY INFLATED STORIES", RULE]

    if not inflated["groups"]:
        lines.append("")
        lines.append(
            f"✅ No potentially inflated stories found (where business_days > story_points * {multiplier})"
        )
        return lines

    lines.append("")
    lines.append(f"Criteria: business_days > (story_points * {multiplier})")
    lines.append(f"Found {inflated['inflatedCount']} potentially inflated stories")

    for group in inflated["groups"]:
        lines.append("")
        lines.append(
            f"📊 {format_points(group['estimate'])} Point Stories "
            f"(expected ≤ {format_points(group['expectedDays'])} days, "
            f"found {len(group['stories'])} inflated):"
        )
        lines.append(THIN_RULE)
        for story in group["stories"]:
            lines.append(
                f"  • {story['key'].ljust(12)} | {str(story['businessDays']).rjust(2)} days "
                f"(+{format_points(story['overageDays']).rjust(2)} / +{story['percentOver']}%) | {story['status']}"
            )
            lines.append(f"    {_truncate(story['summary'])}")

    return lines


def format_report(report: dict) -> str:
    """Render a report produced by CycleTimeReportService.compute_report."""
    lines = format_header(report) + format_groups(report)
    if "inflatedStories" in report:
        lines += format_inflated(report)
    lines.append("")
    return "\n".join(lines)
