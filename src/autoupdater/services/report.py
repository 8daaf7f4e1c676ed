"""Summary rendering for auto-update runs."""

from typing import List, Sequence

from autoupdater.models import RunOutcome

PACKAGE_LIST_LIMIT = 30
PROBLEM_LINE_LIMIT = 20


def format_bool(value: bool) -> str:
    return "true" if value else "false"


def format_list(items: Sequence[str], limit: int = PACKAGE_LIST_LIMIT) -> str:
    """Comma-joins ``items``, truncating past ``limit`` with an "and N more" suffix."""
    if not items:
        return "(none)"
    if len(items) <= limit:
        return ", ".join(items)
    return f"{', '.join(items[:limit])} and {len(items) - limit} more"


def format_problems(problems: Sequence[str], limit: int = PROBLEM_LINE_LIMIT) -> str:
    lines: List[str] = []
    for problem in problems:
        lines.extend(line for line in problem.splitlines() if line.strip())
    if not lines:
        return "none"
    return "\n".join(lines[:limit])


def build_summary(outcome: RunOutcome, log_file: str) -> str:
    context = outcome.context
    return (
        f"Auto-update on {context.host}\n"
        "\n"
        f"Updated: {format_bool(outcome.updated)}\n"
        f"Reboot required: {format_bool(outcome.reboot_required)}\n"
        f"Duration: {context.duration_seconds}s\n"
        "\n"
        f"Updated packages: {format_list(outcome.updated_packages)}\n"
        f"Not updated (still pending): {format_list(outcome.not_updated_packages)}\n"
        f"Pending before run: {format_list(outcome.pending_before_run)}\n"
        "\n"
        "Problems:\n"
        f"{format_problems(outcome.problems)}\n"
        "\n"
        f"Log: {log_file}"
    )
