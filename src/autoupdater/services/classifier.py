"""Outcome classification for package manager output.

Package manager output is unstructured, so failures are detected with a
keyword heuristic rather than a parser. False positives and negatives are
accepted.
"""

import re
from typing import Iterable, List, Optional

from autoupdater.models import RunContext, RunOutcome, UpdateResult

FAILURE_PATTERN = re.compile(
    r"(?:^|\b)(?:error|failed|conflict|broken|failure)(?:\b|:)",
    re.IGNORECASE | re.MULTILINE,
)
UPGRADED_SUMMARY_PATTERN = re.compile(r"^\s*\d+ upgraded", re.MULTILINE)
INSTALL_PREFIX = "Inst "
PROBLEM_TAIL_LINES = 10


def has_failure(output: str) -> bool:
    return bool(FAILURE_PATTERN.search(output or ""))


def detect_errors(label: str, output: str) -> Optional[str]:
    """Returns a problem entry for ``output`` if it contains failure keywords.

    The entry holds the label and the last 10 lines of the output.
    """
    if not has_failure(output):
        return None

    tail = "\n".join((output or "").rstrip("\n").splitlines()[-PROBLEM_TAIL_LINES:])
    return f"{label}: {tail}"


def parse_install_lines(output: str) -> List[str]:
    """Extracts package names from ``Inst <pkg> ...`` lines."""
    packages = []
    for line in (output or "").splitlines():
        if not line.startswith(INSTALL_PREFIX):
            continue
        fields = line.split()
        if len(fields) > 1:
            packages.append(fields[1])
    return packages


def output_reports_update(output: str) -> bool:
    if UPGRADED_SUMMARY_PATTERN.search(output or ""):
        return True
    return any(line.startswith(INSTALL_PREFIX) for line in (output or "").splitlines())


def not_updated(pending: Iterable[str], updated: Iterable[str]) -> List[str]:
    """Pending packages absent from ``updated``, in pending order."""
    updated_set = set(updated)
    return [package for package in pending if package not in updated_set]


def build_outcome(result: UpdateResult, context: RunContext) -> RunOutcome:
    return RunOutcome(
        updated=result.updated,
        reboot_required=result.reboot_required,
        status="problem" if result.problems else "success",
        updated_packages=tuple(result.updated_packages),
        not_updated_packages=tuple(not_updated(result.pending_before_run, result.updated_packages)),
        pending_before_run=tuple(result.pending_before_run),
        problems=tuple(result.problems),
        context=context,
    )
