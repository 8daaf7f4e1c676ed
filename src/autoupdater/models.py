"""Shared domain models for auto-update."""

import os
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Tuple


@dataclass(frozen=True)
class Settings:
    """Finalized configuration, immutable once the pipeline starts."""

    signal_number: str = ""
    signal_recipients: Tuple[str, ...] = ()
    dry_run: bool = False
    reboot_if_required: bool = True
    log_dir: str = "/var/log/auto-update"
    signal_linux_user: str = ""
    dist_upgrade: bool = False
    lock_file: str = "/var/lock/auto-update.lock"

    @property
    def log_file(self) -> str:
        return os.path.join(self.log_dir, "last-run.log")


@dataclass
class RunContext:
    """Host and timing information for a single run."""

    host: str
    started_at: datetime
    finished_at: Optional[datetime] = None

    def finish(self, when: Optional[datetime] = None) -> "RunContext":
        self.finished_at = when or datetime.now()
        return self

    @property
    def duration_seconds(self) -> int:
        if self.finished_at is None:
            return 0
        return int(self.finished_at.timestamp()) - int(self.started_at.timestamp())


@dataclass
class UpdateResult:
    """Accumulator threaded through the update stage."""

    updated: bool = False
    reboot_required: bool = False
    pending_before_run: List[str] = field(default_factory=list)
    updated_packages: List[str] = field(default_factory=list)
    problems: List[str] = field(default_factory=list)

    def add_problem(self, problem: Optional[str]) -> "UpdateResult":
        if problem:
            self.problems.append(problem)
        return self


@dataclass(frozen=True)
class RunOutcome:
    """Classified result of a run, consumed by the report formatter."""

    updated: bool
    reboot_required: bool
    status: str
    updated_packages: Tuple[str, ...]
    not_updated_packages: Tuple[str, ...]
    pending_before_run: Tuple[str, ...]
    problems: Tuple[str, ...]
    context: RunContext
