import logging
import os
import socket
import subprocess
import sys
from datetime import datetime
from typing import List, Optional

from rich.console import Console

from .errors import AutoUpdateError
from .models import RunContext, RunOutcome, Settings, UpdateResult
from .services.classifier import build_outcome
from .services.command_runner import CommandRunner
from .services.lock import LockService
from .services.notifier import SignalNotifier
from .services.package_manager import AptService
from .services.reboot import RebootService
from .services.report import build_summary, format_bool

console = Console()
logger = logging.getLogger("autoupdater")


class AutoUpdater:
    def __init__(self, settings: Settings, reboot_marker: str = AptService.REBOOT_MARKER):
        self.settings = settings

        self.command_runner = CommandRunner(logger=logger, subprocess_module=subprocess)
        self.lock_service = LockService(lock_file=settings.lock_file, logger=logger)
        self.apt_service = AptService(
            logger=logger,
            run_cmd=self._run_cmd,
            reboot_marker=reboot_marker,
        )
        self.notifier = SignalNotifier(
            logger=logger,
            run_cmd=self._run_cmd,
            sender=settings.signal_number,
            recipients=settings.signal_recipients,
            run_as=settings.signal_linux_user,
        )
        self.reboot_service = RebootService(logger=logger, run_cmd=self._run_cmd)
        self.outcome: Optional[RunOutcome] = None

    def _run_cmd(
        self,
        cmd: List[str],
        check: bool = True,
        capture_output: bool = False,
        merge_stderr: bool = False,
        env=None,
    ) -> subprocess.CompletedProcess:
        return self.command_runner.run(
            cmd,
            check=check,
            capture_output=capture_output,
            merge_stderr=merge_stderr,
            env=env,
        )

    @staticmethod
    def is_root() -> bool:
        return os.geteuid() == 0

    def build_run_context(self) -> RunContext:
        return RunContext(host=socket.gethostname(), started_at=datetime.now())

    def apply_updates(self) -> UpdateResult:
        console.print("[blue]Checking for package updates...[/blue]")
        return self.apt_service.run(self.settings)

    def report(self, outcome: RunOutcome) -> str:
        summary = build_summary(outcome, self.settings.log_file)
        logger.info("%s", summary)
        return summary

    def notify(self, message: str) -> int:
        return self.notifier.send(message)

    def maybe_reboot(self, outcome: RunOutcome) -> bool:
        if not self.reboot_service.should_reboot(
            outcome.reboot_required,
            self.settings.reboot_if_required,
            self.settings.dry_run,
        ):
            return False

        console.print("[yellow]Reboot required, scheduling reboot in 1 minute.[/yellow]")
        return self.reboot_service.schedule(outcome.context.host, self.notify)

    def run(self) -> int:
        if not self.settings.dry_run and not self.is_root():
            print("This script must be run as root unless DRY_RUN=true.", file=sys.stderr)
            return 1

        try:
            if not self.lock_service.acquire():
                return 0

            context = self.build_run_context()
            logger.info(
                "Starting auto-update on %s (dry-run=%s)",
                context.host,
                format_bool(self.settings.dry_run),
            )

            result = self.apply_updates()
            self.outcome = build_outcome(result, context.finish())

            summary = self.report(self.outcome)
            self.notify(summary)
            self.maybe_reboot(self.outcome)

            if self.outcome.status == "success":
                console.print("[green]Auto-update finished.[/green]")
            else:
                console.print("[yellow]Auto-update finished with problems.[/yellow]")
            logger.info("Auto-update finished with status: %s", self.outcome.status)
            return 0

        except AutoUpdateError as exc:
            console.print(f"[bold red]Error:[/bold red] {exc}")
            logger.error(str(exc))
            return 1
        finally:
            self.lock_service.release()
