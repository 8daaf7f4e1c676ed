"""apt-get update execution service for auto-update."""

import os
import subprocess
from typing import Callable, List, Optional

from autoupdater.errors import AutoUpdateError
from autoupdater.models import Settings, UpdateResult
from autoupdater.services.classifier import (
    detect_errors,
    output_reports_update,
    parse_install_lines,
)


class AptService:
    """Queries, simulates and applies apt-get upgrades.

    Command failures never abort the run; they are recorded as problems.
    """

    REBOOT_MARKER = "/var/run/reboot-required"
    NONINTERACTIVE_ENV = {"DEBIAN_FRONTEND": "noninteractive"}

    def __init__(self, logger, run_cmd: Callable, reboot_marker: str = REBOOT_MARKER):
        self.logger = logger
        self.run_cmd = run_cmd
        self.reboot_marker = reboot_marker

    @staticmethod
    def upgrade_verb(dist_upgrade: bool) -> str:
        return "dist-upgrade" if dist_upgrade else "upgrade"

    def get_pending_updates(self) -> List[str]:
        try:
            result = self.run_cmd(
                ["apt-get", "-s", "dist-upgrade"],
                check=False,
                capture_output=True,
            )
        except AutoUpdateError as exc:
            self.logger.warning("Could not query pending updates: %s", exc)
            return []
        return parse_install_lines(result.stdout or "")

    def run(self, settings: Settings) -> UpdateResult:
        result = UpdateResult(pending_before_run=self.get_pending_updates())
        self.logger.info("Pending updates before run: %s", len(result.pending_before_run))

        if settings.dry_run:
            return self.simulate(settings, result)
        return self.apply(settings, result)

    def simulate(self, settings: Settings, result: UpdateResult) -> UpdateResult:
        refresh = self._try_run(result, "apt-get -s update", ["apt-get", "-s", "update"])
        if refresh is not None:
            self._log_output(refresh.stdout)

        verb = self.upgrade_verb(settings.dist_upgrade)
        upgrade = self._try_run(result, f"apt-get -s {verb}", ["apt-get", "-s", verb, "-y"])
        if upgrade is not None:
            self._log_output(upgrade.stdout)

        result.pending_before_run = self.get_pending_updates()
        result.updated = False
        return result

    def apply(self, settings: Settings, result: UpdateResult) -> UpdateResult:
        refresh = self._try_run(
            result,
            "apt-get update failed",
            ["apt-get", "update"],
            env=self.NONINTERACTIVE_ENV,
        )
        if refresh is not None:
            self._log_output(refresh.stdout)
            if refresh.returncode != 0:
                result.add_problem("apt-get update failed")

        verb = self.upgrade_verb(settings.dist_upgrade)
        upgrade = self._try_run(
            result,
            f"apt {verb}",
            ["apt-get", "-y", verb],
            env=self.NONINTERACTIVE_ENV,
        )
        output = (upgrade.stdout or "") if upgrade is not None else ""
        self._log_output(output)

        if output_reports_update(output):
            result.updated = True
        result.add_problem(detect_errors(f"apt {verb}", output))
        result.updated_packages = parse_install_lines(output)
        result.reboot_required = os.path.exists(self.reboot_marker)
        return result

    def _try_run(
        self,
        result: UpdateResult,
        label: str,
        cmd: List[str],
        env=None,
    ) -> Optional[subprocess.CompletedProcess]:
        try:
            return self.run_cmd(cmd, check=False, merge_stderr=True, env=env)
        except AutoUpdateError as exc:
            self.logger.warning("%s: %s", label, exc)
            result.add_problem(f"{label}: {exc}")
            return None

    def _log_output(self, output: str):
        if output and output.strip():
            self.logger.info("%s", output.rstrip("\n"))
