"""Delayed reboot scheduling for auto-update."""

from typing import Callable

from autoupdater.errors import AutoUpdateError


class RebootService:
    """Schedules a reboot through shutdown(8) without waiting for it."""

    DELAY = "+1"
    REASON = "Auto-update reboot"

    def __init__(self, logger, run_cmd: Callable):
        self.logger = logger
        self.run_cmd = run_cmd

    def should_reboot(self, reboot_required: bool, reboot_if_required: bool, dry_run: bool) -> bool:
        return reboot_required and reboot_if_required and not dry_run

    def schedule(self, host: str, notify: Callable[[str], object]) -> bool:
        self.logger.info("Reboot required. Rebooting in 1 minute...")
        notify(f"{host}: Reboot required after updates. Rebooting in 1 minute.")

        try:
            result = self.run_cmd(
                ["shutdown", "-r", self.DELAY, self.REASON],
                check=False,
                capture_output=True,
            )
        except AutoUpdateError as exc:
            self.logger.error("Could not schedule reboot: %s", exc)
            return False

        return result.returncode == 0
