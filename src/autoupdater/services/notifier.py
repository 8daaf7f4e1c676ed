"""Signal notification service for auto-update."""

import re
import shlex
import shutil
from typing import Callable, List, Optional, Sequence

from autoupdater.errors import AutoUpdateError

_ESCAPES = {
    "\\": "\\",
    "a": "\a",
    "b": "\b",
    "f": "\f",
    "n": "\n",
    "r": "\r",
    "t": "\t",
    "v": "\v",
}
_ESCAPE_PATTERN = re.compile(r"\\(?:([\\abfnrtv])|0([0-7]{0,3})|(c))")


def expand_escapes(message: str) -> str:
    """Expands backslash escapes the way ``printf '%b'`` does.

    Handles the single-character escapes, ``\\0NNN`` octal bytes and ``\\c``,
    which drops everything after it.
    """
    parts = []
    position = 0
    for match in _ESCAPE_PATTERN.finditer(message):
        parts.append(message[position:match.start()])
        position = match.end()
        simple, octal, stop = match.groups()
        if stop:
            return "".join(parts)
        if simple:
            parts.append(_ESCAPES[simple])
        else:
            parts.append(chr(int(octal or "0", 8) & 0xFF))
    parts.append(message[position:])
    return "".join(parts)


class SignalNotifier:
    """Sends messages through signal-cli, best effort."""

    EXECUTABLE = "signal-cli"

    def __init__(
        self,
        logger,
        run_cmd: Callable,
        sender: str,
        recipients: Sequence[str],
        run_as: Optional[str] = None,
        which: Callable = shutil.which,
    ):
        self.logger = logger
        self.run_cmd = run_cmd
        self.sender = sender
        self.recipients = list(recipients)
        self.run_as = run_as or None
        self.which = which

    def build_command(self, message: str, recipient: str) -> List[str]:
        cmd = [self.EXECUTABLE, "-u", self.sender, "send", "-m", message, recipient]
        if self.run_as:
            return ["su", "-c", shlex.join(cmd), self.run_as]
        return cmd

    def send(self, message: str) -> int:
        """Sends ``message`` to every recipient and returns the number delivered."""
        if not self.sender or not self.recipients:
            self.logger.info(
                "signal-cli not configured (SIGNAL_NUMBER or SIGNAL_RECIPIENTS missing). "
                "Skipping notification."
            )
            return 0

        if not self.which(self.EXECUTABLE):
            self.logger.info("signal-cli not found. Skipping notification.")
            return 0

        expanded = expand_escapes(message)
        delivered = 0
        for recipient in self.recipients:
            try:
                result = self.run_cmd(
                    self.build_command(expanded, recipient),
                    check=False,
                    capture_output=True,
                )
            except AutoUpdateError as exc:
                self.logger.warning("Failed to send signal to %s: %s", recipient, exc)
                continue

            if result.returncode != 0:
                self.logger.warning("Failed to send signal to %s", recipient)
                continue
            delivered += 1

        return delivered
