"""Subprocess execution service for auto-update."""

import os
import subprocess
from typing import List, Mapping, Optional

from autoupdater.errors import AutoUpdateError


class CommandRunner:
    """Runs external commands with consistent error handling.

    Commands block until they exit; no timeout is applied.
    """

    def __init__(self, logger, subprocess_module=subprocess):
        self.logger = logger
        self.subprocess = subprocess_module

    def run(
        self,
        cmd: List[str],
        check: bool = True,
        capture_output: bool = False,
        merge_stderr: bool = False,
        env: Optional[Mapping[str, str]] = None,
    ) -> subprocess.CompletedProcess:
        cmd_str = " ".join(cmd)
        self.logger.debug("Executing: %s", cmd_str)

        run_env = None
        if env:
            run_env = dict(os.environ)
            run_env.update(env)

        kwargs = {"text": True, "errors": "replace", "env": run_env}
        if merge_stderr:
            kwargs["stdout"] = self.subprocess.PIPE
            kwargs["stderr"] = self.subprocess.STDOUT
        else:
            kwargs["capture_output"] = capture_output

        try:
            result = self.subprocess.run(cmd, **kwargs)
        except FileNotFoundError as exc:
            raise AutoUpdateError(
                f"Required command not found: {cmd[0]}. Please install it and try again."
            ) from exc
        except OSError as exc:
            raise AutoUpdateError(f"Failed to execute command: {cmd_str}. {exc}") from exc

        if (capture_output or merge_stderr) and result.stdout:
            self.logger.debug("Command output: %s", result.stdout.strip())

        if result.returncode == 0:
            return result

        stderr = (result.stderr or "").strip() if capture_output and not merge_stderr else ""
        message = f"Command failed ({result.returncode}): {cmd_str}"
        if stderr:
            message = f"{message}\n{stderr}"

        if check:
            raise AutoUpdateError(message)

        self.logger.warning(message)
        return result
