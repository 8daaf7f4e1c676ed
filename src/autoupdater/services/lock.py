"""Single-instance lock for auto-update runs."""

import atexit
import fcntl
import os
import signal
from typing import IO, Optional

from autoupdater.errors import AutoUpdateError

TERMINATING_SIGNALS = (signal.SIGTERM, signal.SIGHUP, signal.SIGINT)


class LockService:
    """Holds an advisory flock on a well-known file for the process lifetime.

    The presence of the lock file alone means nothing; a stale file left by a
    crashed run is simply locked again.
    """

    def __init__(self, lock_file: str, logger, atexit_module=atexit, signal_module=signal):
        self.lock_file = lock_file
        self.logger = logger
        self.atexit = atexit_module
        self.signal = signal_module
        self._handle: Optional[IO] = None

    @property
    def held(self) -> bool:
        return self._handle is not None

    def acquire(self) -> bool:
        """Returns False when another process already holds the lock."""
        directory = os.path.dirname(self.lock_file)
        try:
            if directory:
                os.makedirs(directory, exist_ok=True)
            handle = open(self.lock_file, "w")
        except OSError as exc:
            raise AutoUpdateError(f"Could not open lock file '{self.lock_file}': {exc}") from exc

        try:
            fcntl.flock(handle.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
        except OSError:
            handle.close()
            self.logger.info("Another update process is running. Exiting.")
            return False

        self._handle = handle
        self.atexit.register(self.release)
        self._install_signal_handlers()
        self.logger.debug("Acquired lock %s", self.lock_file)
        return True

    def release(self):
        if self._handle is None:
            return

        handle, self._handle = self._handle, None
        try:
            fcntl.flock(handle.fileno(), fcntl.LOCK_UN)
        except OSError:
            pass
        finally:
            handle.close()

        try:
            os.remove(self.lock_file)
        except OSError:
            pass
        self.logger.debug("Released lock %s", self.lock_file)

    def _install_signal_handlers(self):
        for signum in TERMINATING_SIGNALS:
            try:
                self.signal.signal(signum, self._exit_on_signal)
            except ValueError:
                # Only the main thread may install handlers.
                return

    @staticmethod
    def _exit_on_signal(signum, _frame):
        raise SystemExit(128 + signum)
