"""Domain errors for auto-update."""


class AutoUpdateError(RuntimeError):
    """Raised when the update run cannot continue safely."""
