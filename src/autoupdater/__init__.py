"""
auto-update - Unattended system updates with Signal reporting
"""

__version__ = "0.1.0"

from .core import AutoUpdater, AutoUpdateError

__all__ = ["AutoUpdater", "AutoUpdateError"]
