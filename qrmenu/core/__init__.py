"""
Core module initialization.
Exports configuration and logging utilities.
"""

from qrmenu.core.config import get_settings, setup_logging, Settings, EnvironmentMode, StorageBackend

__all__ = ["get_settings", "setup_logging", "Settings", "EnvironmentMode", "StorageBackend"]
