"""
Storage engine configuration loading.
"""

from .settings import SettingsLoader, StorageSettings, environment_overrides, load_settings

__all__ = [
    "StorageSettings",
    "SettingsLoader",
    "environment_overrides",
    "load_settings",
]
