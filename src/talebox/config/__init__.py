"""Configuration module for Talebox."""

from .settings import (
    ApiSettings,
    DatabaseSettings,
    ObservabilitySettings,
    PlaybackSettings,
    Settings,
    StorageSettings,
    get_settings,
)

__all__ = [
    "ApiSettings",
    "DatabaseSettings",
    "ObservabilitySettings",
    "PlaybackSettings",
    "Settings",
    "StorageSettings",
    "get_settings",
]
