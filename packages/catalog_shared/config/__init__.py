"""Public API for shared catalog configuration utilities."""

from .loader import load_settings
from .models import (
    DEFAULT_CONFIG_PATH,
    CatalogSettings,
    ComponentsSettings,
    LoggingSettings,
    PostgresSettings,
    resolve_component_settings,
)

__all__ = [
    "DEFAULT_CONFIG_PATH",
    "CatalogSettings",
    "ComponentsSettings",
    "LoggingSettings",
    "PostgresSettings",
    "load_settings",
    "resolve_component_settings",
]
