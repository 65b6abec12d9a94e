"""Settings loading with deterministic precedence.

The cascade is always:
1) explicit keyword overrides
2) environment variables (``CATALOG_`` prefix, ``__`` nesting, e.g.
   ``CATALOG_POSTGRES__URL``)
3) the YAML config file (``~/.config/catalog/catalog.yaml`` by default)
4) built-in model defaults
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic_settings import SettingsConfigDict

from .models import CatalogSettings


def load_settings(
    *, config_path: str | Path | None = None, **overrides: Any
) -> CatalogSettings:
    """Build a settings snapshot, optionally reading a non-default YAML file."""
    if config_path is None:
        return CatalogSettings(**overrides)

    resolved = Path(config_path)

    class _FileCatalogSettings(CatalogSettings):
        model_config = SettingsConfigDict(yaml_file=resolved)

    return _FileCatalogSettings(**overrides)
