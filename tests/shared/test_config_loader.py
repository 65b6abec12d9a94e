"""Tests for pydantic-settings-backed shared configuration loading."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import BaseModel, ValidationError

from packages.catalog_shared.config import (
    CatalogSettings,
    load_settings,
    resolve_component_settings,
)


class _ExampleServiceSettings(BaseModel):
    batch_size: int = 10
    label: str = "default"


def _write_yaml(path: Path, *lines: str) -> Path:
    path.write_text("\n".join(lines), encoding="utf-8")
    return path


def test_load_settings_uses_catalog_precedence_cascade(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    """Init params should override env, env should override YAML, then defaults."""
    config_file = _write_yaml(
        tmp_path / "catalog.yaml",
        "logging:",
        "  level: WARNING",
        "postgres:",
        "  pool_size: 7",
        "  max_overflow: 3",
        "components:",
        "  service:",
        "    example:",
        "      batch_size: 20",
    )
    monkeypatch.setenv("CATALOG_LOGGING__LEVEL", "ERROR")
    monkeypatch.setenv("CATALOG_POSTGRES__POOL_SIZE", "9")
    monkeypatch.setenv("CATALOG_COMPONENTS__SERVICE__EXAMPLE__LABEL", "from-env")

    settings = load_settings(config_path=config_file, logging={"level": "DEBUG"})
    example = resolve_component_settings(
        settings=settings,
        component_id="service_example",
        model=_ExampleServiceSettings,
    )

    assert settings.logging.level == "DEBUG"
    assert settings.postgres.pool_size == 9
    assert settings.postgres.max_overflow == 3
    assert example.batch_size == 20
    assert example.label == "from-env"


def test_load_settings_uses_model_defaults_when_sources_missing(tmp_path: Path) -> None:
    """Settings should fall back to model defaults when env and YAML are absent."""
    settings = load_settings(config_path=tmp_path / "missing.yaml")
    example = resolve_component_settings(
        settings=settings,
        component_id="service_example",
        model=_ExampleServiceSettings,
    )

    assert settings.logging.service == "catalog"
    assert settings.logging.level == "INFO"
    assert settings.postgres.pool_size == 5
    assert settings.postgres.url.startswith("postgresql+asyncpg://")
    assert example == _ExampleServiceSettings()


def test_components_reject_flat_component_keys() -> None:
    """Component settings must be grouped under their kind namespace."""
    with pytest.raises(ValidationError, match="components.service.example"):
        CatalogSettings(components={"service_example": {"batch_size": 1}})


def test_resolve_component_settings_requires_kind_prefix() -> None:
    with pytest.raises(ValueError, match="service_/substrate_"):
        resolve_component_settings(
            settings=CatalogSettings(),
            component_id="example",
            model=_ExampleServiceSettings,
        )
