"""Configuration loader for font manifest builds."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Mapping, MutableMapping

import yaml
from pydantic import BaseModel, ConfigDict, Field, model_validator

from font_manifest.fonts import FONT_EXTENSIONS


class PathsConfig(BaseModel):
    """Build output roots."""

    model_config = ConfigDict(extra="ignore")

    node_root: Path
    client_root: Path

    @property
    def directories(self) -> tuple[Path, Path]:
        """Return the managed directories."""

        return (self.node_root, self.client_root)


class FontsConfig(BaseModel):
    """Font classification settings."""

    model_config = ConfigDict(extra="forbid")

    extensions: list[str] = Field(default_factory=lambda: list(FONT_EXTENSIONS))


class RouteConfig(BaseModel):
    """A route whose font manifest should be emitted."""

    model_config = ConfigDict(extra="forbid")

    pathname: str
    original_name: str
    app_dir: bool = False
    ty: str | None = None
    entries: list[str] = Field(default_factory=lambda: ["**/*"])

    @model_validator(mode="after")
    def _require_app_type(self) -> RouteConfig:
        if self.app_dir and not self.ty:
            raise ValueError(f"App route {self.pathname!r} requires a 'ty'.")
        return self


class Config(BaseModel):
    """Top-level configuration contract for font manifest builds."""

    model_config = ConfigDict(extra="allow")

    paths: PathsConfig
    fonts: FontsConfig = Field(default_factory=FontsConfig)
    routes: list[RouteConfig] = Field(default_factory=list)


def _resolve_directories(
    *, config_path: Path, paths_section: Mapping[str, object]
) -> dict[str, Path]:
    """Resolve the configured directories relative to the config file location."""

    resolved: dict[str, Path] = {}
    base_dir = config_path.parent
    for key, raw_value in paths_section.items():
        path_value = Path(str(raw_value)).expanduser()
        if not path_value.is_absolute():
            path_value = base_dir / path_value
        resolved[key] = path_value.resolve()
    return resolved


def load_config(path: str | Path) -> Config:
    """Load configuration from ``path``; output roots are made absolute."""

    config_path = Path(path).expanduser()
    if not config_path.is_file():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with config_path.open("r", encoding="utf-8") as handle:
        payload_raw = yaml.safe_load(handle) or {}

    if not isinstance(payload_raw, MutableMapping):
        raise ValueError("Configuration file must contain a mapping at the top level.")

    payload: dict[str, Any] = dict(payload_raw)

    raw_paths = payload.get("paths")
    if not isinstance(raw_paths, Mapping):
        raise ValueError("Configuration missing 'paths' mapping.")

    payload["paths"] = _resolve_directories(
        config_path=config_path, paths_section=raw_paths
    )

    return Config.model_validate(payload)


__all__ = [
    "Config",
    "FontsConfig",
    "PathsConfig",
    "RouteConfig",
    "load_config",
]
