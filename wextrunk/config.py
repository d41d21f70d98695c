"""Configuration loading for wextrunk (.wextrunk.yml plus environment)."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

from .models import BuildTarget

CONFIG_FILENAME = ".wextrunk.yml"

ENV_STAGING_DIR = "TRUNK_STAGING_DIR"
ENV_SOURCE_DIR = "TRUNK_SOURCE_DIR"
ENV_TARGET = "WEXTRUNK_TARGET"
ENV_SERVE_ADDRESS = "TRUNK_SERVE_ADDRESS"
ENV_SERVE_PORT = "TRUNK_SERVE_PORT"
ENV_SERVE_WS_BASE = "TRUNK_SERVE_WS_BASE"


class ConfigError(RuntimeError):
    """Raised when the configuration file or environment cannot be parsed."""


@dataclass
class ServeConfig:
    """Dev-server coordinates substituted into auto-reload scripts."""

    address: str = "127.0.0.1"
    port: int = 8080
    ws_base: str = "/"

    @property
    def host(self) -> str:
        return f"{self.address}:{self.port}"


@dataclass
class PageConfig:
    """Page cleanup toggles."""

    strip_preloads: bool = True
    strip_integrity: bool = True


@dataclass
class WextrunkConfig:
    """Effective settings for one pipeline run."""

    source_dir: Path
    target: Optional[BuildTarget] = None
    manifest_name: str = "manifest.json"
    keep_index: bool = False
    strict_includes: bool = True
    workers: Optional[int] = None
    page: PageConfig = field(default_factory=PageConfig)
    serve: ServeConfig = field(default_factory=ServeConfig)


def load_config(
    source_dir: Path,
    *,
    environ: Mapping[str, str] | None = None,
) -> WextrunkConfig:
    """Load ``.wextrunk.yml`` from ``source_dir`` and apply environment overrides."""
    env = os.environ if environ is None else environ
    root = source_dir.expanduser().resolve()
    config = WextrunkConfig(source_dir=root)

    config_file = root / CONFIG_FILENAME
    if config_file.exists():
        _apply_file(config, _read_config(config_file))

    _apply_environment(config, env)
    return config


def _read_config(path: Path) -> Dict[str, Any]:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Failed to read {path}: {exc}") from exc
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise ConfigError(f"{path.name} must contain a mapping at the root")
    return loaded


def _apply_file(config: WextrunkConfig, data: Dict[str, Any]) -> None:
    target = _as_str(data.get("target"))
    if target:
        config.target = _parse_target(target, origin=CONFIG_FILENAME)

    manifest_name = _as_str(data.get("manifest_name"))
    if manifest_name:
        config.manifest_name = manifest_name

    keep_index = _as_bool(data.get("keep_index"))
    if keep_index is not None:
        config.keep_index = keep_index

    strict = _as_bool(data.get("strict_includes"))
    if strict is not None:
        config.strict_includes = strict

    workers = _as_int(data.get("workers"))
    if workers is not None:
        if workers < 1:
            raise ConfigError("workers must be a positive integer")
        config.workers = workers

    page_data = _as_dict(data.get("page"))
    strip_preloads = _as_bool(page_data.get("strip_preloads"))
    if strip_preloads is not None:
        config.page.strip_preloads = strip_preloads
    strip_integrity = _as_bool(page_data.get("strip_integrity"))
    if strip_integrity is not None:
        config.page.strip_integrity = strip_integrity

    serve_data = _as_dict(data.get("serve"))
    address = _as_str(serve_data.get("address"))
    if address:
        config.serve.address = address
    port = _as_int(serve_data.get("port"))
    if port is not None:
        config.serve.port = port
    ws_base = _as_str(serve_data.get("ws_base"))
    if ws_base:
        config.serve.ws_base = ws_base


def _apply_environment(config: WextrunkConfig, env: Mapping[str, str]) -> None:
    target = env.get(ENV_TARGET)
    if target:
        config.target = _parse_target(target, origin=ENV_TARGET)
    address = env.get(ENV_SERVE_ADDRESS)
    if address:
        config.serve.address = address
    port = env.get(ENV_SERVE_PORT)
    if port:
        parsed = _as_int(port)
        if parsed is None:
            raise ConfigError(f"{ENV_SERVE_PORT} must be an integer, got {port!r}")
        config.serve.port = parsed
    ws_base = env.get(ENV_SERVE_WS_BASE)
    if ws_base:
        config.serve.ws_base = ws_base


def _parse_target(value: str, *, origin: str) -> BuildTarget:
    try:
        return BuildTarget.parse(value)
    except ValueError as exc:
        raise ConfigError(f"{origin}: {exc}") from exc


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float)) and not isinstance(value, bool) else None


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return None
    return None


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    return None


__all__ = [
    "CONFIG_FILENAME",
    "ConfigError",
    "ENV_SOURCE_DIR",
    "ENV_STAGING_DIR",
    "ENV_TARGET",
    "PageConfig",
    "ServeConfig",
    "WextrunkConfig",
    "load_config",
]
