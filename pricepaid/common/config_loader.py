"""Configuration loading and validation."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Mapping

from pricepaid.common.errors import ConfigError
from pricepaid.common.fs import read_yaml
from pricepaid.common.schema import validate_ingestion_config

CONFIG_FILENAME = "ingestion.yml"

# Secrets are never committed to YAML; they arrive through the environment.
ENV_OVERRIDES = {
    "STORAGE_CONNECTION_STRING": ("storage", "connection_string"),
    "SEARCH_NAME": ("search", "service_name"),
    "SEARCH_KEY": ("search", "api_key"),
}


def _deep_merge(base: Any, overlay: Any) -> Any:
    if isinstance(base, dict) and isinstance(overlay, dict):
        merged = dict(base)
        for key, value in overlay.items():
            if key in merged:
                merged[key] = _deep_merge(merged[key], value)
            else:
                merged[key] = value
        return merged
    return overlay


def _load_yaml_with_overlay(path: Path, overlay_path: Path | None) -> dict:
    if not path.exists():
        raise ConfigError(f"Missing config file: {path}")
    base = read_yaml(path) or {}
    if overlay_path is None or not overlay_path.exists():
        return base
    overlay = read_yaml(overlay_path) or {}
    return _deep_merge(base, overlay)


def _apply_env_overrides(cfg: dict, environ: Mapping[str, str]) -> dict:
    out = dict(cfg)
    for env_name, (section, key) in ENV_OVERRIDES.items():
        value = environ.get(env_name)
        if not value:
            continue
        section_cfg = dict(out.get(section) or {})
        section_cfg[key] = value
        out[section] = section_cfg
    return out


def load_config(
    config_dir: Path,
    *,
    allow_unknown: bool = False,
    overlay_config_dir: Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> dict:
    overlay_path = None
    if overlay_config_dir is not None:
        overlay_path = overlay_config_dir / CONFIG_FILENAME
    cfg = _load_yaml_with_overlay(config_dir / CONFIG_FILENAME, overlay_path)
    cfg = _apply_env_overrides(cfg, os.environ if environ is None else environ)
    return validate_ingestion_config(cfg, allow_unknown=allow_unknown)
