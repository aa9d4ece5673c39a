from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any

import yaml
from platformdirs import user_config_dir

from .. import APP_NAME
from .models import ConfigError, ServerConfig

_ENV_PATTERN = re.compile(r"\$\{(\w+)\}")


def _candidate_paths(cwd: Path) -> list[Path]:
    return [
        cwd / "pytodomcp.yaml",
        cwd / ".pytodomcp.yaml",
    ]


def _global_candidate_paths() -> list[Path]:
    return [Path(user_config_dir(APP_NAME)) / "pytodomcp.yaml"]


def _load_yaml(p: Path) -> dict[str, Any]:
    try:
        obj = yaml.safe_load(p.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Failed to load config {p}: {e}") from e
    if obj is None:
        return {}
    if not isinstance(obj, dict):
        raise ConfigError(f"Config {p} must be a mapping.")
    return obj


def _merge_dicts(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    out = dict(base)
    for k, v in override.items():
        if isinstance(v, dict) and isinstance(out.get(k), dict):
            out[k] = _merge_dicts(out[k], v)  # type: ignore
        else:
            out[k] = v
    return out


def _expand_env_placeholders(obj: Any) -> Any:
    if isinstance(obj, str):
        def repl(m: re.Match) -> str:
            var = m.group(1)
            val = os.getenv(var)
            if val is None:
                raise ConfigError(f"Config placeholder '${{{var}}}' not found in environment.")
            return val

        return _ENV_PATTERN.sub(repl, obj)
    if isinstance(obj, dict):
        return {k: _expand_env_placeholders(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_expand_env_placeholders(v) for v in obj]
    return obj


def load_server_config(*, cwd: Path | None = None, explicit_path: Path | None = None) -> ServerConfig:
    """Load server config.

    Merge order: defaults < global < project < explicit_path.
    """
    cwd = cwd or Path.cwd()
    merged: dict[str, Any] = {}
    loaded_from: list[Path] = []

    for p in _global_candidate_paths():
        if p.is_file():
            merged = _merge_dicts(merged, _load_yaml(p))
            loaded_from.append(p)

    for p in _candidate_paths(cwd):
        if p.is_file():
            merged = _merge_dicts(merged, _load_yaml(p))
            loaded_from.append(p)
            break  # first match wins for project-level

    if explicit_path is not None:
        p = explicit_path.expanduser().resolve()
        if not p.is_file():
            raise ConfigError(f"Config not found: {p}")
        merged = _merge_dicts(merged, _load_yaml(p))
        loaded_from.append(p)

    cfg = ServerConfig.from_obj(_expand_env_placeholders(merged))
    if cfg.store_path is not None and not cfg.store_path.is_absolute():
        # relative store paths are taken relative to the working directory
        cfg.store_path = (cwd / cfg.store_path).resolve()
    cfg.loaded_from = loaded_from
    return cfg
