"""YAML loading for engine settings with environment overrides."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import ValidationError

from .engine import EngineSettings

DEFAULT_CONFIG_PATH = Path("config/engine_config.yaml")


def _lower_keys(d: Dict[str, Any]) -> Dict[str, Any]:
    """Normalize dictionary keys to lowercase."""
    return {str(k).lower(): v for k, v in d.items()}


def _coerce_env_value(value: str) -> Any:
    if value.lower() in {"true", "false"}:
        return value.lower() == "true"
    try:
        if "." in value:
            return float(value)
        return int(value)
    except ValueError:
        return value


def _apply_env_overrides(cfg: Dict[str, Any], env: Dict[str, str], prefix: str) -> None:
    """Apply simple env overrides using DOUBLE-UNDERSCORE path syntax.

    Example: BONUS_BATCH__BATCH_SIZE=25 overrides batch.batch_size
    """
    plen = len(prefix)
    for key, value in env.items():
        if not key.startswith(prefix):
            continue
        path = key[plen:].lower().split("__")
        cur: Any = cfg
        for part in path[:-1]:
            if part not in cur or not isinstance(cur[part], dict):
                cur[part] = {}
            cur = cur[part]
        cur[path[-1]] = _coerce_env_value(value)


def load_engine_config(
    path: Path | str = DEFAULT_CONFIG_PATH,
    *,
    env_overrides: bool = True,
    env: Optional[Dict[str, str]] = None,
    env_prefix: str = "BONUS_",
) -> EngineSettings:
    """Load YAML settings and return a typed ``EngineSettings``.

    Raises:
        FileNotFoundError: if ``path`` does not exist
        ValueError: if the merged settings fail validation
    """
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Config file not found: {p}")

    with open(p, "r") as fh:
        raw = yaml.safe_load(fh) or {}

    data = _lower_keys(raw)

    if env_overrides:
        _apply_env_overrides(data, env if env is not None else dict(os.environ), env_prefix)

    try:
        return EngineSettings(**data)
    except ValidationError as e:
        raise ValueError(f"Invalid engine configuration: {e}") from e
