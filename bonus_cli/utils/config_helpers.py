"""
Configuration helper utilities for the bonus engine CLI

Locate engine settings and wire dataset collaborators into services.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Tuple

from bonus_engine.allocation_service import AllocationService
from bonus_engine.config import EngineSettings, load_engine_config
from bonus_engine.memory_store import Dataset
from bonus_engine.service import ScoringService


def find_default_config() -> Optional[Path]:
    """First existing engine settings file, or None to use built-in defaults."""
    for config_path in (Path("config/engine_config.yaml"), Path("engine_config.yaml")):
        if config_path.exists():
            return config_path
    return None


def load_settings(config: Optional[str]) -> EngineSettings:
    """Load settings from ``config`` or the default location.

    Raises:
        FileNotFoundError: if an explicit ``config`` path does not exist
    """
    if config:
        return load_engine_config(Path(config))
    default = find_default_config()
    return load_engine_config(default) if default else EngineSettings()


def build_services(dataset: Dataset, settings: EngineSettings) -> Tuple[ScoringService, AllocationService]:
    scoring = ScoringService(
        directory=dataset.directory,
        providers=dataset.providers,
        config_store=dataset.config_store,
        result_store=dataset.result_store,
        settings=settings,
    )
    allocation = AllocationService(
        directory=dataset.directory,
        config_store=dataset.config_store,
        result_store=dataset.result_store,
        settings=settings,
    )
    return scoring, allocation


def resolve_weight_config_id(dataset: Dataset, weight_config: Optional[str]) -> str:
    """Explicit id, or the only weight config in the dataset."""
    if weight_config:
        return weight_config
    ids = list(dataset.config_store.weight_configs)
    if len(ids) != 1:
        raise ValueError(f"--weight-config is required when the dataset defines {len(ids)} weight configs")
    return ids[0]
