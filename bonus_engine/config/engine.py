"""Runtime settings for the engine itself (batching, cache, tolerances, logging)."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class BatchSettings(BaseModel):
    """Batch scoring sizing."""
    batch_size: int = Field(default=10, ge=1, le=500)
    max_workers: int = Field(default=4, ge=1, le=32, description="Threads per batch")


class CacheSettings(BaseModel):
    """Task-result cache used by async batch jobs."""
    ttl_seconds: float = Field(default=1800.0, gt=0)
    max_entries: int = Field(default=1000, ge=1)
    reap_interval_seconds: float = Field(default=60.0, gt=0)


class ToleranceSettings(BaseModel):
    weight_sum: float = Field(default=0.01, gt=0, le=0.1)
    amount: float = Field(default=0.01, gt=0, le=1)


class LoggingSettings(BaseModel):
    level: str = "INFO"
    log_dir: Optional[str] = None


class EngineSettings(BaseModel):
    """Top-level engine settings with extras allowed for forward compatibility."""
    model_config = ConfigDict(extra="allow")

    batch: BatchSettings = Field(default_factory=BatchSettings)
    cache: CacheSettings = Field(default_factory=CacheSettings)
    tolerance: ToleranceSettings = Field(default_factory=ToleranceSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
