"""
Configuration for kvbench.

Two layers:
- `WorkloadConfig`: the benchmark scenario (record layout, key space,
  operation mix, retry policy). Usually loaded from a JSON file.
- `Settings`: runtime knobs read from the environment (`KVBENCH_*`) or a
  `.env` file via Pydantic Settings: logging, backend, threads, output.

Distribution names are kept as plain strings here; the workload rejects
unsupported ones with a `ConfigurationError` when it is constructed.
"""

from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class WorkloadConfig(BaseModel):
    """
    Options of the core workload.

    Proportions need not sum to one; only their relative weight matters and an
    operation with proportion 0 is never chosen.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    table: str = Field("usertable", description="Table to run queries against.")
    field_count: int = Field(10, ge=0, description="Number of fields in a record.")
    field_name_prefix: str = Field("field", description="Prefix for field names.")
    field_length_distribution: str = Field(
        "constant", description="Field length distribution: 'constant' or 'uniform'."
    )
    min_field_length: int = Field(1, ge=0)
    max_field_length: int = Field(
        100, ge=0, description="Field length; the only one used by 'constant'."
    )
    record_count: int = Field(
        0, ge=0, description="Records loaded initially; 0 means unbounded."
    )
    request_distribution: str = Field(
        "uniform", description="Key selection: 'uniform' or 'sequential'."
    )
    scan_length_distribution: str = Field("uniform", description="Scan length: 'uniform'.")
    min_scan_length: int = Field(1, ge=0)
    max_scan_length: int = Field(1000, ge=0)
    insert_start: int = Field(
        0, ge=0, description="First key number of this loader when loading in parallel."
    )
    insert_count: Optional[int] = Field(
        None, ge=0, description="Keys owned by this loader; defaults to record_count - insert_start."
    )
    zero_padding: int = Field(1, ge=0, description="Width keys are zero padded to.")
    read_all_fields: bool = True
    read_all_fields_by_name: bool = False
    write_all_fields: bool = False
    data_integrity: bool = Field(
        False, description="Write deterministic values and verify them on read."
    )
    insert_order: str = Field("hashed", description="'ordered' or 'hashed'.")
    read_proportion: float = Field(0.95, ge=0.0)
    update_proportion: float = Field(0.05, ge=0.0)
    insert_proportion: float = Field(0.0, ge=0.0)
    scan_proportion: float = Field(0.0, ge=0.0)
    read_modify_write_proportion: float = Field(0.0, ge=0.0)
    insertion_retry_limit: int = Field(
        0, ge=0, description="Extra attempts after a failed insert."
    )
    insertion_retry_interval: float = Field(
        3.0, ge=0.0, description="Mean pause between insert attempts, in seconds."
    )

    @classmethod
    def from_file(cls, path: Path | str) -> "WorkloadConfig":
        """Load a workload from a JSON file; missing options take their defaults."""
        with Path(path).open("r", encoding="utf-8") as f:
            return cls.model_validate(json.load(f))


class Settings(BaseSettings):
    # Application
    app_env: str = "development"
    log_level: str = "INFO"
    json_logs: bool = False

    # Benchmark defaults
    backend: str = "memory"
    threads: int = Field(4, ge=1)
    operation_count: int = Field(10_000, ge=0)
    results_dir: Path = Path("results")
    workload_file: Optional[Path] = None

    model_config = SettingsConfigDict(
        env_prefix="KVBENCH_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    def load_workload(self) -> WorkloadConfig:
        """Workload from `workload_file`, or all defaults when unset."""
        if self.workload_file is None:
            return WorkloadConfig()
        return WorkloadConfig.from_file(self.workload_file)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Retrieve a cached instance of Settings to avoid repeated env parsing.
    """
    return Settings()


__all__ = ["WorkloadConfig", "Settings", "get_settings"]
