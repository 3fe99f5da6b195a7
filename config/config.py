"""Configuration management for the upsert partitioner."""
import os
import yaml
from pathlib import Path
from typing import Optional, Literal
from pydantic import BaseModel, Field


class StorageLayerConfig(BaseModel):
    """Storage configuration for the table being written."""
    backend: Literal["local"] = "local"
    base_dir: str = "./data/table"
    timeline_dir: str = ".timeline"  # Relative to base_dir


class WriteConfig(BaseModel):
    """
    Write-path sizing configuration.

    Sizes are in bytes. Defaults follow the copy-on-write table defaults:
    - Files below parquet_small_file_limit are topped up with inserts
    - Files are filled toward parquet_max_file_size
    - New insert buckets hold copy_on_write_insert_split_size records, or
      parquet_max_file_size / avg record size when auto split is enabled
    """
    parquet_max_file_size: int = Field(125829120, gt=0)  # 120 MB
    parquet_small_file_limit: int = Field(104857600, ge=0)  # 100 MB, 0 disables small file handling
    copy_on_write_insert_split_size: int = Field(500000, gt=0)
    copy_on_write_auto_split_inserts: bool = True
    copy_on_write_record_size_estimate: int = Field(1024, gt=0)  # Fallback avg record size
    record_size_estimation_threshold: float = Field(1.0, ge=0)  # Fraction of small file limit
    small_file_scan_parallelism: int = Field(8, gt=0)


class PartitionerConfig(BaseModel):
    """Root configuration for the upsert partitioner."""
    storage: StorageLayerConfig = Field(default_factory=StorageLayerConfig)

    write: WriteConfig = Field(default_factory=WriteConfig)

    # Logging
    log_level: str = "INFO"
    log_format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def load_config(config_path: Optional[str] = None) -> PartitionerConfig:
    """
    Load configuration from YAML file.

    Args:
        config_path: Path to config file. If None, looks for:
            1. UPSERT_PARTITIONER_CONFIG environment variable
            2. ./config/config.yaml
            3. ~/.upsert_partitioner/config.yaml

    Returns:
        PartitionerConfig instance
    """
    if config_path is None:
        config_path = os.environ.get("UPSERT_PARTITIONER_CONFIG")

        if config_path is None:
            candidates = [
                Path("./config/config.yaml"),
                Path.home() / ".upsert_partitioner" / "config.yaml",
            ]
            for candidate in candidates:
                if candidate.exists():
                    config_path = str(candidate)
                    break

    if config_path is None:
        raise FileNotFoundError(
            "No config file found. Set UPSERT_PARTITIONER_CONFIG or create config/config.yaml"
        )

    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path, 'r') as f:
        yaml_data = yaml.safe_load(f)

    return PartitionerConfig(**(yaml_data or {}))


def save_example_config(output_path: str = "./config/config.example.yaml"):
    """
    Save an example configuration file.

    Args:
        output_path: Where to save the example config
    """
    example = {
        "storage": {
            "backend": "local",
            "base_dir": "./data/table",
            "timeline_dir": ".timeline",
        },
        "write": {
            "parquet_max_file_size": 125829120,
            "parquet_small_file_limit": 104857600,
            "copy_on_write_insert_split_size": 500000,
            "copy_on_write_auto_split_inserts": True,
            "copy_on_write_record_size_estimate": 1024,
            "record_size_estimation_threshold": 1.0,
            "small_file_scan_parallelism": 8,
        },
        "log_level": "INFO",
    }

    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    with open(output_path, 'w') as f:
        yaml.dump(example, f, default_flow_style=False, sort_keys=False)

    print(f"Example config saved to {output_path}")
