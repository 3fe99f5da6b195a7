"""Tests for configuration loading."""
import pytest
import yaml
from pathlib import Path
import sys

sys.path.insert(0, str(Path(__file__).parent.parent))

from pydantic import ValidationError

from config import load_config, save_example_config, WriteConfig


def test_defaults():
    """Test default write sizing."""
    config = WriteConfig()
    assert config.parquet_max_file_size == 120 * 1024 * 1024
    assert config.parquet_small_file_limit == 100 * 1024 * 1024
    assert config.copy_on_write_auto_split_inserts is True
    assert config.copy_on_write_record_size_estimate == 1024


def test_load_config(temp_dir):
    """Test loading a YAML config file."""
    path = temp_dir / "config.yaml"
    path.write_text(yaml.dump({
        "storage": {"base_dir": str(temp_dir / "table")},
        "write": {"parquet_max_file_size": 1000, "copy_on_write_insert_split_size": 10},
        "log_level": "DEBUG",
    }))

    config = load_config(str(path))

    assert config.storage.base_dir == str(temp_dir / "table")
    assert config.write.parquet_max_file_size == 1000
    assert config.write.copy_on_write_insert_split_size == 10
    assert config.log_level == "DEBUG"


def test_load_config_from_env(temp_dir, monkeypatch):
    """Test the config path is taken from the environment."""
    path = temp_dir / "env.yaml"
    path.write_text(yaml.dump({"write": {"small_file_scan_parallelism": 2}}))
    monkeypatch.setenv("UPSERT_PARTITIONER_CONFIG", str(path))

    assert load_config().write.small_file_scan_parallelism == 2


def test_load_config_missing(temp_dir):
    """Test a missing config file raises."""
    with pytest.raises(FileNotFoundError):
        load_config(str(temp_dir / "missing.yaml"))


def test_invalid_sizes_rejected():
    """Test non-positive sizes fail validation."""
    with pytest.raises(ValidationError):
        WriteConfig(copy_on_write_record_size_estimate=0)
    with pytest.raises(ValidationError):
        WriteConfig(copy_on_write_insert_split_size=-1)


def test_save_example_config(temp_dir):
    """Test the example config loads back."""
    path = temp_dir / "example.yaml"
    save_example_config(str(path))

    config = load_config(str(path))
    assert config.write.copy_on_write_insert_split_size == 500000


def test_create_table_storage(temp_dir):
    """Test the configured local backend is created at the base dir."""
    from config import PartitionerConfig
    from storage import LocalStorage, create_table_storage

    config = PartitionerConfig(storage={"base_dir": str(temp_dir / "table")})
    storage = create_table_storage(config)

    assert isinstance(storage, LocalStorage)
    assert storage.backend_type == "local"
    assert (temp_dir / "table").exists()
