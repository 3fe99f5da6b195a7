"""Config package."""
from .config import (
    PartitionerConfig,
    StorageLayerConfig,
    WriteConfig,
    load_config,
    save_example_config,
)

__all__ = [
    "PartitionerConfig",
    "StorageLayerConfig",
    "WriteConfig",
    "load_config",
    "save_example_config",
]
