"""Upsert partitioner - bucket planning and record routing for copy-on-write table writes."""

__version__ = "0.1.0"
__author__ = "Upsert Partitioner Contributors"
__license__ = "MIT"

from config import PartitionerConfig, load_config

__all__ = ["PartitionerConfig", "load_config", "__version__"]
