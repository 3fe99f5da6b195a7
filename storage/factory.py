"""
Storage factory for creating the table storage backend from configuration.
"""
import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from config import PartitionerConfig

from storage.base import StorageBackend, LocalStorage

logger = logging.getLogger(__name__)


def create_table_storage(config: "PartitionerConfig") -> StorageBackend:
    """
    Create storage backend for the table being written.

    Args:
        config: Partitioner configuration

    Returns:
        StorageBackend instance rooted at the table base directory
    """
    layer_config = config.storage
    backend = layer_config.backend

    if backend == "local":
        logger.info(f"[table] Initializing local storage: {layer_config.base_dir}")
        return LocalStorage(base_path=layer_config.base_dir)

    raise ValueError(f"[table] Unknown storage backend: {backend}")
