"""Parallel fan-out of small file discovery across partitions."""
import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Callable, Dict, Hashable, List, Optional, Sequence, TypeVar

from partitioner.small_files import SmallFileScanner
from partitioner.types import SmallFile

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=Hashable)
R = TypeVar("R")


def parallel_map(items: Sequence[T], fn: Callable[[T], R], max_workers: int = 8) -> Dict[T, R]:
    """
    Apply ``fn`` to every item on a thread pool.

    Results are collected as they complete; the mapping carries no ordering
    guarantee. The first worker failure is raised to the caller.

    Args:
        items: Distinct, hashable inputs
        fn: Function applied to each item
        max_workers: Upper bound on worker threads

    Returns:
        item -> fn(item)
    """
    if not items:
        return {}

    results: Dict[T, R] = {}
    with ThreadPoolExecutor(max_workers=min(max_workers, len(items))) as executor:
        futures = {executor.submit(fn, item): item for item in items}
        for future in as_completed(futures):
            item = futures[future]
            try:
                results[item] = future.result()
            except Exception as e:
                logger.error(f"[parallel_map] Task failed for {item}: {e}")
                raise
    return results


def get_small_files_for_partitions(
    partition_paths: List[str],
    scanner: SmallFileScanner,
    parallelism: int = 8,
    as_of_instant: Optional[str] = None,
) -> Dict[str, List[SmallFile]]:
    """
    Scan small files of many partitions in parallel.

    Args:
        partition_paths: Partitions to scan
        scanner: Small file scanner
        parallelism: Number of concurrent scans
        as_of_instant: Snapshot bound passed to every scan

    Returns:
        partition path -> small files
    """
    if not partition_paths:
        return {}

    logger.info(f"[SmallFileScanner] Getting small files from {len(partition_paths)} partitions")
    return parallel_map(
        partition_paths,
        lambda partition_path: scanner.scan(partition_path, as_of_instant),
        max_workers=parallelism,
    )
