"""
Small file discovery.

A small file is the latest base file of a file group whose size is below the
configured small file limit. Inserts are packed into small files before new
file groups are created, which keeps the number of files in a partition low.
"""
import logging
from typing import Dict, List, Optional, Set

from partitioner.types import RecordLocation, SmallFile
from table.fs_utils import get_commit_time, get_file_id
from table.timeline import CommitTimeline
from table.view import FileSystemView

logger = logging.getLogger(__name__)


class SmallFileScanner:
    """
    Find small files in a partition.

    Example:
        scanner = SmallFileScanner(view, timeline, small_file_limit=100 * 1024 * 1024)
        small_files = scanner.scan("2024/01/01")
    """

    def __init__(self, view: FileSystemView, timeline: CommitTimeline, small_file_limit: int):
        """
        Initialize scanner.

        Args:
            view: File system view listing base files
            timeline: Commit timeline used to pick the visible snapshot
            small_file_limit: Files strictly below this size (bytes) are small
        """
        self.view = view
        self.timeline = timeline
        self.small_file_limit = small_file_limit

    def scan(
        self,
        partition_path: str,
        as_of_instant: Optional[str] = None,
        exclude_file_ids: Optional[Set[str]] = None,
    ) -> List[SmallFile]:
        """
        List small files of a partition.

        Args:
            partition_path: Partition to scan
            as_of_instant: Snapshot bound (inclusive); None uses the latest commit
            exclude_file_ids: File groups to leave out (e.g. pending clustering)

        Returns:
            Small files, in view order. Empty if the table has no completed commit.
        """
        latest_commit = self.timeline.last_completed_instant(as_of_instant)
        if latest_commit is None:
            return []

        small_files = []
        for base_file in self.view.get_latest_base_files_before_or_on(
            partition_path, latest_commit.timestamp
        ):
            if base_file.file_size < self.small_file_limit:
                file_name = base_file.file_name
                small_files.append(SmallFile(
                    location=RecordLocation(get_commit_time(file_name), get_file_id(file_name)),
                    size_bytes=base_file.file_size,
                ))

        return filter_small_files_in_clustering(exclude_file_ids or set(), small_files)


def filter_small_files_in_clustering(
    pending_clustering_file_ids: Set[str], small_files: List[SmallFile]
) -> List[SmallFile]:
    """
    Drop small files whose file group is pending clustering.

    Inserts cannot be appended to those file groups while clustering is
    scheduled, since the update path is not supported for them.
    """
    if not pending_clustering_file_ids:
        return small_files
    return [sf for sf in small_files if sf.file_id not in pending_clustering_file_ids]


def pending_clustering_by_partition(view: FileSystemView) -> Dict[str, Set[str]]:
    """Group the file ids in pending clustering by partition path."""
    result: Dict[str, Set[str]] = {}
    for file_group in view.get_file_groups_in_pending_clustering():
        result.setdefault(file_group.partition_path, set()).add(file_group.file_id)
    return result
