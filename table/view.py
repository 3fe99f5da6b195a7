"""File system views over the base files of a table."""
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, Iterator, Set

from storage.base import StorageBackend
from table.fs_utils import BASE_FILE_EXTENSION, get_commit_time, get_file_id
from table.timeline import ClusteringPlan, CommitMetadata, CommitTimeline

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BaseFile:
    """One version of a file group as stored in a partition."""
    file_name: str
    file_size: int
    path: str = ""

    @property
    def file_id(self) -> str:
        return get_file_id(self.file_name)

    @property
    def commit_time(self) -> str:
        return get_commit_time(self.file_name)


@dataclass(frozen=True)
class FileGroupId:
    partition_path: str
    file_id: str


class FileSystemView(ABC):
    """Read-only view of the table's file groups."""

    @abstractmethod
    def get_latest_base_files_before_or_on(
        self, partition_path: str, max_instant_time: str
    ) -> Iterator[BaseFile]:
        """
        Latest base file of each file group in a partition, as of an instant.

        Args:
            partition_path: Partition to list
            max_instant_time: Only versions committed at or before this instant count

        Yields:
            One BaseFile per file group
        """
        pass

    @abstractmethod
    def get_file_groups_in_pending_clustering(self) -> Iterator[FileGroupId]:
        """File groups currently scheduled for clustering."""
        pass


class StorageFileSystemView(FileSystemView):
    """
    View built by listing partition directories in a StorageBackend.

    Only base files written by completed commits are visible, so files left
    behind by in-flight or failed writes are ignored. File groups replaced by
    a completed replacecommit (e.g. clustering) are no longer visible.
    """

    def __init__(self, storage: StorageBackend, timeline: CommitTimeline):
        self.storage = storage
        self.timeline = timeline

    def get_latest_base_files_before_or_on(
        self, partition_path: str, max_instant_time: str
    ) -> Iterator[BaseFile]:
        completed = {i.timestamp for i in self.timeline.filter_completed_instants()}
        replaced = self._replaced_file_ids(partition_path, max_instant_time)

        latest: Dict[str, BaseFile] = {}
        for file_info in self.storage.list_files(partition_path, pattern=f"*{BASE_FILE_EXTENSION}"):
            base_file = BaseFile(
                file_name=file_info["name"],
                file_size=file_info["size"],
                path=file_info["path"],
            )
            try:
                commit_time = base_file.commit_time
                file_id = base_file.file_id
            except ValueError:
                logger.warning(f"[StorageFileSystemView] Ignoring unrecognized file: {file_info['path']}")
                continue

            if commit_time not in completed or commit_time > max_instant_time:
                continue
            if file_id in replaced:
                continue

            current = latest.get(file_id)
            if current is None or commit_time > current.commit_time:
                latest[file_id] = base_file

        for file_id in sorted(latest):
            yield latest[file_id]

    def get_file_groups_in_pending_clustering(self) -> Iterator[FileGroupId]:
        for instant in self.timeline.get_pending_clustering_instants():
            plan = ClusteringPlan.from_bytes(self.timeline.get_instant_details(instant))
            for group in plan.file_groups:
                yield FileGroupId(group.partition_path, group.file_id)

    def _replaced_file_ids(self, partition_path: str, max_instant_time: str) -> Set[str]:
        replaced: Set[str] = set()
        for instant in self.timeline.get_completed_replace_instants(max_instant_time):
            metadata = CommitMetadata.from_bytes(self.timeline.get_instant_details(instant))
            replaced.update(metadata.partition_to_replace_file_ids.get(partition_path, []))
        return replaced
