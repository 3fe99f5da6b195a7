"""Table metadata: base file naming, commit timeline and file system views."""
from .fs_utils import (
    create_new_file_id_pfx,
    get_commit_time,
    get_file_id,
    make_base_file_name,
    make_write_token,
)
from .timeline import (
    ClusteringFileGroup,
    ClusteringPlan,
    CommitMetadata,
    CommitTimeline,
    Instant,
    State,
    StorageTimeline,
    WriteStat,
)
from .view import BaseFile, FileGroupId, FileSystemView, StorageFileSystemView

__all__ = [
    "create_new_file_id_pfx",
    "get_commit_time",
    "get_file_id",
    "make_base_file_name",
    "make_write_token",
    "ClusteringFileGroup",
    "ClusteringPlan",
    "CommitMetadata",
    "CommitTimeline",
    "Instant",
    "State",
    "StorageTimeline",
    "WriteStat",
    "BaseFile",
    "FileGroupId",
    "FileSystemView",
    "StorageFileSystemView",
]
