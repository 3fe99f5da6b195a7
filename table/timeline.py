"""
Commit timeline access.

The timeline is a directory of instant files, one per action state:
- ``<ts>.<action>.requested``: action planned
- ``<ts>.<action>.inflight``: action running
- ``<ts>.<action>``: action completed, content is the commit metadata

Pending clustering shows up as a ``replacecommit`` that has not completed;
its requested file holds the clustering plan.
"""
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterator, List, Optional

from pydantic import BaseModel, Field

from storage.base import StorageBackend

logger = logging.getLogger(__name__)

COMMIT_ACTION = "commit"
DELTA_COMMIT_ACTION = "deltacommit"
REPLACE_COMMIT_ACTION = "replacecommit"

COMMIT_ACTIONS = (COMMIT_ACTION, DELTA_COMMIT_ACTION, REPLACE_COMMIT_ACTION)


class State(str, Enum):
    REQUESTED = "REQUESTED"
    INFLIGHT = "INFLIGHT"
    COMPLETED = "COMPLETED"


@dataclass(frozen=True)
class Instant:
    """A single action on the timeline."""
    timestamp: str
    action: str
    state: State = State.COMPLETED

    @property
    def is_completed(self) -> bool:
        return self.state == State.COMPLETED

    @property
    def file_name(self) -> str:
        if self.state == State.REQUESTED:
            return f"{self.timestamp}.{self.action}.requested"
        if self.state == State.INFLIGHT:
            return f"{self.timestamp}.{self.action}.inflight"
        return f"{self.timestamp}.{self.action}"

    @classmethod
    def from_file_name(cls, file_name: str) -> "Instant":
        parts = file_name.split(".")
        if len(parts) == 2:
            return cls(parts[0], parts[1], State.COMPLETED)
        if len(parts) == 3 and parts[2] == "requested":
            return cls(parts[0], parts[1], State.REQUESTED)
        if len(parts) == 3 and parts[2] == "inflight":
            return cls(parts[0], parts[1], State.INFLIGHT)
        raise ValueError(f"Unable to parse instant file name: {file_name}")


class WriteStat(BaseModel):
    """Per-file statistics recorded by a commit."""
    file_id: str
    path: str = ""
    partition_path: str = ""
    num_writes: int = 0
    num_inserts: int = 0
    num_update_writes: int = 0
    total_write_bytes: int = 0
    file_size_in_bytes: int = 0


class CommitMetadata(BaseModel):
    """Metadata stored in a completed commit instant."""
    partition_to_write_stats: Dict[str, List[WriteStat]] = Field(default_factory=dict)
    partition_to_replace_file_ids: Dict[str, List[str]] = Field(default_factory=dict)
    operation_type: str = "UPSERT"

    def fetch_total_bytes_written(self) -> int:
        return sum(
            stat.total_write_bytes
            for stats in self.partition_to_write_stats.values()
            for stat in stats
        )

    def fetch_total_records_written(self) -> int:
        return sum(
            stat.num_writes
            for stats in self.partition_to_write_stats.values()
            for stat in stats
        )

    @classmethod
    def from_bytes(cls, data: bytes) -> "CommitMetadata":
        return cls.model_validate_json(data)

    def to_bytes(self) -> bytes:
        return self.model_dump_json().encode("utf-8")


class ClusteringFileGroup(BaseModel):
    partition_path: str
    file_id: str


class ClusteringPlan(BaseModel):
    """File groups a requested clustering will rewrite."""
    file_groups: List[ClusteringFileGroup] = Field(default_factory=list)

    @classmethod
    def from_bytes(cls, data: bytes) -> "ClusteringPlan":
        return cls.model_validate_json(data)

    def to_bytes(self) -> bytes:
        return self.model_dump_json().encode("utf-8")


class CommitTimeline(ABC):
    """
    Ordered view over the instants of a table.

    Implementations supply the instants and their stored details; ordering,
    filtering and lookup helpers are shared.
    """

    @abstractmethod
    def get_instants(self) -> List[Instant]:
        """Return all instants, sorted ascending by timestamp."""
        pass

    @abstractmethod
    def get_instant_details(self, instant: Instant) -> bytes:
        """Return the raw content stored for an instant."""
        pass

    def get_commit_instants(self) -> List[Instant]:
        return [i for i in self.get_instants() if i.action in COMMIT_ACTIONS]

    def filter_completed_instants(self) -> List[Instant]:
        """Completed commit instants, oldest first."""
        return [i for i in self.get_commit_instants() if i.is_completed]

    def get_reverse_ordered_completed_instants(self) -> Iterator[Instant]:
        return reversed(self.filter_completed_instants())

    def last_completed_instant(self, as_of: Optional[str] = None) -> Optional[Instant]:
        """
        Latest completed commit at or before ``as_of``.

        Args:
            as_of: Upper bound instant time (inclusive). None means no bound.

        Returns:
            The instant, or None if there is no completed commit in range
        """
        for instant in self.get_reverse_ordered_completed_instants():
            if as_of is None or instant.timestamp <= as_of:
                return instant
        return None

    def get_pending_clustering_instants(self) -> List[Instant]:
        """Requested replacecommits that have not completed yet."""
        completed = {
            i.timestamp for i in self.get_instants()
            if i.action == REPLACE_COMMIT_ACTION and i.is_completed
        }
        return [
            i for i in self.get_instants()
            if i.action == REPLACE_COMMIT_ACTION
            and i.state == State.REQUESTED
            and i.timestamp not in completed
        ]

    def get_completed_replace_instants(self, as_of: Optional[str] = None) -> List[Instant]:
        """Completed replacecommits at or before ``as_of`` (None means no bound)."""
        return [
            i for i in self.filter_completed_instants()
            if i.action == REPLACE_COMMIT_ACTION and (as_of is None or i.timestamp <= as_of)
        ]


class StorageTimeline(CommitTimeline):
    """Timeline backed by a directory of instant files in a StorageBackend."""

    def __init__(self, storage: StorageBackend, timeline_path: str = ".timeline"):
        """
        Initialize storage timeline.

        Args:
            storage: Table storage backend
            timeline_path: Timeline directory relative to the storage root
        """
        self.storage = storage
        self.timeline_path = timeline_path

    def get_instants(self) -> List[Instant]:
        instants = []
        for file_info in self.storage.list_files(self.timeline_path):
            try:
                instants.append(Instant.from_file_name(file_info["name"]))
            except ValueError:
                logger.debug(f"[StorageTimeline] Skipping non-instant file: {file_info['name']}")
        state_order = {State.REQUESTED: 0, State.INFLIGHT: 1, State.COMPLETED: 2}
        return sorted(instants, key=lambda i: (i.timestamp, state_order[i.state]))

    def get_instant_details(self, instant: Instant) -> bytes:
        return self.storage.read_bytes(
            self.storage.join_path(self.timeline_path, instant.file_name)
        )

    def save_instant(self, instant: Instant, content: bytes = b"") -> str:
        """Write an instant file to the timeline directory."""
        return self.storage.write_bytes(
            content,
            self.storage.join_path(self.timeline_path, instant.file_name),
        )
