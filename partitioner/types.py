"""Value types shared by the bucket planner and router."""
from dataclasses import dataclass
from enum import Enum


class BucketType(str, Enum):
    UPDATE = "UPDATE"  # Bound to an existing file group (rewrite or append)
    INSERT = "INSERT"  # Bound to a new file group


@dataclass(frozen=True)
class RecordKey:
    """Key of an incoming record: record key plus its partition."""
    record_key: str
    partition_path: str


@dataclass(frozen=True)
class RecordLocation:
    """Where an existing record currently lives."""
    instant_time: str
    file_id: str


@dataclass(frozen=True)
class SmallFile:
    """An existing base file below the small file limit."""
    location: RecordLocation
    size_bytes: int

    @property
    def file_id(self) -> str:
        return self.location.file_id


@dataclass(frozen=True)
class BucketInfo:
    """What a bucket writes: its type, target file group and partition."""
    bucket_type: BucketType
    file_id_prefix: str
    partition_path: str


@dataclass(frozen=True)
class InsertBucket:
    """Share of a partition's inserts routed to one bucket."""
    bucket_number: int
    weight: float


@dataclass(frozen=True)
class InsertBucketCumulativeWeightPair:
    bucket: InsertBucket
    cumulative_weight: float
