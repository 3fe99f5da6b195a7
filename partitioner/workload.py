"""
Workload profile of an upsert batch.

Summarizes tagged records per partition: how many updates land in each
existing file group and how many records are new inserts.
"""
import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple

import polars as pl

from partitioner.types import RecordKey, RecordLocation

logger = logging.getLogger(__name__)

# Columns expected by profile_from_frame
PARTITION_PATH_COL = "partition_path"
FILE_ID_COL = "file_id"
RECORD_KEY_COL = "record_key"
INSTANT_TIME_COL = "instant_time"


@dataclass
class WorkloadStat:
    """Per-partition insert count and update counts by file id."""
    num_inserts: int = 0
    num_updates: int = 0
    # file_id -> (instant_time, update count)
    update_location_to_count: Dict[str, Tuple[str, int]] = field(default_factory=dict)

    def add_inserts(self, num_inserts: int) -> int:
        self.num_inserts += num_inserts
        return self.num_inserts

    def add_updates(self, location: RecordLocation, num_updates: int) -> int:
        _, count = self.update_location_to_count.get(location.file_id, (location.instant_time, 0))
        self.update_location_to_count[location.file_id] = (location.instant_time, count + num_updates)
        self.num_updates += num_updates
        return self.num_updates


class WorkloadProfile:
    """
    Workload of one write batch, keyed by partition path.

    Partition order is the order partitions were first seen, which keeps
    bucket numbering stable for a given input.
    """

    def __init__(self, partition_path_stat_map: Optional[Dict[str, WorkloadStat]] = None):
        self.partition_path_stat_map: Dict[str, WorkloadStat] = dict(partition_path_stat_map or {})
        self.global_stat = WorkloadStat()
        for stat in self.partition_path_stat_map.values():
            self.global_stat.num_inserts += stat.num_inserts
            self.global_stat.num_updates += stat.num_updates

    @property
    def partition_paths(self) -> List[str]:
        return list(self.partition_path_stat_map)

    def get_workload_stat(self, partition_path: str) -> WorkloadStat:
        return self.partition_path_stat_map[partition_path]

    def add_inserts(self, partition_path: str, num_inserts: int) -> None:
        self.partition_path_stat_map.setdefault(partition_path, WorkloadStat()).add_inserts(num_inserts)
        self.global_stat.add_inserts(num_inserts)

    def add_updates(self, partition_path: str, location: RecordLocation, num_updates: int) -> None:
        self.partition_path_stat_map.setdefault(partition_path, WorkloadStat()).add_updates(location, num_updates)
        self.global_stat.num_updates += num_updates

    @classmethod
    def from_records(
        cls, records: Iterable[Tuple[RecordKey, Optional[RecordLocation]]]
    ) -> "WorkloadProfile":
        """
        Build a profile from tagged records.

        Args:
            records: (key, location) pairs; location is None for new inserts

        Returns:
            WorkloadProfile
        """
        profile = cls()
        for key, location in records:
            if location is None:
                profile.add_inserts(key.partition_path, 1)
            else:
                profile.add_updates(key.partition_path, location, 1)
        return profile

    def __repr__(self) -> str:
        return (
            f"WorkloadProfile(partitions={len(self.partition_path_stat_map)}, "
            f"inserts={self.global_stat.num_inserts}, updates={self.global_stat.num_updates})"
        )


def cast_tagged_columns(df: pl.DataFrame) -> pl.DataFrame:
    """
    Cast the key and location columns of tagged records to strings.

    NDJSON readers infer numeric keys and instant times as integers. Every
    tagging column present is cast to Utf8; absent ones are left out.
    """
    cols = [
        c for c in (RECORD_KEY_COL, PARTITION_PATH_COL, FILE_ID_COL, INSTANT_TIME_COL)
        if c in df.columns
    ]
    return df.with_columns([pl.col(c).cast(pl.Utf8) for c in cols])


def profile_from_frame(df: pl.DataFrame) -> WorkloadProfile:
    """
    Build a profile from a frame of tagged records.

    Expects columns partition_path, file_id and instant_time; file_id is null
    for records that are not yet stored (inserts).

    Args:
        df: Tagged records

    Returns:
        WorkloadProfile
    """
    missing_cols = {PARTITION_PATH_COL, FILE_ID_COL, INSTANT_TIME_COL} - set(df.columns)
    if missing_cols:
        raise ValueError(
            f"Tagged records missing columns {sorted(missing_cols)}. "
            f"Available columns: {df.columns}"
        )

    counts = (
        df.group_by([PARTITION_PATH_COL, FILE_ID_COL], maintain_order=True)
        .agg([
            pl.len().alias("count"),
            pl.col(INSTANT_TIME_COL).max().alias(INSTANT_TIME_COL),
        ])
    )

    profile = WorkloadProfile()
    for row in counts.iter_rows(named=True):
        if row[FILE_ID_COL] is None:
            profile.add_inserts(row[PARTITION_PATH_COL], row["count"])
        else:
            location = RecordLocation(row[INSTANT_TIME_COL] or "", row[FILE_ID_COL])
            profile.add_updates(row[PARTITION_PATH_COL], location, row["count"])

    logger.info(f"[WorkloadProfile] Built from {len(df):,} records: {profile}")
    return profile
