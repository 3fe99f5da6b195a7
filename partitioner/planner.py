"""
Bucket planning for an upsert batch.

A bucket is one output file of the write. Planning happens in two passes:
1. Every file group receiving updates gets an UPDATE bucket
2. Per partition, inserts are packed into small files first (reusing their
   UPDATE bucket or creating one), and the rest are split across new
   INSERT buckets

Each insert bucket carries a weight, its share of the partition's inserts.
The cumulative weights form the table the router searches per record.
"""
import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Callable, Dict, List, Mapping, Optional, Set, Tuple

import polars as pl

from config.config import WriteConfig
from partitioner.small_files import filter_small_files_in_clustering
from partitioner.types import (
    BucketInfo,
    BucketType,
    InsertBucket,
    InsertBucketCumulativeWeightPair,
    SmallFile,
)
from partitioner.workload import WorkloadProfile
from table.fs_utils import create_new_file_id_pfx

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BucketPlan:
    """
    Immutable result of bucket planning.

    Bucket numbers are dense, ``0 .. num_buckets - 1``. Safe to share between
    threads since nothing is mutated after construction.
    """
    bucket_infos: Mapping[int, BucketInfo]
    update_location_to_bucket: Mapping[str, int]
    partition_path_to_insert_buckets: Mapping[str, Tuple[InsertBucketCumulativeWeightPair, ...]]
    partition_path_to_num_inserts: Mapping[str, int]
    small_files: Tuple[SmallFile, ...]
    avg_record_size: int

    @property
    def num_buckets(self) -> int:
        return len(self.bucket_infos)

    def bucket_info(self, bucket_number: int) -> BucketInfo:
        return self.bucket_infos[bucket_number]

    def get_bucket_infos(self) -> List[BucketInfo]:
        return [self.bucket_infos[b] for b in range(self.num_buckets)]

    def get_insert_buckets(self, partition_path: str) -> Optional[Tuple[InsertBucketCumulativeWeightPair, ...]]:
        return self.partition_path_to_insert_buckets.get(partition_path)

    def get_update_bucket(self, file_id: str) -> Optional[int]:
        return self.update_location_to_bucket.get(file_id)

    def num_inserts(self, partition_path: str) -> int:
        return self.partition_path_to_num_inserts.get(partition_path, 0)

    def to_frame(self) -> pl.DataFrame:
        """
        One row per bucket, for logging and inspection.

        Columns: bucket_number, bucket_type, file_id_prefix, partition_path,
        weight and cumulative_weight (null for buckets without inserts).
        """
        weights: Dict[int, Tuple[float, float]] = {}
        for pairs in self.partition_path_to_insert_buckets.values():
            for pair in pairs:
                weights[pair.bucket.bucket_number] = (pair.bucket.weight, pair.cumulative_weight)

        rows = []
        for bucket_number, info in enumerate(self.get_bucket_infos()):
            weight, cumulative_weight = weights.get(bucket_number, (None, None))
            rows.append({
                "bucket_number": bucket_number,
                "bucket_type": info.bucket_type.value,
                "file_id_prefix": info.file_id_prefix,
                "partition_path": info.partition_path,
                "weight": weight,
                "cumulative_weight": cumulative_weight,
            })

        return pl.DataFrame(
            rows,
            schema={
                "bucket_number": pl.Int64,
                "bucket_type": pl.Utf8,
                "file_id_prefix": pl.Utf8,
                "partition_path": pl.Utf8,
                "weight": pl.Float64,
                "cumulative_weight": pl.Float64,
            },
        )

    def __str__(self) -> str:
        return (
            f"BucketPlan(buckets={self.num_buckets}, "
            f"update_locations={len(self.update_location_to_bucket)}, "
            f"insert_partitions={len(self.partition_path_to_insert_buckets)}, "
            f"small_files={len(self.small_files)}, avg_record_size={self.avg_record_size})"
        )


class _BucketAllocator:
    """Hands out dense bucket numbers while a plan is being built."""

    def __init__(self):
        self.bucket_infos: Dict[int, BucketInfo] = {}
        self.update_location_to_bucket: Dict[str, int] = {}

    @property
    def total_buckets(self) -> int:
        return len(self.bucket_infos)

    def add_update_bucket(self, partition_path: str, file_id_hint: str) -> int:
        bucket = self.total_buckets
        self.update_location_to_bucket[file_id_hint] = bucket
        self.bucket_infos[bucket] = BucketInfo(BucketType.UPDATE, file_id_hint, partition_path)
        return bucket

    def add_insert_bucket(self, partition_path: str, file_id_prefix: str) -> int:
        bucket = self.total_buckets
        self.bucket_infos[bucket] = BucketInfo(BucketType.INSERT, file_id_prefix, partition_path)
        return bucket


class BucketPlanner:
    """
    Build the bucket plan for a write batch.

    Example:
        planner = BucketPlanner(config.write)
        plan = planner.build(
            profile,
            small_files_by_partition={"2024/01/01": small_files},
            pending_clustering_by_partition={},
            avg_record_size=1024,
        )
    """

    def __init__(
        self,
        config: WriteConfig,
        file_id_factory: Callable[[], str] = create_new_file_id_pfx,
    ):
        """
        Initialize planner.

        Args:
            config: Write sizing configuration
            file_id_factory: Generates file id prefixes for new insert buckets
        """
        self.config = config
        self.file_id_factory = file_id_factory

    def build(
        self,
        profile: WorkloadProfile,
        small_files_by_partition: Mapping[str, List[SmallFile]],
        pending_clustering_by_partition: Mapping[str, Set[str]],
        avg_record_size: int,
    ) -> BucketPlan:
        """
        Plan the buckets of a batch.

        Args:
            profile: Workload of the batch
            small_files_by_partition: Small file candidates per partition
            pending_clustering_by_partition: File ids under pending clustering per partition
            avg_record_size: Estimated bytes per record

        Returns:
            BucketPlan
        """
        if avg_record_size <= 0:
            raise ValueError(f"Average record size must be positive, got {avg_record_size}")

        allocator = _BucketAllocator()
        self._assign_updates(profile, allocator)

        insert_buckets: Dict[str, Tuple[InsertBucketCumulativeWeightPair, ...]] = {}
        num_inserts: Dict[str, int] = {}
        candidate_small_files: List[SmallFile] = []

        for partition_path in profile.partition_paths:
            stat = profile.get_workload_stat(partition_path)
            num_inserts[partition_path] = stat.num_inserts
            if stat.num_inserts <= 0:
                continue

            small_files = filter_small_files_in_clustering(
                pending_clustering_by_partition.get(partition_path, set()),
                list(small_files_by_partition.get(partition_path) or []),
            )
            candidate_small_files.extend(small_files)
            logger.info(f"[BucketPlanner] For partitionPath : {partition_path} Small Files => {small_files}")

            insert_buckets[partition_path] = self._assign_inserts(
                partition_path, stat.num_inserts, small_files, avg_record_size, allocator
            )

        plan = BucketPlan(
            bucket_infos=MappingProxyType(dict(allocator.bucket_infos)),
            update_location_to_bucket=MappingProxyType(dict(allocator.update_location_to_bucket)),
            partition_path_to_insert_buckets=MappingProxyType(insert_buckets),
            partition_path_to_num_inserts=MappingProxyType(num_inserts),
            small_files=tuple(candidate_small_files),
            avg_record_size=avg_record_size,
        )

        logger.info(
            f"[BucketPlanner] Total Buckets : {plan.num_buckets}, "
            f"buckets info => {dict(plan.bucket_infos)}, \n"
            f"Partition to insert buckets => {dict(plan.partition_path_to_insert_buckets)}, \n"
            f"UpdateLocations mapped to buckets => {dict(plan.update_location_to_bucket)}"
        )
        return plan

    def _assign_updates(self, profile: WorkloadProfile, allocator: _BucketAllocator) -> None:
        # each update location gets a bucket
        for partition_path in profile.partition_paths:
            stat = profile.get_workload_stat(partition_path)
            for file_id, (_, count) in stat.update_location_to_count.items():
                if count > 0:
                    allocator.add_update_bucket(partition_path, file_id)

    def _assign_inserts(
        self,
        partition_path: str,
        total_inserts: int,
        small_files: List[SmallFile],
        avg_record_size: int,
        allocator: _BucketAllocator,
    ) -> Tuple[InsertBucketCumulativeWeightPair, ...]:
        max_file_size = self.config.parquet_max_file_size
        total_unassigned_inserts = total_inserts
        bucket_numbers: List[int] = []
        records_per_bucket: List[int] = []

        # first try packing this into one of the small files
        for small_file in small_files:
            records_to_append = min(
                (max_file_size - small_file.size_bytes) // avg_record_size,
                total_unassigned_inserts,
            )
            if records_to_append > 0:
                bucket = allocator.update_location_to_bucket.get(small_file.file_id)
                if bucket is not None:
                    logger.info(
                        f"[BucketPlanner] Assigning {records_to_append} inserts to existing update bucket {bucket}"
                    )
                else:
                    bucket = allocator.add_update_bucket(partition_path, small_file.file_id)
                    logger.info(
                        f"[BucketPlanner] Assigning {records_to_append} inserts to new update bucket {bucket}"
                    )
                bucket_numbers.append(bucket)
                records_per_bucket.append(records_to_append)
                total_unassigned_inserts -= records_to_append
                if total_unassigned_inserts <= 0:
                    break

        # anything left goes to new insert buckets
        if total_unassigned_inserts > 0:
            insert_records_per_bucket = self.config.copy_on_write_insert_split_size
            if self.config.copy_on_write_auto_split_inserts:
                insert_records_per_bucket = max_file_size // avg_record_size
            if insert_records_per_bucket <= 0:
                raise ValueError(
                    f"Records per insert bucket must be positive, got {insert_records_per_bucket} "
                    f"(max file size {max_file_size}, avg record size {avg_record_size})"
                )

            num_insert_buckets = -(-total_unassigned_inserts // insert_records_per_bucket)
            logger.info(
                f"[BucketPlanner] After small file assignment: unassignedInserts => {total_unassigned_inserts}, "
                f"totalInsertBuckets => {num_insert_buckets}, recordsPerBucket => {insert_records_per_bucket}"
            )
            for b in range(num_insert_buckets):
                bucket_numbers.append(allocator.add_insert_bucket(partition_path, self.file_id_factory()))
                if b < num_insert_buckets - 1:
                    records_per_bucket.append(insert_records_per_bucket)
                else:
                    records_per_bucket.append(
                        total_unassigned_inserts - (num_insert_buckets - 1) * insert_records_per_bucket
                    )

        # weights follow the share of incoming inserts
        pairs = []
        cumulative_weight = 0.0
        for bucket_number, num_records in zip(bucket_numbers, records_per_bucket):
            bucket = InsertBucket(bucket_number=bucket_number, weight=num_records / total_inserts)
            cumulative_weight += bucket.weight
            pairs.append(InsertBucketCumulativeWeightPair(bucket, cumulative_weight))

        logger.info(f"[BucketPlanner] Total insert buckets for partition path {partition_path} => {pairs}")
        return tuple(pairs)
