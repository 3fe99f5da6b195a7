"""Bucket planning and record routing for upsert writes."""
from .types import (
    BucketInfo,
    BucketType,
    InsertBucket,
    InsertBucketCumulativeWeightPair,
    RecordKey,
    RecordLocation,
    SmallFile,
)
from .workload import WorkloadProfile, WorkloadStat, cast_tagged_columns, profile_from_frame
from .small_files import SmallFileScanner, filter_small_files_in_clustering, pending_clustering_by_partition
from .record_size import RecordSizeEstimate, average_bytes_per_record, estimate_record_size
from .planner import BucketPlan, BucketPlanner
from .router import WeightedBucketRouter, hash_record_key, search_cumulative_weights
from .parallel import get_small_files_for_partitions, parallel_map
from .upsert import UpsertPartitioner

__all__ = [
    "BucketInfo",
    "BucketType",
    "InsertBucket",
    "InsertBucketCumulativeWeightPair",
    "RecordKey",
    "RecordLocation",
    "SmallFile",
    "WorkloadProfile",
    "WorkloadStat",
    "cast_tagged_columns",
    "profile_from_frame",
    "SmallFileScanner",
    "filter_small_files_in_clustering",
    "pending_clustering_by_partition",
    "RecordSizeEstimate",
    "average_bytes_per_record",
    "estimate_record_size",
    "BucketPlan",
    "BucketPlanner",
    "WeightedBucketRouter",
    "hash_record_key",
    "search_cumulative_weights",
    "get_small_files_for_partitions",
    "parallel_map",
    "UpsertPartitioner",
]
