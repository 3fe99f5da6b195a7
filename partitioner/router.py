"""
Per-record bucket routing.

Updates go to the bucket of the file group they live in. Inserts are spread
over the partition's insert buckets by hashing the record key into [0, 1)
and searching the cumulative weight table, so each bucket receives roughly
its weight's share of the partition's inserts.
"""
import hashlib
import logging
from bisect import bisect_left
from typing import Dict, Optional, Sequence, Tuple

from partitioner.planner import BucketPlan
from partitioner.types import InsertBucket, InsertBucketCumulativeWeightPair, RecordKey, RecordLocation

logger = logging.getLogger(__name__)


def hash_record_key(record_key: str) -> int:
    """
    Stable 64-bit hash of a record key.

    First 8 bytes of the MD5 digest of the UTF-8 key, read little-endian as a
    signed integer. Identical across processes and runs.
    """
    digest = hashlib.md5(record_key.encode("utf-8")).digest()
    return int.from_bytes(digest[:8], byteorder="little", signed=True)


def search_cumulative_weights(
    cumulative_weights: Sequence[float],
    buckets: Sequence[InsertBucket],
    r: float,
) -> InsertBucket:
    """
    Pick the bucket responsible for position ``r`` of a partition's inserts.

    Returns the entry whose cumulative weight equals ``r``, else the first one
    above it. When ``r`` is past every cumulative weight (rounding at the
    tail) the first bucket is returned.
    """
    index = bisect_left(cumulative_weights, r)
    if index < len(buckets):
        return buckets[index]
    # return first one, by default
    return buckets[0]


class WeightedBucketRouter:
    """
    Map records to bucket numbers using a BucketPlan.

    Read-only after construction; a single router can serve concurrent callers.

    Example:
        router = WeightedBucketRouter(plan)
        bucket = router.route("uuid-123", "2024/01/01")            # insert
        bucket = router.route("uuid-456", "2024/01/01", location)  # update
    """

    def __init__(self, plan: BucketPlan):
        self.plan = plan
        self._insert_tables: Dict[str, Tuple[Tuple[float, ...], Tuple[InsertBucket, ...]]] = {
            partition_path: _split_table(pairs)
            for partition_path, pairs in plan.partition_path_to_insert_buckets.items()
        }

    def route(
        self,
        record_key: str,
        partition_path: str,
        location: Optional[RecordLocation] = None,
    ) -> int:
        """
        Bucket number for a record.

        Args:
            record_key: Record key
            partition_path: Partition the record is written to
            location: Existing location for updates, None for inserts

        Returns:
            Bucket number
        """
        if location is not None:
            bucket = self.plan.get_update_bucket(location.file_id)
            if bucket is None:
                raise ValueError(
                    f"[WeightedBucketRouter] No update bucket for file id {location.file_id} "
                    f"(record {record_key}, partition {partition_path}); "
                    f"workload profile and plan are inconsistent"
                )
            return bucket

        table = self._insert_tables.get(partition_path)
        if table is None:
            raise ValueError(
                f"[WeightedBucketRouter] No insert buckets planned for partition {partition_path} "
                f"(record {record_key})"
            )
        cumulative_weights, buckets = table

        # pick the target bucket to use based on the weights
        total_inserts = max(1, self.plan.num_inserts(partition_path))
        r = (hash_record_key(record_key) % total_inserts) / total_inserts
        return search_cumulative_weights(cumulative_weights, buckets, r).bucket_number

    def get_partition(self, key: Tuple[RecordKey, Optional[RecordLocation]]) -> int:
        """Bucket number for a (key, location) pair as produced by record tagging."""
        record_key, location = key
        return self.route(record_key.record_key, record_key.partition_path, location)


def _split_table(
    pairs: Sequence[InsertBucketCumulativeWeightPair],
) -> Tuple[Tuple[float, ...], Tuple[InsertBucket, ...]]:
    return (
        tuple(pair.cumulative_weight for pair in pairs),
        tuple(pair.bucket for pair in pairs),
    )
