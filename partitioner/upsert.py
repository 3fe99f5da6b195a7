"""Upsert partitioner - packs the records of an upsert batch into buckets."""
import logging
from typing import List, Optional, Tuple

from config.config import WriteConfig
from partitioner.parallel import get_small_files_for_partitions
from partitioner.planner import BucketPlan, BucketPlanner
from partitioner.record_size import average_bytes_per_record
from partitioner.router import WeightedBucketRouter
from partitioner.small_files import SmallFileScanner, pending_clustering_by_partition
from partitioner.types import BucketInfo, InsertBucketCumulativeWeightPair, RecordKey, RecordLocation, SmallFile
from partitioner.workload import WorkloadProfile
from table.timeline import CommitTimeline
from table.view import FileSystemView

logger = logging.getLogger(__name__)


class UpsertPartitioner:
    """
    Packs incoming upsert records into buckets (1 bucket = 1 output file).

    Construction does all the planning:
    1. Estimate average record size from commit history
    2. Find small files of every partition with inserts (in parallel)
    3. Collect file groups pending clustering
    4. Build the bucket plan

    Afterwards the partitioner is a read-only lookup from record to bucket.

    Example:
        partitioner = UpsertPartitioner(profile, view, timeline, config.write)
        for key, location in tagged_records:
            bucket = partitioner.get_partition((key, location))
    """

    def __init__(
        self,
        profile: WorkloadProfile,
        view: FileSystemView,
        timeline: CommitTimeline,
        config: WriteConfig,
        as_of_instant: Optional[str] = None,
    ):
        """
        Initialize partitioner.

        Args:
            profile: Workload of the batch
            view: File system view of the table
            timeline: Commit timeline of the table
            config: Write sizing configuration
            as_of_instant: Snapshot bound for small file discovery (None = latest)
        """
        self.profile = profile
        self.config = config

        avg_record_size = average_bytes_per_record(timeline, config)
        logger.info(f"[UpsertPartitioner] AvgRecordSize => {avg_record_size}")

        insert_partitions = [
            p for p in profile.partition_paths
            if profile.get_workload_stat(p).num_inserts > 0
        ]
        scanner = SmallFileScanner(view, timeline, config.parquet_small_file_limit)
        small_files_by_partition = get_small_files_for_partitions(
            insert_partitions,
            scanner,
            parallelism=config.small_file_scan_parallelism,
            as_of_instant=as_of_instant,
        )

        pending_clustering = (
            pending_clustering_by_partition(view) if insert_partitions else {}
        )

        self.plan: BucketPlan = BucketPlanner(config).build(
            profile,
            small_files_by_partition,
            pending_clustering,
            avg_record_size,
        )
        self.router = WeightedBucketRouter(self.plan)
        logger.info(f"[UpsertPartitioner] Planned {self.plan}")

    @property
    def small_files(self) -> Tuple[SmallFile, ...]:
        return self.plan.small_files

    def num_partitions(self) -> int:
        return self.plan.num_buckets

    def get_partition(self, key: Tuple[RecordKey, Optional[RecordLocation]]) -> int:
        return self.router.get_partition(key)

    def route(self, record_key: str, partition_path: str, location: Optional[RecordLocation] = None) -> int:
        return self.router.route(record_key, partition_path, location)

    def get_bucket_info(self, bucket_number: int) -> BucketInfo:
        return self.plan.bucket_info(bucket_number)

    def get_bucket_infos(self) -> List[BucketInfo]:
        return self.plan.get_bucket_infos()

    def get_insert_buckets(self, partition_path: str) -> Optional[Tuple[InsertBucketCumulativeWeightPair, ...]]:
        return self.plan.get_insert_buckets(partition_path)
