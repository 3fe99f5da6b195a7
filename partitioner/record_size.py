"""Average record size estimation from commit history."""
import logging
import math
from dataclasses import dataclass
from typing import Optional

from config.config import WriteConfig
from table.timeline import CommitMetadata, CommitTimeline

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RecordSizeEstimate:
    """
    Best-effort average record size.

    Always carries a usable value; ``source_instant`` names the commit the
    estimate came from and ``error`` holds the failure that forced a fallback.
    """
    avg_record_size: int
    source_instant: Optional[str] = None
    error: Optional[Exception] = None

    @property
    def is_fallback(self) -> bool:
        return self.source_instant is None


def estimate_record_size(
    timeline: CommitTimeline,
    fallback_avg_size: int,
    min_bytes_threshold: int,
) -> RecordSizeEstimate:
    """
    Estimate average bytes per record from the most recent qualifying commit.

    Commits are walked newest first. The first one that wrote more than
    ``min_bytes_threshold`` bytes and at least one record gives the estimate.

    Reading commit metadata never fails the write: any error is logged and
    the fallback is returned.

    Args:
        timeline: Commit timeline
        fallback_avg_size: Value used when no commit qualifies
        min_bytes_threshold: Minimum bytes a commit must have written

    Returns:
        RecordSizeEstimate
    """
    try:
        for instant in timeline.get_reverse_ordered_completed_instants():
            metadata = CommitMetadata.from_bytes(timeline.get_instant_details(instant))
            total_bytes_written = metadata.fetch_total_bytes_written()
            total_records_written = metadata.fetch_total_records_written()
            if total_bytes_written > min_bytes_threshold and total_records_written > 0:
                return RecordSizeEstimate(
                    avg_record_size=math.ceil(total_bytes_written / total_records_written),
                    source_instant=instant.timestamp,
                )
    except Exception as e:
        logger.error(f"[RecordSizeEstimator] Error trying to compute average bytes/record: {e}", exc_info=True)
        return RecordSizeEstimate(avg_record_size=fallback_avg_size, error=e)

    return RecordSizeEstimate(avg_record_size=fallback_avg_size)


def average_bytes_per_record(timeline: CommitTimeline, config: WriteConfig) -> int:
    """Average record size used to size buckets, per the write config."""
    min_bytes_threshold = int(config.record_size_estimation_threshold * config.parquet_small_file_limit)
    estimate = estimate_record_size(
        timeline,
        fallback_avg_size=config.copy_on_write_record_size_estimate,
        min_bytes_threshold=min_bytes_threshold,
    )
    if estimate.is_fallback:
        logger.info(f"[RecordSizeEstimator] Using configured record size estimate: {estimate.avg_record_size}")
    else:
        logger.info(
            f"[RecordSizeEstimator] Estimated {estimate.avg_record_size} bytes/record "
            f"from commit {estimate.source_instant}"
        )
    return estimate.avg_record_size
