#!/usr/bin/env python
"""
Script to plan the buckets of an upsert batch.

Reads tagged records (NDJSON with record_key, partition_path, file_id and
instant_time; file_id is null for inserts), plans buckets against the
configured table and prints the plan.

Usage:
    python scripts/plan_buckets.py records.ndjson
    python scripts/plan_buckets.py records.ndjson --config config/config.yaml --output plan.csv
    python scripts/plan_buckets.py records.ndjson --as-of 20240101120000 --route
"""
import argparse
import logging
import sys
from pathlib import Path

import polars as pl

# Add project root to path so we can import the packages
project_root = Path(__file__).resolve().parent.parent
sys.path.append(str(project_root))

from config import load_config
from partitioner import RecordLocation, UpsertPartitioner, cast_tagged_columns, profile_from_frame
from storage import create_table_storage
from table import StorageFileSystemView, StorageTimeline


def main():
    parser = argparse.ArgumentParser(
        description="Plan output buckets for a batch of tagged upsert records."
    )

    parser.add_argument(
        "records",
        type=str,
        help="NDJSON file of tagged records"
    )

    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to config YAML (default: UPSERT_PARTITIONER_CONFIG or config/config.yaml)"
    )

    parser.add_argument(
        "--as-of",
        type=str,
        default=None,
        help="Only consider commits at or before this instant when looking for small files"
    )

    parser.add_argument(
        "--output",
        type=str,
        default=None,
        help="Write the bucket plan as CSV to this path"
    )

    parser.add_argument(
        "--route",
        action="store_true",
        help="Also route every record and print per-bucket record counts"
    )

    args = parser.parse_args()

    config = load_config(args.config)

    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format=config.log_format
    )
    logger = logging.getLogger("plan_buckets")

    try:
        records = cast_tagged_columns(pl.read_ndjson(args.records))
        logger.info(f"Loaded {len(records):,} tagged records from {args.records}")

        storage = create_table_storage(config)
        timeline = StorageTimeline(storage, config.storage.timeline_dir)
        view = StorageFileSystemView(storage, timeline)

        partitioner = UpsertPartitioner(
            profile_from_frame(records),
            view,
            timeline,
            config.write,
            as_of_instant=args.as_of,
        )

        plan_df = partitioner.plan.to_frame()
        with pl.Config(tbl_rows=-1):
            print(plan_df)

        if args.route:
            if "record_key" not in records.columns:
                raise ValueError(f"--route needs a record_key column. Available columns: {records.columns}")
            buckets = [
                partitioner.route(
                    row["record_key"],
                    row["partition_path"],
                    RecordLocation(row["instant_time"] or "", row["file_id"]) if row["file_id"] else None,
                )
                for row in records.iter_rows(named=True)
            ]
            counts = (
                pl.DataFrame({"bucket_number": buckets})
                .group_by("bucket_number")
                .agg(pl.len().alias("records"))
                .sort("bucket_number")
            )
            with pl.Config(tbl_rows=-1):
                print(counts)

        if args.output:
            plan_df.write_csv(args.output)
            logger.info(f"Bucket plan written to {args.output}")

        logger.info(f"Planned {partitioner.num_partitions()} buckets")

    except Exception as e:
        logger.error(f"Bucket planning failed: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
