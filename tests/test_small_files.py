"""Tests for small file discovery."""
import pytest
from pathlib import Path
import sys

sys.path.insert(0, str(Path(__file__).parent.parent))

from partitioner.small_files import (
    SmallFileScanner,
    filter_small_files_in_clustering,
    pending_clustering_by_partition,
)
from partitioner.types import RecordLocation, SmallFile
from table.timeline import REPLACE_COMMIT_ACTION, ClusteringFileGroup, ClusteringPlan, Instant, State
from table.view import StorageFileSystemView


@pytest.fixture
def view(table_storage, timeline):
    return StorageFileSystemView(table_storage, timeline)


def test_scan_without_commits(view, timeline, make_base_file):
    """Test a table without completed commits has no small files."""
    make_base_file("p", "f1", "001", 10)
    scanner = SmallFileScanner(view, timeline, small_file_limit=100)
    assert scanner.scan("p") == []


def test_scan_keeps_files_strictly_below_limit(view, timeline, make_commit, make_base_file):
    """Test only files smaller than the limit are reported."""
    make_commit("001")
    make_base_file("p", "f1", "001", 99)
    make_base_file("p", "f2", "001", 100)
    make_base_file("p", "f3", "001", 150)

    scanner = SmallFileScanner(view, timeline, small_file_limit=100)
    small_files = scanner.scan("p")

    assert small_files == [SmallFile(location=RecordLocation("001", "f1"), size_bytes=99)]


def test_scan_uses_latest_version(view, timeline, make_commit, make_base_file):
    """Test the size of the latest file version decides."""
    make_commit("001")
    make_commit("002")
    make_base_file("p", "f1", "001", 10)
    make_base_file("p", "f1", "002", 500)
    make_base_file("p", "f2", "001", 500)
    make_base_file("p", "f2", "002", 20)

    scanner = SmallFileScanner(view, timeline, small_file_limit=100)

    assert [(sf.file_id, sf.location.instant_time) for sf in scanner.scan("p")] == [("f2", "002")]
    # as of the first commit, only f1 was small
    assert [sf.file_id for sf in scanner.scan("p", as_of_instant="001")] == ["f1"]


def test_scan_excludes_file_ids(view, timeline, make_commit, make_base_file):
    """Test excluded file groups are dropped."""
    make_commit("001")
    make_base_file("p", "f1", "001", 10)
    make_base_file("p", "f2", "001", 10)

    scanner = SmallFileScanner(view, timeline, small_file_limit=100)
    assert [sf.file_id for sf in scanner.scan("p", exclude_file_ids={"f1"})] == ["f2"]


def test_filter_small_files_in_clustering():
    """Test clustering filter, including the empty fast path."""
    small_files = [
        SmallFile(RecordLocation("001", "f1"), 10),
        SmallFile(RecordLocation("001", "f2"), 10),
    ]
    assert filter_small_files_in_clustering(set(), small_files) is small_files
    assert filter_small_files_in_clustering({"f2"}, small_files) == small_files[:1]


def test_pending_clustering_by_partition(view, timeline):
    """Test pending clustering file ids are grouped by partition."""
    plan = ClusteringPlan(file_groups=[
        ClusteringFileGroup(partition_path="p", file_id="f1"),
        ClusteringFileGroup(partition_path="p", file_id="f2"),
        ClusteringFileGroup(partition_path="q", file_id="f3"),
    ])
    timeline.save_instant(Instant("002", REPLACE_COMMIT_ACTION, State.REQUESTED), plan.to_bytes())

    assert pending_clustering_by_partition(view) == {"p": {"f1", "f2"}, "q": {"f3"}}
