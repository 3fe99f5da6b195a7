"""Tests for the commit timeline and file system view."""
import pytest
from pathlib import Path
import sys

sys.path.insert(0, str(Path(__file__).parent.parent))

from table.timeline import (
    COMMIT_ACTION,
    REPLACE_COMMIT_ACTION,
    ClusteringFileGroup,
    ClusteringPlan,
    CommitMetadata,
    Instant,
    State,
    WriteStat,
)
from table.view import FileGroupId, StorageFileSystemView


def test_instant_file_names():
    """Test instant file names parse back to the same instant."""
    for state in State:
        instant = Instant("20240101120000", COMMIT_ACTION, state)
        assert Instant.from_file_name(instant.file_name) == instant


def test_instant_bad_file_name():
    """Test unknown instant file names are rejected."""
    with pytest.raises(ValueError):
        Instant.from_file_name("20240101.commit.weird")


def test_commit_metadata_totals():
    """Test totals sum over every partition and file."""
    metadata = CommitMetadata(partition_to_write_stats={
        "a": [WriteStat(file_id="f1", num_writes=10, total_write_bytes=1000)],
        "b": [
            WriteStat(file_id="f2", num_writes=5, total_write_bytes=700),
            WriteStat(file_id="f3", num_writes=1, total_write_bytes=300),
        ],
    })
    restored = CommitMetadata.from_bytes(metadata.to_bytes())
    assert restored.fetch_total_bytes_written() == 2000
    assert restored.fetch_total_records_written() == 16


def test_last_completed_instant(timeline, make_commit):
    """Test lookup of the latest completed commit with and without a bound."""
    assert timeline.last_completed_instant() is None

    make_commit("001")
    make_commit("003")
    timeline.save_instant(Instant("004", COMMIT_ACTION, State.INFLIGHT))

    assert timeline.last_completed_instant().timestamp == "003"
    assert timeline.last_completed_instant("002").timestamp == "001"
    assert timeline.last_completed_instant("003").timestamp == "003"
    assert timeline.last_completed_instant("000") is None
    assert [i.timestamp for i in timeline.get_reverse_ordered_completed_instants()] == ["003", "001"]


def test_pending_clustering_instants(timeline):
    """Test only requested replacecommits without completion are pending."""
    plan = ClusteringPlan(file_groups=[ClusteringFileGroup(partition_path="p", file_id="f1")])
    timeline.save_instant(Instant("005", REPLACE_COMMIT_ACTION, State.REQUESTED), plan.to_bytes())
    timeline.save_instant(Instant("006", REPLACE_COMMIT_ACTION, State.REQUESTED), plan.to_bytes())
    timeline.save_instant(Instant("006", REPLACE_COMMIT_ACTION), CommitMetadata().to_bytes())

    pending = timeline.get_pending_clustering_instants()
    assert [i.timestamp for i in pending] == ["005"]


def test_view_latest_base_files(table_storage, timeline, make_commit, make_base_file):
    """Test the view keeps the latest committed version of each file group."""
    make_commit("001")
    make_commit("002")
    make_base_file("p", "f1", "001", 10)
    make_base_file("p", "f1", "002", 20)
    make_base_file("p", "f2", "001", 30)
    make_base_file("p", "f3", "003", 40)  # not committed
    table_storage.write_bytes(b"x", "p/.marker")

    view = StorageFileSystemView(table_storage, timeline)

    latest = {f.file_id: f for f in view.get_latest_base_files_before_or_on("p", "002")}
    assert set(latest) == {"f1", "f2"}
    assert latest["f1"].commit_time == "002"
    assert latest["f1"].file_size == 20

    as_of_first = {f.file_id: f for f in view.get_latest_base_files_before_or_on("p", "001")}
    assert as_of_first["f1"].commit_time == "001"

    assert list(view.get_latest_base_files_before_or_on("missing", "002")) == []


def test_view_pending_clustering(table_storage, timeline):
    """Test file groups of pending clustering plans are reported."""
    plan = ClusteringPlan(file_groups=[
        ClusteringFileGroup(partition_path="p", file_id="f1"),
        ClusteringFileGroup(partition_path="q", file_id="f9"),
    ])
    timeline.save_instant(Instant("005", REPLACE_COMMIT_ACTION, State.REQUESTED), plan.to_bytes())

    view = StorageFileSystemView(table_storage, timeline)
    groups = set(view.get_file_groups_in_pending_clustering())
    assert groups == {FileGroupId("p", "f1"), FileGroupId("q", "f9")}


def test_view_hides_replaced_file_groups(table_storage, timeline, make_commit, make_base_file):
    """Test file groups replaced by a completed clustering are not visible after it."""
    make_commit("001")
    make_base_file("p", "f1", "001", 10)
    make_base_file("p", "f2", "001", 10)
    plan = ClusteringPlan(file_groups=[ClusteringFileGroup(partition_path="p", file_id="f1")])
    timeline.save_instant(Instant("002", REPLACE_COMMIT_ACTION, State.REQUESTED), plan.to_bytes())
    metadata = CommitMetadata(partition_to_replace_file_ids={"p": ["f1"]})
    timeline.save_instant(Instant("002", REPLACE_COMMIT_ACTION), metadata.to_bytes())
    make_base_file("p", "c1", "002", 20)

    view = StorageFileSystemView(table_storage, timeline)

    assert [f.file_id for f in view.get_latest_base_files_before_or_on("p", "002")] == ["c1", "f2"]
    assert [f.file_id for f in view.get_latest_base_files_before_or_on("p", "001")] == ["f1", "f2"]
    assert list(view.get_file_groups_in_pending_clustering()) == []
