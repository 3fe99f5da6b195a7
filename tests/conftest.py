"""Test configuration fixtures."""
import pytest
from pathlib import Path
import tempfile
import shutil
import sys

sys.path.insert(0, str(Path(__file__).parent.parent))

from storage.base import LocalStorage
from table.fs_utils import make_base_file_name, make_write_token
from table.timeline import (
    COMMIT_ACTION,
    CommitMetadata,
    Instant,
    StorageTimeline,
    WriteStat,
)


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    temp_path = tempfile.mkdtemp()
    yield Path(temp_path)
    shutil.rmtree(temp_path)


@pytest.fixture
def table_storage(temp_dir):
    """Local storage rooted at a fresh table directory."""
    return LocalStorage(str(temp_dir / "table"))


@pytest.fixture
def timeline(table_storage):
    """Empty timeline of the test table."""
    return StorageTimeline(table_storage, ".timeline")


@pytest.fixture
def make_base_file(table_storage):
    """Write a base file of a given size and return its name."""
    def _make(partition_path, file_id, instant_time, size_bytes):
        file_name = make_base_file_name(instant_time, make_write_token(0, 0, 0), file_id)
        table_storage.write_bytes(
            b"\0" * size_bytes,
            table_storage.join_path(partition_path, file_name),
        )
        return file_name
    return _make


@pytest.fixture
def make_commit(timeline):
    """Write a completed commit carrying the given write totals."""
    def _make(instant_time, total_bytes=0, total_records=0, partition_path="2024/01/01"):
        metadata = CommitMetadata(partition_to_write_stats={
            partition_path: [
                WriteStat(
                    file_id="file-0",
                    partition_path=partition_path,
                    num_writes=total_records,
                    total_write_bytes=total_bytes,
                )
            ]
        })
        instant = Instant(instant_time, COMMIT_ACTION)
        timeline.save_instant(instant, metadata.to_bytes())
        return instant
    return _make
