"""Tests for base file naming utilities."""
import pytest
from pathlib import Path
import sys

sys.path.insert(0, str(Path(__file__).parent.parent))

from table.fs_utils import (
    create_new_file_id_pfx,
    get_commit_time,
    get_file_id,
    make_base_file_name,
    make_write_token,
)


def test_make_base_file_name():
    """Test base file name layout."""
    name = make_base_file_name("20240101120000", make_write_token(1, 2, 3), "abc-123")
    assert name == "abc-123_1-2-3_20240101120000.parquet"


def test_parse_base_file_name():
    """Test file id and commit time extraction."""
    name = "abc-123_1-2-3_20240101120000.parquet"
    assert get_file_id(name) == "abc-123"
    assert get_commit_time(name) == "20240101120000"


def test_parse_malformed_name():
    """Test names without the expected parts are rejected."""
    with pytest.raises(ValueError):
        get_commit_time("not-a-base-file.parquet")


def test_new_file_id_prefixes_are_unique():
    """Test fresh file ids never repeat and contain no separator."""
    ids = {create_new_file_id_pfx() for _ in range(100)}
    assert len(ids) == 100
    assert all("_" not in i for i in ids)
