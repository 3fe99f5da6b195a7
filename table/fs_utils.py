"""
Base file naming utilities.

Base files are named ``{file_id}_{write_token}_{instant_time}.parquet``:
- file_id: identifies the file group (stable across rewrites)
- write_token: ``{task_partition_id}-{stage_id}-{task_attempt_id}``
- instant_time: commit that produced this version of the file
"""
import uuid

BASE_FILE_EXTENSION = ".parquet"


def create_new_file_id_pfx() -> str:
    """Generate a fresh file id prefix for a new file group."""
    return str(uuid.uuid4())


def make_write_token(task_partition_id: int, stage_id: int, task_attempt_id: int) -> str:
    return f"{task_partition_id}-{stage_id}-{task_attempt_id}"


def make_base_file_name(
    instant_time: str,
    write_token: str,
    file_id: str,
    extension: str = BASE_FILE_EXTENSION,
) -> str:
    """
    Build the base file name for a file group version.

    Args:
        instant_time: Commit time that writes the file
        write_token: Token of the writing task
        file_id: File group id
        extension: File extension (with leading dot)

    Returns:
        File name (no directory)
    """
    return f"{file_id}_{write_token}_{instant_time}{extension}"


def _split_base_file_name(file_name: str) -> list:
    parts = file_name.split("_")
    if len(parts) < 3:
        raise ValueError(f"Unable to parse base file name: {file_name}")
    return parts


def get_file_id(file_name: str) -> str:
    """Extract the file group id from a base file name."""
    return _split_base_file_name(file_name)[0]


def get_commit_time(file_name: str) -> str:
    """Extract the commit time from a base file name."""
    return _split_base_file_name(file_name)[2].split(".")[0]
