"""
End-to-end check of a storage backend.

Runs the sequence a loader performs against a backend: create a working
tree, copy a file in and out, compare sizes, list the tree and clean up.
"""

import logging
import os
import tempfile

from FileStorage.base import FileSystem
from FileStorage.local import LocalFileSystem

logger = logging.getLogger(__name__)

SAMPLE_FILE_NAME = "selfcheck_sample.bin"
SAMPLE_SIZE = 64 * 1024


class SelfCheckError(Exception):
    """A backend returned a result that contradicts its contract."""


def _expect(condition: bool, message: str) -> None:
    if not condition:
        raise SelfCheckError(message)


def run_selfcheck(fs: FileSystem, work_dir: str) -> None:
    """
    Exercise every contract operation of a backend under work_dir.

    work_dir is removed before and after the check.

    Raises:
        SelfCheckError: If a result is inconsistent
        StorageError: If an operation fails
    """
    with tempfile.TemporaryDirectory(prefix="fs-selfcheck-") as local_dir:
        sample = os.path.join(local_dir, SAMPLE_FILE_NAME)
        with open(sample, "wb") as f:
            f.write(os.urandom(SAMPLE_SIZE))

        _log_host_info(fs)

        fs.remove_dir(work_dir)
        wdir = fs.join_path(work_dir, "other")
        fs.mkdir(wdir)
        fs.mkdir(wdir)
        _expect(fs.is_dir(wdir), f"is_dir({wdir}) is false after mkdir")

        file1 = fs.copy_from_local(sample, wdir)
        _expect(fs.exists(file1), f"copy_from_local did not create {file1}")
        file2 = fs.copy_from_local(sample, fs.join_path(wdir, "copy2"))
        _expect(not fs.is_dir(file2), f"is_dir({file2}) is true for a file")

        fetched = fs.copy_to_local(file1, os.path.join(local_dir, "fetched.bin"))
        _expect(os.path.getsize(fetched) == SAMPLE_SIZE, "copy_to_local changed the file size")
        _expect(
            fs.get_file_size(file1) == fs.get_file_size(file2) == SAMPLE_SIZE,
            "get_file_size disagrees with the source size",
        )

        sizes = []
        files = fs.list_files(wdir, sizes, recursive=True)
        _expect(len(files) == 2, f"list_files returned {files}")
        _expect(sizes == [fs.get_file_size(p) for p in files], "list_files sizes are misaligned")

        _expect(fs.list_sub_dirs(work_dir) == ["other"], f"list_sub_dirs({work_dir}) is wrong")
        _expect(fs.list_sub_dirs(wdir) == [], f"list_sub_dirs({wdir}) is not empty")

        sdir = fs.join_path(wdir, "sub1", "sub2")
        fs.mkdir(sdir)
        nested = fs.copy_from_local(sample, sdir)
        _expect(fs.exists(nested), f"copy into {sdir} failed")
        _expect(len(fs.list_files(wdir, recursive=True)) == 3, "recursive listing missed a nested file")
        _expect(len(fs.list_files(wdir, recursive=False)) == 2, "flat listing descended into subdirectories")

        fs.remove(file2)
        fs.remove(file2)
        fs.remove_dir(wdir)
        _expect(not fs.is_dir(wdir), f"{wdir} still exists after remove_dir")
        _expect(fs.list_sub_dirs(work_dir) == [], f"{work_dir} still lists subdirectories")
        fs.remove_dir(work_dir)
        fs.remove_dir(work_dir)

    logger.info(f"{type(fs).__name__} check passed")


def _log_host_info(fs: FileSystem) -> None:
    if not isinstance(fs, LocalFileSystem):
        logger.info(f"{type(fs).__name__} reports no host or disk information")
        return
    path = fs.get_executable_path()
    logger.info(f"dir: {path.dir}")
    logger.info(f"name: {path.name}")
    logger.info(f"working directory: {fs.get_working_directory()}")
    info = fs.get_disk_info(path.dir)
    logger.info(f"disk total: {info.total} B")
    logger.info(f"disk avail: {info.avail} B")
