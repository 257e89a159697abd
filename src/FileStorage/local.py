"""
Local filesystem implementation.

This module provides a filesystem implementation for the local file system.
"""

import os
import posixpath
import shutil
import sys
import uuid
from typing import List, Tuple
import logging
import fsspec

from Configuration.StorageConfig import StorageConfig
from FileStorage.base import DirEntry, DiskInfo, FileSystem
from FileStorage.errors import PathNotFoundError, TypeMismatchError, translate_os_error
from FileStorage.paths import LOCAL_RULES, StoragePath, normalize_path


class LocalFileSystem(FileSystem):
    """
    Implementation of FileSystem for the local file system.

    This class provides methods for interacting with the local file system.
    It uses fsspec for directory walks so listings follow the same ordering
    rules as the distributed backend.
    """

    PATH_SEPARATOR = os.sep
    path_rules = LOCAL_RULES

    def __init__(self) -> None:
        """Initialize the local file system."""
        self.logger = logging.getLogger(__name__)
        self.fs = fsspec.filesystem("file")

    @staticmethod
    def get_executable_path() -> StoragePath:
        """
        Resolve the image of the running process.

        Returns:
            The normalized path; use .dir and .name for its components
        """
        return normalize_path(os.path.realpath(sys.executable), LOCAL_RULES)

    @staticmethod
    def get_working_directory() -> StoragePath:
        return normalize_path(os.getcwd(), LOCAL_RULES)

    def exists(self, path: str) -> bool:
        return os.path.exists(path)

    def is_dir(self, path: str) -> bool:
        return os.path.isdir(path)

    def mkdir(self, path: str) -> None:
        self.logger.debug(f"Creating directory: {path}")
        try:
            # exist_ok only tolerates an existing directory, so a file in the way still fails
            os.makedirs(path, exist_ok=True)
        except OSError as e:
            raise translate_os_error(e, "mkdir", path) from e

    def remove_dir(self, path: str) -> None:
        if not os.path.lexists(path):
            self.logger.debug(f"Directory already absent: {path}")
            return
        if os.path.islink(path) or not os.path.isdir(path):
            raise TypeMismatchError(f"remove_dir failed for '{path}': not a directory", "remove_dir", path)

        self.logger.debug(f"Removing directory: {path}")
        try:
            shutil.rmtree(path)
        except FileNotFoundError as e:
            # Entries removed concurrently are fine as long as the tree ends up gone
            if os.path.lexists(path):
                raise translate_os_error(e, "remove_dir", path) from e
        except OSError as e:
            raise translate_os_error(e, "remove_dir", path) from e

    def remove(self, path: str) -> None:
        if os.path.isdir(path) and not os.path.islink(path):
            raise TypeMismatchError(f"remove failed for '{path}': is a directory", "remove", path)

        self.logger.debug(f"Removing file: {path}")
        try:
            os.remove(path)
        except FileNotFoundError:
            self.logger.debug(f"File already absent: {path}")
        except OSError as e:
            raise translate_os_error(e, "remove", path) from e

    def copy_from_local(self, local_src: str, dst: str) -> str:
        return self._copy(local_src, dst, "copy_from_local")

    def copy_to_local(self, src: str, local_dst: str) -> str:
        return self._copy(src, local_dst, "copy_to_local")

    def _copy(self, src: str, dst: str, operation: str) -> str:
        """
        Copy one file on the local medium.

        The bytes are written to a uniquely named sibling of the target and
        renamed onto it, so a failed copy never leaves a partial target.
        """
        if not os.path.exists(src):
            raise PathNotFoundError(f"{operation} failed: source '{src}' does not exist", operation, src)
        if os.path.isdir(src):
            raise TypeMismatchError(f"{operation} failed: source '{src}' is a directory", operation, src)

        target = dst
        if os.path.isdir(dst):
            target = self.join_path(dst, self.get_file_name(src))
            if os.path.isdir(target):
                raise TypeMismatchError(
                    f"{operation} failed: target '{target}' is a directory", operation, target
                )

        parent = os.path.dirname(target) or os.curdir
        if not os.path.isdir(parent):
            raise PathNotFoundError(
                f"{operation} failed: destination directory '{parent}' does not exist", operation, target
            )

        self.logger.debug(f"Copying {src} to {target}")
        temp_path = f"{target}.{uuid.uuid4().hex}{StorageConfig.COPY_TEMP_SUFFIX}"
        try:
            shutil.copyfile(src, temp_path)
            os.replace(temp_path, target)
        except OSError as e:
            self._discard(temp_path)
            raise translate_os_error(e, operation, target) from e
        return target

    def _discard(self, temp_path: str) -> None:
        try:
            os.remove(temp_path)
        except FileNotFoundError:
            pass
        except OSError as e:
            self.logger.warning(f"Could not remove temporary copy {temp_path}: {e}")

    def get_file_size(self, path: str) -> int:
        try:
            if os.path.isdir(path):
                raise TypeMismatchError(f"get_file_size failed for '{path}': is a directory", "get_file_size", path)
            return os.stat(path).st_size
        except OSError as e:
            raise translate_os_error(e, "get_file_size", path) from e

    def list_files_with_sizes(self, path: str, recursive: bool = False) -> Tuple[List[str], List[int]]:
        self._require_dir(path, "list_files")
        self.logger.debug(f"Listing files in {path} (recursive={recursive})")

        base = self.fs._strip_protocol(path)
        try:
            # find() returns its results sorted by name, files only
            found = self.fs.find(base, maxdepth=None if recursive else 1, detail=True)
        except OSError as e:
            raise translate_os_error(e, "list_files", path) from e

        files: List[str] = []
        sizes: List[int] = []
        for name, info in found.items():
            # Links whose target is gone have no size to report
            if not os.path.isfile(name):
                continue
            relative = posixpath.relpath(name, base)
            files.append(self.join_path(path, *relative.split("/")))
            sizes.append(int(info.get("size") or 0))

        self.logger.debug(f"Found {len(files)} files")
        return files, sizes

    def scan_dir(self, path: str) -> List[DirEntry]:
        self._require_dir(path, "scan_dir")
        entries: List[DirEntry] = []
        try:
            with os.scandir(path) as it:
                for entry in it:
                    if entry.is_dir():
                        entries.append(DirEntry(name=entry.name, is_dir=True))
                    elif entry.is_file():
                        entries.append(DirEntry(name=entry.name, is_dir=False, size=entry.stat().st_size))
                    else:
                        self.logger.debug(f"Skipping {entry.path}: not a regular file or directory")
        except OSError as e:
            raise translate_os_error(e, "scan_dir", path) from e
        return sorted(entries, key=lambda entry: entry.name)

    def get_disk_info(self, path: str) -> DiskInfo:
        """
        Query the volume containing a path.

        Args:
            path: Any existing path on the volume

        Returns:
            The total and available bytes, both zero where the platform
            offers no volume query

        Raises:
            PathNotFoundError: If the path does not exist
        """
        if not os.path.exists(path):
            raise PathNotFoundError(f"get_disk_info failed: '{path}' does not exist", "get_disk_info", path)
        if not hasattr(shutil, "disk_usage"):
            self.logger.warning("Disk usage queries are not available on this platform")
            return DiskInfo()
        try:
            usage = shutil.disk_usage(path)
        except OSError as e:
            raise translate_os_error(e, "get_disk_info", path) from e
        return DiskInfo(total=usage.total, avail=usage.free)

    def get_dir_space(self, path: str) -> int:
        """Total bytes of all regular files under a directory."""
        _, sizes = self.list_files_with_sizes(path, recursive=True)
        return sum(sizes)

    def _require_dir(self, path: str, operation: str) -> None:
        if not os.path.exists(path):
            raise PathNotFoundError(f"{operation} failed: '{path}' does not exist", operation, path)
        if not os.path.isdir(path):
            raise TypeMismatchError(f"{operation} failed: '{path}' is not a directory", operation, path)
