"""
Base filesystem abstraction.

This module defines the abstract base class every storage backend implements,
together with the small value types produced by its operations.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional, Tuple

from FileStorage.errors import UnsupportedOperationError
from FileStorage.paths import PathRules, StoragePath, join_path, normalize_path


@dataclass(frozen=True)
class DirEntry:
    """One immediate child of a directory."""

    name: str
    is_dir: bool
    size: Optional[int] = None


@dataclass(frozen=True)
class DiskInfo:
    """Total and available bytes of the volume containing a path."""

    total: int = 0
    avail: int = 0


class FileSystem(ABC):
    """
    Abstract base class for filesystem implementations.

    This class defines the interface that all filesystem implementations must
    follow. Every operation blocks until it completes or fails, and failures
    are raised as FileStorage.errors.StorageError subclasses.

    Removing a missing file or directory is not an error; callers rely on
    remove() and remove_dir() for idempotent cleanup.
    """

    #: Conventions used by join_path() and normalize_path()
    path_rules: PathRules

    @property
    def path_separator(self) -> str:
        return self.path_rules.separator

    def join_path(self, *segments: str) -> str:
        """
        Join path segments using this backend's separator.

        An absolute segment discards everything joined before it.
        """
        return join_path(*segments, rules=self.path_rules)

    def normalize_path(self, path: str) -> StoragePath:
        """Normalize a path under this backend's conventions."""
        return normalize_path(path, self.path_rules)

    def get_file_name(self, path: str) -> str:
        return self.normalize_path(path).name

    @abstractmethod
    def exists(self, path: str) -> bool:
        """
        Check if a file or directory exists.

        Args:
            path: The path to check

        Returns:
            True if the path exists, False otherwise
        """
        pass

    @abstractmethod
    def is_dir(self, path: str) -> bool:
        """
        Check if a path is a directory.

        Args:
            path: The path to check

        Returns:
            True if the path exists and is a directory, False otherwise
        """
        pass

    @abstractmethod
    def mkdir(self, path: str) -> None:
        """
        Create a directory.

        Creates the specified directory and any parent directories that don't
        exist. Succeeds silently if the directory already exists.

        Args:
            path: The directory to create

        Raises:
            TypeMismatchError: If a file occupies the path or one of its ancestors
            PermissionDeniedError: If the directory cannot be created
        """
        pass

    @abstractmethod
    def remove_dir(self, path: str) -> None:
        """
        Recursively remove a directory and its contents.

        Does nothing if the path does not exist.

        Args:
            path: The directory to remove

        Raises:
            TypeMismatchError: If the path is a file
        """
        pass

    @abstractmethod
    def remove(self, path: str) -> None:
        """
        Remove a single file.

        Does nothing if the path does not exist.

        Args:
            path: The file to remove

        Raises:
            TypeMismatchError: If the path is a directory
        """
        pass

    @abstractmethod
    def copy_from_local(self, local_src: str, dst: str) -> str:
        """
        Copy a file from the local host onto this backend.

        If dst is an existing directory, the file is placed inside it under its
        own base name. Parent directories are not created.

        Args:
            local_src: The local file to copy
            dst: The destination path on this backend

        Returns:
            The path of the copied file on this backend

        Raises:
            PathNotFoundError: If the source or the destination parent is missing
            TypeMismatchError: If the source or the final target is a directory
        """
        pass

    @abstractmethod
    def copy_to_local(self, src: str, local_dst: str) -> str:
        """
        Copy a file from this backend onto the local host.

        Follows the same destination rules as copy_from_local().

        Args:
            src: The file on this backend
            local_dst: The local destination path

        Returns:
            The local path of the copied file
        """
        pass

    @abstractmethod
    def get_file_size(self, path: str) -> int:
        """
        Get the size of a file in bytes.

        Raises:
            PathNotFoundError: If the file does not exist
            TypeMismatchError: If the path is a directory
        """
        pass

    @abstractmethod
    def list_files_with_sizes(self, path: str, recursive: bool = False) -> Tuple[List[str], List[int]]:
        """
        List regular files under a directory.

        Paths are returned joined onto the given directory and sorted by
        their path relative to it. Directories are never included.

        Args:
            path: The directory to list
            recursive: Whether to descend into subdirectories

        Returns:
            The file paths and a list of sizes aligned with them

        Raises:
            PathNotFoundError: If the directory does not exist
            TypeMismatchError: If the path is a file
        """
        pass

    def list_files(self, path: str, sizes: Optional[List[int]] = None, recursive: bool = False) -> List[str]:
        """
        List regular files under a directory.

        Args:
            path: The directory to list
            sizes: If given, cleared and filled with the file sizes in the
                same order as the returned paths
            recursive: Whether to descend into subdirectories

        Returns:
            The file paths
        """
        files, file_sizes = self.list_files_with_sizes(path, recursive=recursive)
        if sizes is not None:
            sizes[:] = file_sizes
        return files

    @abstractmethod
    def scan_dir(self, path: str) -> List[DirEntry]:
        """
        List the immediate children of a directory, sorted by name.

        Raises:
            PathNotFoundError: If the directory does not exist
            TypeMismatchError: If the path is a file
        """
        pass

    def list_sub_dirs(self, path: str) -> List[str]:
        """List the names of the immediate child directories of a directory."""
        return [entry.name for entry in self.scan_dir(path) if entry.is_dir]

    def get_disk_info(self, path: str) -> DiskInfo:
        raise UnsupportedOperationError(
            f"get_disk_info is not supported by {type(self).__name__}", "get_disk_info", path
        )

    def get_disk_space(self, path: str) -> int:
        """Available bytes on the volume containing the path."""
        return self.get_disk_info(path).avail
