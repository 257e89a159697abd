"""
File storage abstraction for bulk data loading.

This module provides one operation set over the local filesystem and a
distributed cluster filesystem, and a registry that hands out a shared
backend handle per process.
"""

from .base import DirEntry, DiskInfo, FileSystem
from .distributed import DistributedFileSystem
from .errors import (
    NetworkFailureError,
    PathNotFoundError,
    PermissionDeniedError,
    StorageError,
    StorageIOError,
    StorageTimeoutError,
    TypeMismatchError,
    UnsupportedOperationError,
)
from .local import LocalFileSystem
from .paths import StoragePath, join_path, normalize_path
from .registry import (
    get_configured_filesystem,
    get_filesystem,
    get_filesystem_for_path,
    register_filesystem,
)
from .staging import FileStager, StagingResult

__all__ = [
    "FileSystem",
    "DirEntry",
    "DiskInfo",
    "LocalFileSystem",
    "DistributedFileSystem",
    "StoragePath",
    "join_path",
    "normalize_path",
    "get_filesystem",
    "get_filesystem_for_path",
    "get_configured_filesystem",
    "register_filesystem",
    "FileStager",
    "StagingResult",
    "StorageError",
    "PathNotFoundError",
    "TypeMismatchError",
    "PermissionDeniedError",
    "StorageIOError",
    "NetworkFailureError",
    "StorageTimeoutError",
    "UnsupportedOperationError",
]
