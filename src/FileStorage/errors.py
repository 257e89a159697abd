"""
Storage error hierarchy.

This module defines the exceptions raised by every filesystem backend, and a
helper that translates native OSErrors into them.
"""

import errno
from typing import Optional, Type


class StorageError(Exception):
    """
    Base class for all errors raised by a filesystem backend.

    Attributes:
        operation: The backend operation that failed (e.g. "mkdir")
        path: The path the operation was applied to, if any
    """

    def __init__(self, message: str, operation: Optional[str] = None, path: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.operation = operation
        self.path = path

    def __str__(self) -> str:
        return self.message


class PathNotFoundError(StorageError, FileNotFoundError):
    """A path that must exist does not."""


class TypeMismatchError(StorageError):
    """A file was found where a directory was required, or the reverse."""


class PermissionDeniedError(StorageError, PermissionError):
    """The medium refused access to the path."""


class StorageIOError(StorageError):
    """Any other I/O failure on the local medium."""


class NetworkFailureError(StorageError, ConnectionError):
    """The remote cluster could not be reached or dropped the request."""


class StorageTimeoutError(NetworkFailureError, TimeoutError):
    """A remote call did not complete within its timeout."""


class UnsupportedOperationError(StorageError, NotImplementedError):
    """The operation has no meaning for this backend."""


_TYPE_MISMATCH_ERRNOS = {errno.EISDIR, errno.ENOTDIR, errno.EEXIST}


def translate_os_error(
    exc: OSError, operation: str, path: str, fallback: Type[StorageError] = StorageIOError
) -> StorageError:
    """
    Translate a native OSError into the matching StorageError.

    Args:
        exc: The error raised by the OS or by an fsspec implementation
        operation: The backend operation being performed
        path: The path the operation was applied to
        fallback: The class used for errors matching no specific category

    Returns:
        A StorageError subclass instance carrying a readable message
    """
    if isinstance(exc, StorageError):
        return exc

    reason = exc.strerror or str(exc) or exc.__class__.__name__
    message = f"{operation} failed for '{path}': {reason}"

    if isinstance(exc, FileNotFoundError) or exc.errno == errno.ENOENT:
        return PathNotFoundError(message, operation, path)
    if isinstance(exc, PermissionError) or exc.errno in (errno.EACCES, errno.EPERM):
        return PermissionDeniedError(message, operation, path)
    if isinstance(exc, (IsADirectoryError, NotADirectoryError, FileExistsError)) \
            or exc.errno in _TYPE_MISMATCH_ERRNOS:
        return TypeMismatchError(message, operation, path)
    if isinstance(exc, TimeoutError):
        return StorageTimeoutError(message, operation, path)
    if isinstance(exc, ConnectionError):
        return NetworkFailureError(message, operation, path)
    return fallback(message, operation, path)
