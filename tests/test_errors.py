"""
Unit tests for the storage error hierarchy.
"""

import errno
import unittest

from FileStorage.errors import (
    NetworkFailureError,
    PathNotFoundError,
    PermissionDeniedError,
    StorageError,
    StorageIOError,
    StorageTimeoutError,
    TypeMismatchError,
    translate_os_error,
)


class TestTranslateOsError(unittest.TestCase):
    """Test cases for translate_os_error."""

    def test_categories(self):
        cases = [
            (FileNotFoundError(errno.ENOENT, "No such file or directory"), PathNotFoundError),
            (PermissionError(errno.EACCES, "Permission denied"), PermissionDeniedError),
            (FileExistsError(errno.EEXIST, "File exists"), TypeMismatchError),
            (NotADirectoryError(errno.ENOTDIR, "Not a directory"), TypeMismatchError),
            (IsADirectoryError(errno.EISDIR, "Is a directory"), TypeMismatchError),
            (ConnectionResetError("reset"), NetworkFailureError),
            (TimeoutError("slow"), StorageTimeoutError),
            (OSError(errno.EIO, "Input/output error"), StorageIOError),
        ]
        for exc, expected in cases:
            with self.subTest(exc=exc):
                translated = translate_os_error(exc, "copy_from_local", "/data/f")
                self.assertIsInstance(translated, expected)
                self.assertEqual(translated.operation, "copy_from_local")
                self.assertEqual(translated.path, "/data/f")
                self.assertIn("/data/f", str(translated))

    def test_fallback(self):
        translated = translate_os_error(OSError("broken pipe"), "exists", "/x", fallback=NetworkFailureError)
        self.assertIsInstance(translated, NetworkFailureError)

    def test_storage_errors_pass_through(self):
        original = PathNotFoundError("gone", "remove", "/x")
        self.assertIs(translate_os_error(original, "other", "/y"), original)

    def test_builtin_compatibility(self):
        self.assertTrue(issubclass(PathNotFoundError, FileNotFoundError))
        self.assertTrue(issubclass(StorageTimeoutError, TimeoutError))
        self.assertTrue(issubclass(StorageTimeoutError, NetworkFailureError))
        self.assertTrue(issubclass(TypeMismatchError, StorageError))
        self.assertEqual(str(PathNotFoundError("gone", "remove", "/x")), "gone")


if __name__ == "__main__":
    unittest.main()
