"""
Unit tests for the distributed filesystem implementation.

The cluster is stood in for by fsspec's in-memory filesystem.
"""

import os
import subprocess
import sys
import textwrap
import time
import shutil
import tempfile
import threading
import unittest
import uuid
from concurrent.futures import ThreadPoolExecutor
from unittest import mock

import fsspec

from Configuration.StorageConfig import StorageConfig
from FileStorage.distributed import DistributedFileSystem
from FileStorage.errors import (
    NetworkFailureError,
    PathNotFoundError,
    StorageTimeoutError,
    TypeMismatchError,
    UnsupportedOperationError,
)


class TestDistributedFileSystem(unittest.TestCase):
    """Test cases for the DistributedFileSystem class."""

    def setUp(self):
        """Set up test fixtures."""
        self.memory = fsspec.filesystem("memory")
        self.root = f"/test_file_system_{uuid.uuid4().hex}"
        self.fs = DistributedFileSystem(fs=self.memory, base_dir=self.root, timeout=5.0)
        self.wdir = f"{self.root}/tmp"

        self.local_dir = tempfile.mkdtemp()
        self.source = os.path.join(self.local_dir, "source.bin")
        with open(self.source, "wb") as f:
            f.write(b"y" * 2048)

    def tearDown(self):
        """Tear down test fixtures."""
        if self.memory.exists(self.root):
            self.memory.rm(self.root, recursive=True)
        shutil.rmtree(self.local_dir)

    def test_paths_are_cluster_rooted(self):
        self.assertEqual(self.fs.path_separator, "/")
        self.assertEqual(str(self.fs.normalize_path("tmp//x/")), f"{self.root}/tmp/x")
        self.assertEqual(str(self.fs.normalize_path("hdfs://nn:8020/abs/x")), "/abs/x")
        self.assertEqual(self.fs.join_path(self.wdir, "a", "/b", "c"), "/b/c")

    def test_dot_segments_never_reach_the_cluster(self):
        self.fs.mkdir("./staging")
        self.assertTrue(self.fs.is_dir("staging"))
        self.assertEqual(self.fs.list_sub_dirs(self.root), ["staging"])

        nested = self.fs.join_path("./staging", "./in")
        self.assertEqual(nested, "./staging/./in")
        self.fs.mkdir(nested)
        self.assertEqual(self.fs.list_sub_dirs("staging"), ["in"])

    def test_mkdir_is_idempotent(self):
        self.fs.mkdir("tmp")
        self.fs.mkdir(self.wdir)
        self.assertTrue(self.fs.is_dir(self.wdir))
        self.assertTrue(self.fs.exists("tmp"))

    def test_mkdir_over_file_fails(self):
        self.fs.mkdir(self.wdir)
        target = self.fs.copy_from_local(self.source, f"{self.wdir}/file")
        with self.assertRaises(TypeMismatchError):
            self.fs.mkdir(target)
        with self.assertRaises(TypeMismatchError):
            self.fs.mkdir(f"{target}/child")

    def test_concurrent_mkdir_same_path(self):
        target = f"{self.wdir}/a/b/c"
        with ThreadPoolExecutor(max_workers=8) as pool:
            list(pool.map(lambda _: self.fs.mkdir(target), range(16)))
        self.assertTrue(self.fs.is_dir(target))

    def test_copy_round_trip(self):
        self.fs.mkdir(self.wdir)
        file1 = self.fs.copy_from_local(self.source, self.wdir)
        self.assertEqual(file1, f"{self.wdir}/source.bin")
        self.assertTrue(self.fs.exists(file1))

        local2 = os.path.join(self.local_dir, "local_copy_tmp")
        self.assertEqual(self.fs.copy_to_local(file1, local2), local2)
        file2 = self.fs.copy_from_local(local2, f"{self.wdir}/local_copy_tmp")

        self.assertEqual(os.path.getsize(local2), 2048)
        self.assertEqual(self.fs.get_file_size(file1), 2048)
        self.assertEqual(self.fs.get_file_size(file1), self.fs.get_file_size(file2))
        self.assertTrue(self.fs.is_dir(self.wdir))
        self.assertFalse(self.fs.is_dir(file2))

        # Only final names remain, no in-flight copies
        self.assertEqual(sorted(self.fs.list_files(self.wdir)), sorted([file1, file2]))

    def test_copy_overwrites_existing_target(self):
        self.fs.mkdir(self.wdir)
        self.fs.copy_from_local(self.source, f"{self.wdir}/data")
        small = os.path.join(self.local_dir, "small")
        with open(small, "wb") as f:
            f.write(b"z")
        self.fs.copy_from_local(small, f"{self.wdir}/data")
        self.assertEqual(self.fs.get_file_size(f"{self.wdir}/data"), 1)

    def test_failed_overwrite_keeps_previous_target(self):
        self.fs.mkdir(self.wdir)
        target = self.fs.copy_from_local(self.source, f"{self.wdir}/data")
        small = os.path.join(self.local_dir, "small")
        with open(small, "wb") as f:
            f.write(b"z")

        real_mv = self.memory.mv

        def refuse_final_rename(path1, path2, *args, **kwargs):
            if path1.endswith(StorageConfig.COPY_TEMP_SUFFIX):
                raise OSError("rename refused")
            return real_mv(path1, path2, *args, **kwargs)

        with mock.patch.object(self.memory, "mv", side_effect=refuse_final_rename):
            with self.assertRaises(NetworkFailureError):
                self.fs.copy_from_local(small, target)

        self.assertEqual(self.fs.get_file_size(target), 2048)
        self.assertEqual(self.fs.list_files(self.wdir), [target])

    def test_copy_requires_destination_parent(self):
        with self.assertRaises(PathNotFoundError):
            self.fs.copy_from_local(self.source, f"{self.wdir}/missing/file")
        with self.assertRaises(PathNotFoundError):
            self.fs.copy_to_local(f"{self.wdir}/missing", self.local_dir)

    def test_failed_upload_leaves_no_artifact(self):
        self.fs.mkdir(self.wdir)
        with mock.patch.object(self.memory, "mv", side_effect=OSError("rename refused")):
            with self.assertRaises(NetworkFailureError):
                self.fs.copy_from_local(self.source, f"{self.wdir}/data")
        self.assertEqual(self.fs.list_files(self.wdir), [])

    def test_get_file_size_errors(self):
        self.fs.mkdir(self.wdir)
        with self.assertRaises(PathNotFoundError):
            self.fs.get_file_size(f"{self.wdir}/missing")
        with self.assertRaises(TypeMismatchError):
            self.fs.get_file_size(self.wdir)

    def test_list_files_flat_and_recursive(self):
        self.fs.mkdir(f"{self.wdir}/sub")
        f1 = self.fs.copy_from_local(self.source, f"{self.wdir}/f1")
        f2 = self.fs.copy_from_local(self.source, f"{self.wdir}/sub/f2")

        sizes = []
        self.assertEqual(self.fs.list_files(self.wdir, sizes, recursive=False), [f1])
        self.assertEqual(sizes, [2048])

        files, sizes = self.fs.list_files_with_sizes(self.wdir, recursive=True)
        self.assertEqual(files, [f1, f2])
        self.assertEqual(sizes, [self.fs.get_file_size(f1), self.fs.get_file_size(f2)])

    def test_remove_files_and_dirs(self):
        hcdir = self.wdir
        self.fs.mkdir(hcdir)
        self.fs.copy_from_local(self.source, f"{hcdir}/a")
        self.fs.copy_from_local(self.source, f"{hcdir}/b")

        files = self.fs.list_files(hcdir)
        self.assertEqual(len(files), 2)
        self.fs.remove(files[0])
        self.fs.remove(files[1])
        self.fs.remove(files[1])
        self.assertEqual(self.fs.list_files(hcdir), [])
        self.assertEqual(self.fs.list_sub_dirs(self.root), ["tmp"])
        self.assertEqual(self.fs.list_sub_dirs(hcdir), [])

        with self.assertRaises(TypeMismatchError):
            self.fs.remove(hcdir)

        self.fs.remove_dir(hcdir)
        self.assertFalse(self.fs.is_dir(hcdir))
        self.assertEqual(self.fs.list_sub_dirs(self.root), [])
        self.fs.remove_dir(hcdir)

    def test_remove_dir_on_file_fails(self):
        self.fs.mkdir(self.wdir)
        target = self.fs.copy_from_local(self.source, f"{self.wdir}/file")
        with self.assertRaises(TypeMismatchError):
            self.fs.remove_dir(target)

    def test_scan_dir(self):
        self.fs.mkdir(f"{self.wdir}/c")
        self.fs.copy_from_local(self.source, f"{self.wdir}/f")
        entries = self.fs.scan_dir(self.wdir)
        self.assertEqual([(e.name, e.is_dir, e.size) for e in entries], [("c", True, None), ("f", False, 2048)])
        self.assertEqual(self.fs.list_sub_dirs(self.wdir), ["c"])

    def test_disk_info_is_unsupported(self):
        with self.assertRaises(UnsupportedOperationError):
            self.fs.get_disk_info(self.root)
        with self.assertRaises(UnsupportedOperationError):
            self.fs.get_disk_space(self.root)

    def test_timeout(self):
        release = threading.Event()

        def slow_exists(path):
            release.wait(5)
            return True

        try:
            with mock.patch.object(self.memory, "exists", side_effect=slow_exists):
                with self.assertRaises(StorageTimeoutError) as ctx:
                    self.fs.exists(self.wdir, timeout=0.05)
        finally:
            release.set()
        self.assertIsInstance(ctx.exception, TimeoutError)
        self.assertEqual(ctx.exception.operation, "exists")

    def test_timed_out_call_does_not_delay_exit(self):
        src_dir = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "src")
        env = dict(os.environ)
        env["PYTHONPATH"] = os.pathsep.join(filter(None, [src_dir, env.get("PYTHONPATH")]))
        script = textwrap.dedent(
            """
            import time
            from unittest import mock

            import fsspec

            from FileStorage.distributed import DistributedFileSystem
            from FileStorage.errors import StorageTimeoutError

            memory = fsspec.filesystem("memory")
            fs = DistributedFileSystem(fs=memory)
            with mock.patch.object(memory, "exists", side_effect=lambda path: time.sleep(60)):
                try:
                    fs.exists("/x", timeout=0.1)
                except StorageTimeoutError as e:
                    print(f"timed out: {e}")
            """
        )

        started = time.monotonic()
        result = subprocess.run(
            [sys.executable, "-c", script], env=env, capture_output=True, text=True, timeout=50
        )
        elapsed = time.monotonic() - started

        self.assertEqual(result.returncode, 0, result.stderr)
        self.assertIn("timed out: exists timed out", result.stdout)
        self.assertLess(elapsed, 30)

    def test_connection_errors_are_network_failures(self):
        with mock.patch.object(self.memory, "isdir", side_effect=ConnectionRefusedError("refused")):
            with self.assertRaises(NetworkFailureError):
                self.fs.is_dir(self.wdir)

    def test_unexpected_client_errors_are_network_failures(self):
        self.fs.mkdir(self.wdir)
        with mock.patch.object(self.memory, "info", side_effect=KeyError("size")):
            with self.assertRaises(NetworkFailureError) as ctx:
                self.fs.get_file_size(f"{self.wdir}/file")
        self.assertIn("KeyError", str(ctx.exception))
        self.assertIsInstance(ctx.exception.__cause__, KeyError)

    def test_invalid_worker_count(self):
        with self.assertRaises(ValueError):
            DistributedFileSystem(fs=self.memory, max_workers=0)

    def test_connects_lazily_once(self):
        fs = DistributedFileSystem(protocol="webhdfs", host="namenode", timeout=5.0)
        with mock.patch("FileStorage.distributed.fsspec.filesystem", return_value=self.memory) as factory:
            fs.mkdir(self.wdir)
            self.assertTrue(fs.is_dir(self.wdir))
        factory.assert_called_once_with("webhdfs", host="namenode", port=9870, user=None)

    def test_unknown_protocol(self):
        with self.assertRaises(ValueError):
            DistributedFileSystem(protocol="ftp")


if __name__ == "__main__":
    unittest.main()
