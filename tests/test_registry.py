"""
Unit tests for the filesystem registry.
"""

import threading
import unittest
import uuid
from concurrent.futures import ThreadPoolExecutor
from unittest import mock

from Configuration.StorageSettings import DistributedSettings, StorageSettings
from FileStorage.distributed import DistributedFileSystem
from FileStorage.local import LocalFileSystem
from FileStorage.registry import (
    get_configured_filesystem,
    get_filesystem,
    get_filesystem_for_path,
    register_filesystem,
)


class CountingFileSystem(LocalFileSystem):
    """A local filesystem that counts its constructions."""

    created = 0
    lock = threading.Lock()

    def __init__(self, label: str = "default") -> None:
        super().__init__()
        self.label = label
        with CountingFileSystem.lock:
            CountingFileSystem.created += 1


class TestRegistry(unittest.TestCase):
    """Test cases for the filesystem registry."""

    def setUp(self):
        """Isolate the instances created by each test."""
        patcher = mock.patch.dict("FileStorage.registry._FILESYSTEM_INSTANCES", {}, clear=True)
        patcher.start()
        self.addCleanup(patcher.stop)
        CountingFileSystem.created = 0

    def test_local_is_a_singleton(self):
        first = get_filesystem("local")
        self.assertIsInstance(first, LocalFileSystem)
        self.assertIs(get_filesystem("local"), first)

    def test_unknown_filesystem(self):
        with self.assertRaises(ValueError):
            get_filesystem("s3")

    def test_arguments_only_apply_on_creation(self):
        name = f"counting-{uuid.uuid4().hex}"
        register_filesystem(name, CountingFileSystem)

        first = get_filesystem(name, label="first")
        second = get_filesystem(name, label="second")
        self.assertIs(first, second)
        self.assertEqual(first.label, "first")
        self.assertEqual(CountingFileSystem.created, 1)

    def test_concurrent_lookup_creates_one_instance(self):
        name = f"counting-{uuid.uuid4().hex}"
        register_filesystem(name, CountingFileSystem)

        with ThreadPoolExecutor(max_workers=8) as pool:
            instances = list(pool.map(lambda _: get_filesystem(name), range(64)))
        self.assertEqual(len({id(fs) for fs in instances}), 1)
        self.assertEqual(CountingFileSystem.created, 1)

    def test_cannot_reregister_a_live_filesystem(self):
        name = f"counting-{uuid.uuid4().hex}"
        register_filesystem(name, CountingFileSystem)
        get_filesystem(name)
        with self.assertRaises(ValueError):
            register_filesystem(name, LocalFileSystem)

    def test_resolution_by_scheme(self):
        self.assertIsInstance(get_filesystem_for_path("/data/input.csv"), LocalFileSystem)
        self.assertIsInstance(get_filesystem_for_path("file:///data/input.csv"), LocalFileSystem)
        remote = get_filesystem_for_path("hdfs://namenode:8020/data")
        self.assertIsInstance(remote, DistributedFileSystem)
        self.assertIs(get_filesystem_for_path("webhdfs://namenode/data"), remote)
        with self.assertRaises(ValueError):
            get_filesystem_for_path("s3://bucket/key")

    def test_configured_filesystem(self):
        settings = StorageSettings(
            backend="hdfs",
            distributed=DistributedSettings(host="namenode", port=9000, user="loader", timeout=3)
        )
        fs = get_configured_filesystem(settings)
        self.assertIsInstance(fs, DistributedFileSystem)
        self.assertEqual((fs.host, fs.port, fs.user, fs.timeout), ("namenode", 9000, "loader", 3))
        self.assertIs(get_configured_filesystem(StorageSettings()), get_filesystem("local"))


if __name__ == "__main__":
    unittest.main()
