"""
Distributed (HDFS) filesystem implementation.

This module provides a filesystem implementation for a remote cluster store.
The cluster is reached through fsspec: the "hdfs" protocol goes through
pyarrow's libhdfs binding, the "webhdfs" protocol through the REST gateway.
Every remote call is bounded by a timeout.
"""

import logging
import os
import posixpath
import threading
import uuid
from concurrent.futures import Future
from concurrent.futures import TimeoutError as FuturesTimeoutError
from typing import Any, Callable, Dict, List, Optional, Tuple

import fsspec
from fsspec import AbstractFileSystem
from fsspec.implementations.arrow import ArrowFSWrapper
from pyarrow import fs as pa_fs

from Configuration.StorageConfig import DistributedConfig, StorageConfig
from FileStorage.base import DirEntry, FileSystem
from FileStorage.errors import (
    NetworkFailureError,
    PathNotFoundError,
    StorageError,
    StorageTimeoutError,
    TypeMismatchError,
    translate_os_error,
)
from FileStorage.paths import DISTRIBUTED_RULES, StoragePath, join_path, normalize_path


class DistributedFileSystem(FileSystem):
    """
    Implementation of FileSystem for an HDFS-like cluster.

    Paths are "/"-separated and rooted at the cluster root; URI schemes are
    stripped and relative paths are resolved against base_dir. The
    connection is opened on the first call and reused afterwards.

    Copies write to "<target>.<token>._COPYING_" and rename onto the target
    once complete. A call that times out keeps running in the background; if
    it later succeeds the target appears, so a caller retrying after a
    timeout must tolerate the copy having landed.
    """

    PATH_SEPARATOR = "/"
    path_rules = DISTRIBUTED_RULES

    def __init__(
        self,
        protocol: str = DistributedConfig.DEFAULT_PROTOCOL,
        host: str = DistributedConfig.DEFAULT_HOST,
        port: Optional[int] = None,
        user: Optional[str] = None,
        base_dir: str = DistributedConfig.DEFAULT_BASE_DIR,
        timeout: float = DistributedConfig.DEFAULT_TIMEOUT_SECONDS,
        max_workers: int = DistributedConfig.DEFAULT_MAX_WORKERS,
        fs: Optional[AbstractFileSystem] = None,
        **storage_options: Any,
    ) -> None:
        """
        Initialize the distributed file system.

        Args:
            protocol: "hdfs" (libhdfs through pyarrow) or "webhdfs"
            host: Name node host, or "default" to use the Hadoop configuration
            port: Name node port (defaults depend on the protocol)
            user: User to act as on the cluster
            base_dir: Directory relative paths are resolved against
            timeout: Default upper bound in seconds for each call
            max_workers: Number of remote calls that may be in flight at once
            fs: An already connected fsspec filesystem to use instead
            **storage_options: Extra options for the underlying client
        """
        if fs is None and protocol not in DistributedConfig.SUPPORTED_PROTOCOLS:
            raise ValueError(f"Unsupported distributed protocol: {protocol}")
        if max_workers < 1:
            raise ValueError(f"max_workers must be at least 1, got {max_workers}")

        self.logger = logging.getLogger(__name__)
        self.protocol = protocol
        self.host = host
        self.port = port
        self.user = user
        self.base_dir = base_dir
        self.timeout = timeout
        self.storage_options = storage_options

        self._fs = fs
        self._connect_lock = threading.Lock()
        self._slots = threading.BoundedSemaphore(max_workers)

    def normalize_path(self, path: str) -> StoragePath:
        return normalize_path(path, DISTRIBUTED_RULES, base=self.base_dir)

    def _path(self, path: str) -> str:
        return str(self.normalize_path(path))

    def _client(self) -> AbstractFileSystem:
        if self._fs is None:
            with self._connect_lock:
                if self._fs is None:
                    self._fs = self._connect()
        return self._fs

    def _connect(self) -> AbstractFileSystem:
        if self.protocol == "hdfs":
            port = self.port if self.port is not None else DistributedConfig.DEFAULT_PORT
            self.logger.info(f"Connecting to hdfs://{self.host}:{port} as {self.user or 'default user'}")
            client = pa_fs.HadoopFileSystem(self.host, port=port, user=self.user, **self.storage_options)
            return ArrowFSWrapper(client)

        port = self.port if self.port is not None else DistributedConfig.DEFAULT_WEBHDFS_PORT
        self.logger.info(f"Connecting to webhdfs://{self.host}:{port} as {self.user or 'default user'}")
        return fsspec.filesystem("webhdfs", host=self.host, port=port, user=self.user, **self.storage_options)

    def _call(self, operation: str, path: str, func: Callable[[AbstractFileSystem], Any],
              timeout: Optional[float] = None) -> Any:
        """
        Run func against the cluster client on a worker thread and wait for it.

        Workers are daemon threads, so a call abandoned after a timeout never
        holds up interpreter exit. At most max_workers calls run at once;
        time spent waiting for a free slot counts against the timeout.

        Raises:
            StorageTimeoutError: If func does not finish within the timeout
            StorageError: Translated from any error raised by func
        """
        timeout = self.timeout if timeout is None else timeout
        self.logger.debug(f"{operation}: {path}")
        future: Future = Future()

        def _run() -> None:
            with self._slots:
                if not future.set_running_or_notify_cancel():
                    return
                try:
                    future.set_result(func(self._client()))
                except Exception as e:
                    future.set_exception(e)

        threading.Thread(target=_run, name=f"dfs-{operation}", daemon=True).start()
        try:
            return future.result(timeout=timeout)
        except FuturesTimeoutError as e:
            future.cancel()
            raise StorageTimeoutError(
                f"{operation} timed out after {timeout}s for '{path}'", operation, path
            ) from e
        except StorageError:
            raise
        except OSError as e:
            raise translate_os_error(e, operation, path, fallback=NetworkFailureError) from e
        except Exception as e:
            raise NetworkFailureError(
                f"{operation} failed for '{path}': {type(e).__name__}: {e}", operation, path
            ) from e

    def exists(self, path: str, timeout: Optional[float] = None) -> bool:
        p = self._path(path)
        return self._call("exists", p, lambda fs: fs.exists(p), timeout)

    def is_dir(self, path: str, timeout: Optional[float] = None) -> bool:
        p = self._path(path)
        return self._call("is_dir", p, lambda fs: fs.isdir(p), timeout)

    def mkdir(self, path: str, timeout: Optional[float] = None) -> None:
        p = self._path(path)

        def _mkdir(fs: AbstractFileSystem) -> None:
            # Some clients treat an existing file as success under exist_ok
            if fs.isfile(p):
                raise TypeMismatchError(f"mkdir failed for '{p}': a file exists at this path", "mkdir", p)
            try:
                fs.makedirs(p, exist_ok=True)
            except FileExistsError:
                if not fs.isdir(p):
                    raise

        self._call("mkdir", p, _mkdir, timeout)

    def remove_dir(self, path: str, timeout: Optional[float] = None) -> None:
        p = self._path(path)
        if p == "/":
            raise TypeMismatchError("remove_dir refuses to remove the cluster root", "remove_dir", p)

        def _remove_dir(fs: AbstractFileSystem) -> None:
            if not fs.exists(p):
                self.logger.debug(f"Directory already absent: {p}")
                return
            if not fs.isdir(p):
                raise TypeMismatchError(f"remove_dir failed for '{p}': not a directory", "remove_dir", p)
            try:
                fs.rm(p, recursive=True)
            except FileNotFoundError:
                if fs.exists(p):
                    raise

        self._call("remove_dir", p, _remove_dir, timeout)

    def remove(self, path: str, timeout: Optional[float] = None) -> None:
        p = self._path(path)

        def _remove(fs: AbstractFileSystem) -> None:
            if fs.isdir(p):
                raise TypeMismatchError(f"remove failed for '{p}': is a directory", "remove", p)
            try:
                fs.rm_file(p)
            except FileNotFoundError:
                self.logger.debug(f"File already absent: {p}")

        self._call("remove", p, _remove, timeout)

    def copy_from_local(self, local_src: str, dst: str, timeout: Optional[float] = None) -> str:
        operation = "copy_from_local"
        if not os.path.exists(local_src):
            raise PathNotFoundError(f"{operation} failed: source '{local_src}' does not exist", operation, local_src)
        if os.path.isdir(local_src):
            raise TypeMismatchError(f"{operation} failed: source '{local_src}' is a directory", operation, local_src)
        p = self._path(dst)
        name = os.path.basename(os.path.normpath(local_src))

        def _upload(fs: AbstractFileSystem) -> str:
            target = self._resolve_target(fs, p, name, operation)
            token = uuid.uuid4().hex
            temp_path = f"{target}.{token}{StorageConfig.COPY_TEMP_SUFFIX}"
            try:
                fs.put_file(local_src, temp_path)
            except Exception:
                self._discard_remote(fs, temp_path)
                raise

            # HDFS renames never overwrite, so an existing target is moved
            # aside and put back if the final rename fails
            replaced = None
            try:
                if fs.isfile(target):
                    replaced = f"{target}.{token}{StorageConfig.REPLACED_TEMP_SUFFIX}"
                    fs.mv(target, replaced)
                fs.mv(temp_path, target)
            except Exception:
                if replaced is not None:
                    self._restore_remote(fs, replaced, target)
                self._discard_remote(fs, temp_path)
                raise
            if replaced is not None:
                self._discard_remote(fs, replaced)
            return target

        return self._call(operation, p, _upload, timeout)

    def copy_to_local(self, src: str, local_dst: str, timeout: Optional[float] = None) -> str:
        operation = "copy_to_local"
        p = self._path(src)

        target = local_dst
        if os.path.isdir(local_dst):
            target = os.path.join(local_dst, posixpath.basename(p))
            if os.path.isdir(target):
                raise TypeMismatchError(f"{operation} failed: target '{target}' is a directory", operation, target)
        parent = os.path.dirname(target) or os.curdir
        if not os.path.isdir(parent):
            raise PathNotFoundError(
                f"{operation} failed: destination directory '{parent}' does not exist", operation, target
            )

        def _download(fs: AbstractFileSystem) -> str:
            info = fs.info(p)
            if info["type"] == "directory":
                raise TypeMismatchError(f"{operation} failed: source '{p}' is a directory", operation, p)
            temp_path = f"{target}.{uuid.uuid4().hex}{StorageConfig.COPY_TEMP_SUFFIX}"
            try:
                fs.get_file(p, temp_path)
                os.replace(temp_path, target)
            except Exception:
                self._discard_local(temp_path)
                raise
            return target

        return self._call(operation, p, _download, timeout)

    def _resolve_target(self, fs: AbstractFileSystem, dst: str, name: str, operation: str) -> str:
        target = dst
        if fs.isdir(dst):
            target = join_path(dst, name, rules=DISTRIBUTED_RULES)
            if fs.isdir(target):
                raise TypeMismatchError(f"{operation} failed: target '{target}' is a directory", operation, target)
        parent = posixpath.dirname(target)
        if not fs.isdir(parent):
            raise PathNotFoundError(
                f"{operation} failed: destination directory '{parent}' does not exist", operation, target
            )
        return target

    def _discard_remote(self, fs: AbstractFileSystem, temp_path: str) -> None:
        try:
            if fs.exists(temp_path):
                fs.rm_file(temp_path)
        except OSError as e:
            self.logger.warning(f"Could not remove temporary copy {temp_path}: {e}")

    def _restore_remote(self, fs: AbstractFileSystem, replaced: str, target: str) -> None:
        try:
            if fs.exists(replaced) and not fs.exists(target):
                fs.mv(replaced, target)
        except OSError as e:
            self.logger.error(f"Could not restore {target} from {replaced}: {e}")

    def _discard_local(self, temp_path: str) -> None:
        try:
            os.remove(temp_path)
        except FileNotFoundError:
            pass
        except OSError as e:
            self.logger.warning(f"Could not remove temporary copy {temp_path}: {e}")

    def get_file_size(self, path: str, timeout: Optional[float] = None) -> int:
        p = self._path(path)

        def _size(fs: AbstractFileSystem) -> int:
            info = fs.info(p)
            if info["type"] == "directory":
                raise TypeMismatchError(f"get_file_size failed for '{p}': is a directory", "get_file_size", p)
            return int(info["size"])

        return self._call("get_file_size", p, _size, timeout)

    def list_files_with_sizes(self, path: str, recursive: bool = False,
                              timeout: Optional[float] = None) -> Tuple[List[str], List[int]]:
        p = self._path(path)

        def _find(fs: AbstractFileSystem) -> Dict[str, Dict[str, Any]]:
            self._require_dir(fs, p, "list_files")
            return fs.find(p, maxdepth=None if recursive else 1, detail=True)

        found = self._call("list_files", p, _find, timeout)

        files: List[str] = []
        sizes: List[int] = []
        for name, info in found.items():
            relative = posixpath.relpath(self._path(name), p)
            files.append(join_path(p, relative, rules=DISTRIBUTED_RULES))
            sizes.append(int(info.get("size") or 0))

        self.logger.debug(f"Found {len(files)} files under {p}")
        return files, sizes

    def scan_dir(self, path: str, timeout: Optional[float] = None) -> List[DirEntry]:
        p = self._path(path)

        def _ls(fs: AbstractFileSystem) -> List[Dict[str, Any]]:
            self._require_dir(fs, p, "scan_dir")
            return fs.ls(p, detail=True)

        entries: List[DirEntry] = []
        for info in self._call("scan_dir", p, _ls, timeout):
            child = self.normalize_path(info["name"])
            if str(child) == p:
                continue
            if info["type"] == "directory":
                entries.append(DirEntry(name=child.name, is_dir=True))
            else:
                entries.append(DirEntry(name=child.name, is_dir=False, size=int(info.get("size") or 0)))
        return sorted(entries, key=lambda entry: entry.name)

    @staticmethod
    def _require_dir(fs: AbstractFileSystem, path: str, operation: str) -> None:
        if not fs.exists(path):
            raise PathNotFoundError(f"{operation} failed: '{path}' does not exist", operation, path)
        if not fs.isdir(path):
            raise TypeMismatchError(f"{operation} failed: '{path}' is not a directory", operation, path)
