"""
Filesystem registry.

This module provides a registry for filesystem implementations. The registry
owns one instance per registered name: it is created on first lookup and
returned to every later caller until the process exits.
"""

import logging
import re
import threading
from typing import Dict, Type

from Configuration.StorageConfig import StorageConfig
from Configuration.StorageSettings import StorageSettings
from FileStorage.base import FileSystem
from FileStorage.distributed import DistributedFileSystem
from FileStorage.local import LocalFileSystem

# Registry of filesystem implementations
_FILESYSTEM_REGISTRY: Dict[str, Type[FileSystem]] = {}
_FILESYSTEM_INSTANCES: Dict[str, FileSystem] = {}
_REGISTRY_LOCK = threading.Lock()
_SCHEME_RE = re.compile(r"^([A-Za-z][A-Za-z0-9+.\-]*)://")
logger = logging.getLogger(__name__)


def register_filesystem(name: str, fs_class: Type[FileSystem]) -> None:
    """
    Register a filesystem implementation.

    Args:
        name: The name of the filesystem implementation
        fs_class: The filesystem implementation class

    Raises:
        ValueError: If an instance was already created under this name
    """
    logger.debug(f"Registering filesystem: {name}")
    with _REGISTRY_LOCK:
        if name in _FILESYSTEM_INSTANCES:
            raise ValueError(f"Filesystem already in use, cannot re-register: {name}")
        _FILESYSTEM_REGISTRY[name] = fs_class


def get_filesystem(name: str, **kwargs) -> FileSystem:
    """
    Get the filesystem instance registered under a name.

    The first call creates the instance with the given keyword arguments;
    later calls return that same instance and ignore their arguments.

    Args:
        name: The name of the filesystem implementation
        **kwargs: Additional arguments to pass to the filesystem constructor

    Returns:
        The shared instance of the requested filesystem implementation

    Raises:
        ValueError: If the requested filesystem implementation is not registered
    """
    with _REGISTRY_LOCK:
        instance = _FILESYSTEM_INSTANCES.get(name)
        if instance is not None:
            if kwargs:
                logger.debug(f"Filesystem {name} already created, ignoring arguments: {sorted(kwargs)}")
            return instance

        if name not in _FILESYSTEM_REGISTRY:
            raise ValueError(f"Filesystem not registered: {name}")

        logger.info(f"Creating filesystem: {name}")
        instance = _FILESYSTEM_REGISTRY[name](**kwargs)
        _FILESYSTEM_INSTANCES[name] = instance
        return instance


def get_filesystem_for_path(path: str, **kwargs) -> FileSystem:
    """
    Get the filesystem instance responsible for a path, chosen by URI scheme.

    Paths without a scheme belong to the local filesystem.
    """
    match = _SCHEME_RE.match(path)
    scheme = match.group(1).lower() if match else ""
    if scheme not in StorageConfig.SCHEME_ALIASES:
        raise ValueError(f"No filesystem registered for scheme: {scheme}")
    return get_filesystem(StorageConfig.SCHEME_ALIASES[scheme], **kwargs)


def get_configured_filesystem(settings: StorageSettings) -> FileSystem:
    """Get the filesystem instance selected by the storage settings."""
    if settings.backend == StorageConfig.DISTRIBUTED_BACKEND:
        return get_filesystem(settings.backend, **settings.distributed.client_options())
    return get_filesystem(settings.backend)


# Register built-in filesystem implementations
register_filesystem(StorageConfig.LOCAL_BACKEND, LocalFileSystem)
register_filesystem(StorageConfig.DISTRIBUTED_BACKEND, DistributedFileSystem)
