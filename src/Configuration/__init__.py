"""
Initializes the Configuration package.

This module provides centralized access to the storage constants and the
settings model used to select and configure a backend.
"""

from .StorageConfig import StorageConfig, DistributedConfig, StagingConfig
from .StorageSettings import StorageSettings, DistributedSettings, load_storage_settings

__all__ = [
    # Constants
    "StorageConfig",
    "DistributedConfig",
    "StagingConfig",

    # Settings
    "StorageSettings",
    "DistributedSettings",
    "load_storage_settings",
]
