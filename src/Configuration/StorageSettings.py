"""
Storage settings model and its YAML loader.

A settings file looks like:

    storage:
      backend: hdfs
      threads: 8
      continue_on_error: true
      distributed:
        protocol: hdfs
        host: namenode.example
        port: 8020
        user: loader
        timeout: 30
"""

import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from Configuration.StorageConfig import DistributedConfig, StagingConfig, StorageConfig

logger = logging.getLogger(__name__)


class DistributedSettings(BaseModel):
    """Connection settings for the distributed backend."""
    protocol: str = Field(DistributedConfig.DEFAULT_PROTOCOL, description="Client protocol: hdfs or webhdfs.")
    host: str = Field(DistributedConfig.DEFAULT_HOST, description="Name node host.")
    port: Optional[int] = Field(None, description="Name node port; protocol default when unset.")
    user: Optional[str] = Field(None, description="User to act as on the cluster.")
    base_dir: str = Field(DistributedConfig.DEFAULT_BASE_DIR, description="Directory relative paths resolve against.")
    timeout: float = Field(DistributedConfig.DEFAULT_TIMEOUT_SECONDS, gt=0, description="Per-call timeout in seconds.")
    max_workers: int = Field(DistributedConfig.DEFAULT_MAX_WORKERS, ge=1)
    options: Dict[str, Any] = Field(default_factory=dict, description="Extra client options.")

    @field_validator("protocol")
    @classmethod
    def check_protocol(cls, value: str) -> str:
        if value not in DistributedConfig.SUPPORTED_PROTOCOLS:
            raise ValueError(f"protocol must be one of {DistributedConfig.SUPPORTED_PROTOCOLS}, got '{value}'")
        return value

    def client_options(self) -> Dict[str, Any]:
        """Keyword arguments for DistributedFileSystem."""
        return {
            "protocol": self.protocol,
            "host": self.host,
            "port": self.port,
            "user": self.user,
            "base_dir": self.base_dir,
            "timeout": self.timeout,
            "max_workers": self.max_workers,
            **self.options,
        }


class StorageSettings(BaseModel):
    """Backend selection plus the settings of the callers staging files."""
    backend: str = Field(StorageConfig.DEFAULT_BACKEND, description="Backend name: local or hdfs.")
    threads: int = Field(StagingConfig.DEFAULT_THREADS, ge=1, description="Concurrent staging workers.")
    continue_on_error: bool = Field(
        StagingConfig.DEFAULT_CONTINUE_ON_ERROR,
        description="Keep staging the remaining files after a failed copy.",
    )
    distributed: DistributedSettings = Field(default_factory=DistributedSettings)

    @field_validator("backend")
    @classmethod
    def check_backend(cls, value: str) -> str:
        value = value.lower()
        if value not in StorageConfig.SUPPORTED_BACKENDS:
            raise ValueError(f"backend must be one of {StorageConfig.SUPPORTED_BACKENDS}, got '{value}'")
        return value


def load_storage_settings(file_path: Union[str, Path]) -> StorageSettings:
    """
    Load storage settings from a YAML file.

    Args:
        file_path: The YAML file; its settings may sit under a "storage" key

    Returns:
        The parsed settings, or the defaults when the file does not exist

    Raises:
        ValueError: If the file is not valid YAML or fails validation
    """
    try:
        with open(file_path, 'r', encoding='utf-8') as f:
            root = yaml.safe_load(f)
    except FileNotFoundError:
        logger.warning(f"Storage settings file not found: {file_path}. Using defaults.")
        return StorageSettings()
    except yaml.YAMLError as e:
        logger.error(f"Error parsing YAML file {file_path}: {e}")
        raise ValueError(f"Invalid YAML in {file_path}: {e}") from e

    if root is None:
        root = {}
    if not isinstance(root, dict):
        raise ValueError(f"Storage settings in {file_path} must be a mapping, got {type(root).__name__}")

    data = root.get("storage", root)
    try:
        settings = StorageSettings.model_validate(data)
    except ValidationError as e:
        logger.error(f"Invalid storage settings in {file_path}: {e}")
        raise ValueError(f"Invalid storage settings in {file_path}: {e}") from e

    logger.info(f"Loaded storage settings from {file_path}: backend={settings.backend}")
    return settings
