"""
Storage constants shared by the filesystem backends, the registry and the CLI.
"""

class StorageConfig:
    """Defaults for backend selection and behavior."""

    LOCAL_BACKEND = "local"
    DISTRIBUTED_BACKEND = "hdfs"
    DEFAULT_BACKEND = LOCAL_BACKEND
    SUPPORTED_BACKENDS = [LOCAL_BACKEND, DISTRIBUTED_BACKEND]

    # URI schemes resolved by get_filesystem_for_path()
    SCHEME_ALIASES = {
        "": LOCAL_BACKEND,
        "file": LOCAL_BACKEND,
        "hdfs": DISTRIBUTED_BACKEND,
        "webhdfs": DISTRIBUTED_BACKEND,
        "viewfs": DISTRIBUTED_BACKEND,
    }

    COPY_TEMP_SUFFIX = "._COPYING_"
    """Suffix of in-flight copy artifacts; they are renamed onto the final name on success."""

    REPLACED_TEMP_SUFFIX = "._REPLACED_"
    """Suffix of a target moved aside while a copy replaces it; restored if the copy fails."""


class DistributedConfig:
    """Defaults for the distributed (HDFS) backend."""

    DEFAULT_PROTOCOL = "hdfs"
    SUPPORTED_PROTOCOLS = ["hdfs", "webhdfs"]
    DEFAULT_HOST = "default"
    DEFAULT_PORT = 8020
    DEFAULT_WEBHDFS_PORT = 9870
    DEFAULT_BASE_DIR = "/"

    DEFAULT_TIMEOUT_SECONDS = 60.0
    """Upper bound for a single remote call before StorageTimeoutError is raised."""

    DEFAULT_MAX_WORKERS = 8
    """Size of the pool remote calls run on. Bounds concurrent in-flight calls."""


class StagingConfig:
    """Defaults for staging files before an import."""

    DEFAULT_THREADS = 4
    DEFAULT_CONTINUE_ON_ERROR = False
