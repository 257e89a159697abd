"""
Staging of local source files onto a storage backend.

Import jobs copy their input files into a backend directory before parsing
them. This module runs those copies on a pool of worker threads sharing one
backend handle.
"""

import logging
import os
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Dict, List, Optional, Sequence

from pydantic import BaseModel, Field

from Configuration.StorageConfig import StagingConfig
from FileStorage.base import FileSystem
from FileStorage.errors import StorageError


class StagingFailure(BaseModel):
    """A source file that could not be staged."""
    source: str
    error: str


class StagingResult(BaseModel):
    """Outcome of one staging run, in the order the sources were given."""
    copied: List[str] = Field(default_factory=list, description="Backend paths of the staged files.")
    bytes_copied: int = 0
    failures: List[StagingFailure] = Field(default_factory=list)
    skipped: List[str] = Field(
        default_factory=list,
        description="Sources not attempted because an earlier failure aborted the run.",
    )

    @property
    def succeeded(self) -> bool:
        return not self.failures and not self.skipped


class FileStager:
    """
    Copies local files into a backend directory with several workers.

    Each source lands under its own base name, so the sources of one run must
    have distinct base names. Without continue_on_error the first failure
    stops any copy that has not started yet. Failed copies are not retried.
    """

    def __init__(
        self,
        fs: FileSystem,
        threads: int = StagingConfig.DEFAULT_THREADS,
        continue_on_error: bool = StagingConfig.DEFAULT_CONTINUE_ON_ERROR,
    ) -> None:
        if threads < 1:
            raise ValueError(f"threads must be at least 1, got {threads}")
        self.fs = fs
        self.threads = threads
        self.continue_on_error = continue_on_error
        self.logger = logging.getLogger(__name__)

    def stage_files(self, sources: Sequence[str], dest_dir: str) -> StagingResult:
        """
        Copy every source file into dest_dir, creating dest_dir if needed.

        Args:
            sources: Local files to copy
            dest_dir: The backend directory to copy into

        Returns:
            A StagingResult describing what was copied, what failed and what
            was skipped

        Raises:
            ValueError: If two sources share a base name
        """
        names: Dict[str, str] = {}
        for source in sources:
            name = os.path.basename(os.path.normpath(source))
            if name in names:
                raise ValueError(f"Sources {names[name]} and {source} would both be staged as {name}")
            names[name] = source

        self.logger.info(f"Staging {len(sources)} files into {dest_dir} with {self.threads} threads")
        self.fs.mkdir(dest_dir)

        abort = threading.Event()
        copied: Dict[str, str] = {}
        sizes: Dict[str, int] = {}
        failures: Dict[str, str] = {}
        skipped: List[str] = []

        def _stage(source: str) -> Optional[str]:
            if abort.is_set():
                return None
            try:
                return self.fs.copy_from_local(source, dest_dir)
            except StorageError:
                # Stop copies that have not started yet
                if not self.continue_on_error:
                    abort.set()
                raise

        with ThreadPoolExecutor(max_workers=self.threads, thread_name_prefix="stager") as pool:
            futures = {pool.submit(_stage, source): source for source in sources}
            for future in as_completed(futures):
                source = futures[future]
                try:
                    target = future.result()
                except StorageError as e:
                    self.logger.error(f"Failed to stage {source}: {e}")
                    failures[source] = str(e)
                    continue

                if target is None:
                    skipped.append(source)
                    continue
                copied[source] = target
                sizes[source] = os.path.getsize(source)
                self.logger.debug(f"Staged {source} as {target}")

        result = StagingResult(
            copied=[copied[s] for s in sources if s in copied],
            bytes_copied=sum(sizes.values()),
            failures=[StagingFailure(source=s, error=failures[s]) for s in sources if s in failures],
            skipped=[s for s in sources if s in skipped],
        )
        if result.succeeded:
            self.logger.info(f"Staged {len(result.copied)} files ({result.bytes_copied} bytes)")
        else:
            self.logger.warning(
                f"Staging incomplete: {len(result.copied)} copied, "
                f"{len(result.failures)} failed, {len(result.skipped)} skipped"
            )
        return result
