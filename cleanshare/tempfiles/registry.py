"""Job-scoped scratch file tracking.

Every scratch path created while processing an upload is registered under the
owning job's identifier. Each job gets its own directory below the registry
root, and releasing a job only ever touches the paths registered to it, so
concurrent jobs cannot delete each other's files.
"""

import os
import shutil
import tempfile
import threading
from collections.abc import Generator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path

from cleanshare.logging.logger import Log


@dataclass
class TempFileHandle:
    """A scratch path owned by exactly one job."""

    job_id: str
    path: Path
    released: bool = False

    def release(self) -> None:
        """Delete the file if it still exists. Safe to call repeatedly."""
        if self.released:
            return
        try:
            self.path.unlink(missing_ok=True)
        except OSError as exc:
            Log.warning(f"Could not delete scratch file {self.path}: {exc}")
            return
        self.released = True


class JobScratch:
    """Registry view bound to a single job, handed to pipeline steps."""

    def __init__(self, registry: "TempResourceRegistry", job_id: str) -> None:
        self._registry = registry
        self.job_id = job_id

    @property
    def directory(self) -> Path:
        return self._registry.job_directory(self.job_id)

    def acquire(self, suffix: str = "") -> TempFileHandle:
        return self._registry.acquire(self.job_id, suffix=suffix)

    def adopt(self, path: Path) -> TempFileHandle:
        return self._registry.adopt(self.job_id, path)


class TempResourceRegistry:
    """Tracks scratch files per job and guarantees their release."""

    def __init__(self, root: Path | None = None) -> None:
        self._root = root if root is not None else Path(tempfile.gettempdir()) / "cleanshare"
        self._handles: dict[str, list[TempFileHandle]] = {}
        self._directories: dict[str, Path] = {}
        self._lock = threading.Lock()

    @property
    def root(self) -> Path:
        return self._root

    def job_directory(self, job_id: str) -> Path:
        """Return (creating on first use) the private scratch directory of a job."""
        with self._lock:
            directory = self._directories.get(job_id)
            if directory is None:
                self._root.mkdir(parents=True, exist_ok=True)
                directory = Path(tempfile.mkdtemp(prefix=f"{job_id}-", dir=self._root))
                self._directories[job_id] = directory
            return directory

    def acquire(self, job_id: str, suffix: str = "") -> TempFileHandle:
        """Create an empty scratch file registered to *job_id*."""
        directory = self.job_directory(job_id)
        fd, name = tempfile.mkstemp(suffix=suffix, dir=directory)
        os.close(fd)
        return self._register(job_id, Path(name))

    def adopt(self, job_id: str, path: Path) -> TempFileHandle:
        """Register a path that an external tool will create for *job_id*."""
        return self._register(job_id, path)

    def handles(self, job_id: str) -> list[TempFileHandle]:
        with self._lock:
            return list(self._handles.get(job_id, []))

    def release_all(self, job_id: str) -> None:
        """Delete every scratch file of *job_id* and its directory.

        Idempotent. Paths registered to other jobs are never touched.
        """
        with self._lock:
            handles = self._handles.pop(job_id, [])
            directory = self._directories.pop(job_id, None)

        for handle in handles:
            handle.release()
        if directory is not None:
            shutil.rmtree(directory, ignore_errors=True)
        if handles:
            Log.debug(f"Released {len(handles)} scratch files for job {job_id}")

    @contextmanager
    def job_scope(self, job_id: str) -> Generator[JobScratch, None, None]:
        """Yield a job-bound view; release everything on exit, however it happens."""
        try:
            yield JobScratch(self, job_id)
        finally:
            self.release_all(job_id)

    def _register(self, job_id: str, path: Path) -> TempFileHandle:
        handle = TempFileHandle(job_id=job_id, path=path)
        with self._lock:
            self._handles.setdefault(job_id, []).append(handle)
        return handle
