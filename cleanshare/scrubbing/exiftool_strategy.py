import shutil
from pathlib import Path
from typing import ClassVar

from cleanshare.scrubbing.base import BaseScrubStrategy
from cleanshare.scrubbing.exceptions import ScrubExecutionError
from cleanshare.scrubbing.probe import CapabilityProbe
from cleanshare.scrubbing.runners import BaseCommandRunner
from cleanshare.tempfiles.registry import JobScratch

EXIFTOOL_VERSION_ARGV = ["exiftool", "-ver"]


class ExifToolStrategy(BaseScrubStrategy):
    """Strip every writable tag with ``exiftool -all=`` on a copy of the input."""

    name: ClassVar[str] = "exiftool"

    def __init__(
        self,
        *,
        runner: BaseCommandRunner,
        probe: CapabilityProbe,
        timeout_seconds: float,
    ) -> None:
        self._runner = runner
        self._probe = probe
        self._timeout_seconds = timeout_seconds

    def is_available(self) -> bool:
        return self._probe.is_available(self.name, EXIFTOOL_VERSION_ARGV)

    def scrub(self, source: Path, target: Path, scratch: JobScratch) -> None:
        _ = scratch  # exiftool's own temp file lives beside target, in the job directory
        shutil.copyfile(source, target)
        result = self._runner.run(
            ["exiftool", "-all=", "-overwrite_original", str(target)],
            self._timeout_seconds,
        )
        if result.returncode != 0:
            detail = result.stderr.strip() or result.stdout.strip()
            raise ScrubExecutionError(f"exiftool exited with {result.returncode}: {detail}")
