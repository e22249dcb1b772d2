from pathlib import Path
from typing import ClassVar

from cleanshare.scrubbing.base import BaseScrubStrategy
from cleanshare.scrubbing.exceptions import ScrubExecutionError
from cleanshare.scrubbing.probe import CapabilityProbe
from cleanshare.scrubbing.runners import BaseCommandRunner
from cleanshare.tempfiles.registry import JobScratch


class Mat2Strategy(BaseScrubStrategy):
    """Deep clean with mat2, which rewrites the whole file without metadata.

    mat2 never writes in place: ``mat2 photo.jpg`` produces
    ``photo.cleaned.jpg`` next to its input.
    """

    name: ClassVar[str] = "mat2"
    VERSION_ARGV: ClassVar[list[str]] = ["mat2", "--version"]

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
        return self._probe.is_available(self.name, self.VERSION_ARGV)

    def scrub(self, source: Path, target: Path, scratch: JobScratch) -> None:
        produced = source.with_name(f"{source.stem}.cleaned{source.suffix}")
        scratch.adopt(produced)

        result = self._runner.run(["mat2", str(source)], self._timeout_seconds)
        if result.returncode != 0:
            raise ScrubExecutionError(
                f"mat2 exited with {result.returncode}: {result.stderr.strip()}"
            )
        if not produced.exists():
            raise ScrubExecutionError(f"mat2 produced no output at {produced.name}")
        produced.replace(target)
