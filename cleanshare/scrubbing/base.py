from abc import ABC, abstractmethod
from pathlib import Path
from typing import ClassVar

from cleanshare.tempfiles.registry import JobScratch


class BaseScrubStrategy(ABC):
    """Contract for all metadata-scrubbing strategies."""

    name: ClassVar[str]

    def supports(self, mime_type: str) -> bool:
        """Whether this strategy handles *mime_type*. Defaults to every type."""
        _ = mime_type
        return True

    @abstractmethod
    def is_available(self) -> bool:
        """Fast capability check, cached per process where the tool is external."""

    @abstractmethod
    def scrub(self, source: Path, target: Path, scratch: JobScratch) -> None:
        """Write a metadata-free copy of *source* to *target*.

        Args:
            source: Job-private scratch copy of the upload. May be modified.
            target: Path the cleaned file must be written to.
            scratch: Job scratch view for registering any extra files the
                     tool creates.

        Raises:
            ScrubExecutionError: if the tool fails or produces no output.
            ToolUnavailableError: if the tool disappeared since the probe.
        """
