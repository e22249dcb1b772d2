"""Ordered fallback chain of metadata-scrubbing strategies.

Strategies are tried in priority order until one produces a readable file.
Each runs against its own scratch copy of the upload, so a tool that edits in
place or crashes half way never touches the caller's input. A strategy that
is unavailable, fails, times out or produces nothing is logged and skipped;
only when the whole chain is exhausted does the outcome report
``cleaned = False``.
"""

import shutil
from pathlib import Path

from cleanshare.logging.logger import Log
from cleanshare.scrubbing.base import BaseScrubStrategy
from cleanshare.scrubbing.exceptions import ScrubError, ScrubExecutionError
from cleanshare.scrubbing.metadata_reader import ChainedMetadataReader
from cleanshare.scrubbing.models import ScrubAttempt, ScrubOutcome
from cleanshare.tempfiles.registry import JobScratch


class MetadataScrubber:
    """Applies the configured strategy chain to one file."""

    def __init__(
        self,
        strategies: list[BaseScrubStrategy],
        metadata_reader: ChainedMetadataReader,
    ) -> None:
        self._strategies = strategies
        self._metadata_reader = metadata_reader

    @property
    def strategies(self) -> list[BaseScrubStrategy]:
        return list(self._strategies)

    def scrub(self, source: Path, mime_type: str, scratch: JobScratch) -> ScrubOutcome:
        """Run the fallback chain against *source*.

        Args:
            source: Scratch copy of the upload. Never modified.
            mime_type: Declared MIME type, used to skip strategies that
                       cannot handle the file.
            scratch: Job-bound registry view; every intermediate file is
                     registered there.

        Returns:
            ScrubOutcome with the original metadata snapshot and, if any
            strategy succeeded, the accepted attempt.
        """
        original_metadata = self._metadata_reader.snapshot(source, mime_type)
        Log.info(f"Read {len(original_metadata)} metadata fields from {source.name}")

        attempts: list[ScrubAttempt] = []
        for strategy in self._strategies:
            if not strategy.supports(mime_type):
                Log.debug(f"Strategy {strategy.name} does not handle {mime_type}")
                continue
            if not self._is_available(strategy):
                Log.warning(f"Strategy {strategy.name} unavailable, trying next")
                continue

            attempt = self._attempt(strategy, source, mime_type, scratch)
            attempts.append(attempt)
            if attempt.succeeded:
                Log.info(f"Metadata removed with {strategy.name}")
                return ScrubOutcome(
                    original_metadata=original_metadata,
                    attempts=attempts,
                    accepted=attempt,
                )

        Log.warning(
            f"No scrub strategy succeeded for job {scratch.job_id}; "
            "keeping the original bytes"
        )
        return ScrubOutcome(original_metadata=original_metadata, attempts=attempts)

    def _attempt(
        self,
        strategy: BaseScrubStrategy,
        source: Path,
        mime_type: str,
        scratch: JobScratch,
    ) -> ScrubAttempt:
        work_copy = scratch.acquire(suffix=source.suffix)
        output = scratch.acquire(suffix=source.suffix)
        try:
            shutil.copyfile(source, work_copy.path)
            # The strategy must create the output itself.
            output.path.unlink(missing_ok=True)
            strategy.scrub(work_copy.path, output.path, scratch)
            data = self._read_output(output.path, source)
        except (ScrubError, OSError) as exc:
            Log.warning(f"Strategy {strategy.name} failed: {exc}")
            return ScrubAttempt(strategy=strategy.name, succeeded=False, error=str(exc))

        return ScrubAttempt(
            strategy=strategy.name,
            succeeded=True,
            data=data,
            metadata=self._metadata_reader.snapshot(output.path, mime_type),
        )

    @staticmethod
    def _is_available(strategy: BaseScrubStrategy) -> bool:
        try:
            return strategy.is_available()
        except (ScrubError, OSError) as exc:
            Log.warning(f"Strategy {strategy.name} availability check failed: {exc}")
            return False

    @staticmethod
    def _read_output(output: Path, source: Path) -> bytes:
        if not output.exists():
            raise ScrubExecutionError("strategy produced no output file")
        data = output.read_bytes()
        if not data and source.stat().st_size > 0:
            raise ScrubExecutionError("strategy produced an empty output file")
        return data
