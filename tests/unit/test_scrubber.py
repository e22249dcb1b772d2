from pathlib import Path
from typing import ClassVar
from unittest.mock import MagicMock, patch

from cleanshare.scrubbing.base import BaseScrubStrategy
from cleanshare.scrubbing.exceptions import ScrubExecutionError
from cleanshare.scrubbing.exiftool_strategy import ExifToolStrategy
from cleanshare.scrubbing.metadata_reader import (
    ChainedMetadataReader,
    ExifToolMetadataReader,
    PdfPlumberMetadataReader,
)
from cleanshare.scrubbing.probe import CapabilityProbe
from cleanshare.scrubbing.pymupdf_strategy import PyMuPdfStrategy
from cleanshare.scrubbing.runners import LocalCommandRunner
from cleanshare.scrubbing.scrubber import MetadataScrubber
from cleanshare.tempfiles.registry import JobScratch, TempResourceRegistry


class _FakeStrategy(BaseScrubStrategy):
    name: ClassVar[str] = "fake"

    def __init__(
        self,
        name: str,
        *,
        available: bool = True,
        output: bytes | None = b"clean",
        error: Exception | None = None,
        mime_types: tuple[str, ...] | None = None,
    ) -> None:
        self.name = name  # type: ignore[misc]
        self._available = available
        self._output = output
        self._error = error
        self._mime_types = mime_types
        self.sources: list[Path] = []

    def supports(self, mime_type: str) -> bool:
        return self._mime_types is None or mime_type in self._mime_types

    def is_available(self) -> bool:
        return self._available

    def scrub(self, source: Path, target: Path, scratch: JobScratch) -> None:
        self.sources.append(source)
        source.write_bytes(b"tampered")
        if self._error is not None:
            raise self._error
        if self._output is not None:
            target.write_bytes(self._output)


def _reader(original: dict | None = None, cleaned: dict | None = None) -> MagicMock:
    reader = MagicMock(spec=ChainedMetadataReader)
    reader.snapshot.side_effect = [original or {}, cleaned or {}]
    return reader


def _source(scratch: JobScratch, data: bytes = b"original-bytes") -> Path:
    handle = scratch.acquire(suffix=".jpg")
    handle.path.write_bytes(data)
    return handle.path


class TestFallbackOrder:
    def test_skips_unavailable_and_uses_next(self, tmp_path: Path) -> None:
        registry = TempResourceRegistry(tmp_path)
        first = _FakeStrategy("a", available=False)
        second = _FakeStrategy("b", output=b"cleaned-by-b")
        reader = _reader({"Author": "Jane"}, {"FileType": "JPEG"})

        with registry.job_scope("job") as scratch:
            outcome = MetadataScrubber([first, second], reader).scrub(
                _source(scratch), "image/jpeg", scratch
            )

        assert outcome.cleaned is True
        assert outcome.strategy == "b"
        assert outcome.final_bytes(b"original-bytes") == b"cleaned-by-b"
        assert outcome.original_metadata == {"Author": "Jane"}
        assert outcome.cleaned_metadata == {"FileType": "JPEG"}
        assert first.sources == []
        assert [a.strategy for a in outcome.attempts] == ["b"]

    def test_first_success_stops_the_chain(self, tmp_path: Path) -> None:
        registry = TempResourceRegistry(tmp_path)
        first = _FakeStrategy("a", output=b"from-a")
        second = _FakeStrategy("b", output=b"from-b")

        with registry.job_scope("job") as scratch:
            outcome = MetadataScrubber([first, second], _reader()).scrub(
                _source(scratch), "image/jpeg", scratch
            )

        assert outcome.strategy == "a"
        assert second.sources == []

    def test_execution_failure_falls_through(self, tmp_path: Path) -> None:
        registry = TempResourceRegistry(tmp_path)
        failing = _FakeStrategy("a", error=ScrubExecutionError("exit 1"))
        working = _FakeStrategy("b", output=b"from-b")

        with registry.job_scope("job") as scratch:
            outcome = MetadataScrubber([failing, working], _reader()).scrub(
                _source(scratch), "image/jpeg", scratch
            )

        assert outcome.strategy == "b"
        assert outcome.attempts[0].succeeded is False
        assert "exit 1" in outcome.attempts[0].error

    def test_missing_or_empty_output_falls_through(self, tmp_path: Path) -> None:
        registry = TempResourceRegistry(tmp_path)
        silent = _FakeStrategy("a", output=None)
        empty = _FakeStrategy("b", output=b"")
        working = _FakeStrategy("c", output=b"from-c")

        with registry.job_scope("job") as scratch:
            outcome = MetadataScrubber([silent, empty, working], _reader()).scrub(
                _source(scratch), "image/jpeg", scratch
            )

        assert outcome.strategy == "c"
        assert [a.succeeded for a in outcome.attempts] == [False, False, True]

    def test_unsupported_type_is_skipped(self, tmp_path: Path) -> None:
        registry = TempResourceRegistry(tmp_path)
        pdf_only = _FakeStrategy("pdf", mime_types=("application/pdf",))
        generic = _FakeStrategy("generic", output=b"x")

        with registry.job_scope("job") as scratch:
            outcome = MetadataScrubber([pdf_only, generic], _reader()).scrub(
                _source(scratch), "image/jpeg", scratch
            )

        assert outcome.strategy == "generic"
        assert pdf_only.sources == []


class TestTotalFailure:
    def test_keeps_original_bytes_bit_for_bit(self, tmp_path: Path) -> None:
        registry = TempResourceRegistry(tmp_path)
        strategies = [
            _FakeStrategy("a", available=False),
            _FakeStrategy("b", error=ScrubExecutionError("crash")),
        ]
        original = bytes(range(256)) * 4

        with registry.job_scope("job") as scratch:
            outcome = MetadataScrubber(strategies, _reader({"Make": "Canon"})).scrub(
                _source(scratch, original), "image/jpeg", scratch
            )

        assert outcome.cleaned is False
        assert outcome.strategy is None
        assert outcome.final_bytes(original) == original
        assert outcome.cleaned_metadata == {}
        assert outcome.sensitive_fields == ["Make"]

    def test_empty_chain_is_not_cleaned(self, tmp_path: Path) -> None:
        registry = TempResourceRegistry(tmp_path)

        with registry.job_scope("job") as scratch:
            outcome = MetadataScrubber([], _reader()).scrub(
                _source(scratch), "text/plain", scratch
            )

        assert outcome.cleaned is False
        assert outcome.attempts == []


class TestScratchIsolation:
    def test_strategies_never_touch_the_source(self, tmp_path: Path) -> None:
        registry = TempResourceRegistry(tmp_path)
        strategy = _FakeStrategy("a", error=ScrubExecutionError("crash"))

        with registry.job_scope("job") as scratch:
            source = _source(scratch, b"pristine")
            MetadataScrubber([strategy], _reader()).scrub(source, "image/jpeg", scratch)

            assert source.read_bytes() == b"pristine"
            assert strategy.sources[0] != source
            assert strategy.sources[0].parent == scratch.directory

    def test_intermediate_files_are_registered_to_the_job(self, tmp_path: Path) -> None:
        registry = TempResourceRegistry(tmp_path)

        with registry.job_scope("job") as scratch:
            MetadataScrubber([_FakeStrategy("a")], _reader()).scrub(
                _source(scratch), "image/jpeg", scratch
            )
            assert len(registry.handles("job")) == 3

        assert list(tmp_path.iterdir()) == []


class TestUnusableTool:
    @patch("cleanshare.scrubbing.runners.subprocess.run")
    def test_permission_denied_tool_falls_through_to_next_strategy(
        self, mock_run: MagicMock, tmp_path: Path, authored_pdf_bytes: bytes
    ) -> None:
        mock_run.side_effect = PermissionError(13, "Permission denied")
        runner = LocalCommandRunner()
        probe = CapabilityProbe(runner, timeout_seconds=3)
        scrubber = MetadataScrubber(
            [
                ExifToolStrategy(runner=runner, probe=probe, timeout_seconds=10),
                PyMuPdfStrategy(),
            ],
            ChainedMetadataReader(
                [
                    ExifToolMetadataReader(runner=runner, probe=probe, timeout_seconds=3),
                    PdfPlumberMetadataReader(),
                ]
            ),
        )
        registry = TempResourceRegistry(tmp_path)

        with registry.job_scope("job") as scratch:
            source = scratch.acquire(suffix=".pdf").path
            source.write_bytes(authored_pdf_bytes)
            outcome = scrubber.scrub(source, "application/pdf", scratch)

        assert outcome.cleaned is True
        assert outcome.strategy == "pymupdf"
        assert outcome.original_metadata["Author"] == "Jane Doe"
        assert "Author" in outcome.sensitive_fields
        assert probe.report() == {"exiftool": False}

    def test_strategy_raising_on_availability_check_is_skipped(self, tmp_path: Path) -> None:
        broken = _FakeStrategy("broken")
        broken.is_available = MagicMock(side_effect=OSError("exec format error"))  # type: ignore[method-assign]
        working = _FakeStrategy("working", output=b"clean")
        registry = TempResourceRegistry(tmp_path)

        with registry.job_scope("job") as scratch:
            outcome = MetadataScrubber([broken, working], _reader()).scrub(
                _source(scratch), "image/jpeg", scratch
            )

        assert outcome.strategy == "working"
        assert broken.sources == []
