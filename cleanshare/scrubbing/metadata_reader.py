import json
from abc import ABC, abstractmethod
from pathlib import Path
from typing import ClassVar

import pdfplumber

from cleanshare.logging.logger import Log
from cleanshare.scrubbing.exceptions import MetadataReadError, ScrubError, ToolUnavailableError
from cleanshare.scrubbing.exiftool_strategy import EXIFTOOL_VERSION_ARGV
from cleanshare.scrubbing.models import MetadataSnapshot, to_metadata_value
from cleanshare.scrubbing.probe import CapabilityProbe
from cleanshare.scrubbing.runners import BaseCommandRunner


class BaseMetadataReader(ABC):
    """Contract for extracting an embedded-metadata snapshot from a file."""

    def supports(self, mime_type: str) -> bool:
        _ = mime_type
        return True

    @abstractmethod
    def read(self, path: Path) -> MetadataSnapshot:
        """Return the file's metadata as a flat field -> value mapping.

        Raises:
            MetadataReadError: if the file cannot be inspected.
            ToolUnavailableError: if the backing tool is missing.
        """


class ExifToolMetadataReader(BaseMetadataReader):
    """Reads metadata with ``exiftool -json``."""

    # Describe the scratch copy on disk, not the upload itself.
    FILESYSTEM_TAGS: ClassVar[frozenset[str]] = frozenset(
        {
            "SourceFile",
            "FileName",
            "Directory",
            "FileModifyDate",
            "FileAccessDate",
            "FileInodeChangeDate",
            "FilePermissions",
        }
    )

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

    def read(self, path: Path) -> MetadataSnapshot:
        if not self._probe.is_available("exiftool", EXIFTOOL_VERSION_ARGV):
            raise ToolUnavailableError("exiftool is not available")
        result = self._runner.run(["exiftool", "-json", str(path)], self._timeout_seconds)
        if result.returncode != 0:
            raise MetadataReadError(
                f"exiftool -json exited with {result.returncode}: {result.stderr.strip()}"
            )
        try:
            parsed = json.loads(result.stdout)
        except json.JSONDecodeError as exc:
            raise MetadataReadError(f"Invalid exiftool JSON: {exc}") from exc
        if not isinstance(parsed, list) or not parsed or not isinstance(parsed[0], dict):
            raise MetadataReadError("exiftool JSON must be a non-empty list of objects")
        return {
            str(key): to_metadata_value(value)
            for key, value in parsed[0].items()
            if key not in self.FILESYSTEM_TAGS
        }


class PdfPlumberMetadataReader(BaseMetadataReader):
    """Reads the PDF document information dictionary with pdfplumber."""

    def supports(self, mime_type: str) -> bool:
        return mime_type == "application/pdf"

    def read(self, path: Path) -> MetadataSnapshot:
        try:
            with pdfplumber.open(path) as pdf:
                raw = dict(pdf.metadata)
        except Exception as exc:
            raise MetadataReadError(f"pdfplumber metadata read failed: {exc}") from exc
        return {str(key): to_metadata_value(value) for key, value in raw.items()}


class ChainedMetadataReader:
    """Tries readers in order; the first non-empty snapshot wins.

    Never raises: a file nobody can read yields an empty snapshot.
    """

    def __init__(self, readers: list[BaseMetadataReader]) -> None:
        self._readers = readers

    def snapshot(self, path: Path, mime_type: str) -> MetadataSnapshot:
        for reader in self._readers:
            if not reader.supports(mime_type):
                continue
            try:
                snapshot = reader.read(path)
            except (ScrubError, OSError) as exc:
                Log.debug(f"{type(reader).__name__} could not read {path.name}: {exc}")
                continue
            if snapshot:
                return snapshot
        return {}
