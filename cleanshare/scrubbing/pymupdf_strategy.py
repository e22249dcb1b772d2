from pathlib import Path
from typing import ClassVar

import pymupdf

from cleanshare.scrubbing.base import BaseScrubStrategy
from cleanshare.scrubbing.exceptions import ScrubExecutionError
from cleanshare.tempfiles.registry import JobScratch


class PyMuPdfStrategy(BaseScrubStrategy):
    """Rewrites PDFs in-process with an empty info dictionary and no XMP stream."""

    name: ClassVar[str] = "pymupdf"

    def supports(self, mime_type: str) -> bool:
        return mime_type == "application/pdf"

    def is_available(self) -> bool:
        return True

    def scrub(self, source: Path, target: Path, scratch: JobScratch) -> None:
        _ = scratch
        try:
            with pymupdf.open(str(source)) as doc:  # type: ignore[no-untyped-call]
                doc.set_metadata({})
                doc.del_xml_metadata()
                doc.save(str(target), garbage=3, deflate=True)
        except ScrubExecutionError:
            raise
        except Exception as exc:
            raise ScrubExecutionError(f"pymupdf scrub failed: {exc}") from exc
