from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path

from cleanshare.database.models import ProvenanceRecord
from cleanshare.hashing.hasher import ContentFingerprint
from cleanshare.ledger.models import LedgerReceipt
from cleanshare.processor.models import UploadJob, UploadResult
from cleanshare.scrubbing.models import ScrubOutcome
from cleanshare.tempfiles.registry import JobScratch


@dataclass(slots=True)
class PipelineContext:
    job: UploadJob
    scratch: JobScratch | None = None
    source_path: Path | None = None
    scrub_outcome: ScrubOutcome | None = None
    final_bytes: bytes = b""
    fingerprint: ContentFingerprint | None = None
    content_identifier: str | None = None
    ledger_receipt: LedgerReceipt | None = None
    degraded: dict[str, str] = field(default_factory=dict)
    status: str = "pending"
    record: ProvenanceRecord | None = None
    result: UploadResult | None = None
    error_message: str = ""


class PipelineStep(ABC):
    @abstractmethod
    def run(self, context: PipelineContext) -> PipelineContext:
        raise NotImplementedError
