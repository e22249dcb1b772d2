import re
import uuid
from dataclasses import dataclass, field
from pathlib import Path

from cleanshare.database.models import ProvenanceRecord
from cleanshare.ledger.models import LedgerReceipt
from cleanshare.scrubbing.models import MetadataSnapshot, snapshot_to_json

_SAFE_EXTENSION_RE = re.compile(r"\.[A-Za-z0-9]{1,10}")


@dataclass(frozen=True)
class UploadJob:
    """One upload request's unit of work. Immutable once created."""

    original_name: str
    mime_type: str
    declared_size: int
    data: bytes = field(repr=False)
    owner: str = "anonymous"
    job_id: str = field(default_factory=lambda: uuid.uuid4().hex)

    @property
    def actual_size(self) -> int:
        return len(self.data)

    @property
    def extension(self) -> str:
        """Lowercased filename extension, or "" when absent or unsafe."""
        suffix = Path(self.original_name).suffix.lower()
        return suffix if _SAFE_EXTENSION_RE.fullmatch(suffix) else ""


@dataclass(frozen=True)
class UploadResult:
    """Caller-facing outcome of a successful upload."""

    record: ProvenanceRecord
    download_url: str
    ledger_receipt: LedgerReceipt | None = None
    sensitive_fields: list[str] = field(default_factory=list)
    degraded: dict[str, str] = field(default_factory=dict)

    @property
    def metadata(self) -> MetadataSnapshot:
        """Cleaned snapshot when scrubbing succeeded, otherwise the original one."""
        if self.record.cleaned:
            return self.record.cleaned_metadata
        return self.record.original_metadata

    def to_dict(self) -> dict[str, object]:
        return {
            "fileId": self.record.file_id,
            "originalName": self.record.original_name,
            "mimeType": self.record.mime_type,
            "size": self.record.size,
            "hash": self.record.fingerprint,
            "contentIdentifier": self.record.content_identifier,
            "ledgerReceipt": (
                self.ledger_receipt.to_dict() if self.ledger_receipt is not None else None
            ),
            "downloadUrl": self.download_url,
            "metadata": snapshot_to_json(self.metadata),
            "cleaned": self.record.cleaned,
            "sensitiveFields": list(self.sensitive_fields),
            "degraded": dict(self.degraded),
        }
