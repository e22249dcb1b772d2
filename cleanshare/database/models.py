from dataclasses import dataclass, field
from datetime import datetime

from cleanshare.scrubbing.models import MetadataSnapshot, snapshot_to_json

RECORD_STATUSES = ("pending", "processed", "failed")


@dataclass(frozen=True)
class ProvenanceRecord:
    """Represents a row from the provenance_records table.

    Built once at the end of a job and inserted once; never mutated.
    """

    file_id: str
    original_name: str
    mime_type: str
    size: int
    storage_path: str
    fingerprint: str
    owner: str
    status: str
    cleaned: bool
    created_at: datetime
    content_identifier: str | None = None
    ledger_tx_id: str | None = None
    original_metadata: MetadataSnapshot = field(default_factory=dict)
    cleaned_metadata: MetadataSnapshot = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.status not in RECORD_STATUSES:
            raise ValueError(f"Invalid record status '{self.status}'")

    def to_dict(self) -> dict[str, object]:
        return {
            "fileId": self.file_id,
            "originalName": self.original_name,
            "mimeType": self.mime_type,
            "size": self.size,
            "storagePath": self.storage_path,
            "hash": self.fingerprint,
            "contentIdentifier": self.content_identifier,
            "ledgerTxId": self.ledger_tx_id,
            "originalMetadata": snapshot_to_json(self.original_metadata),
            "cleanedMetadata": snapshot_to_json(self.cleaned_metadata),
            "owner": self.owner,
            "status": self.status,
            "cleaned": self.cleaned,
            "createdAt": self.created_at.isoformat(),
        }
