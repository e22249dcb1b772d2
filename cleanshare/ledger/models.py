import json
from dataclasses import dataclass, field
from datetime import datetime

from cleanshare.scrubbing.models import MetadataSnapshot, snapshot_to_json


@dataclass(frozen=True)
class LedgerDescriptor:
    """Descriptive metadata published alongside a fingerprint.

    Carries the names of identifying fields, never their values or the
    original filename.
    """

    mime_type: str
    size: int
    cleaned_metadata: MetadataSnapshot = field(default_factory=dict)
    sensitive_fields: list[str] = field(default_factory=list)

    def to_json(self) -> str:
        return json.dumps(
            {
                "mimeType": self.mime_type,
                "size": self.size,
                "cleanedMetadata": snapshot_to_json(self.cleaned_metadata),
                "sensitiveFields": list(self.sensitive_fields),
            },
            sort_keys=True,
        )


@dataclass(frozen=True)
class LedgerReceipt:
    """Proof that a fingerprint was registered (or simulated as registered)."""

    transaction_id: str
    mode: str
    fingerprint: str
    content_identifier: str | None
    recorded_at: datetime
    block_number: int | None = None
    gas_used: int | None = None

    def to_dict(self) -> dict[str, object]:
        return {
            "transactionId": self.transaction_id,
            "mode": self.mode,
            "fingerprint": self.fingerprint,
            "contentIdentifier": self.content_identifier,
            "recordedAt": self.recorded_at.isoformat(),
            "blockNumber": self.block_number,
            "gasUsed": self.gas_used,
        }
