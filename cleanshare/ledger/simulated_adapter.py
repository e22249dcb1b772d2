import secrets
from datetime import UTC, datetime

from cleanshare.hashing.hasher import ContentFingerprint
from cleanshare.ledger.base import BaseLedger
from cleanshare.ledger.models import LedgerDescriptor, LedgerReceipt
from cleanshare.logging.logger import Log


class SimulatedLedger(BaseLedger):
    """Returns locally generated receipts. No network calls.

    Used for development and whenever no live ledger endpoint is configured.
    """

    mode = "simulated"

    def anchor(
        self,
        fingerprint: ContentFingerprint,
        content_identifier: str | None,
        descriptor: LedgerDescriptor,
    ) -> LedgerReceipt:
        _ = descriptor
        transaction_id = "0x" + secrets.token_hex(32)
        Log.info(f"Simulated ledger registration of {fingerprint} as {transaction_id}")
        return LedgerReceipt(
            transaction_id=transaction_id,
            mode=self.mode,
            fingerprint=fingerprint.hexdigest,
            content_identifier=content_identifier,
            recorded_at=datetime.now(UTC),
        )
