from abc import ABC, abstractmethod

from cleanshare.hashing.hasher import ContentFingerprint
from cleanshare.ledger.models import LedgerDescriptor, LedgerReceipt


class BaseLedger(ABC):
    """Contract for provenance ledger adapters."""

    mode: str

    @abstractmethod
    def anchor(
        self,
        fingerprint: ContentFingerprint,
        content_identifier: str | None,
        descriptor: LedgerDescriptor,
    ) -> LedgerReceipt:
        """Register *fingerprint* with the ledger.

        Args:
            fingerprint: Digest of the final file bytes.
            content_identifier: Content store identifier, if publishing succeeded.
            descriptor: Name, type, size and metadata snapshots of the upload.

        Returns:
            LedgerReceipt for the registration.

        Raises:
            LedgerError: subclass naming the failure reason.
        """
