from typing import ClassVar


class LedgerError(Exception):
    """Base exception for provenance ledger failures. Each subclass has a reason code."""

    code: ClassVar[str] = "ledger_error"


class LedgerUnreachableError(LedgerError):
    """Raised when the ledger endpoint cannot be reached or times out."""

    code: ClassVar[str] = "ledger_unreachable"


class LedgerCredentialMissingError(LedgerError):
    """Raised when live mode lacks the signing account or private key."""

    code: ClassVar[str] = "ledger_credential_missing"


class LedgerSubmissionRejectedError(LedgerError):
    """Raised when the transaction is rejected or reverted."""

    code: ClassVar[str] = "ledger_submission_rejected"


class LedgerInsufficientBalanceError(LedgerError):
    """Raised when the signing account cannot pay for the transaction."""

    code: ClassVar[str] = "ledger_insufficient_balance"
