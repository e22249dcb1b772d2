from typing import ClassVar

from cleanshare.config.settings import Settings
from cleanshare.ledger.base import BaseLedger
from cleanshare.ledger.simulated_adapter import SimulatedLedger
from cleanshare.ledger.web3_adapter import Web3Ledger
from cleanshare.logging.logger import Log


class LedgerFactory:
    """Creates the ledger backend selected by ``ledger_mode``."""

    MODES: ClassVar[tuple[str, ...]] = ("simulated", "live")

    @classmethod
    def create(cls, settings: Settings) -> BaseLedger:
        mode = settings.ledger_mode.lower()
        if mode not in cls.MODES:
            raise ValueError(f"Unknown ledger mode '{mode}'. Choose from: {list(cls.MODES)}")

        rpc_url = settings.ledger_rpc_url.strip()
        if mode == "simulated":
            return SimulatedLedger()
        if not rpc_url:
            Log.warning("ledger_mode=live but ledger_rpc_url is empty, using simulated ledger")
            return SimulatedLedger()
        return Web3Ledger(
            rpc_url=rpc_url,
            account=settings.ledger_account,
            private_key=settings.ledger_private_key,
            contract_address=settings.ledger_contract_address,
            timeout_seconds=settings.ledger_timeout_seconds,
            receipt_timeout_seconds=settings.ledger_receipt_timeout_seconds,
        )
