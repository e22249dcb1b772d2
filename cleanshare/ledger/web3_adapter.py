"""Live ledger backend: registers fingerprints with a FileRegistry contract.

The contract exposes ``storeFile(string fileHash, string ipfsHash, string
metadata)``. Submitting goes through estimate -> balance check -> sign ->
send -> wait for receipt, and every failure is raised as a LedgerError
subclass so the caller can log a precise reason code.
"""

import threading
from datetime import UTC, datetime
from typing import Any

from web3 import Web3
from web3.exceptions import ContractLogicError, TimeExhausted, Web3Exception

from cleanshare.hashing.hasher import ContentFingerprint
from cleanshare.ledger.base import BaseLedger
from cleanshare.ledger.exceptions import (
    LedgerCredentialMissingError,
    LedgerError,
    LedgerInsufficientBalanceError,
    LedgerSubmissionRejectedError,
    LedgerUnreachableError,
)
from cleanshare.ledger.models import LedgerDescriptor, LedgerReceipt
from cleanshare.logging.logger import Log

FILE_REGISTRY_ABI: list[dict[str, Any]] = [
    {
        "name": "storeFile",
        "type": "function",
        "stateMutability": "nonpayable",
        "inputs": [
            {"type": "string", "name": "fileHash"},
            {"type": "string", "name": "ipfsHash"},
            {"type": "string", "name": "metadata"},
        ],
        "outputs": [],
    }
]


class Web3Ledger(BaseLedger):
    """Submits signed transactions to an EVM-compatible JSON-RPC endpoint."""

    mode = "live"

    def __init__(
        self,
        *,
        rpc_url: str,
        account: str,
        private_key: str,
        contract_address: str,
        timeout_seconds: float,
        receipt_timeout_seconds: float,
        web3: Web3 | None = None,
    ) -> None:
        self._w3 = web3 or Web3(
            Web3.HTTPProvider(rpc_url, request_kwargs={"timeout": timeout_seconds})
        )
        self._rpc_url = rpc_url
        self._account = account
        self._private_key = private_key
        self._contract_address = contract_address
        self._receipt_timeout_seconds = receipt_timeout_seconds
        # One signer per ledger: nonce read and send must not interleave.
        self._send_lock = threading.Lock()

    def anchor(
        self,
        fingerprint: ContentFingerprint,
        content_identifier: str | None,
        descriptor: LedgerDescriptor,
    ) -> LedgerReceipt:
        if not self._account or not self._private_key:
            raise LedgerCredentialMissingError(
                "ledger_account and ledger_private_key are required in live mode"
            )
        try:
            return self._submit(fingerprint, content_identifier, descriptor)
        except LedgerError:
            raise
        except ContractLogicError as exc:
            raise LedgerSubmissionRejectedError(f"Contract call reverted: {exc}") from exc
        except TimeExhausted as exc:
            raise LedgerUnreachableError(
                f"No receipt within {self._receipt_timeout_seconds}s: {exc}"
            ) from exc
        except OSError as exc:
            raise LedgerUnreachableError(f"Ledger network error: {exc}") from exc
        except (Web3Exception, ValueError) as exc:
            if "insufficient funds" in str(exc).lower():
                raise LedgerInsufficientBalanceError(str(exc)) from exc
            raise LedgerSubmissionRejectedError(f"Ledger rejected transaction: {exc}") from exc

    def _submit(
        self,
        fingerprint: ContentFingerprint,
        content_identifier: str | None,
        descriptor: LedgerDescriptor,
    ) -> LedgerReceipt:
        if not self._w3.is_connected():
            raise LedgerUnreachableError(f"Ledger endpoint {self._rpc_url} is not reachable")

        sender = Web3.to_checksum_address(self._account)
        contract = self._w3.eth.contract(
            address=Web3.to_checksum_address(self._contract_address),
            abi=FILE_REGISTRY_ABI,
        )
        call = contract.functions.storeFile(
            fingerprint.hexdigest,
            content_identifier or "",
            descriptor.to_json(),
        )

        gas = call.estimate_gas({"from": sender})
        gas_price = self._w3.eth.gas_price
        cost = gas * gas_price
        balance = self._w3.eth.get_balance(sender)
        if balance < cost:
            raise LedgerInsufficientBalanceError(
                f"Balance {balance} wei is below the estimated cost of {cost} wei"
            )

        chain_id = self._w3.eth.chain_id
        with self._send_lock:
            transaction = call.build_transaction(
                {
                    "from": sender,
                    "nonce": self._w3.eth.get_transaction_count(sender, "pending"),
                    "gas": gas,
                    "gasPrice": gas_price,
                    "chainId": chain_id,
                }
            )
            signed = self._w3.eth.account.sign_transaction(transaction, self._private_key)
            tx_hash = self._w3.eth.send_raw_transaction(signed.raw_transaction)
        receipt = self._w3.eth.wait_for_transaction_receipt(
            tx_hash, timeout=self._receipt_timeout_seconds
        )

        transaction_id = Web3.to_hex(tx_hash)
        if receipt["status"] != 1:
            raise LedgerSubmissionRejectedError(f"Transaction {transaction_id} reverted")

        Log.info(f"Anchored {fingerprint} in block {receipt['blockNumber']} ({transaction_id})")
        return LedgerReceipt(
            transaction_id=transaction_id,
            mode=self.mode,
            fingerprint=fingerprint.hexdigest,
            content_identifier=content_identifier,
            recorded_at=datetime.now(UTC),
            block_number=receipt["blockNumber"],
            gas_used=receipt["gasUsed"],
        )
