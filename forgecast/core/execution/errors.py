"""
Broadcast Errors

Every error raised while broadcasting aborts the whole run. None of them are
retried here: the deployment record keeps the receipted prefix, and a later
run resumes from the first unreceipted transaction.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Sequence

from ..chain_types import DEFAULT_SENDER


class BroadcastErrorKind(str, Enum):
    """Kinds of fatal broadcast failures."""

    NO_SIGNER = "no_signer"
    UNKNOWN_SENDER = "unknown_sender"
    NONCE_DRIFT = "nonce_drift"
    BROADCAST_FAILED = "broadcast_failed"
    RECEIPT_MISSING = "receipt_missing"
    CHAIN_MISMATCH = "chain_mismatch"


@dataclass
class BroadcastErrorContext:
    """Which transaction failed and why."""

    tx_index: Optional[int] = None
    sender: Optional[str] = None
    nonce: Optional[int] = None
    tx_hash: Optional[str] = None
    details: Dict[str, Any] = field(default_factory=dict)


class BroadcastError(Exception):
    """Base class for fatal broadcast errors."""

    kind: BroadcastErrorKind
    recoverable = False

    def __init__(
        self,
        message: str,
        context: Optional[BroadcastErrorContext] = None,
    ):
        self.message = message
        self.context = context or BroadcastErrorContext()
        super().__init__(self._render())

    def _render(self) -> str:
        where = []
        if self.context.tx_index is not None:
            where.append(f"transaction #{self.context.tx_index}")
        if self.context.sender:
            where.append(f"from {self.context.sender}")
        prefix = f"[{self.kind.value}]"
        if where:
            prefix += " " + " ".join(where)
        return f"{prefix}: {self.message}"


class NoSignerError(BroadcastError):
    """No unlocked wallet is available."""

    kind = BroadcastErrorKind.NO_SIGNER

    def __init__(self):
        super().__init__(
            "Error accessing local wallet when trying to send onchain transaction, "
            "did you set a private key, mnemonic or keystore?"
        )


class UnknownSenderError(BroadcastError):
    """A transaction's sender has no matching unlocked wallet."""

    kind = BroadcastErrorKind.UNKNOWN_SENDER

    def __init__(
        self,
        address: str,
        available: Sequence[str],
        tx_index: Optional[int] = None,
    ):
        self.address = address
        self.available = list(available)
        message = (
            f"No associated wallet for address: {address}. "
            f"Unlocked wallets: {self.available}"
        )
        if address.lower() == DEFAULT_SENDER.lower():
            message += (
                "\nYou seem to be using the default sender. "
                "Be sure to set your own --sender."
            )
        super().__init__(
            message,
            context=BroadcastErrorContext(
                tx_index=tx_index,
                sender=address,
                details={"available": self.available},
            ),
        )


class NonceDriftError(BroadcastError):
    """The account nonce changed outside of this run."""

    kind = BroadcastErrorKind.NONCE_DRIFT

    def __init__(
        self,
        address: str,
        expected: int,
        actual: int,
        tx_index: Optional[int] = None,
    ):
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"EOA nonce changed unexpectedly while sending transactions "
            f"(expected {expected}, chain reports {actual}).",
            context=BroadcastErrorContext(
                tx_index=tx_index,
                sender=address,
                nonce=expected,
                details={"onchain_nonce": actual},
            ),
        )


class BroadcastFailedError(BroadcastError):
    """The network rejected or failed to relay a transaction."""

    kind = BroadcastErrorKind.BROADCAST_FAILED

    def __init__(
        self,
        reason: str,
        sender: Optional[str] = None,
        tx_index: Optional[int] = None,
        nonce: Optional[int] = None,
    ):
        super().__init__(
            f"Aborting! A transaction failed to send: {reason}",
            context=BroadcastErrorContext(tx_index=tx_index, sender=sender, nonce=nonce),
        )


class ReceiptMissingError(BroadcastError):
    """A transaction was accepted but no receipt could be obtained."""

    kind = BroadcastErrorKind.RECEIPT_MISSING

    def __init__(
        self,
        tx_hash: str,
        known_to_node: bool,
        sender: Optional[str] = None,
        tx_index: Optional[int] = None,
        nonce: Optional[int] = None,
    ):
        self.tx_hash = tx_hash
        self.known_to_node = known_to_node
        if known_to_node:
            detail = (
                "the node still knows this transaction and it may yet be mined. "
                "Do not resubmit it blindly; inspect it before resuming."
            )
        else:
            detail = "the node no longer knows this transaction."
        super().__init__(
            f"Failed to get transaction receipt for {tx_hash}: {detail}",
            context=BroadcastErrorContext(
                tx_index=tx_index,
                sender=sender,
                nonce=nonce,
                tx_hash=tx_hash,
                details={"known_to_node": known_to_node},
            ),
        )


class ChainMismatchError(BroadcastError):
    """A record is being resumed against a different chain than it was started on."""

    kind = BroadcastErrorKind.CHAIN_MISMATCH

    def __init__(self, expected: int, actual: int):
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Deployment record belongs to chain {expected}, "
            f"but the RPC endpoint reports chain {actual}.",
            context=BroadcastErrorContext(details={"onchain_chain_id": actual}),
        )
