"""
Transaction Broadcast Layer

Sends previously simulated transactions to a live network:
- Broadcaster: matches transactions to wallets, submits and records receipts
- DeploymentRecord: resumable ordered record of transactions and receipts
- TransactionBuilder: builds legacy or EIP-1559 signing payloads

Usage:
    from forgecast.core.execution import Broadcaster, DeploymentRecord
    from forgecast.core.wallet import SigningIdentity
    from forgecast.providers import JsonRpcProvider

    record = DeploymentRecord.load(path)
    async with JsonRpcProvider(rpc_url) as client:
        summary = await Broadcaster(client).broadcast(
            record, [SigningIdentity.from_key(private_key)]
        )
"""

from .models import (
    PendingTransaction,
    TransactionReceipt,
    SubmittedReceipt,
    FeeEstimate,
    BroadcastSummary,
)

from .errors import (
    BroadcastError,
    BroadcastErrorKind,
    BroadcastErrorContext,
    NoSignerError,
    UnknownSenderError,
    NonceDriftError,
    BroadcastFailedError,
    ReceiptMissingError,
    ChainMismatchError,
)

from .tx_builder import (
    TransactionBuilder,
)

from .sequence import (
    DeploymentRecord,
    PersistenceSink,
    JsonFileSink,
)

from .broadcaster import (
    Broadcaster,
    format_receipt,
)

__all__ = [
    # Models
    "PendingTransaction",
    "TransactionReceipt",
    "SubmittedReceipt",
    "FeeEstimate",
    "BroadcastSummary",
    # Errors
    "BroadcastError",
    "BroadcastErrorKind",
    "BroadcastErrorContext",
    "NoSignerError",
    "UnknownSenderError",
    "NonceDriftError",
    "BroadcastFailedError",
    "ReceiptMissingError",
    "ChainMismatchError",
    # Transaction Builder
    "TransactionBuilder",
    # Record
    "DeploymentRecord",
    "PersistenceSink",
    "JsonFileSink",
    # Broadcaster
    "Broadcaster",
    "format_receipt",
]
