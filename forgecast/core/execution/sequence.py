"""
Deployment record and its persistence.

A record holds the transactions of one script run in declared order and the
receipts collected for them so far. Receipts are only ever appended, and the
n-th receipt always belongs to the n-th transaction, so a partially
broadcast record can be resumed by skipping ``len(receipts)`` transactions.
"""

import json
import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol, Tuple

from .models import PendingTransaction, TransactionReceipt


@dataclass
class DeploymentRecord:
    transactions: List[PendingTransaction]
    path: Path
    receipts: List[TransactionReceipt] = field(default_factory=list)
    chain_id: Optional[int] = None

    def __post_init__(self):
        self.path = Path(self.path)
        if len(self.receipts) > len(self.transactions):
            raise ValueError(
                f"Record has {len(self.receipts)} receipts for "
                f"{len(self.transactions)} transactions"
            )

    @property
    def is_complete(self) -> bool:
        return len(self.receipts) == len(self.transactions)

    def pending(self) -> List[Tuple[int, PendingTransaction]]:
        """Transactions without a receipt yet, with their declared index."""
        start = len(self.receipts)
        return list(enumerate(self.transactions))[start:]

    def add_receipt(self, receipt: TransactionReceipt) -> None:
        if self.is_complete:
            raise ValueError("All transactions of this record already have receipts")
        self.receipts.append(receipt)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "chain": self.chain_id,
            "transactions": [tx.to_dict() for tx in self.transactions],
            "receipts": [receipt.to_dict() for receipt in self.receipts],
        }

    @staticmethod
    def from_dict(data: Dict[str, Any], path: Path) -> "DeploymentRecord":
        return DeploymentRecord(
            transactions=[PendingTransaction.from_dict(tx) for tx in data.get("transactions", [])],
            receipts=[TransactionReceipt.from_dict(r) for r in data.get("receipts", [])],
            chain_id=data.get("chain"),
            path=path,
        )

    @staticmethod
    def load(path: Path) -> "DeploymentRecord":
        """Load a previously persisted record to resume it."""
        path = Path(path)
        return DeploymentRecord.from_dict(json.loads(path.read_text()), path=path)


class PersistenceSink(Protocol):
    def save(self, record: DeploymentRecord) -> None:
        ...


class JsonFileSink:
    """Writes the record as JSON to ``record.path``."""

    def save(self, record: DeploymentRecord) -> None:
        path = record.path
        path.parent.mkdir(parents=True, exist_ok=True)
        payload = json.dumps(record.to_dict(), indent=2)

        # Replace in one step so a crash never leaves a truncated record
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.")
        try:
            with os.fdopen(fd, "w") as handle:
                handle.write(payload)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
