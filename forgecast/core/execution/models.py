"""
Broadcast models and types.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Union


HexOrInt = Union[str, int, None]


def _to_int(value: HexOrInt) -> Optional[int]:
    """Decode an RPC quantity that may be hex, decimal string, or int."""
    if value is None:
        return None
    if isinstance(value, int):
        return value
    value = value.strip()
    if not value:
        return None
    return int(value, 16) if value.lower().startswith("0x") else int(value)


@dataclass
class PendingTransaction:
    """A simulated, unsigned transaction waiting to be broadcast."""
    from_address: str
    to_address: Optional[str] = None            # None for contract creation
    data: str = "0x"                            # Encoded calldata / initcode (hex)
    value: int = 0                              # Wei to send
    gas: Optional[int] = None
    nonce: Optional[int] = None

    # Fee fields, when the simulation already priced the transaction
    gas_price: Optional[int] = None
    max_fee_per_gas: Optional[int] = None
    max_priority_fee_per_gas: Optional[int] = None

    chain_id: Optional[int] = None

    @property
    def is_create(self) -> bool:
        return not self.to_address

    def to_dict(self) -> Dict[str, Any]:
        """Convert to an RPC-style dictionary."""
        tx: Dict[str, Any] = {
            "from": self.from_address,
            "to": self.to_address,
            "data": self.data,
            "value": hex(self.value),
        }
        optional = {
            "gas": self.gas,
            "nonce": self.nonce,
            "gasPrice": self.gas_price,
            "maxFeePerGas": self.max_fee_per_gas,
            "maxPriorityFeePerGas": self.max_priority_fee_per_gas,
            "chainId": self.chain_id,
        }
        for key, value in optional.items():
            if value is not None:
                tx[key] = hex(value)
        return tx

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "PendingTransaction":
        sender = data.get("from")
        if not sender:
            raise ValueError("No sender for onchain transaction")
        payload = data.get("data") or data.get("input") or "0x"
        return PendingTransaction(
            from_address=sender,
            to_address=data.get("to") or None,
            data=payload if payload.startswith("0x") else f"0x{payload}",
            value=_to_int(data.get("value")) or 0,
            gas=_to_int(data.get("gas")),
            nonce=_to_int(data.get("nonce")),
            gas_price=_to_int(data.get("gasPrice")),
            max_fee_per_gas=_to_int(data.get("maxFeePerGas")),
            max_priority_fee_per_gas=_to_int(data.get("maxPriorityFeePerGas")),
            chain_id=_to_int(data.get("chainId")),
        )


@dataclass
class TransactionReceipt:
    """The network's confirmation record for a mined transaction."""
    transaction_hash: str
    block_number: int
    status: int = 1                             # 1 = success, 0 = revert
    gas_used: int = 0
    effective_gas_price: int = 0
    block_hash: Optional[str] = None
    contract_address: Optional[str] = None
    from_address: Optional[str] = None
    to_address: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.status == 1

    @property
    def fee_paid_wei(self) -> int:
        return self.gas_used * self.effective_gas_price

    @staticmethod
    def from_rpc(receipt: Dict[str, Any]) -> "TransactionReceipt":
        """Parse an ``eth_getTransactionReceipt`` result."""
        return TransactionReceipt(
            transaction_hash=receipt["transactionHash"],
            block_number=_to_int(receipt["blockNumber"]),
            status=_to_int(receipt.get("status", "0x1")),
            gas_used=_to_int(receipt.get("gasUsed")) or 0,
            effective_gas_price=_to_int(receipt.get("effectiveGasPrice")) or 0,
            block_hash=receipt.get("blockHash"),
            contract_address=receipt.get("contractAddress"),
            from_address=receipt.get("from"),
            to_address=receipt.get("to"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "transactionHash": self.transaction_hash,
            "blockNumber": hex(self.block_number),
            "blockHash": self.block_hash,
            "status": hex(self.status),
            "gasUsed": hex(self.gas_used),
            "effectiveGasPrice": hex(self.effective_gas_price),
            "contractAddress": self.contract_address,
            "from": self.from_address,
            "to": self.to_address,
        }

    from_dict = from_rpc


@dataclass(frozen=True)
class SubmittedReceipt:
    """A receipt together with the nonce the transaction was sent with."""
    receipt: TransactionReceipt
    nonce: int


@dataclass(frozen=True)
class FeeEstimate:
    """EIP-1559 fee parameters."""
    max_fee_per_gas: int
    max_priority_fee_per_gas: int


@dataclass
class BroadcastSummary:
    """Totals reported after a successful broadcast run."""
    chain_id: int
    is_legacy: bool
    submitted: int                              # Sent during this run
    total_receipts: int                         # Including resumed prefix
    failed_onchain: int = 0                     # Mined but reverted
    total_fee_wei: int = 0
    path: Optional[Path] = None
