from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from ..core.execution.models import FeeEstimate, TransactionReceipt


class NetworkClient(ABC):
    """Narrow view of an EVM node used while broadcasting and identifying traces"""

    name: str

    @abstractmethod
    async def get_chain_id(self) -> int:
        pass

    @abstractmethod
    async def get_transaction_count(self, address: str, block: str = "pending") -> int:
        """Next nonce for an address"""
        pass

    @abstractmethod
    async def get_gas_price(self) -> int:
        """Legacy gas price in wei"""
        pass

    @abstractmethod
    async def get_fee_estimate(self) -> FeeEstimate:
        """EIP-1559 max fee and priority fee in wei"""
        pass

    @abstractmethod
    async def estimate_gas(self, call: Dict[str, Any]) -> int:
        pass

    @abstractmethod
    async def send_raw_transaction(self, raw_tx: str) -> str:
        """Relay a signed transaction and return its hash"""
        pass

    @abstractmethod
    async def wait_for_receipt(
        self,
        tx_hash: str,
        timeout: float,
        poll_interval: float,
    ) -> Optional[TransactionReceipt]:
        """Poll for a receipt; None if it did not appear before the timeout"""
        pass

    @abstractmethod
    async def get_transaction(self, tx_hash: str) -> Optional[Dict[str, Any]]:
        pass

    @abstractmethod
    async def get_code(self, address: str) -> bytes:
        """Runtime bytecode at an address (empty for EOAs)"""
        pass

    async def close(self) -> None:
        pass
