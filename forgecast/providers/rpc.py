"""
JSON-RPC provider over httpx.
"""

import asyncio
import itertools
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

import httpx

from ..config import settings
from ..core.execution.models import FeeEstimate, TransactionReceipt
from .base import NetworkClient


logger = logging.getLogger(__name__)


class RpcError(Exception):
    """The node answered with a JSON-RPC error object."""

    def __init__(self, method: str, error: Any):
        self.method = method
        self.error = error
        if isinstance(error, dict):
            self.code = error.get("code")
            detail = error.get("message", error)
        else:
            self.code = None
            detail = error
        super().__init__(f"RPC error calling {method}: {detail}")


class JsonRpcProvider(NetworkClient):
    """EVM node client speaking JSON-RPC 2.0 over HTTP."""

    name = "jsonrpc"

    def __init__(
        self,
        rpc_url: Optional[str] = None,
        timeout: Optional[float] = None,
        client: Optional[httpx.AsyncClient] = None,
        priority_fee_fallback: Optional[int] = None,
    ):
        self.rpc_url = rpc_url or settings.rpc_url
        if not self.rpc_url:
            raise ValueError("You must provide an RPC URL (set RPC_URL).")
        self._client = client or httpx.AsyncClient(
            timeout=timeout or settings.rpc_timeout_seconds
        )
        self._priority_fee_fallback = (
            priority_fee_fallback
            if priority_fee_fallback is not None
            else settings.priority_fee_fallback_wei
        )
        self._ids = itertools.count(1)

    async def __aenter__(self) -> "JsonRpcProvider":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def _rpc_call(self, method: str, params: List[Any]) -> Any:
        """Make an RPC call to the node."""
        payload = {
            "jsonrpc": "2.0",
            "method": method,
            "params": params,
            "id": next(self._ids),
        }

        response = await self._client.post(self.rpc_url, json=payload)
        response.raise_for_status()
        result = response.json()

        if "error" in result:
            raise RpcError(method, result["error"])

        return result.get("result")

    async def get_chain_id(self) -> int:
        return int(await self._rpc_call("eth_chainId", []), 16)

    async def get_transaction_count(self, address: str, block: str = "pending") -> int:
        return int(await self._rpc_call("eth_getTransactionCount", [address, block]), 16)

    async def get_gas_price(self) -> int:
        return int(await self._rpc_call("eth_gasPrice", []), 16)

    async def get_fee_estimate(self) -> FeeEstimate:
        fee_history = await self._rpc_call("eth_feeHistory", [1, "latest", [50]])

        base_fee = int(fee_history["baseFeePerGas"][-1], 16)
        rewards = fee_history.get("reward")
        priority_fee = int(rewards[0][0], 16) if rewards else self._priority_fee_fallback

        return FeeEstimate(
            max_fee_per_gas=base_fee * 2 + priority_fee,
            max_priority_fee_per_gas=priority_fee,
        )

    async def estimate_gas(self, call: Dict[str, Any]) -> int:
        call_obj = {key: value for key, value in call.items() if value is not None}
        return int(await self._rpc_call("eth_estimateGas", [call_obj]), 16)

    async def send_raw_transaction(self, raw_tx: str) -> str:
        tx_hash = await self._rpc_call("eth_sendRawTransaction", [raw_tx])
        logger.debug(f"Transaction submitted: {tx_hash}")
        return tx_hash

    async def wait_for_receipt(
        self,
        tx_hash: str,
        timeout: float,
        poll_interval: float,
    ) -> Optional[TransactionReceipt]:
        start_time = datetime.utcnow()

        while True:
            try:
                receipt = await self._rpc_call("eth_getTransactionReceipt", [tx_hash])
                if receipt and receipt.get("blockNumber"):
                    return TransactionReceipt.from_rpc(receipt)
            except (httpx.HTTPError, RpcError) as e:
                logger.warning(f"Error checking transaction status for {tx_hash}: {e}")

            elapsed = (datetime.utcnow() - start_time).total_seconds()
            if elapsed + poll_interval > timeout:
                logger.warning(f"No receipt for {tx_hash} after {elapsed:.0f}s")
                return None

            await asyncio.sleep(poll_interval)

    async def get_transaction(self, tx_hash: str) -> Optional[Dict[str, Any]]:
        return await self._rpc_call("eth_getTransactionByHash", [tx_hash])

    async def get_code(self, address: str) -> bytes:
        code = await self._rpc_call("eth_getCode", [address, "latest"])
        return bytes.fromhex((code or "0x")[2:])

    async def close(self) -> None:
        """Close HTTP client."""
        await self._client.aclose()
