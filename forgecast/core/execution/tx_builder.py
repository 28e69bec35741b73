"""
Transaction builder for signing payloads.

Turns a simulated PendingTransaction into the dictionary eth-account signs,
either as a legacy transaction or as an EIP-1559 (type 2) transaction.
"""

from typing import Any, Dict, Optional

from eth_utils import to_checksum_address

from .models import FeeEstimate, PendingTransaction


EIP1559_TX_TYPE = 2


class TransactionBuilder:
    """
    Builds signable transactions.

    Fee fields carried by the pending transaction take precedence over the
    network-derived values passed in.
    """

    @staticmethod
    def _base_fields(
        tx: PendingTransaction,
        chain_id: int,
        nonce: int,
        gas: int,
    ) -> Dict[str, Any]:
        fields: Dict[str, Any] = {
            "chainId": chain_id,
            "nonce": nonce,
            "gas": gas,
            "value": tx.value,
            "data": tx.data or "0x",
        }
        # Contract creations carry no recipient
        if not tx.is_create:
            fields["to"] = to_checksum_address(tx.to_address)
        return fields

    @staticmethod
    def build_legacy(
        tx: PendingTransaction,
        chain_id: int,
        nonce: int,
        gas: int,
        gas_price: Optional[int] = None,
    ) -> Dict[str, Any]:
        """
        Build a legacy transaction.

        Args:
            tx: The pending transaction
            chain_id: Chain the signer is bound to
            nonce: Nonce to send with
            gas: Gas limit
            gas_price: Network gas price, used when the transaction has none

        Returns:
            Payload ready to be signed
        """
        price = tx.gas_price if tx.gas_price is not None else gas_price
        if price is None:
            # A 1559-priced simulation can still be sent as legacy
            price = tx.max_fee_per_gas
        if price is None:
            raise ValueError("Legacy transaction requires a gas price")

        payload = TransactionBuilder._base_fields(tx, chain_id, nonce, gas)
        payload["gasPrice"] = price
        return payload

    @staticmethod
    def build_eip1559(
        tx: PendingTransaction,
        chain_id: int,
        nonce: int,
        gas: int,
        fees: Optional[FeeEstimate] = None,
    ) -> Dict[str, Any]:
        """
        Build an EIP-1559 transaction.

        Args:
            tx: The pending transaction
            chain_id: Chain the signer is bound to
            nonce: Nonce to send with
            gas: Gas limit
            fees: Network fee estimate, used for fee fields the transaction lacks

        Returns:
            Payload ready to be signed
        """
        max_fee = tx.max_fee_per_gas
        priority_fee = tx.max_priority_fee_per_gas
        if max_fee is None and tx.gas_price is not None:
            max_fee = tx.gas_price
        if max_fee is None and fees is not None:
            max_fee = fees.max_fee_per_gas
        if priority_fee is None and fees is not None:
            priority_fee = min(fees.max_priority_fee_per_gas, max_fee or 0)
        if max_fee is None or priority_fee is None:
            raise ValueError("EIP-1559 transaction requires fee parameters")

        payload = TransactionBuilder._base_fields(tx, chain_id, nonce, gas)
        payload["type"] = EIP1559_TX_TYPE
        payload["maxFeePerGas"] = max_fee
        payload["maxPriorityFeePerGas"] = priority_fee
        return payload

    @staticmethod
    def build_for_signing(
        tx: PendingTransaction,
        chain_id: int,
        nonce: int,
        gas: int,
        is_legacy: bool,
        gas_price: Optional[int] = None,
        fees: Optional[FeeEstimate] = None,
    ) -> Dict[str, Any]:
        if is_legacy:
            return TransactionBuilder.build_legacy(tx, chain_id, nonce, gas, gas_price)
        return TransactionBuilder.build_eip1559(tx, chain_id, nonce, gas, fees)

    @staticmethod
    def needs_network_fees(tx: PendingTransaction, is_legacy: bool) -> bool:
        """Whether fee fields must be fetched from the network before building."""
        if is_legacy:
            return tx.gas_price is None and tx.max_fee_per_gas is None
        if tx.max_fee_per_gas is None and tx.gas_price is None:
            return True
        return tx.max_priority_fee_per_gas is None

    @staticmethod
    def gas_estimation_call(tx: PendingTransaction) -> Dict[str, Any]:
        """Call object for ``eth_estimateGas``."""
        call = {
            "from": tx.from_address,
            "to": tx.to_address,
            "data": tx.data,
        }
        if tx.value > 0:
            call["value"] = hex(tx.value)
        return call
