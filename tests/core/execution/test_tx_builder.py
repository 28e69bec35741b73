"""
Tests for building legacy and EIP-1559 signing payloads.
"""

import pytest
from eth_utils import to_checksum_address

from forgecast.core.execution.models import FeeEstimate, PendingTransaction
from forgecast.core.execution.tx_builder import EIP1559_TX_TYPE, TransactionBuilder


SENDER = "0x1111111111111111111111111111111111111111"
RECIPIENT = "0xabcdefabcdefabcdefabcdefabcdefabcdefabcd"
NETWORK_FEES = FeeEstimate(max_fee_per_gas=50, max_priority_fee_per_gas=2)


def _tx(**overrides) -> PendingTransaction:
    fields = dict(from_address=SENDER, to_address=RECIPIENT, data="0x1234", value=5)
    fields.update(overrides)
    return PendingTransaction(**fields)


class TestLegacy:

    def test_uses_network_gas_price(self):
        payload = TransactionBuilder.build_legacy(_tx(), chain_id=56, nonce=3, gas=30000, gas_price=7)

        assert payload == {
            "chainId": 56,
            "nonce": 3,
            "gas": 30000,
            "value": 5,
            "data": "0x1234",
            "to": to_checksum_address(RECIPIENT),
            "gasPrice": 7,
        }

    def test_transaction_gas_price_wins(self):
        payload = TransactionBuilder.build_legacy(_tx(gas_price=11), 56, 0, 21000, gas_price=7)

        assert payload["gasPrice"] == 11

    def test_falls_back_to_max_fee(self):
        payload = TransactionBuilder.build_legacy(_tx(max_fee_per_gas=13), 56, 0, 21000)

        assert payload["gasPrice"] == 13

    def test_requires_a_price(self):
        with pytest.raises(ValueError):
            TransactionBuilder.build_legacy(_tx(), 56, 0, 21000)


class TestEip1559:

    def test_uses_network_fees(self):
        payload = TransactionBuilder.build_eip1559(_tx(), 1, 0, 21000, NETWORK_FEES)

        assert payload["type"] == EIP1559_TX_TYPE
        assert payload["maxFeePerGas"] == 50
        assert payload["maxPriorityFeePerGas"] == 2
        assert "gasPrice" not in payload

    def test_transaction_fees_win(self):
        tx = _tx(max_fee_per_gas=100, max_priority_fee_per_gas=4)

        payload = TransactionBuilder.build_eip1559(tx, 1, 0, 21000, NETWORK_FEES)

        assert payload["maxFeePerGas"] == 100
        assert payload["maxPriorityFeePerGas"] == 4

    def test_priority_fee_never_exceeds_max_fee(self):
        payload = TransactionBuilder.build_eip1559(_tx(max_fee_per_gas=1), 1, 0, 21000, NETWORK_FEES)

        assert payload["maxPriorityFeePerGas"] == 1

    def test_requires_fees(self):
        with pytest.raises(ValueError):
            TransactionBuilder.build_eip1559(_tx(), 1, 0, 21000)


def test_contract_creation_omits_recipient():
    payload = TransactionBuilder.build_for_signing(
        _tx(to_address=None), 1, 0, 500000, is_legacy=False, fees=NETWORK_FEES
    )

    assert "to" not in payload


@pytest.mark.parametrize(
    "overrides, is_legacy, expected",
    [
        ({}, True, True),
        ({"gas_price": 1}, True, False),
        ({}, False, True),
        ({"max_fee_per_gas": 5}, False, True),
        ({"max_fee_per_gas": 5, "max_priority_fee_per_gas": 1}, False, False),
    ],
)
def test_needs_network_fees(overrides, is_legacy, expected):
    assert TransactionBuilder.needs_network_fees(_tx(**overrides), is_legacy) is expected


def test_gas_estimation_call_includes_value_only_when_set():
    assert "value" not in TransactionBuilder.gas_estimation_call(_tx(value=0))
    assert TransactionBuilder.gas_estimation_call(_tx(value=16))["value"] == "0x10"
