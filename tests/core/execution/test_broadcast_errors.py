"""
Tests for broadcast error messages and classification.
"""

from forgecast.core.chain_types import DEFAULT_SENDER
from forgecast.core.execution.errors import (
    BroadcastError,
    BroadcastErrorKind,
    BroadcastFailedError,
    ChainMismatchError,
    NoSignerError,
    NonceDriftError,
    ReceiptMissingError,
    UnknownSenderError,
)


SENDER = "0x1111111111111111111111111111111111111111"


def test_all_errors_are_fatal():
    errors = [
        NoSignerError(),
        UnknownSenderError(SENDER, []),
        NonceDriftError(SENDER, 1, 2),
        BroadcastFailedError("boom"),
        ReceiptMissingError("0xabc", known_to_node=True),
        ChainMismatchError(1, 10),
    ]

    assert {error.kind for error in errors} == set(BroadcastErrorKind)
    assert all(isinstance(error, BroadcastError) for error in errors)
    assert not any(error.recoverable for error in errors)


def test_message_names_transaction_sender_and_kind():
    error = NonceDriftError(SENDER, expected=7, actual=9, tx_index=3)

    assert str(error).startswith(f"[nonce_drift] transaction #3 from {SENDER}:")
    assert error.context.details == {"onchain_nonce": 9}


def test_unknown_sender_default_sender_hint_is_case_insensitive():
    error = UnknownSenderError(DEFAULT_SENDER.lower(), [SENDER])

    assert "default sender" in str(error)
    assert error.available == [SENDER]


def test_no_signer_has_no_transaction_context():
    assert str(NoSignerError()).startswith("[no_signer]: ")


def test_chain_mismatch_names_both_chains():
    error = ChainMismatchError(expected=1, actual=10)

    assert str(error).startswith("[chain_mismatch]: ")
    assert "belongs to chain 1," in str(error)
    assert "reports chain 10." in str(error)
