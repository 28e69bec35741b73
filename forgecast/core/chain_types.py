"""
Chain identification types and utilities.

EVM chains are identified by their integer chain id. This module knows which
of them predate (or never adopted) EIP-1559 and must be sent legacy
transactions, and the placeholder sender address used by scripts that were
run without a configured sender.
"""

from __future__ import annotations

from typing import Dict, FrozenSet

# Sender that scripts fall back to when no --sender is configured. It has no
# known private key, so a transaction from it can never be broadcast.
DEFAULT_SENDER = "0x00a329c0648769A73afAc7F9381E08FB43dBEA72"

CHAIN_NAMES: Dict[int, str] = {
    1: "mainnet",
    5: "goerli",
    10: "optimism",
    30: "rsk",
    56: "bsc",
    69: "optimism-kovan",
    97: "bsc-testnet",
    137: "polygon",
    250: "fantom",
    4002: "fantom-testnet",
    8453: "base",
    31337: "anvil",
    42161: "arbitrum",
    42220: "celo",
    42261: "emerald-testnet",
    42262: "emerald",
    43114: "avalanche",
    44787: "celo-alfajores",
    62320: "celo-baklava",
    421611: "arbitrum-testnet",
    11155111: "sepolia",
}

# Chains without EIP-1559 fee market support
LEGACY_CHAIN_IDS: FrozenSet[int] = frozenset({
    10,       # optimism
    30,       # rsk
    56,       # bsc
    69,       # optimism-kovan
    97,       # bsc-testnet
    250,      # fantom
    4002,     # fantom-testnet
    42161,    # arbitrum
    42220,    # celo
    42261,    # emerald-testnet
    42262,    # emerald
    44787,    # celo-alfajores
    62320,    # celo-baklava
    421611,   # arbitrum-testnet
})


def is_legacy_chain(chain_id: int) -> bool:
    """Check if the chain only accepts legacy transactions. Unknown chains are not."""
    return chain_id in LEGACY_CHAIN_IDS


def resolve_legacy(chain_id: int, override: bool = False) -> bool:
    """
    Decide the transaction format for a chain.

    Args:
        chain_id: Chain id reported by the network.
        override: Explicit request for legacy transactions.

    Returns:
        True if legacy transactions must be sent.

    Examples:
        >>> resolve_legacy(1)
        False
        >>> resolve_legacy(1, override=True)
        True
        >>> resolve_legacy(56)
        True
    """
    return override or is_legacy_chain(chain_id)


def chain_name(chain_id: int) -> str:
    return CHAIN_NAMES.get(chain_id, f"chain-{chain_id}")
