"""
Unlocked signing identities.

An identity pairs an address with an eth-account local key. It is bound to a
chain id once per run and refuses to sign payloads for any other chain.
"""

from dataclasses import dataclass, replace
from typing import Any, Dict, Optional

from eth_account import Account
from eth_account.signers.local import LocalAccount
from eth_utils import to_checksum_address


@dataclass(frozen=True)
class SigningIdentity:
    account: LocalAccount
    chain_id: Optional[int] = None

    @classmethod
    def from_key(cls, private_key: str) -> "SigningIdentity":
        return cls(account=Account.from_key(private_key))

    @property
    def address(self) -> str:
        return self.account.address

    def with_chain_id(self, chain_id: int) -> "SigningIdentity":
        return replace(self, chain_id=chain_id)

    def matches(self, address: str) -> bool:
        return to_checksum_address(address) == self.address

    def sign_transaction(self, tx: Dict[str, Any]) -> str:
        """Sign a transaction payload and return the raw transaction as hex."""
        if self.chain_id is None:
            raise RuntimeError(f"Signer {self.address} is not bound to a chain id.")
        if tx.get("chainId") != self.chain_id:
            raise ValueError(
                f"Signer {self.address} is bound to chain {self.chain_id}, "
                f"refusing to sign for chain {tx.get('chainId')}"
            )
        signed = self.account.sign_transaction(tx)
        return "0x" + bytes(signed.raw_transaction).hex()

    def __repr__(self) -> str:
        return f"SigningIdentity(address={self.address}, chain_id={self.chain_id})"
