from .signers import SigningIdentity

__all__ = ["SigningIdentity"]
