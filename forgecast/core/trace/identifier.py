"""
Trace identifiers figure out which names and ABIs belong to the addresses of
a trace.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, Tuple

from ...config import settings
from .artifacts import Abi, ArtifactEntry, ArtifactRegistry


def diff_score(a: bytes, b: bytes) -> float:
    """
    Dissimilarity of two bytecodes in [0, 1].

    Counts positional byte mismatches over the shared length plus every byte
    one code has beyond the other, relative to the longer code. Identical
    codes score 0; a code compared against an empty one scores 1.
    """
    longest = max(len(a), len(b))
    if longest == 0:
        return 0.0
    mismatched = sum(1 for x, y in zip(a, b) if x != y)
    return (mismatched + longest - min(len(a), len(b))) / longest


@dataclass(frozen=True)
class IdentificationResult:
    """``(contract, label, abi)`` for an address; all None when unidentified."""
    contract: Optional[str] = None
    label: Optional[str] = None
    abi: Optional[Abi] = None

    @property
    def is_identified(self) -> bool:
        return self.contract is not None


ABSENT = IdentificationResult()


class TraceIdentifier(ABC):

    @abstractmethod
    def identify_address(self, address: str, code: Optional[bytes]) -> IdentificationResult:
        """Attempt to identify an address seen in one or more call traces."""


class LocalTraceIdentifier(TraceIdentifier):
    """Identifies addresses that are deployments of locally compiled contracts.

    Deployed code rarely equals compiled code byte for byte (immutables,
    metadata hash), so the closest artifact by ``diff_score`` is accepted when
    its score is below the threshold.
    """

    def __init__(self, registry: ArtifactRegistry, threshold: Optional[float] = None):
        self.registry = registry
        self.threshold = settings.similarity_threshold if threshold is None else threshold

    def best_match(self, code: bytes) -> Tuple[Optional[ArtifactEntry], float]:
        """Closest artifact and its score. Ties go to the first in registry order."""
        best: Optional[ArtifactEntry] = None
        best_score = 1.0
        for entry in self.registry.entries():
            score = diff_score(entry.runtime_bytecode, code)
            if best is None or score < best_score:
                best, best_score = entry, score
                if score == 0.0:
                    break
        return best, best_score

    def identify_address(self, address: str, code: Optional[bytes]) -> IdentificationResult:
        # No code: an EOA or an address without a deployment
        if not code:
            return ABSENT

        entry, score = self.best_match(code)
        if entry is None or score >= self.threshold:
            return ABSENT
        return IdentificationResult(contract=entry.name, label=entry.name, abi=entry.abi)
