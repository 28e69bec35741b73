"""
Trace Identification

Labels trace addresses with the names and ABIs of locally compiled contracts.
"""

from .artifacts import ArtifactEntry, ArtifactId, ArtifactRegistry, CompiledArtifact
from .identifier import (
    ABSENT,
    IdentificationResult,
    LocalTraceIdentifier,
    TraceIdentifier,
    diff_score,
)

__all__ = [
    "ArtifactEntry",
    "ArtifactId",
    "ArtifactRegistry",
    "CompiledArtifact",
    "ABSENT",
    "IdentificationResult",
    "LocalTraceIdentifier",
    "TraceIdentifier",
    "diff_score",
]
