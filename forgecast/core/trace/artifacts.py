"""
Registry of locally compiled contract artifacts.

Built once per run from the compiler's build output and read-only afterwards,
so it can be shared by any number of concurrent identifications.
"""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

logger = logging.getLogger(__name__)

Abi = List[Dict[str, Any]]


@dataclass(frozen=True, order=True)
class ArtifactId:
    """Identity of a compiled artifact: the source file and the contract name."""
    source: str
    name: str

    @property
    def identifier(self) -> str:
        return f"{self.source}:{self.name}"

    def __str__(self) -> str:
        return self.identifier


@dataclass(frozen=True)
class ArtifactEntry:
    id: ArtifactId
    abi: Abi
    runtime_bytecode: bytes

    @property
    def name(self) -> str:
        return self.id.name


class BytecodeObject(BaseModel):
    object: str = ""


class CompiledArtifact(BaseModel):
    """The parts of a build-output JSON file needed for identification."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    abi: Abi = Field(default_factory=list)
    deployed_bytecode: Union[BytecodeObject, str, None] = Field(
        default=None, alias="deployedBytecode"
    )
    contract_name: Optional[str] = Field(default=None, alias="contractName")

    @property
    def runtime_code(self) -> bytes:
        code = self.deployed_bytecode
        if isinstance(code, BytecodeObject):
            code = code.object
        code = (code or "").strip()
        if code.startswith("0x"):
            code = code[2:]
        return bytes.fromhex(code)


class ArtifactRegistry(Mapping[ArtifactId, ArtifactEntry]):
    """Immutable mapping of artifact id to entry, iterated in sorted id order."""

    def __init__(self, entries: Iterable[ArtifactEntry] = ()):
        by_id: Dict[ArtifactId, ArtifactEntry] = {}
        for entry in entries:
            if entry.id in by_id:
                raise ValueError(f"Duplicate artifact: {entry.id}")
            by_id[entry.id] = entry
        self._entries = MappingProxyType(dict(sorted(by_id.items())))

    def __getitem__(self, key: ArtifactId) -> ArtifactEntry:
        return self._entries[key]

    def __iter__(self) -> Iterator[ArtifactId]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def entries(self) -> Iterable[ArtifactEntry]:
        return self._entries.values()

    @classmethod
    def from_entries(cls, entries: Iterable[ArtifactEntry]) -> "ArtifactRegistry":
        return cls(entries)

    @classmethod
    def from_build_dir(cls, build_dir: Path) -> "ArtifactRegistry":
        """
        Load every deployable artifact under a build output directory.

        Expects ``<build_dir>/<Source>.sol/<Contract>.json`` files. Artifacts
        without runtime bytecode (interfaces, abstract contracts) and files
        that fail to parse are skipped. The source of an artifact is its
        directory relative to ``build_dir``, so nested layouts keep same-named
        sources apart.
        """
        build_dir = Path(build_dir)
        entries = []
        for path in sorted(build_dir.rglob("*.json")):
            if "build-info" in path.relative_to(build_dir).parts:
                continue
            entry = _load_artifact(path, build_dir)
            if entry is not None:
                entries.append(entry)
        logger.info(f"Loaded {len(entries)} artifacts from {build_dir}")
        return cls(entries)


def _load_artifact(path: Path, build_dir: Path) -> Optional[ArtifactEntry]:
    try:
        artifact = CompiledArtifact.model_validate(json.loads(path.read_text()))
        code = artifact.runtime_code
    except (OSError, json.JSONDecodeError, ValidationError, ValueError) as e:
        logger.debug(f"Skipping artifact {path}: {e}")
        return None

    if not code:
        logger.debug(f"Skipping artifact {path}: no runtime bytecode")
        return None

    # Same-named sources in different directories must not collide
    artifact_id = ArtifactId(
        source=path.parent.relative_to(build_dir).as_posix(),
        name=artifact.contract_name or path.stem,
    )
    return ArtifactEntry(id=artifact_id, abi=artifact.abi, runtime_bytecode=code)
