"""
Schema — pydantic models for layer metadata and build results.

Two JSON documents are produced:
  1. <layers>/<layer>.json        cache key of the last successful build.
  2. native_image_result.json     what one build did (optional).

Runtime contract fields (present in every output):
  package_name, schema_version.
"""
import json
from enum import Enum, unique
from typing import List, Optional

from pydantic import BaseModel, Field

from native_image import PACKAGE_NAME, SCHEMA_VERSION


@unique
class ContributionOutcome(str, Enum):
    REUSED = "REUSED"      # cache hit, compiler not run
    REBUILT = "REBUILT"    # cache miss, compile + compress ran


# ── Cache key ────────────────────────────────────────────────────────────────

class FileEntry(BaseModel):
    """One file of the application tree."""
    path: str      # relative, POSIX separators
    mode: str      # octal permission bits, e.g. "0644"
    sha256: str


class CacheKey(BaseModel):
    """Everything that decides whether the compiler has to run again."""
    files: List[FileEntry] = Field(default_factory=list)
    arguments: List[str] = Field(default_factory=list)
    compression: str
    version_hash: str

    def canonical(self) -> str:
        """Stable serialization; equal strings mean equivalent builds."""
        return json.dumps(self.model_dump(mode="json"), sort_keys=True, separators=(",", ":"))


class LayerMetadata(BaseModel):
    package_name: str = PACKAGE_NAME
    schema_version: str = SCHEMA_VERSION
    layer_name: str
    created_at: str
    cache_key: CacheKey


# ── Artifacts ────────────────────────────────────────────────────────────────

class ElfInfo(BaseModel):
    """Minimal ELF metadata, no DWARF semantics."""
    elf_type: str = ""       # ET_EXEC, ET_DYN, etc.
    machine: str = ""        # EM_X86_64, etc.
    build_id: Optional[str] = None
    debug_sections: List[str] = Field(default_factory=list)


class ArtifactMeta(BaseModel):
    """A file relocated into the application directory."""
    path: str
    sha256: str
    size_bytes: int
    executable: bool
    elf: Optional[ElfInfo] = None   # None for non-ELF outputs


class RelocationSummary(BaseModel):
    removed: List[str] = Field(default_factory=list)
    copied: List[str] = Field(default_factory=list)
    skipped_directories: List[str] = Field(default_factory=list)


class LaunchProcess(BaseModel):
    type: str
    command: str
    direct: bool = True
    default: bool = False


# ── Result ───────────────────────────────────────────────────────────────────

class NativeImageResult(BaseModel):
    """Outcome of one native-image build."""

    package_name: str = PACKAGE_NAME
    schema_version: str = SCHEMA_VERSION

    application_path: str
    layer_path: str
    outcome: ContributionOutcome
    program_name: str
    binary_path: str
    arguments: List[str] = Field(default_factory=list)
    compression: str
    cache_key_sha256: str

    relocation: RelocationSummary = Field(default_factory=RelocationSummary)
    artifacts: List[ArtifactMeta] = Field(default_factory=list)
    processes: List[LaunchProcess] = Field(default_factory=list)

    started_at: str
    finished_at: Optional[str] = None
