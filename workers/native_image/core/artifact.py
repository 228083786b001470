"""
Artifact metadata — describe files relocated into the application.

Presence checks only, no DWARF semantics.  A compressed binary may no
longer be ELF (gzexe emits a shell wrapper); such files get elf=None.
"""
import logging
import os
from pathlib import Path
from typing import Optional

from elftools.common.exceptions import ELFError
from elftools.elf.elffile import ELFFile

from native_image.core.listing import hash_file
from native_image.errors import ArtifactIOError
from native_image.io.schema import ArtifactMeta, ElfInfo

logger = logging.getLogger(__name__)


def read_elf_info(path: Path) -> Optional[ElfInfo]:
    """ELF header facts and debug section names, or None for non-ELF files."""
    try:
        with open(path, "rb") as f:
            elf = ELFFile(f)
            build_id = None
            debug_sections = []
            for section in elf.iter_sections():
                if section.name.startswith(".debug_"):
                    debug_sections.append(section.name)
                elif section.name == ".note.gnu.build-id":
                    for note in section.iter_notes():
                        if note["n_type"] == "NT_GNU_BUILD_ID":
                            build_id = note["n_desc"]
            return ElfInfo(
                elf_type=str(elf.header["e_type"]),
                machine=str(elf.header["e_machine"]),
                build_id=build_id,
                debug_sections=debug_sections,
            )
    except ELFError as e:
        logger.debug("%s is not an ELF file: %s", path, e)
        return None


def describe_artifact(path: Path) -> ArtifactMeta:
    try:
        return ArtifactMeta(
            path=str(path),
            sha256=hash_file(path),
            size_bytes=path.stat().st_size,
            executable=os.access(path, os.X_OK),
            elf=read_elf_info(path),
        )
    except OSError as e:
        raise ArtifactIOError(f"unable to describe {path}: {e}") from e
