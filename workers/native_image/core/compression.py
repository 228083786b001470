"""
Compression — optional post-processing of the compiled binary.

Three strategies, chosen once from the CompressionMethod:
  none   no-op
  upx    compresses the binary in place
  gzexe  compresses the binary and leaves "<binary>~" behind, which
         must be removed; failing to remove it is fatal
"""
import logging
from enum import Enum, unique
from pathlib import Path
from typing import Optional

from native_image.core.executor import Execution, Executor
from native_image.errors import CompressionError

logger = logging.getLogger(__name__)


@unique
class CompressionMethod(str, Enum):
    NONE = "none"
    UPX = "upx"
    GZEXE = "gzexe"

    @classmethod
    def parse(cls, value: Optional[str]) -> "CompressionMethod":
        """Map a configured value to a method; unknown values mean none."""
        if not value:
            return cls.NONE
        try:
            return cls(value)
        except ValueError:
            logger.warning(
                "Requested compression method [%s] is unknown, "
                "no compression will be performed",
                value,
            )
            return cls.NONE


class NoCompression:
    method = CompressionMethod.NONE

    def compress(self, binary: Path) -> None:
        return None


class InPlaceCompressor:
    """upx: the tool overwrites the binary."""

    method = CompressionMethod.UPX

    def __init__(self, executor: Executor, command: str = "upx"):
        self.executor = executor
        self.command = command

    def compress(self, binary: Path) -> None:
        logger.info("Executing %s to compress native image", self.command)
        self.executor.execute(Execution(
            command=self.command,
            args=["-q", "-9", str(binary)],
            cwd=binary.parent,
        ))


class BackupCompressor:
    """gzexe: the tool keeps a "<binary>~" backup that has to go."""

    method = CompressionMethod.GZEXE

    def __init__(self, executor: Executor, command: str = "gzexe"):
        self.executor = executor
        self.command = command

    @staticmethod
    def backup_path(binary: Path) -> Path:
        return binary.with_name(f"{binary.name}~")

    def compress(self, binary: Path) -> None:
        logger.info("Executing %s to compress native image", self.command)
        self.executor.execute(Execution(
            command=self.command,
            args=[str(binary)],
            cwd=binary.parent,
        ))

        backup = self.backup_path(binary)
        try:
            backup.unlink()
        except OSError as e:
            raise CompressionError(f"error removing {backup}: {e}") from e


def compressor_for(method: CompressionMethod, executor: Executor):
    """Select the compression strategy for *method*."""
    if method == CompressionMethod.UPX:
        return InPlaceCompressor(executor)
    if method == CompressionMethod.GZEXE:
        return BackupCompressor(executor)
    return NoCompression()
