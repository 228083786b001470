"""
Swap the application bytecode for the compiled output.

1. Remove everything directly under the application root.
2. Copy each non-directory entry of the layer into the application root,
   permission bits included.  Debug-info splitting and shared libraries
   put sibling files next to the binary, so all of them are copied.

Directories in the layer output are skipped and reported.
"""
import logging
import shutil
from pathlib import Path
from typing import Union

from native_image.errors import ArtifactIOError
from native_image.io.schema import RelocationSummary

logger = logging.getLogger(__name__)


def remove_children(path: Path) -> list:
    removed = []
    try:
        for child in sorted(path.iterdir()):
            if child.is_dir() and not child.is_symlink():
                shutil.rmtree(child)
            else:
                child.unlink()
            removed.append(child.name)
    except OSError as e:
        raise ArtifactIOError(f"unable to remove children of {path}: {e}") from e
    return removed


def relocate(
    application_path: Union[str, Path],
    layer_path: Union[str, Path],
) -> RelocationSummary:
    application_path = Path(application_path)
    layer_path = Path(layer_path)
    summary = RelocationSummary()

    logger.info("Removing bytecode")
    summary.removed = remove_children(application_path)

    try:
        compiled = sorted(layer_path.iterdir())
    except OSError as e:
        raise ArtifactIOError(f"unable to list children of {layer_path}: {e}") from e

    for src in compiled:
        if src.is_dir():
            # TODO: decide whether directory output (resource bundles) should be archived or copied
            logger.warning("Skipping directory %s in native-image output", src.name)
            summary.skipped_directories.append(src.name)
            continue

        dst = application_path / src.name
        try:
            shutil.copy2(src, dst)
        except OSError as e:
            raise ArtifactIOError(f"unable to copy {src} -> {dst}: {e}") from e
        summary.copied.append(src.name)

    return summary
