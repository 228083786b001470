"""
Writer — serialize layer metadata and build results to JSON files.

Filesystem layout:
    <layers_dir>/<layer_name>.json          layer metadata (cache key)
    <output_dir>/native_image_result.json   build result
"""
import json
import logging
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from native_image.errors import ArtifactIOError
from native_image.io.schema import LayerMetadata, NativeImageResult

logger = logging.getLogger(__name__)

RESULT_FILE_NAME = "native_image_result.json"


def _dump(model) -> str:
    return json.dumps(model.model_dump(mode="json"), indent=2, sort_keys=True) + "\n"


def write_layer_metadata(metadata: LayerMetadata, path: Path) -> Path:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(_dump(metadata))
    except OSError as e:
        raise ArtifactIOError(f"unable to write layer metadata {path}: {e}") from e
    return path


def read_layer_metadata(path: Path) -> Optional[LayerMetadata]:
    """
    Stored metadata, or None when there is none to trust.

    A missing or unparsable file is a cache miss, not an error.
    """
    if not path.exists():
        return None
    try:
        return LayerMetadata.model_validate_json(path.read_text())
    except (OSError, ValidationError) as e:
        logger.warning("Ignoring unreadable layer metadata %s: %s", path, e)
        return None


def write_result(result: NativeImageResult, output_dir: Path) -> Path:
    """
    Write native_image_result.json into *output_dir*.

    Creates *output_dir* if it does not exist.
    Returns the path of the written file.
    """
    result_path = output_dir / RESULT_FILE_NAME
    try:
        output_dir.mkdir(parents=True, exist_ok=True)
        result_path.write_text(_dump(result))
    except OSError as e:
        raise ArtifactIOError(f"unable to write result {result_path}: {e}") from e
    return result_path
