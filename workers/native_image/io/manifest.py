"""
Read the main attributes of META-INF/MANIFEST.MF.

Only the main section is returned (everything before the first blank
line).  Continuation lines start with a single space and are appended
to the previous value.
"""
from pathlib import Path
from typing import Dict, Union

from native_image.errors import ArtifactIOError

MANIFEST_PATH = Path("META-INF") / "MANIFEST.MF"


def parse_manifest(text: str) -> Dict[str, str]:
    attributes: Dict[str, str] = {}
    last_key = None

    for line in text.splitlines():
        if not line.strip():
            if attributes:
                break
            continue

        if line.startswith(" ") and last_key is not None:
            attributes[last_key] += line[1:]
            continue

        if ":" not in line:
            continue
        key, value = line.split(":", 1)
        last_key = key.strip()
        attributes[last_key] = value[1:] if value.startswith(" ") else value

    return attributes


def read_manifest(application_path: Union[str, Path]) -> Dict[str, str]:
    """
    Main attributes of the application's MANIFEST.MF.

    A missing manifest yields an empty mapping; an unreadable one raises
    ArtifactIOError.
    """
    path = Path(application_path) / MANIFEST_PATH
    if not path.exists():
        return {}
    try:
        text = path.read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        raise ArtifactIOError(f"unable to read manifest in {application_path}: {e}") from e
    return parse_manifest(text)
