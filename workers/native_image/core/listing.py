"""
Content fingerprint of the application tree.

One FileEntry per regular file (relative path, mode, SHA-256), sorted by
path so the listing is identical for identical trees.  Symlinks are not
followed; their target string is hashed instead.
"""
import hashlib
import os
import stat
from pathlib import Path
from typing import List, Union

from native_image.errors import ArtifactIOError
from native_image.io.schema import FileEntry


def hash_file(path: Path) -> str:
    """SHA-256 of a file."""
    h = hashlib.sha256()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(65536), b""):
            h.update(chunk)
    return h.hexdigest()


def _entry(root: Path, path: Path) -> FileEntry:
    st = path.lstat()
    if stat.S_ISLNK(st.st_mode):
        digest = hashlib.sha256(os.readlink(path).encode("utf-8")).hexdigest()
    else:
        digest = hash_file(path)
    return FileEntry(
        path=path.relative_to(root).as_posix(),
        mode=f"{stat.S_IMODE(st.st_mode):04o}",
        sha256=digest,
    )


def file_listing(root: Union[str, Path]) -> List[FileEntry]:
    """Recursive listing of *root*; raises ArtifactIOError on any failure."""
    root = Path(root)

    def _raise(err: OSError):
        raise err

    entries: List[FileEntry] = []
    try:
        for dirpath, dirnames, filenames in os.walk(root, onerror=_raise):
            dirnames.sort()
            base = Path(dirpath)
            for name in filenames:
                entries.append(_entry(root, base / name))
            for name in dirnames:
                # os.walk reports symlinked directories as directories
                if (base / name).is_symlink():
                    entries.append(_entry(root, base / name))
    except OSError as e:
        raise ArtifactIOError(f"unable to create file listing for {root}: {e}") from e

    return sorted(entries, key=lambda e: e.path)
