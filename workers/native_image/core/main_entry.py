"""
Main entry — what the native binary runs and where its classes live.

Two packaging layouts, one contract (name / classpath / arguments):

  ClassEntry  exploded JAR directory; entry class from MANIFEST.MF
  JarEntry    a single JAR file found by glob under the application root

resolve_main_entry() picks the variant from the configuration: a JAR
pattern selects JarEntry, anything else ClassEntry.
"""
import glob
import os
from pathlib import Path
from typing import List, Mapping, Optional, Protocol, Union

from native_image.config import NativeImageConfig
from native_image.errors import (
    InvalidJarFileError,
    JarResolutionError,
    NoStartOrMainClassError,
)

JAR_SUFFIX = ".jar"


class MainEntry(Protocol):
    def name(self) -> str: ...

    def classpath(self) -> str: ...

    def arguments(self) -> List[str]: ...


def find_start_or_main_class(manifest: Mapping[str, str]) -> str:
    """Start-Class wins over Main-Class; neither is an error."""
    for key in ("Start-Class", "Main-Class"):
        if key in manifest:
            return manifest[key]
    raise NoStartOrMainClassError()


class ClassEntry:
    """Entry point of an exploded JAR directory."""

    def __init__(
        self,
        application_path: Union[str, Path],
        manifest: Mapping[str, str],
        classpath_override: Optional[str] = None,
    ):
        self.application_path = Path(application_path)
        self.manifest = dict(manifest)
        self.classpath_override = classpath_override
        self._entry_class: Optional[str] = None

    def name(self) -> str:
        if self._entry_class is None:
            self._entry_class = find_start_or_main_class(self.manifest)
        return self._entry_class

    def classpath(self) -> str:
        if self.classpath_override:
            return self.classpath_override

        # normally provided by upstream, rebuilt here just in case
        cp = str(self.application_path)
        extra = self.manifest.get("Class-Path")
        if extra is not None:
            cp = os.pathsep.join([cp, extra])
        return cp

    def arguments(self) -> List[str]:
        return [self.name()]


class JarEntry:
    """Entry point of a single JAR file."""

    def __init__(self, directory: Union[str, Path], jar_file_name: str):
        if Path(jar_file_name).suffix != JAR_SUFFIX:
            raise InvalidJarFileError(jar_file_name)
        self.directory = Path(directory)
        self.jar_file_name = jar_file_name
        self.module_name = jar_file_name[: -len(JAR_SUFFIX)]

    @classmethod
    def resolve(cls, application_path: Union[str, Path], pattern: str) -> "JarEntry":
        """Find exactly one file matching *pattern* under the application root."""
        root = os.path.abspath(str(application_path))
        candidates = sorted(glob.glob(os.path.join(root, pattern)))
        if len(candidates) != 1:
            raise JarResolutionError(pattern, candidates)

        match = Path(candidates[0])
        return cls(match.parent, match.name)

    @property
    def jar_path(self) -> Path:
        return self.directory / self.jar_file_name

    def name(self) -> str:
        return self.module_name

    def classpath(self) -> str:
        return str(self.directory)

    def arguments(self) -> List[str]:
        return ["-jar", str(self.jar_path)]


def resolve_main_entry(
    config: NativeImageConfig,
    application_path: Union[str, Path],
    manifest: Mapping[str, str],
) -> MainEntry:
    if config.jar_file_pattern:
        return JarEntry.resolve(application_path, config.jar_file_pattern)
    return ClassEntry(application_path, manifest, config.classpath)
