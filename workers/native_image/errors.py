"""
Exception taxonomy for the native-image build.

Four families, all fatal, none retried:
  - Configuration: unparsable arguments, unreadable arguments file,
    invalid option values.
  - Resolution: no entry point, ambiguous or missing JAR.
  - Execution: an external process failed to launch or exited non-zero.
  - I/O: listing, copying or removing files failed.

The runner wraps whatever escapes a stage in NativeImageBuildError so
the message names the stage; the original error stays on __cause__.
"""
from typing import List, Optional


class NativeImageError(Exception):
    """Base class for every error raised by this package."""


# ── Configuration ────────────────────────────────────────────────────────────

class ConfigurationError(NativeImageError):
    pass


class ArgumentParseError(ConfigurationError):
    """Inline or file-sourced arguments could not be shell-tokenized."""

    def __init__(self, source: str, reason: str):
        self.source = source
        self.reason = reason
        super().__init__(f"unable to parse arguments from {source}: {reason}")


class ArgumentFileError(ConfigurationError):
    """The arguments file could not be read."""

    def __init__(self, path: str, reason: str):
        self.path = path
        super().__init__(f"unable to read arguments from {path}: {reason}")


# ── Resolution ───────────────────────────────────────────────────────────────

class ResolutionError(NativeImageError):
    pass


class NoStartOrMainClassError(ResolutionError):
    def __init__(self):
        super().__init__("unable to read Start-Class or Main-Class from MANIFEST.MF")


class JarResolutionError(ResolutionError):
    """The JAR glob matched zero or several files."""

    def __init__(self, pattern: str, candidates: List[str]):
        self.pattern = pattern
        self.candidates = sorted(candidates)
        super().__init__(
            f"unable to find single JAR in {pattern}, "
            f"candidates: [{' '.join(self.candidates)}]"
        )


class InvalidJarFileError(ResolutionError):
    def __init__(self, file_name: str):
        self.file_name = file_name
        super().__init__(f"file {file_name} does not have a .jar extension")


# ── Execution ────────────────────────────────────────────────────────────────

class ExecutionError(NativeImageError):
    """An external process could not be launched or exited non-zero."""

    def __init__(
        self,
        command: str,
        exit_code: Optional[int],
        stderr: str = "",
        reason: Optional[str] = None,
    ):
        self.command = command
        self.exit_code = exit_code
        self.stderr = stderr
        if reason is None:
            reason = f"exit code {exit_code}"
        message = f"error running {command}: {reason}"
        tail = stderr.strip().splitlines()[-5:]
        if tail:
            message += "\n" + "\n".join(tail)
        super().__init__(message)


class CompressionError(NativeImageError):
    pass


# ── I/O ──────────────────────────────────────────────────────────────────────

class ArtifactIOError(NativeImageError):
    pass


# ── Stage wrapper ────────────────────────────────────────────────────────────

class NativeImageBuildError(NativeImageError):
    """A build stage failed; the underlying error is chained as __cause__."""

    def __init__(self, stage: str, cause: Exception):
        self.stage = stage
        super().__init__(f"{stage}: {cause}")
