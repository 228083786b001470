"""
Argument sources. Each turns an argument vector into a new one.

  BaselineArguments     platform flags; ignores its input
  UserFileArguments     shell words read from a file, override-by-key
  UserArguments         shell words from one configuration string, override-by-key
  EntryPointArguments   program name, classpath and the entry's trailing arguments

Override-by-key: the key of a token is everything before its first "=".
An incoming token evicts every existing token with the same key; the
survivors keep their order and the incoming tokens are appended.
"""
import logging
import shlex
from pathlib import Path
from typing import Iterable, List, Sequence, Union

from native_image.config import TINY_STACK_ID
from native_image.core.main_entry import MainEntry
from native_image.errors import ArgumentFileError, ArgumentParseError

logger = logging.getLogger(__name__)

STATIC_EXECUTABLE_FLAG = "-H:+StaticExecutableWithDynamicLibC"
JAR_FLAG = "-jar"


# ── Helpers ───────────────────────────────────────────────────────────────────

def argument_key(token: str) -> str:
    return token.split("=", 1)[0]


def contains_arg(needle: str, haystack: Iterable[str]) -> bool:
    """True if any token in *haystack* has the same key as *needle*."""
    key = argument_key(needle)
    return any(argument_key(straw) == key for straw in haystack)


def merge_arguments(existing: Sequence[str], new: Sequence[str]) -> List[str]:
    """Apply the override-by-key rule: drop colliding entries, append *new*."""
    new_keys = {argument_key(token) for token in new}
    kept = [token for token in existing if argument_key(token) not in new_keys]
    return kept + list(new)


def drop_jar_arguments(arguments: Sequence[str]) -> List[str]:
    """Remove every "-jar" token together with the token that follows it."""
    out: List[str] = []
    skip = False
    for token in arguments:
        if skip:
            skip = False
            continue
        if token == JAR_FLAG:
            skip = True
            continue
        out.append(token)
    return out


def split_arguments(text: str, source: str) -> List[str]:
    """Shell-word tokenize *text*; quoted substrings stay single tokens."""
    try:
        return shlex.split(text)
    except ValueError as e:
        raise ArgumentParseError(source, str(e)) from e


# ── Sources ──────────────────────────────────────────────────────────────────

class BaselineArguments:
    """Flags the platform always needs."""

    def __init__(self, stack_id: str = ""):
        self.stack_id = stack_id

    def configure(self, arguments: Sequence[str] = ()) -> List[str]:
        new: List[str] = []
        if self.stack_id == TINY_STACK_ID:
            new.append(STATIC_EXECUTABLE_FLAG)
        return new


class UserArguments:
    """Arguments given inline by the end user; they win over earlier stages."""

    def __init__(self, arguments: str = ""):
        self.arguments = arguments

    def configure(self, arguments: Sequence[str] = ()) -> List[str]:
        parsed = split_arguments(self.arguments, repr(self.arguments))
        return merge_arguments(arguments, parsed)


class UserFileArguments:
    """Arguments read from a file; they win over earlier stages."""

    def __init__(self, arguments_file: Union[str, Path]):
        self.arguments_file = Path(arguments_file)

    def configure(self, arguments: Sequence[str] = ()) -> List[str]:
        try:
            raw = self.arguments_file.read_text(encoding="utf-8")
        except OSError as e:
            raise ArgumentFileError(str(self.arguments_file), str(e)) from e

        parsed = split_arguments(raw, str(self.arguments_file))
        logger.debug("Read %d arguments from %s", len(parsed), self.arguments_file)
        return merge_arguments(arguments, parsed)


class EntryPointArguments:
    """Program name, classpath and trailing arguments of the main entry."""

    def __init__(self, main_entry: MainEntry, layer_path: Union[str, Path]):
        self.main_entry = main_entry
        self.layer_path = Path(layer_path)

    def configure(self, arguments: Sequence[str] = ()) -> List[str]:
        trailing = self.main_entry.arguments()
        out = list(arguments)
        if JAR_FLAG in trailing:
            out = drop_jar_arguments(out)

        name = self.main_entry.name()
        return out + [
            f"-H:Name={self.layer_path / name}",
            "-cp",
            self.main_entry.classpath(),
        ] + trailing
