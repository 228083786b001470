"""
Argument pipeline — the final argument vector for the compiler.

Stages run in a fixed order:
  1. baseline
  2. user arguments file (when configured)
  3. inline user arguments
  4. entry point
and finally "--no-fallback" is put in front unless the merged vector
already asks for "--auto-fallback" or "--force-fallback".
"""
import logging
from pathlib import Path
from typing import List, Union

from native_image.config import NativeImageConfig
from native_image.core.arguments import (
    BaselineArguments,
    EntryPointArguments,
    UserArguments,
    UserFileArguments,
)
from native_image.core.main_entry import MainEntry
from native_image.errors import NativeImageBuildError, NativeImageError

logger = logging.getLogger(__name__)

NO_FALLBACK = "--no-fallback"
FALLBACK_FLAGS = ("--auto-fallback", "--force-fallback")


def apply_fallback_default(arguments: List[str]) -> List[str]:
    if any(flag in arguments for flag in FALLBACK_FLAGS):
        return list(arguments)
    return [NO_FALLBACK] + list(arguments)


class ArgumentPipeline:
    """Builds and owns the argument vector for one build."""

    def __init__(
        self,
        config: NativeImageConfig,
        main_entry: MainEntry,
        layer_path: Union[str, Path],
    ):
        self.config = config
        self.main_entry = main_entry
        self.layer_path = Path(layer_path)

    def stages(self):
        stages = [("baseline arguments", BaselineArguments(self.config.stack_id))]
        if self.config.arguments_file:
            stages.append((
                "user file arguments",
                UserFileArguments(self.config.arguments_file),
            ))
        stages.append(("user arguments", UserArguments(self.config.arguments)))
        stages.append((
            "entry point arguments",
            EntryPointArguments(self.main_entry, self.layer_path),
        ))
        return stages

    def process(self) -> List[str]:
        arguments: List[str] = []
        for label, source in self.stages():
            try:
                arguments = source.configure(arguments)
            except NativeImageError as e:
                raise NativeImageBuildError(f"unable to set {label}", e) from e
            logger.debug("After %s: %s", label, arguments)

        return apply_fallback_default(arguments)
