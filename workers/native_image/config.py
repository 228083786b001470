"""
Configuration — environment options and the explicit build configuration.

Settings reads the recognized BP_* options from the environment once.
The core never touches os.environ: it receives a frozen NativeImageConfig
built by Settings.to_config(), so precedence rules are testable without
mutating process state.
"""
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from pydantic import ValidationError
from pydantic_settings import BaseSettings

from native_image import DEFAULT_LAYER_NAME
from native_image.core.compression import CompressionMethod
from native_image.errors import ConfigurationError

logger = logging.getLogger(__name__)

TINY_STACK_ID = "io.paketo.stacks.tiny"
DEFAULT_COMPILER = "native-image"

# Shipped by some frameworks inside the application itself.
EMBEDDED_ARGUMENTS_FILE = Path("META-INF") / "native-image" / "argfile"


@dataclass(frozen=True)
class NativeImageConfig:
    """Everything the core needs to know about one build."""

    arguments: str = ""
    arguments_file: Optional[str] = None
    jar_file_pattern: Optional[str] = None
    compression: CompressionMethod = CompressionMethod.NONE
    classpath: Optional[str] = None
    stack_id: str = ""
    compiler: str = DEFAULT_COMPILER
    layer_name: str = DEFAULT_LAYER_NAME

    @property
    def is_tiny_stack(self) -> bool:
        return self.stack_id == TINY_STACK_ID


class Settings(BaseSettings):
    """Recognized environment options."""

    # Enablement
    BP_NATIVE_IMAGE: Optional[bool] = None
    BP_BOOT_NATIVE_IMAGE: Optional[str] = None  # deprecated

    # Arguments
    BP_NATIVE_IMAGE_BUILD_ARGUMENTS: Optional[str] = None
    BP_BOOT_NATIVE_IMAGE_BUILD_ARGUMENTS: Optional[str] = None  # deprecated
    BP_NATIVE_IMAGE_BUILD_ARGUMENTS_FILE: Optional[str] = None

    # Packaging / post-processing
    BP_NATIVE_IMAGE_BUILT_ARTIFACT: Optional[str] = None
    BP_BINARY_COMPRESSION_METHOD: Optional[str] = None

    # Platform
    CLASSPATH: Optional[str] = None
    CNB_STACK_ID: str = ""

    class Config:
        case_sensitive = True

    @property
    def native_image_enabled(self) -> Optional[bool]:
        """True/False when requested explicitly, None when unset."""
        if self.BP_NATIVE_IMAGE is not None:
            return self.BP_NATIVE_IMAGE
        if self.BP_BOOT_NATIVE_IMAGE is not None:
            return True
        return None

    def build_arguments(self) -> str:
        if self.BP_NATIVE_IMAGE_BUILD_ARGUMENTS is not None:
            return self.BP_NATIVE_IMAGE_BUILD_ARGUMENTS
        if self.BP_BOOT_NATIVE_IMAGE_BUILD_ARGUMENTS is not None:
            _warn_deprecated(
                "BP_BOOT_NATIVE_IMAGE_BUILD_ARGUMENTS",
                "BP_NATIVE_IMAGE_BUILD_ARGUMENTS",
            )
            return self.BP_BOOT_NATIVE_IMAGE_BUILD_ARGUMENTS
        return ""

    def to_config(
        self,
        application_path: Union[str, Path],
        layer_name: str = DEFAULT_LAYER_NAME,
    ) -> NativeImageConfig:
        """Resolve deprecated names and defaults into a NativeImageConfig."""
        if self.BP_BOOT_NATIVE_IMAGE is not None:
            _warn_deprecated("BP_BOOT_NATIVE_IMAGE", "BP_NATIVE_IMAGE")

        arguments_file = self.BP_NATIVE_IMAGE_BUILD_ARGUMENTS_FILE or None
        if arguments_file is None:
            embedded = Path(application_path) / EMBEDDED_ARGUMENTS_FILE
            if embedded.is_file():
                logger.info("Using embedded arguments file %s", embedded)
                arguments_file = str(embedded)

        return NativeImageConfig(
            arguments=self.build_arguments(),
            arguments_file=arguments_file,
            jar_file_pattern=self.BP_NATIVE_IMAGE_BUILT_ARTIFACT or None,
            compression=CompressionMethod.parse(self.BP_BINARY_COMPRESSION_METHOD),
            classpath=self.CLASSPATH or None,
            stack_id=self.CNB_STACK_ID,
            layer_name=layer_name,
        )


def load_settings() -> Settings:
    """Read Settings from the environment, failing with ConfigurationError."""
    try:
        return Settings()
    except ValidationError as e:
        raise ConfigurationError(f"invalid configuration\n{e}") from e


def _warn_deprecated(old: str, new: str) -> None:
    logger.warning("$%s has been deprecated. Please use $%s instead.", old, new)
