"""
Native-image runner: application in, native binary out.

This module ties configuration, argument processing, the layer cache,
compilation, compression and relocation together into a single
``NativeImageBuild.execute`` call that can be used from the CLI or from
a test.

Stages, strictly in order:
  1. manifest + file listing of the application
  2. main entry + argument pipeline
  3. compiler version check
  4. layer contribution (compile + compress on cache miss)
  5. relocation into the application directory
  6. artifact metadata + launch processes
"""
import hashlib
import logging
import os
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Tuple, Union

from native_image import DEFAULT_LAYER_NAME
from native_image.config import NativeImageConfig
from native_image.core.artifact import describe_artifact
from native_image.core.compression import compressor_for
from native_image.core.executor import Executor, NativeImageCompiler
from native_image.core.layer import Layer, LayerContributor, now_iso
from native_image.core.listing import file_listing
from native_image.core.main_entry import MainEntry, resolve_main_entry
from native_image.core.pipeline import ArgumentPipeline
from native_image.core.relocation import relocate
from native_image.errors import ArtifactIOError, NativeImageBuildError, NativeImageError
from native_image.io.manifest import read_manifest
from native_image.io.schema import (
    CacheKey,
    LaunchProcess,
    NativeImageResult,
)
from native_image.io.writer import write_result

logger = logging.getLogger(__name__)

PROCESS_TYPES = ("native-image", "task", "web")
DEFAULT_PROCESS_TYPE = "web"


def launch_processes(command: Path) -> List[LaunchProcess]:
    """Process types that all run the relocated binary directly."""
    return [
        LaunchProcess(
            type=t,
            command=str(command),
            direct=True,
            default=(t == DEFAULT_PROCESS_TYPE),
        )
        for t in PROCESS_TYPES
    ]


class NativeImageBuild:
    """
    One native-image build of one application.

    Parameters
    ----------
    config : NativeImageConfig
        Explicit build configuration (see config.Settings.to_config).
    application_path : Path
        Application root; read for the cache key, replaced by the binary.
    layers_path : Path
        Directory holding the cache layer and its metadata file.
    executor : Executor, optional
        Runs external processes.  Defaults to a subprocess Executor.
    manifest : mapping, optional
        MANIFEST.MF main attributes.  Read from the application if None.
    environ : mapping, optional
        Base environment for the compiler.  Defaults to os.environ.
    """

    def __init__(
        self,
        config: NativeImageConfig,
        application_path: Union[str, Path],
        layers_path: Union[str, Path],
        executor: Optional[Executor] = None,
        manifest: Optional[Mapping[str, str]] = None,
        environ: Optional[Mapping[str, str]] = None,
    ):
        self.config = config
        # the compiler runs inside the layer, so every path it sees is absolute
        self.application_path = Path(os.path.abspath(application_path))
        self.layers_path = Path(os.path.abspath(layers_path))
        self.executor = executor or Executor()
        self.manifest = dict(manifest) if manifest is not None else None
        self.compiler = NativeImageCompiler(self.executor, config.compiler, environ)
        self.compressor = compressor_for(config.compression, self.executor)
        self.layer = Layer.in_dir(self.layers_path, config.layer_name or DEFAULT_LAYER_NAME)

    # -----------------------------------------------------------------
    # Stages
    # -----------------------------------------------------------------

    def _stage(self, label: str, fn, *args):
        try:
            return fn(*args)
        except NativeImageError as e:
            raise NativeImageBuildError(label, e) from e

    def _read_manifest(self) -> Dict[str, str]:
        if self.manifest is None:
            self.manifest = read_manifest(self.application_path)
        return self.manifest

    def process_arguments(self) -> Tuple[List[str], MainEntry]:
        manifest = self._read_manifest()
        main_entry = resolve_main_entry(self.config, self.application_path, manifest)
        arguments = ArgumentPipeline(self.config, main_entry, self.layer.path).process()
        return arguments, main_entry

    def _contribute(self, arguments: List[str], program_name: str):
        def contributor(layer: Layer) -> Layer:
            self.compiler.compile(arguments, layer.path)
            binary = layer.path / program_name
            if not binary.is_file():
                raise ArtifactIOError(f"native image {binary} was not produced by {self.compiler.command}")
            self.compressor.compress(binary)
            return layer
        return contributor

    # -----------------------------------------------------------------
    # Execute
    # -----------------------------------------------------------------

    def execute(self, output_dir: Optional[Path] = None) -> NativeImageResult:
        started_at = now_iso()
        logger.info(
            "Starting native-image build of %s (layer=%s, compression=%s)",
            self.application_path, self.layer.path, self.config.compression.value,
        )

        self._stage("unable to read manifest", self._read_manifest)
        files = self._stage(
            "unable to create file listing", file_listing, self.application_path
        )
        arguments, main_entry = self._stage(
            "unable to process arguments", self.process_arguments
        )
        program_name = self._stage("unable to find entry point", main_entry.name)

        version_hash = self._stage("error running version", self.compiler.version_hash)

        cache_key = CacheKey(
            files=files,
            arguments=arguments,
            compression=self.config.compression.value,
            version_hash=version_hash,
        )
        contributor = LayerContributor("Native Image", cache_key)
        outcome, layer = self._stage(
            "unable to contribute native-image layer",
            contributor.contribute,
            self.layer,
            self._contribute(arguments, program_name),
        )

        relocation = self._stage(
            "unable to relocate native image", relocate, self.application_path, layer.path
        )

        artifacts = self._stage(
            "unable to describe artifacts",
            lambda: [describe_artifact(self.application_path / n) for n in relocation.copied],
        )
        binary_path = self.application_path / program_name

        result = NativeImageResult(
            application_path=str(self.application_path),
            layer_path=str(layer.path),
            outcome=outcome,
            program_name=program_name,
            binary_path=str(binary_path),
            arguments=arguments,
            compression=self.config.compression.value,
            cache_key_sha256=hashlib.sha256(cache_key.canonical().encode("utf-8")).hexdigest(),
            relocation=relocation,
            artifacts=artifacts,
            processes=launch_processes(binary_path),
            started_at=started_at,
            finished_at=now_iso(),
        )

        if output_dir is not None:
            path = self._stage("unable to write result", write_result, result, Path(output_dir))
            logger.info("Result saved: %s", path)

        logger.info(
            "Native-image build finished: %s -> %s", outcome.value, binary_path
        )
        return result

