"""
Layer contributor — content-addressed, single-slot build cache.

The layer directory holds the compiler output; its metadata file, kept
beside it, holds the cache key of the build that produced it.  A build
whose key serializes byte-identically to the stored one, with the layer
directory still present, reuses the layer as-is.  Anything else wipes
the layer, runs the contributor and stores the new key.  No eviction,
no TTL.
"""
import logging
import shutil
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Tuple, Union

from native_image.errors import ArtifactIOError
from native_image.io.schema import CacheKey, ContributionOutcome, LayerMetadata
from native_image.io.writer import read_layer_metadata, write_layer_metadata

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Layer:
    name: str
    path: Path

    @classmethod
    def in_dir(cls, layers_path: Union[str, Path], name: str) -> "Layer":
        return cls(name=name, path=Path(layers_path) / name)

    @property
    def metadata_path(self) -> Path:
        return self.path.parent / f"{self.name}.json"


def now_iso() -> str:
    """Current UTC time as ISO 8601 string."""
    return datetime.now(timezone.utc).isoformat()


class LayerContributor:
    """Runs a contributor function only when the cache key changed."""

    def __init__(self, name: str, cache_key: CacheKey):
        self.name = name
        self.cache_key = cache_key

    def is_cached(self, layer: Layer) -> bool:
        stored = read_layer_metadata(layer.metadata_path)
        if stored is None or not layer.path.is_dir():
            return False
        return stored.cache_key.canonical() == self.cache_key.canonical()

    def _reset(self, layer: Layer) -> None:
        try:
            if layer.metadata_path.exists():
                layer.metadata_path.unlink()
            if layer.path.exists():
                shutil.rmtree(layer.path)
            layer.path.mkdir(parents=True)
        except OSError as e:
            raise ArtifactIOError(f"unable to reset layer {layer.path}: {e}") from e

    def contribute(
        self,
        layer: Layer,
        contributor: Callable[[Layer], Layer],
    ) -> Tuple[ContributionOutcome, Layer]:
        if self.is_cached(layer):
            logger.info("%s: Reusing cached layer %s", self.name, layer.path)
            return ContributionOutcome.REUSED, layer

        logger.info("%s: Contributing to layer %s", self.name, layer.path)
        self._reset(layer)
        layer = contributor(layer)

        write_layer_metadata(
            LayerMetadata(
                layer_name=layer.name,
                created_at=now_iso(),
                cache_key=self.cache_key,
            ),
            layer.metadata_path,
        )
        return ContributionOutcome.REBUILT, layer
