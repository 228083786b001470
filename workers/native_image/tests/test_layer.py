"""Tests for the layer contributor cache."""
from pathlib import Path

import pytest

from native_image.core.layer import Layer, LayerContributor
from native_image.errors import ExecutionError
from native_image.io.schema import CacheKey, ContributionOutcome, FileEntry


def _key(arguments=("-Xmx=1g",), compression="none", version_hash="v1") -> CacheKey:
    return CacheKey(
        files=[FileEntry(path="com/example/App.class", mode="0644", sha256="ab" * 32)],
        arguments=list(arguments),
        compression=compression,
        version_hash=version_hash,
    )


class Recorder:
    """Contributor that writes one file and counts its calls."""

    def __init__(self):
        self.calls = 0

    def __call__(self, layer: Layer) -> Layer:
        self.calls += 1
        (layer.path / "app").write_bytes(b"binary")
        return layer


@pytest.fixture
def layer(layers_path: Path) -> Layer:
    return Layer.in_dir(layers_path, "native-image")


class TestLayerContributor:

    def test_miss_then_hit(self, layer: Layer):
        recorder = Recorder()
        outcome, _ = LayerContributor("Native Image", _key()).contribute(layer, recorder)
        assert outcome == ContributionOutcome.REBUILT
        assert layer.metadata_path.exists()

        outcome, _ = LayerContributor("Native Image", _key()).contribute(layer, recorder)
        assert outcome == ContributionOutcome.REUSED
        assert recorder.calls == 1
        assert (layer.path / "app").read_bytes() == b"binary"

    @pytest.mark.parametrize("changed", [
        {"arguments": ("-Xmx=2g",)},
        {"compression": "upx"},
        {"version_hash": "v2"},
    ])
    def test_any_key_change_is_a_miss(self, layer: Layer, changed):
        recorder = Recorder()
        LayerContributor("Native Image", _key()).contribute(layer, recorder)
        outcome, _ = LayerContributor("Native Image", _key(**changed)).contribute(layer, recorder)
        assert outcome == ContributionOutcome.REBUILT
        assert recorder.calls == 2

    def test_miss_wipes_stale_layer(self, layer: Layer):
        LayerContributor("Native Image", _key()).contribute(layer, Recorder())
        (layer.path / "stale").write_bytes(b"old")
        LayerContributor("Native Image", _key(version_hash="v2")).contribute(layer, Recorder())
        assert not (layer.path / "stale").exists()

    def test_failed_contributor_leaves_no_metadata(self, layer: Layer):
        """A failed build never records a key, so the next run recompiles."""
        def failing(_layer: Layer) -> Layer:
            raise ExecutionError("native-image", 1)

        LayerContributor("Native Image", _key()).contribute(layer, Recorder())
        with pytest.raises(ExecutionError):
            LayerContributor("Native Image", _key(version_hash="v2")).contribute(layer, failing)
        assert not layer.metadata_path.exists()

        recorder = Recorder()
        outcome, _ = LayerContributor("Native Image", _key(version_hash="v2")).contribute(layer, recorder)
        assert outcome == ContributionOutcome.REBUILT
        assert recorder.calls == 1

    def test_missing_layer_directory_is_a_miss(self, layer: Layer):
        LayerContributor("Native Image", _key()).contribute(layer, Recorder())
        for child in layer.path.iterdir():
            child.unlink()
        layer.path.rmdir()

        outcome, _ = LayerContributor("Native Image", _key()).contribute(layer, Recorder())
        assert outcome == ContributionOutcome.REBUILT

    def test_corrupt_metadata_is_a_miss(self, layer: Layer):
        LayerContributor("Native Image", _key()).contribute(layer, Recorder())
        layer.metadata_path.write_text("{not json")

        outcome, _ = LayerContributor("Native Image", _key()).contribute(layer, Recorder())
        assert outcome == ContributionOutcome.REBUILT


class TestCacheKey:

    def test_canonical_survives_json_round_trip(self):
        a = _key()
        b = CacheKey.model_validate_json(a.model_dump_json())
        assert a.canonical() == b.canonical()

    def test_argument_order_matters(self):
        assert _key(("-a", "-b")).canonical() != _key(("-b", "-a")).canonical()
