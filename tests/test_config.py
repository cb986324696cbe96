"""Tests for configuration loading and cross-cutting validation."""

import tempfile
from pathlib import Path

import pytest

from place_server.config import (
    CanvasConfig,
    ResetConfig,
    Size,
    StoreConfig,
    default_config,
    load_from_toml,
)
from place_server.validation import ConfigValidationError, validate_canvas_config


def write_toml(content: str) -> Path:
    f = tempfile.NamedTemporaryFile(mode="w", suffix=".toml", delete=False)
    f.write(content)
    f.flush()
    f.close()
    return Path(f.name)


def test_load_from_toml():
    path = write_toml(
        """
[canvas]
width = 64
height = 32
bit_depth = 4
key = "place:test"
legacy_fetch_range = true

[reset]
mode = "bulk"
batch_size = 256
seed_min = 1
seed_max = 15
random_seed = 3

[store]
url = "redis://cache:6379/2"
timeout = 2.5
mock = false
"""
    )
    try:
        cfg = load_from_toml(path)
        assert cfg.width == 64
        assert cfg.height == 32
        assert cfg.key == "place:test"
        assert cfg.legacy_fetch_range is True
        assert cfg.fetch_end == 65
        assert cfg.reset.mode == "bulk"
        assert cfg.reset.batch_size == 256
        assert cfg.seed_max == 15
        assert cfg.reset.random_seed == 3
        assert cfg.store.url == "redis://cache:6379/2"
        assert cfg.store.timeout == 2.5
        assert cfg.store.mock is False
    finally:
        path.unlink()


def test_load_defaults_from_empty_file():
    path = write_toml("")
    try:
        cfg = load_from_toml(path)
        assert cfg.canvas_size == Size(1000, 1000)
        assert cfg.bit_depth == 4
        assert cfg.reset.mode == "fields"
        assert cfg.store.mock is True
    finally:
        path.unlink()


def test_missing_file():
    with pytest.raises(FileNotFoundError):
        load_from_toml("/nonexistent/place.toml")


def test_derived_sizes():
    cfg = CanvasConfig(canvas_size=Size(3, 3), bit_depth=4)
    assert cfg.field_count == 9
    assert cfg.max_value == 15
    # Default seed range excludes the maximum value
    assert cfg.seed_max == 14
    # ceil(9 * 4 / 8) bytes, inclusive end
    assert cfg.packed_bytes == 5
    assert cfg.fetch_end == 4

    one_bit = CanvasConfig(canvas_size=Size(10, 1), bit_depth=1)
    assert one_bit.packed_bytes == 2
    assert one_bit.seed_max == 0


def test_default_config():
    cfg = default_config()
    assert cfg.width == 1000 and cfg.height == 1000
    assert cfg.packed_bytes == 500_000


def test_type_local_validation():
    with pytest.raises(ValueError):
        Size(0, 5)
    with pytest.raises(ValueError):
        ResetConfig(batch_size=0)
    with pytest.raises(ValueError):
        StoreConfig(timeout=0)


def test_validation_seed_range_exceeds_bit_depth():
    cfg = CanvasConfig(Size(2, 2), bit_depth=4, reset=ResetConfig(seed_max=16))
    with pytest.raises(ConfigValidationError):
        validate_canvas_config(cfg)


def test_validation_empty_seed_range():
    cfg = CanvasConfig(Size(2, 2), bit_depth=4, reset=ResetConfig(seed_min=5, seed_max=4))
    with pytest.raises(ConfigValidationError):
        cfg.validate()


def test_validation_bit_depth_and_mode():
    with pytest.raises(ConfigValidationError):
        CanvasConfig(Size(2, 2), bit_depth=0).validate()
    with pytest.raises(ConfigValidationError):
        CanvasConfig(Size(2, 2), reset=ResetConfig(mode="atomic")).validate()  # type: ignore[arg-type]
    with pytest.raises(ConfigValidationError):
        CanvasConfig(Size(2, 2), key="").validate()
