"""Shared fixtures for canvas tests."""

import pytest

from place_server.canvas_store import CanvasStore
from place_server.config import CanvasConfig, ResetConfig, Size, StoreConfig
from place_server.store_backend import MemoryStoreBackend


@pytest.fixture
def small_config() -> CanvasConfig:
    """2x2 canvas of 4-bit pixels in memory."""
    cfg = CanvasConfig(
        canvas_size=Size(2, 2),
        bit_depth=4,
        key="test:canvas",
        reset=ResetConfig(mode="fields", batch_size=3, random_seed=1234),
        store=StoreConfig(mock=True),
    )
    cfg.validate()
    return cfg


@pytest.fixture
def memory_backend(small_config) -> MemoryStoreBackend:
    return MemoryStoreBackend(small_config.store)


@pytest.fixture
def canvas_store(small_config, memory_backend) -> CanvasStore:
    return CanvasStore(small_config, backend=memory_backend)
