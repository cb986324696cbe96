# place_server/config.py
from __future__ import annotations

import logging
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Size:
    w: int
    h: int

    def __post_init__(self) -> None:
        if self.w <= 0 or self.h <= 0:
            raise ValueError(f"Size must be positive, got ({self.w}x{self.h})")


ResetMode = Literal["fields", "bulk"]


@dataclass(frozen=True)
class ResetConfig:
    mode: ResetMode = "fields"
    batch_size: int = 1024
    seed_min: int = 0
    # None means "2**bit_depth - 2", resolved by CanvasConfig.seed_max
    seed_max: Optional[int] = None
    random_seed: Optional[int] = None

    def __post_init__(self) -> None:
        if self.batch_size <= 0:
            raise ValueError("Reset batch_size must be > 0")


@dataclass(frozen=True)
class StoreConfig:
    url: str = "redis://localhost:6379/0"
    timeout: float = 1.0
    mock: bool = True

    def __post_init__(self) -> None:
        if self.timeout <= 0:
            raise ValueError("Store timeout must be > 0")


@dataclass(frozen=True)
class CanvasConfig:
    canvas_size: Size
    bit_depth: int = 4
    key: str = "place:canvas"
    legacy_fetch_range: bool = False
    reset: ResetConfig = field(default_factory=ResetConfig)
    store: StoreConfig = field(default_factory=StoreConfig)

    @property
    def width(self) -> int:
        return self.canvas_size.w

    @property
    def height(self) -> int:
        return self.canvas_size.h

    @property
    def field_count(self) -> int:
        return self.canvas_size.w * self.canvas_size.h

    @property
    def max_value(self) -> int:
        return (1 << self.bit_depth) - 1

    @property
    def seed_max(self) -> int:
        """Largest value reset may seed; defaults to one below max_value."""
        if self.reset.seed_max is not None:
            return self.reset.seed_max
        return max(self.max_value - 1, 0)

    @property
    def packed_bytes(self) -> int:
        """Exact byte length of the packed buffer, ceil(W*H*B/8)."""
        return (self.field_count * self.bit_depth + 7) // 8

    @property
    def fetch_end(self) -> int:
        """Inclusive end of the byte range returned by a full fetch."""
        if self.legacy_fetch_range:
            return self.canvas_size.w + 1
        return self.packed_bytes - 1

    def validate(self) -> None:
        from .validation import validate_canvas_config

        validate_canvas_config(self)


def load_from_toml(config_path: str | Path) -> CanvasConfig:
    """
    Load a CanvasConfig from a TOML file.

    Expected TOML structure:

    [canvas]
    width = 1000
    height = 1000
    bit_depth = 4
    key = "place:canvas"
    legacy_fetch_range = false

    [reset]
    mode = "fields"   # fields|bulk
    batch_size = 1024
    seed_min = 0
    seed_max = 14     # optional, defaults to 2**bit_depth - 2
    random_seed = 7   # optional

    [store]
    url = "redis://localhost:6379/0"
    timeout = 1.0
    mock = true
    """
    p = Path(config_path)
    if not p.exists():
        raise FileNotFoundError(f"Configuration file not found: {p}")

    with p.open("rb") as f:
        data = tomllib.load(f)

    canvas = data.get("canvas") or {}
    reset = data.get("reset") or {}
    store = data.get("store") or {}

    seed_max = reset.get("seed_max")
    random_seed = reset.get("random_seed")

    cfg = CanvasConfig(
        canvas_size=Size(int(canvas.get("width", 1000)), int(canvas.get("height", 1000))),
        bit_depth=int(canvas.get("bit_depth", 4)),
        key=str(canvas.get("key", "place:canvas")),
        legacy_fetch_range=bool(canvas.get("legacy_fetch_range", False)),
        reset=ResetConfig(
            mode=str(reset.get("mode", "fields")).lower(),  # type: ignore[arg-type]
            batch_size=int(reset.get("batch_size", 1024)),
            seed_min=int(reset.get("seed_min", 0)),
            seed_max=int(seed_max) if seed_max is not None else None,
            random_seed=int(random_seed) if random_seed is not None else None,
        ),
        store=StoreConfig(
            url=str(store.get("url", "redis://localhost:6379/0")),
            timeout=float(store.get("timeout", 1.0)),
            mock=bool(store.get("mock", True)),
        ),
    )

    # Early validations
    cfg.validate()

    logger.info(
        "Loaded CanvasConfig: canvas=%dx%d, %d-bit fields, key=%s, store=%s (mock=%s)",
        cfg.width,
        cfg.height,
        cfg.bit_depth,
        cfg.key,
        cfg.store.url,
        cfg.store.mock,
    )
    return cfg


def default_config() -> CanvasConfig:
    """A sensible local default: a 1000x1000 canvas of 4-bit colors in memory."""
    cfg = CanvasConfig(
        canvas_size=Size(1000, 1000),
        bit_depth=4,
        key="place:canvas",
        reset=ResetConfig(mode="fields", batch_size=1024),
        store=StoreConfig(url="redis://localhost:6379/0", timeout=1.0, mock=True),
    )
    cfg.validate()
    return cfg
