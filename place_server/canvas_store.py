"""
Canvas Store - Policy/Orchestration Layer

This module contains the CanvasStore class, which orchestrates canvas
operations against the external store: reset (seeding), single-pixel writes,
single-pixel reads and full-canvas fetches. It owns the key namespace and the
width/height/bit-depth configuration.

Policy layer - uses pure modules (bit_address, pixel_codec) and the I/O
boundary (StoreBackend). It holds no locks and keeps no copy of the canvas
between calls.
"""

import logging
from typing import Any, Dict, List, Optional

import numpy as np

from .bit_address import coordinate_violations, field_offset
from .config import CanvasConfig
from .pixel_codec import (
    encode_field_descriptor,
    pack_fields,
    unpack_fields,
    value_violations,
)
from .store_backend import StoreBackend, StoreUnavailableError, create_store_backend
from .validation import InvalidValueError, OutOfBoundsError


logger = logging.getLogger(__name__)


class CanvasStore:
    """
    Shared packed canvas held under a single store key.

    Writes never require an explicit initialize step: setting a pixel on an
    absent key creates it. Reset in "fields" mode is not atomic across its
    batches, so concurrent writers may interleave with it.
    """

    def __init__(
        self,
        canvas_config: CanvasConfig,
        backend: Optional[StoreBackend] = None,
        rng: Optional[np.random.Generator] = None,
    ):
        """
        Initialize the canvas store with dependencies.

        Args:
            canvas_config: Canvas configuration
            backend: Store I/O boundary (default: auto-created from config)
            rng: Random source for reset seeding (default: from config seed)
        """
        self.config = canvas_config
        self.backend = backend or create_store_backend(canvas_config.store)
        self.rng = rng or np.random.default_rng(canvas_config.reset.random_seed)

        self._stats = {
            "resets": 0,
            "pixels_written": 0,
            "rejected_writes": 0,
            "fetches": 0,
            "store_errors": 0,
        }

        logger.info(
            f"Canvas store initialized: {self.config.width}x{self.config.height}, "
            f"{self.config.bit_depth}-bit fields, key '{self.config.key}'"
        )

    @property
    def key(self) -> str:
        return self.config.key

    async def connect(self) -> None:
        await self.backend.connect()

    async def disconnect(self) -> None:
        await self.backend.disconnect()

    def is_connected(self) -> bool:
        return self.backend.is_connected()

    def validate_draw(self, x: int, y: int, value: int) -> List[str]:
        """
        Describe every violated draw constraint, in the order value, x, y.

        Returns:
            List[str]: Empty if the draw is valid
        """
        return value_violations(value, self.config.bit_depth) + coordinate_violations(
            x, y, self.config.width, self.config.height
        )

    async def set_pixel(self, x: int, y: int, value: int) -> None:
        """
        Set one pixel with a single atomic field-set.

        Raises:
            OutOfBoundsError: If the coordinate is off the canvas (the message
                also lists an invalid value, if any)
            InvalidValueError: If only the value is invalid
            StoreUnavailableError: If the store write fails
        """
        errors = self.validate_draw(x, y, value)
        if errors:
            self._stats["rejected_writes"] += 1
            if coordinate_violations(x, y, self.config.width, self.config.height):
                raise OutOfBoundsError(errors=errors)
            raise InvalidValueError(errors=errors)

        slot = field_offset(x, y, self.config.width, self.config.height)
        descriptor = encode_field_descriptor(self.config.bit_depth, slot)

        try:
            await self.backend.set_field(self.key, descriptor, value)
        except StoreUnavailableError as e:
            self._stats["store_errors"] += 1
            logger.error(f"Failed to set pixel ({x},{y}): {e}")
            raise

        self._stats["pixels_written"] += 1
        logger.debug(f"Set pixel ({x},{y}) slot {slot} = {value}")

    async def get_pixel(self, x: int, y: int) -> int:
        """Read one pixel back; pixels never written read as 0."""
        slot = field_offset(x, y, self.config.width, self.config.height)
        descriptor = encode_field_descriptor(self.config.bit_depth, slot)
        try:
            return await self.backend.get_field(self.key, descriptor)
        except StoreUnavailableError:
            self._stats["store_errors"] += 1
            raise

    async def get_all(self) -> bytes:
        """
        Fetch the raw packed byte range for the whole canvas.

        Returns:
            bytes: Bytes [0, config.fetch_end] of the buffer, b"" if absent

        Raises:
            StoreUnavailableError: If the store read fails
        """
        try:
            data = await self.backend.get_range(self.key, 0, self.config.fetch_end)
        except StoreUnavailableError as e:
            self._stats["store_errors"] += 1
            logger.error(f"Failed to fetch canvas: {e}")
            raise

        self._stats["fetches"] += 1
        return data

    async def snapshot(self) -> np.ndarray:
        """Fetch the canvas and decode it into an (height, width) array."""
        data = await self.get_all()
        values = unpack_fields(data, self.config.bit_depth, self.config.field_count)
        return values.reshape(self.config.height, self.config.width)

    def seed_values(self) -> np.ndarray:
        """Draw one seed value per field, uniform over [seed_min, seed_max]."""
        return self.rng.integers(
            self.config.reset.seed_min,
            self.config.seed_max,
            size=self.config.field_count,
            endpoint=True,
        )

    async def reset(self) -> None:
        """
        Clear the canvas and seed every pixel with a random value.

        In "fields" mode the key is deleted and every field is set, in batches
        of reset.batch_size field-sets per store command. A failure part-way
        leaves the canvas partially seeded. In "bulk" mode the packed buffer
        is built locally and written in one overwrite.

        Raises:
            StoreUnavailableError: If any store operation fails
        """
        values = self.seed_values()
        try:
            if self.config.reset.mode == "bulk":
                await self._reset_bulk(values)
            else:
                await self._reset_fields(values)
        except StoreUnavailableError as e:
            self._stats["store_errors"] += 1
            logger.error(f"Canvas reset failed: {e}")
            raise

        self._stats["resets"] += 1
        logger.info(
            f"Canvas '{self.key}' reset ({self.config.reset.mode} mode, "
            f"{self.config.field_count} pixels)"
        )

    async def _reset_fields(self, values: np.ndarray) -> None:
        await self.backend.delete(self.key)

        bit_depth = self.config.bit_depth
        batch_size = self.config.reset.batch_size
        for start in range(0, len(values), batch_size):
            batch = values[start : start + batch_size]
            writes = [
                (encode_field_descriptor(bit_depth, start + i), int(v))
                for i, v in enumerate(batch)
            ]
            await self.backend.set_fields(self.key, writes)

    async def _reset_bulk(self, values: np.ndarray) -> None:
        await self.backend.write_buffer(self.key, pack_fields(values, self.config.bit_depth))

    def get_stats(self) -> Dict[str, Any]:
        return {
            "canvas_size": f"{self.config.width}x{self.config.height}",
            "bit_depth": self.config.bit_depth,
            "key": self.key,
            "connected": self.is_connected(),
            "packed_bytes": self.config.packed_bytes,
            "fetch_end": self.config.fetch_end,
            "stats": self._stats.copy(),
        }
