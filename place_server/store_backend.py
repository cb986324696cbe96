"""
Canvas Store I/O Boundary

This module provides the StoreBackend classes, which handle all I/O against the
external byte-addressable store holding the packed canvas. It abstracts away
the Redis/in-memory distinction and provides a small interface of field-level
and range-level operations.

I/O boundary class - handles all store interaction and connection management.
The store is the single point of mutual exclusion: each field-set must be
atomic with respect to other field-sets on the same key.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Dict, Optional, Sequence, Tuple

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from .config import StoreConfig
from .pixel_codec import FieldDescriptor, read_field, write_field, write_fields


logger = logging.getLogger(__name__)

FieldWrite = Tuple[FieldDescriptor, int]


class StoreUnavailableError(Exception):
    """Raised when the store cannot be reached or a store operation fails."""

    pass


class StoreBackend(ABC):
    """
    Abstract base class for the external canvas store.

    Keys hold packed buffers. Writing a field to an absent key creates it,
    zero-filled up to the written field.
    """

    @abstractmethod
    async def connect(self) -> None:
        """
        Connect to the store.

        Raises:
            StoreUnavailableError: If connection fails
        """
        pass

    @abstractmethod
    async def disconnect(self) -> None:
        pass

    @abstractmethod
    def is_connected(self) -> bool:
        pass

    @abstractmethod
    async def ping(self) -> bool:
        pass

    @abstractmethod
    async def delete(self, key: str) -> None:
        pass

    @abstractmethod
    async def set_field(self, key: str, descriptor: FieldDescriptor, value: int) -> None:
        """
        Atomically set one unsigned field within the key's value.

        Raises:
            StoreUnavailableError: If the write fails
        """
        pass

    @abstractmethod
    async def set_fields(self, key: str, writes: Sequence[FieldWrite]) -> None:
        """Set several fields with a single store command."""
        pass

    @abstractmethod
    async def get_field(self, key: str, descriptor: FieldDescriptor) -> int:
        pass

    @abstractmethod
    async def get_range(self, key: str, start: int, end: int) -> bytes:
        """
        Read bytes [start, end] (inclusive) of the key's value.

        The range is clipped to the value's length; an absent key yields b"".
        """
        pass

    @abstractmethod
    async def write_buffer(self, key: str, data: bytes) -> None:
        """Overwrite the key's whole value in one operation."""
        pass


class RedisStoreBackend(StoreBackend):
    """
    Redis store implementation using redis.asyncio.

    Field access goes through BITFIELD with ``#slot`` offsets, so Redis does
    the slot * width multiplication and serializes concurrent field-sets.
    """

    def __init__(self, config: StoreConfig, client: Optional[aioredis.Redis] = None):
        self.config = config
        self._client: Optional[aioredis.Redis] = client
        self._connected = False

    async def connect(self) -> None:
        """Connect to Redis and verify the connection with PING."""
        try:
            if self._client is None:
                self._client = aioredis.Redis.from_url(
                    self.config.url,
                    socket_timeout=self.config.timeout,
                    socket_connect_timeout=self.config.timeout,
                )
            await self._client.ping()
            self._connected = True
            logger.info(f"Connected to Redis store at {self.config.url}")

        except (RedisError, OSError) as e:
            self._connected = False
            raise StoreUnavailableError(f"Redis connect failed: {e}") from e

    async def disconnect(self) -> None:
        if self._client is None:
            return
        try:
            await self._client.aclose()
            logger.info("Disconnected from Redis store")
        except (RedisError, OSError) as e:
            raise StoreUnavailableError(f"Redis disconnect failed: {e}") from e
        finally:
            self._client = None
            self._connected = False

    def is_connected(self) -> bool:
        return self._client is not None and self._connected

    def _require_client(self) -> aioredis.Redis:
        if self._client is None or not self._connected:
            raise StoreUnavailableError("Not connected to Redis store")
        return self._client

    async def ping(self) -> bool:
        client = self._require_client()
        try:
            return bool(await client.ping())
        except (RedisError, OSError) as e:
            raise StoreUnavailableError(f"Redis ping failed: {e}") from e

    async def delete(self, key: str) -> None:
        client = self._require_client()
        try:
            await client.delete(key)
        except (RedisError, OSError) as e:
            raise StoreUnavailableError(f"Redis delete failed: {e}") from e

    async def set_field(self, key: str, descriptor: FieldDescriptor, value: int) -> None:
        await self.set_fields(key, [(descriptor, value)])

    async def set_fields(self, key: str, writes: Sequence[FieldWrite]) -> None:
        if not writes:
            return
        client = self._require_client()
        operation = client.bitfield(key)
        for descriptor, value in writes:
            operation.set(descriptor.type_code, descriptor.slot_offset, value)
        try:
            await operation.execute()
        except (RedisError, OSError) as e:
            raise StoreUnavailableError(f"Redis BITFIELD SET failed: {e}") from e

    async def get_field(self, key: str, descriptor: FieldDescriptor) -> int:
        client = self._require_client()
        operation = client.bitfield(key)
        operation.get(descriptor.type_code, descriptor.slot_offset)
        try:
            result = await operation.execute()
        except (RedisError, OSError) as e:
            raise StoreUnavailableError(f"Redis BITFIELD GET failed: {e}") from e
        return int(result[0])

    async def get_range(self, key: str, start: int, end: int) -> bytes:
        client = self._require_client()
        try:
            data = await client.getrange(key, start, end)
        except (RedisError, OSError) as e:
            raise StoreUnavailableError(f"Redis GETRANGE failed: {e}") from e
        return bytes(data or b"")

    async def write_buffer(self, key: str, data: bytes) -> None:
        client = self._require_client()
        try:
            await client.set(key, bytes(data))
        except (RedisError, OSError) as e:
            raise StoreUnavailableError(f"Redis SET failed: {e}") from e


class MemoryStoreBackend(StoreBackend):
    """
    In-process store implementation for testing and development.

    Reproduces the Redis semantics the canvas relies on: BITFIELD bit order,
    key creation on write, GETRANGE clipping. One lock serializes every
    mutation so a field-set is atomic.
    """

    def __init__(self, config: StoreConfig):
        self.config = config
        self._connected = False
        self._data: Dict[str, bytearray] = {}
        self._lock = asyncio.Lock()

    async def connect(self) -> None:
        self._connected = True
        logger.info("[MOCK] Connected to in-memory store")

    async def disconnect(self) -> None:
        self._connected = False
        logger.info("[MOCK] Disconnected from in-memory store")

    def is_connected(self) -> bool:
        return self._connected

    def _require_connected(self) -> None:
        if not self._connected:
            raise StoreUnavailableError("Not connected to memory store")

    async def ping(self) -> bool:
        self._require_connected()
        return True

    async def delete(self, key: str) -> None:
        self._require_connected()
        async with self._lock:
            self._data.pop(key, None)

    async def set_field(self, key: str, descriptor: FieldDescriptor, value: int) -> None:
        self._require_connected()
        async with self._lock:
            write_field(self._data.setdefault(key, bytearray()), descriptor, value)

    async def set_fields(self, key: str, writes: Sequence[FieldWrite]) -> None:
        """
        Set a batch of same-width fields under one lock acquisition.

        Yields to the event loop afterwards, so separate batches interleave
        with other writers the way separate BITFIELD commands do.
        """
        self._require_connected()
        if not writes:
            return
        bit_depth = writes[0][0].bit_depth
        if any(descriptor.bit_depth != bit_depth for descriptor, _ in writes):
            raise ValueError("All fields in one batch must share a bit depth")

        async with self._lock:
            write_fields(
                self._data.setdefault(key, bytearray()),
                bit_depth,
                [descriptor.slot for descriptor, _ in writes],
                [value for _, value in writes],
            )
        await asyncio.sleep(0)

    async def get_field(self, key: str, descriptor: FieldDescriptor) -> int:
        self._require_connected()
        return read_field(self._data.get(key, b""), descriptor)

    async def get_range(self, key: str, start: int, end: int) -> bytes:
        self._require_connected()
        buffer = self._data.get(key)
        if buffer is None or start > end:
            return b""
        return bytes(buffer[start : end + 1])

    async def write_buffer(self, key: str, data: bytes) -> None:
        self._require_connected()
        async with self._lock:
            self._data[key] = bytearray(data)

    def has_key(self, key: str) -> bool:
        return key in self._data


def create_store_backend(
    config: StoreConfig, use_redis: Optional[bool] = None
) -> StoreBackend:
    """
    Factory function to create appropriate store backend implementation.

    Args:
        config: Store configuration
        use_redis: Force Redis (True) or memory (False). If None, uses config.mock

    Returns:
        StoreBackend: Redis or in-memory implementation
    """
    if use_redis is None:
        use_redis = not config.mock

    if use_redis:
        logger.info("Creating Redis store backend")
        return RedisStoreBackend(config)
    else:
        logger.info("Creating in-memory store backend")
        return MemoryStoreBackend(config)
