"""Chunked JSON cache on top of Redis.

Values are serialized to JSON and split into fixed-size chunk records plus a
single metadata record holding the chunk count and the write timestamp::

    <namespace>:<key>:meta      -> {"chunks": 3, "timestamp": 1734787200000}
    <namespace>:<key>:chunk:0   -> first chunk_size bytes of the document
    <namespace>:<key>:chunk:1   -> ...

An entry is only returned when its metadata exists, it has not outlived the
TTL, and every chunk is present. Anything else is a miss. The cache is an
optimisation, so every store error is logged and swallowed.
"""

import json
import logging
import time
from collections.abc import Callable
from typing import Any

logger = logging.getLogger(__name__)


class ChunkedCache:
    """TTL cache storing large JSON payloads as size-bounded chunks."""

    def __init__(
        self,
        redis_client: Any,
        ttl: float,
        namespace: str = "cache",
        chunk_size: int = 60_000,
        batch_size: int = 780_000,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """
        Initialize the cache.

        Args:
            redis_client: ``redis.asyncio.Redis`` instance (or compatible)
            ttl: Entry lifetime in seconds
            namespace: Prefix for every record key
            chunk_size: Maximum bytes per chunk record, below the store's value limit
            batch_size: Maximum chunk bytes written in one transaction
            clock: Returns the current time in seconds since the epoch
        """
        if chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        if batch_size < chunk_size:
            raise ValueError("batch_size must hold at least one chunk")

        self.redis = redis_client
        self.ttl = ttl
        self.namespace = namespace
        self.chunk_size = chunk_size
        self.batch_size = batch_size
        self.clock = clock

    def meta_key(self, key: str) -> str:
        return f"{self.namespace}:{key}:meta"

    def chunk_key(self, key: str, index: int) -> str:
        return f"{self.namespace}:{key}:chunk:{index}"

    def _now_ms(self) -> int:
        return int(self.clock() * 1000)

    async def get(self, key: str) -> Any | None:
        """
        Read a cached value.

        Returns:
            The decoded value, or None on a miss (absent, expired, missing
            chunk, undecodable, or store error)
        """
        try:
            meta = await self._read_meta(key)
            if meta is None:
                return None

            chunk_count, timestamp = meta
            age_ms = self._now_ms() - timestamp
            if age_ms >= self.ttl * 1000:
                logger.info(f"Cache expired for {key}")
                await self._delete(key, chunk_count)
                return None

            if chunk_count == 0:
                chunks: list[bytes] = []
            else:
                raw_chunks = await self.redis.mget(
                    [self.chunk_key(key, i) for i in range(chunk_count)]
                )
                chunks = []
                for index, chunk in enumerate(raw_chunks):
                    if chunk is None:
                        logger.warning(f"Missing chunk {index} for {key}")
                        return None
                    chunks.append(chunk.encode("utf-8") if isinstance(chunk, str) else chunk)

            value = json.loads(b"".join(chunks).decode("utf-8"))

        except (ValueError, UnicodeDecodeError) as e:
            logger.warning(f"Cache entry for {key} is corrupt: {e}")
            return None
        except Exception as e:
            logger.warning(f"Cache read error for {key}: {e}")
            return None

        logger.info(f"Cache HIT for {key} (age: {age_ms // 1000}s, chunks: {chunk_count})")
        return value

    async def set(self, key: str, value: Any) -> None:
        """Serialize and store a value, replacing any previous entry."""
        try:
            document = json.dumps(
                value, separators=(",", ":"), ensure_ascii=False
            ).encode("utf-8")
            chunks = [
                document[i : i + self.chunk_size]
                for i in range(0, len(document), self.chunk_size)
            ]

            previous = await self._read_meta(key)
            meta = json.dumps({"chunks": len(chunks), "timestamp": self._now_ms()})

            chunks_per_batch = self.batch_size // self.chunk_size
            batches = [
                range(start, min(start + chunks_per_batch, len(chunks)))
                for start in range(0, len(chunks), chunks_per_batch)
            ] or [range(0)]

            for batch_number, batch in enumerate(batches):
                pipe = self.redis.pipeline(transaction=True)
                if batch_number == 0:
                    pipe.set(self.meta_key(key), meta)
                for index in batch:
                    pipe.set(self.chunk_key(key, index), chunks[index])
                await pipe.execute()

            if previous is not None and previous[0] > len(chunks):
                stale = [self.chunk_key(key, i) for i in range(len(chunks), previous[0])]
                await self.redis.delete(*stale)

            logger.info(
                f"Cached {key} ({len(chunks)} chunks, {len(document)} bytes, "
                f"{len(batches)} transactions)"
            )
        except Exception as e:
            logger.warning(f"Cache write error for {key}: {e}")

    async def delete(self, key: str) -> None:
        """Remove an entry and all of its chunks."""
        try:
            meta = await self._read_meta(key)
        except Exception as e:
            logger.warning(f"Cache delete error for {key}: {e}")
            return
        await self._delete(key, meta[0] if meta else 0)

    async def _read_meta(self, key: str) -> tuple[int, int] | None:
        raw = await self.redis.get(self.meta_key(key))
        if raw is None:
            return None
        try:
            meta = json.loads(raw)
            chunk_count = int(meta["chunks"])
            timestamp = int(meta["timestamp"])
        except (ValueError, KeyError, TypeError) as e:
            logger.warning(f"Invalid cache metadata for {key}: {e}")
            return None
        if chunk_count < 0:
            return None
        return chunk_count, timestamp

    async def _delete(self, key: str, chunk_count: int) -> None:
        try:
            pipe = self.redis.pipeline(transaction=True)
            pipe.delete(
                self.meta_key(key),
                *[self.chunk_key(key, i) for i in range(chunk_count)],
            )
            await pipe.execute()
        except Exception as e:
            logger.warning(f"Failed to delete cache entry {key}: {e}")
