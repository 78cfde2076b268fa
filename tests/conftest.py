"""Shared test fixtures."""

from typing import Any

import pytest
from fastapi import FastAPI

from cineboxd.api.routes import admin, health, showtimes
from cineboxd.main import register_exception_handlers


class FakePipeline:
    """Buffers commands and applies them together on execute()."""

    def __init__(self, redis: "FakeRedis") -> None:
        self.redis = redis
        self.ops: list[tuple] = []

    def set(self, key: str, value: Any) -> "FakePipeline":
        self.ops.append(("set", key, value))
        return self

    def delete(self, *keys: str) -> "FakePipeline":
        self.ops.append(("delete", *keys))
        return self

    async def execute(self) -> list:
        if self.redis.fail_writes:
            raise ConnectionError("redis unavailable")
        self.redis.transactions.append(list(self.ops))
        results = []
        for op in self.ops:
            if op[0] == "set":
                self.redis.store[op[1]] = self.redis.encode(op[2])
                results.append(True)
            else:
                results.append(self.redis.remove(op[1:]))
        self.ops = []
        return results


class FakeRedis:
    """In-memory stand-in for the subset of redis.asyncio.Redis the cache uses."""

    def __init__(self) -> None:
        self.store: dict[str, bytes] = {}
        self.transactions: list[list[tuple]] = []
        self.fail_reads = False
        self.fail_writes = False

    @staticmethod
    def encode(value: Any) -> bytes:
        if isinstance(value, bytes):
            return value
        return str(value).encode("utf-8")

    def remove(self, keys: tuple) -> int:
        removed = 0
        for key in keys:
            if self.store.pop(key, None) is not None:
                removed += 1
        return removed

    async def get(self, key: str) -> bytes | None:
        if self.fail_reads:
            raise ConnectionError("redis unavailable")
        return self.store.get(key)

    async def mget(self, keys: list[str]) -> list[bytes | None]:
        if self.fail_reads:
            raise ConnectionError("redis unavailable")
        return [self.store.get(key) for key in keys]

    async def delete(self, *keys: str) -> int:
        if self.fail_writes:
            raise ConnectionError("redis unavailable")
        return self.remove(keys)

    async def ping(self) -> bool:
        if self.fail_reads:
            raise ConnectionError("redis unavailable")
        return True

    def pipeline(self, transaction: bool = True) -> FakePipeline:
        return FakePipeline(self)


class FakeClock:
    """Controllable replacement for time.time()."""

    def __init__(self, now: float = 1_734_787_200.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def test_app() -> FastAPI:
    """Minimal FastAPI app without the scheduler lifespan, for API tests."""
    app = FastAPI()
    register_exception_handlers(app)
    app.include_router(health.router)
    app.include_router(showtimes.router, prefix="/api")
    app.include_router(admin.router, prefix="/api")
    return app
