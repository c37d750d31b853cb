# tests/fakes.py

from __future__ import annotations

import uuid

import requests
from redis.exceptions import LockError, LockNotOwnedError


class FakeLock:
    """Token-checked lock over FakeRedis.store, like redis-py's Lock."""

    def __init__(self, redis: "FakeRedis", name: str) -> None:
        self.redis = redis
        self.name = name
        self.token: str | None = None

    async def acquire(self) -> bool:
        if self.name in self.redis.store:
            return False
        self.token = uuid.uuid4().hex
        self.redis.store[self.name] = self.token
        return True

    async def release(self) -> None:
        if self.token is None:
            raise LockError("Cannot release an unlocked lock")
        token, self.token = self.token, None
        if self.redis.store.get(self.name) != token:
            raise LockNotOwnedError("Cannot release a lock that's no longer owned")
        del self.redis.store[self.name]


class FakeRedis:
    """
    In-memory stand-in for the async Redis client used by wallet locks.

    Only ``lock()`` is needed; expiry is ignored.
    """

    def __init__(self) -> None:
        self.store: dict[str, str] = {}
        self.lock_calls: list[str] = []

    def lock(self, name: str, timeout: float | None = None, blocking: bool = True,
             thread_local: bool = True) -> FakeLock:
        self.lock_calls.append(name)
        return FakeLock(self, name)


class DownSession:
    """requests-compatible session whose every call fails like a dead server."""

    def __init__(self) -> None:
        self.calls: list[str] = []

    def request(self, method, url, **kwargs):
        self.calls.append(f"{method} {url}")
        raise requests.ConnectionError(f"connection refused: {url}")

    def get(self, url, **kwargs):
        return self.request("GET", url, **kwargs)
