"""
Cache Test Factory

fakeredis-backed client factories plus a dict-backed CacheBackend stub for
tests that need to hold or fail individual writes.
"""

import asyncio
from typing import Any

import fakeredis


def fakeredis_factory(server: fakeredis.FakeServer):
    """RedisFactory whose clients all talk to ``server``."""

    def factory(settings):
        return fakeredis.FakeAsyncRedis(server=server)

    return factory


class StubCache:
    """
    Dict-backed CacheBackend.

    Args:
        live: Liveness flag reported to the orchestrator
        set_error: Raised from every set() when given
        set_gate: set() waits on this event before storing
    """

    def __init__(
        self,
        live: bool = True,
        set_error: BaseException | None = None,
        set_gate: asyncio.Event | None = None,
    ):
        self.data: dict[str, bytes] = {}
        self.ttls: dict[str, float | None] = {}
        self.live = live
        self.set_error = set_error
        self.set_gate = set_gate
        self.get_calls: list[str] = []
        self.set_calls: list[str] = []
        self.deleted: list[str] = []

    async def connect(self) -> bool:
        return self.live

    async def disconnect(self) -> None:
        self.live = False

    def is_live(self) -> bool:
        return self.live

    async def get(self, key: str) -> bytes | None:
        self.get_calls.append(key)
        if not self.live:
            return None
        return self.data.get(key)

    async def set(self, key: str, value: bytes, ttl: float | None = None) -> bool:
        self.set_calls.append(key)
        if self.set_gate is not None:
            await self.set_gate.wait()
        if self.set_error is not None:
            raise self.set_error
        if not self.live:
            return False
        self.data[key] = value
        self.ttls[key] = ttl
        return True

    async def delete(self, key_or_pattern: str) -> int:
        self.deleted.append(key_or_pattern)
        if key_or_pattern.endswith("*"):
            prefix = key_or_pattern[:-1]
            keys = [key for key in self.data if key.startswith(prefix)]
        else:
            keys = [key_or_pattern] if key_or_pattern in self.data else []
        for key in keys:
            del self.data[key]
        return len(keys)

    async def health_check(self) -> dict[str, Any]:
        return {"status": "healthy" if self.live else "unavailable", "live": self.live}
