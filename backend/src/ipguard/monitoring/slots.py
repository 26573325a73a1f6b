"""Process-wide bound on concurrent browser sessions."""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from ..config import get_settings


class BrowserSlotPool:
    """Semaphore over browser sessions.

    Jobs acquire a slot before claiming, so jobs waiting here stay pending.

    Usage:
        async with pool.slot():
            ...
    """

    def __init__(self, size: int | None = None):
        self.size = size or get_settings().max_concurrent_browsers
        self._semaphore = asyncio.Semaphore(self.size)
        self._in_use = 0

    @property
    def in_use(self) -> int:
        return self._in_use

    @asynccontextmanager
    async def slot(self) -> AsyncGenerator[None, None]:
        async with self._semaphore:
            self._in_use += 1
            try:
                yield
            finally:
                self._in_use -= 1


_pool: BrowserSlotPool | None = None


def get_browser_slots() -> BrowserSlotPool:
    """Get the browser slot pool singleton."""
    global _pool
    if _pool is None:
        _pool = BrowserSlotPool()
    return _pool
