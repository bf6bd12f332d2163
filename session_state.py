"""
Session state shared by concurrent requests on one QRZXMLClient.
"""

import asyncio
from collections import deque
from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable, Deque, Optional, Tuple

from qrz_types import SessionInfo


class ReadWriteLock:
    """
    asyncio lock allowing many readers or one writer.

    Releasing never suspends, so a task cancelled inside a held section
    still gives the lock back. Held sections must not await network I/O;
    they only copy or assign fields.
    """

    def __init__(self) -> None:
        self._readers = 0
        self._writer = False
        self._waiters: Deque[asyncio.Future] = deque()

    async def _wait_until(self, predicate: Callable[[], bool]) -> None:
        loop = asyncio.get_running_loop()
        while not predicate():
            waiter = loop.create_future()
            self._waiters.append(waiter)
            try:
                await waiter
            finally:
                if waiter in self._waiters:
                    self._waiters.remove(waiter)

    def _wake_all(self) -> None:
        while self._waiters:
            waiter = self._waiters.popleft()
            if not waiter.done():
                waiter.set_result(None)

    @asynccontextmanager
    async def read(self) -> AsyncIterator[None]:
        await self._wait_until(lambda: not self._writer)
        self._readers += 1
        try:
            yield
        finally:
            self._readers -= 1
            if self._readers == 0:
                self._wake_all()

    @asynccontextmanager
    async def write(self) -> AsyncIterator[None]:
        await self._wait_until(lambda: not self._writer and self._readers == 0)
        self._writer = True
        try:
            yield
        finally:
            self._writer = False
            self._wake_all()


class SessionState:
    """
    Current session key, lookup count and subscription expiry.

    The key stays None until a login response supplies one. Each client owns
    its own instance; nothing here is process-wide.
    """

    def __init__(self) -> None:
        self._lock = ReadWriteLock()
        self._key: Optional[str] = None
        self._count: Optional[int] = None
        self._sub_exp: Optional[str] = None

    async def read(self) -> Tuple[Optional[str], Optional[int], Optional[str]]:
        """Snapshot (key, count, sub_exp)."""
        async with self._lock.read():
            return self._key, self._count, self._sub_exp

    async def update(self, session: SessionInfo) -> None:
        """
        Merge fields reported by the server.

        Fields absent from the response keep their previous value; a key in
        the response always replaces the stored one.
        """
        async with self._lock.write():
            if session.key:
                self._key = session.key
            if session.count is not None:
                self._count = session.count
            if session.sub_exp is not None:
                self._sub_exp = session.sub_exp

    async def clear(self) -> None:
        """Forget the session, e.g. before a forced re-login."""
        async with self._lock.write():
            self._key = None
            self._count = None
            self._sub_exp = None

    async def restore(
        self,
        key: str,
        count: Optional[int] = None,
        sub_exp: Optional[str] = None,
    ) -> None:
        """Seed the state from a previously persisted session."""
        async with self._lock.write():
            self._key = key or None
            self._count = count
            self._sub_exp = sub_exp

    async def has_valid_session(self) -> bool:
        key, _, _ = await self.read()
        return key is not None
