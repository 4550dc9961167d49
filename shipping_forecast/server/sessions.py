"""Holder for the single listening session served by the control API.

WHY: The HTTP API controls one broadcast at a time. Start and stop
requests can arrive concurrently, and the session they act on must
outlive any single request.

HOW: SessionStore keeps at most one open Session. open() builds a new
session through a factory (Session by default, replaced in tests),
enters it and starts playback; close() stops it and exits it. An
asyncio.Lock serializes the two.

RULES:
- At most one session is open at a time
- open() fails with SessionConflictError while a session is running
- A session whose playback ended on its own is closed before a new one opens
- close() fails with SessionConflictError when nothing is open
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Optional

from shipping_forecast.session import Session

logger = logging.getLogger(__name__)


class SessionConflictError(RuntimeError):
    """The requested transition does not apply to the current session state."""


class SessionStore:
    """Owns the open Session, if any."""

    def __init__(self, factory: Optional[Callable[[], Session]] = None) -> None:
        self.factory: Callable[[], Session] = factory or Session
        self._session: Optional[Session] = None
        self._lock = asyncio.Lock()

    @property
    def current(self) -> Optional[Session]:
        return self._session

    async def open(self) -> Session:
        async with self._lock:
            if self._session is not None:
                if self._session.is_running:
                    raise SessionConflictError(
                        "Broadcast already running in session {}".format(self._session.id)
                    )
                await self._exit(self._session)
                self._session = None

            session = self.factory()
            await session.__aenter__()
            try:
                await session.start()
            except BaseException:
                await session.__aexit__(None, None, None)
                raise
            self._session = session
            logger.info("Broadcast started in session %s", session.id)
            return session

    async def close(self) -> Session:
        async with self._lock:
            session = self._session
            if session is None:
                raise SessionConflictError("No broadcast is running")
            self._session = None
            await self._exit(session)
            logger.info("Broadcast stopped in session %s", session.id)
            return session

    async def shutdown(self) -> None:
        """Close any open session; used when the app shuts down."""
        async with self._lock:
            if self._session is not None:
                await self._exit(self._session)
                self._session = None

    @staticmethod
    async def _exit(session: Session) -> None:
        await session.__aexit__(None, None, None)
