"""Session: one listener, one endless broadcast, explicitly wired.

WHY: The generator, synthesizers, cache, monitor and coordinator each own
a piece of state, and they must share references to one another without
module-level singletons. The session is the one place that builds them
and hands each the references it needs.

HOW: Session is an async context manager. Entering it opens the remote
synthesis client (unless an adapter was injected, as tests do); exiting
stops playback and the monitor and closes the client. start()/stop()
control the broadcast while the session is open.

RULES:
- All state is session-scoped; nothing persists after exit
- The orchestrator owns the cache, the monitor owns FocusState, the
  coordinator owns playback position
- Visibility changes go to the monitor only
"""

from __future__ import annotations

import logging
import random
import time
import uuid
from contextlib import AsyncExitStack
from pathlib import Path
from typing import Any, Dict, Optional, Union

from shipping_forecast.api.client import SynthesisClient
from shipping_forecast.audio.base import PlaybackSink
from shipping_forecast.audio.cache import AudioCache
from shipping_forecast.audio.fallback import LibrarySynthesizer
from shipping_forecast.audio.orchestrator import MarkupSynthesizer, SynthesisOrchestrator
from shipping_forecast.audio.playback import PlaybackCoordinator
from shipping_forecast.audio.sinks import NullSink
from shipping_forecast.config import CACHE_CAPACITY
from shipping_forecast.core.broadcast import BroadcastGenerator
from shipping_forecast.focus.monitor import InactivityMonitor, WarningChannel

logger = logging.getLogger(__name__)


class Session:
    """Owns and wires every component of a running broadcast."""

    def __init__(
        self,
        adapter: Optional[MarkupSynthesizer] = None,
        sink: Optional[PlaybackSink] = None,
        rng: Optional[random.Random] = None,
        library_dir: Union[str, Path, None] = None,
        max_segments: Optional[int] = None,
        cache_capacity: int = CACHE_CAPACITY,
        monitor: Optional[InactivityMonitor] = None,
    ) -> None:
        self.id = uuid.uuid4().hex[:12]
        self.created_at = time.time()
        self._adapter = adapter
        self._rng = rng or random.Random()
        self._library_dir = library_dir
        self._max_segments = max_segments
        self._cache_capacity = cache_capacity
        self._sink = sink or NullSink()
        self._channel = monitor.channel if monitor is not None else WarningChannel()
        self._monitor = monitor
        self._stack: Optional[AsyncExitStack] = None

        self.generator = BroadcastGenerator(self._rng)
        self.cache: Optional[AudioCache] = None
        self.orchestrator: Optional[SynthesisOrchestrator] = None
        self.coordinator: Optional[PlaybackCoordinator] = None

    async def __aenter__(self) -> Session:
        self._stack = AsyncExitStack()
        adapter = self._adapter
        if adapter is None:
            adapter = await self._stack.enter_async_context(SynthesisClient())
        self._adapter = adapter

        self.cache = AudioCache(self._cache_capacity)
        self.orchestrator = SynthesisOrchestrator(adapter, cache=self.cache)
        if self._monitor is None:
            self._monitor = InactivityMonitor(self._channel, rng=self._rng)
        self.coordinator = PlaybackCoordinator(
            generator=self.generator,
            synthesizer=self.orchestrator,
            sink=self._sink,
            channel=self._channel,
            fallback=LibrarySynthesizer(self._library_dir),
            max_segments=self._max_segments,
        )
        logger.info("Session %s opened", self.id)
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:  # noqa: ANN001
        await self.stop()
        if self._stack is not None:
            await self._stack.aclose()
            self._stack = None
        logger.info("Session %s closed", self.id)

    @property
    def monitor(self) -> InactivityMonitor:
        if self._monitor is None:
            raise RuntimeError("Session must be entered before use: async with Session() as s: ...")
        return self._monitor

    def _ensure_coordinator(self) -> PlaybackCoordinator:
        if self.coordinator is None:
            raise RuntimeError("Session must be entered before use: async with Session() as s: ...")
        return self.coordinator

    @property
    def is_running(self) -> bool:
        return self.coordinator is not None and self.coordinator.is_running

    # ------------------------------------------------------------------
    # Control
    # ------------------------------------------------------------------

    async def start(self) -> None:
        coordinator = self._ensure_coordinator()
        self.monitor.start()
        coordinator.start()

    async def run(self) -> None:
        """Start and wait for the broadcast to end (only with max_segments)."""
        coordinator = self._ensure_coordinator()
        self.monitor.start()
        try:
            await coordinator.run()
        finally:
            await self.monitor.stop()

    async def stop(self) -> None:
        if self.coordinator is not None:
            await self.coordinator.stop()
        if self._monitor is not None:
            await self._monitor.stop()

    def set_visible(self, visible: bool) -> None:
        self.monitor.set_visible(visible)

    # ------------------------------------------------------------------
    # Observability
    # ------------------------------------------------------------------

    def status(self) -> Dict[str, Any]:
        coordinator = self._ensure_coordinator()
        focus = self.monitor.state
        return {
            "session_id": self.id,
            "playback": coordinator.status(),
            "focus": {
                "is_visible": focus.is_visible,
                "focus_lost_at": focus.focus_lost_at,
                "last_warning_at": focus.last_warning_at,
                "warnings_this_absence": focus.warnings_this_absence,
                "warning_pending": self._channel.pending is not None,
            },
        }

    def stats(self) -> Dict[str, Any]:
        stats: Dict[str, Any] = {}
        if self.orchestrator is not None:
            stats["orchestrator"] = self.orchestrator.stats()
        usage = getattr(self._adapter, "stats", None)
        if usage is not None and hasattr(usage, "to_dict"):
            stats["usage"] = usage.to_dict()
        return stats
