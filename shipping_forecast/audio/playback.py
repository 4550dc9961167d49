"""Playback coordinator: the endless loop that keeps the broadcast talking.

WHY: Somebody has to decide what is said next, make sure its audio is
ready, play it, and slip in an inactivity warning at a safe moment, all
without ever letting one failure silence the broadcast.

HOW: PlaybackCoordinator runs a single asyncio task. Each iteration takes
the next segment (asking the generator for a continuation broadcast when
the queue runs dry), starts look-ahead synthesis for the segment after it
as a second task, synthesizes and plays the current one, joins the
look-ahead at the boundary, then takes a pending warning from the
WarningChannel and plays it before moving on.

RULES:
- States: IDLE → PLAYING → SYNTHESIZING → SPEAKING → PLAYING → ...;
  stop() returns to IDLE
- The opening broadcast has an introduction; every refill is a
  continuation without one
- Warnings are only played between two completed segments
- A failed segment is logged and skipped, never fatal
- After failure_threshold consecutive failures the fallback synthesizer
  takes over for the rest of the session
- stop() cancels in-flight work and discards look-ahead and pending
  warnings
"""

from __future__ import annotations

import asyncio
import enum
import logging
from collections import deque
from typing import Any, Deque, Dict, Optional

from shipping_forecast.audio.base import PlaybackSink, SegmentSynthesizer
from shipping_forecast.config import FALLBACK_FAILURE_THRESHOLD
from shipping_forecast.core.broadcast import BroadcastGenerator
from shipping_forecast.core.ir import BroadcastSegment
from shipping_forecast.focus.monitor import WarningChannel

logger = logging.getLogger(__name__)


class PlaybackState(str, enum.Enum):
    """Coordinator states.

    RULES:
    - idle: not started, or stopped
    - playing: between segments
    - synthesizing: waiting for the current segment's audio
    - speaking: the sink is playing the current segment
    """

    IDLE = "idle"
    PLAYING = "playing"
    SYNTHESIZING = "synthesizing"
    SPEAKING = "speaking"


class PlaybackCoordinator:
    """Owns playback position and drives the broadcast loop.

    RULES:
    - fallback may be None; the primary synthesizer is then retried forever
    - max_segments bounds the loop (CLI runs and tests); None runs forever
    """

    def __init__(
        self,
        generator: BroadcastGenerator,
        synthesizer: SegmentSynthesizer,
        sink: PlaybackSink,
        channel: Optional[WarningChannel] = None,
        fallback: Optional[SegmentSynthesizer] = None,
        failure_threshold: int = FALLBACK_FAILURE_THRESHOLD,
        max_segments: Optional[int] = None,
        failure_pause_s: float = 0.25,
    ) -> None:
        self._generator = generator
        self._primary = synthesizer
        self._fallback = fallback
        self._active = synthesizer
        self._sink = sink
        self._channel = channel
        self._failure_threshold = max(1, failure_threshold)
        self._max_segments = max_segments
        self._failure_pause_s = failure_pause_s

        self._queue: Deque[BroadcastSegment] = deque()
        self._opened = False
        self._task: Optional[asyncio.Task] = None

        self.state = PlaybackState.IDLE
        self.fallback_active = False
        self.consecutive_failures = 0
        self.segments_attempted = 0
        self.segments_played = 0
        self.segments_failed = 0
        self.warnings_played = 0
        self.broadcasts_started = 0
        self.current_label: Optional[str] = None

    @property
    def active_synthesizer(self) -> SegmentSynthesizer:
        return self._active

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> asyncio.Task:
        """Move IDLE → PLAYING and launch the loop as a task."""
        if self.is_running:
            raise RuntimeError("Playback is already running")
        self.state = PlaybackState.PLAYING
        self._task = asyncio.create_task(self._run())
        return self._task

    async def run(self) -> None:
        """Start and wait until the loop ends (max_segments) or is stopped."""
        task = self.start()
        try:
            await task
        except asyncio.CancelledError:
            # stop() clears _task before cancelling; anything else is ours to propagate
            if self._task is task:
                raise

    async def stop(self) -> None:
        """Halt speech now, discard look-ahead and warnings, return to IDLE."""
        task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._active.discard_lookahead()
        if self._channel is not None:
            self._channel.clear()
        await self._sink.stop()
        self.state = PlaybackState.IDLE
        self.current_label = None
        logger.info(
            "Playback stopped after %d segments (%d failed, %d warnings)",
            self.segments_played, self.segments_failed, self.warnings_played,
        )

    # ------------------------------------------------------------------
    # Loop
    # ------------------------------------------------------------------

    def _refill(self) -> None:
        if self._opened:
            broadcast = self._generator.generate_continuation()
        else:
            broadcast = self._generator.generate_broadcast()
            self._opened = True
        self._queue.extend(broadcast.segments())
        self.broadcasts_started += 1

    def _next_segment(self) -> BroadcastSegment:
        if not self._queue:
            self._refill()
        return self._queue.popleft()

    def _upcoming_segment(self) -> BroadcastSegment:
        if not self._queue:
            self._refill()
        return self._queue[0]

    async def _run(self) -> None:
        try:
            while self._max_segments is None or self.segments_attempted < self._max_segments:
                segment = self._next_segment()
                lookahead = None
                if self._max_segments is None or self.segments_attempted + 1 < self._max_segments:
                    lookahead = asyncio.create_task(self._active.prefetch(self._upcoming_segment()))
                try:
                    played = await self._play_segment(segment)
                    if lookahead is not None:
                        await lookahead
                except asyncio.CancelledError:
                    if lookahead is not None:
                        lookahead.cancel()
                    raise

                await self._play_pending_warning()
                self.state = PlaybackState.PLAYING
                # Yield so the monitor and the API are not starved by fast failures
                await asyncio.sleep(0 if played else self._failure_pause_s)
        finally:
            self.state = PlaybackState.IDLE
            self.current_label = None

    async def _play_segment(self, segment: BroadcastSegment) -> bool:
        self.segments_attempted += 1
        self.current_label = segment.label
        self.state = PlaybackState.SYNTHESIZING
        try:
            audio = await self._active.synthesize_segment(segment)
            self.state = PlaybackState.SPEAKING
            await self._sink.play(audio, segment.label)
        except asyncio.CancelledError:
            raise
        except Exception:
            self._record_failure(segment)
            return False
        self.consecutive_failures = 0
        self.segments_played += 1
        return True

    def _record_failure(self, segment: BroadcastSegment) -> None:
        self.segments_failed += 1
        self.consecutive_failures += 1
        logger.exception(
            "Segment %s failed via %s (%d consecutive), skipping",
            segment.label, self._active.name, self.consecutive_failures,
        )
        if (
            not self.fallback_active
            and self._fallback is not None
            and self.consecutive_failures >= self._failure_threshold
        ):
            self._primary.discard_lookahead()
            self._active = self._fallback
            self.fallback_active = True
            self.consecutive_failures = 0
            logger.warning(
                "Switching to %s synthesizer for the rest of the session",
                self._fallback.name,
            )

    async def _play_pending_warning(self) -> None:
        if self._channel is None:
            return
        request = self._channel.take()
        if request is None:
            return
        self.current_label = "warning"
        self.state = PlaybackState.SYNTHESIZING
        try:
            audio = await self._active.synthesize_text(request.text, "warning")
            self.state = PlaybackState.SPEAKING
            await self._sink.play(audio, "warning")
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("Inactivity warning %d could not be played", request.sequence)
            return
        self.warnings_played += 1

    def status(self) -> Dict[str, Any]:
        return {
            "state": self.state.value,
            "running": self.is_running,
            "current_segment": self.current_label,
            "synthesizer": self._active.name,
            "fallback_active": self.fallback_active,
            "consecutive_failures": self.consecutive_failures,
            "segments_played": self.segments_played,
            "segments_failed": self.segments_failed,
            "warnings_played": self.warnings_played,
            "broadcasts_started": self.broadcasts_started,
        }
