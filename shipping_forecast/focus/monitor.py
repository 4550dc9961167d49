"""Inactivity monitor and the warning channel it feeds.

WHY: The broadcast is meant to notice when nobody is listening. After the
listener has been away for a while, a warning should be spoken between
segments, and again at the same interval for as long as they stay away.
The monitor decides when; the playback coordinator decides how, so audio
output keeps a single owner.

HOW: InactivityMonitor owns a FocusState and receives visibility changes
through set_visible(). A periodic task calls check() on a fixed polling
interval using wall-clock time. When the listener has been away strictly
longer than the threshold (measured from focus loss, or from the last
consumed warning) a WarningInjectionRequest is posted to the
WarningChannel. The coordinator takes it at the next segment boundary;
taking it notifies the monitor, which restarts the interval.

RULES:
- Only InactivityMonitor writes FocusState
- elapsed <= threshold never fires; elapsed > threshold fires
- At most one request is pending at a time
- Restoring visibility is debounced; once it settles, counters reset and
  any pending request is discarded
- The monitor never plays audio
"""

from __future__ import annotations

import asyncio
import itertools
import logging
import random
import time
from dataclasses import dataclass
from typing import Callable, Optional

from shipping_forecast.config import (
    FOCUS_POLL_INTERVAL_S,
    FOCUS_RESTORE_DEBOUNCE_S,
    WARNING_THRESHOLD_S,
)
from shipping_forecast.focus.messages import pick_message

logger = logging.getLogger(__name__)


@dataclass
class FocusState:
    """Listener presence as seen by the monitor.

    RULES:
    - focus_lost_at is None exactly when is_visible is True
    - warnings_this_absence resets only when focus is restored
    """

    is_visible: bool = True
    focus_lost_at: Optional[float] = None
    last_warning_at: Optional[float] = None
    warnings_this_absence: int = 0


@dataclass(frozen=True)
class WarningInjectionRequest:
    message_id: int
    text: str
    sequence: int
    created_at: float


class WarningChannel:
    """Single-slot hand-off from the monitor to the playback coordinator.

    RULES:
    - post() refuses a second request while one is pending
    - take() returns each request at most once
    - on_consumed is called with the request after a successful take()
    """

    def __init__(self) -> None:
        self._pending: Optional[WarningInjectionRequest] = None
        self.on_consumed: Optional[Callable[[WarningInjectionRequest], None]] = None

    @property
    def pending(self) -> Optional[WarningInjectionRequest]:
        return self._pending

    def post(self, request: WarningInjectionRequest) -> bool:
        if self._pending is not None:
            return False
        self._pending = request
        return True

    def take(self) -> Optional[WarningInjectionRequest]:
        request, self._pending = self._pending, None
        if request is not None and self.on_consumed is not None:
            self.on_consumed(request)
        return request

    def clear(self) -> None:
        self._pending = None


class InactivityMonitor:
    """Watches listener visibility and schedules inactivity warnings."""

    def __init__(
        self,
        channel: Optional[WarningChannel] = None,
        threshold_s: float = WARNING_THRESHOLD_S,
        poll_interval_s: float = FOCUS_POLL_INTERVAL_S,
        restore_debounce_s: float = FOCUS_RESTORE_DEBOUNCE_S,
        clock: Callable[[], float] = time.time,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.channel = channel or WarningChannel()
        self.channel.on_consumed = self._on_warning_consumed
        self.threshold_s = threshold_s
        self.poll_interval_s = poll_interval_s
        self.restore_debounce_s = restore_debounce_s
        self._clock = clock
        self._rng = rng or random.Random()
        self._state = FocusState()
        self._restore_requested_at: Optional[float] = None
        self._sequence = itertools.count(1)
        self._task: Optional[asyncio.Task] = None

    @property
    def state(self) -> FocusState:
        """A copy of the current state; callers cannot mutate the original."""
        s = self._state
        return FocusState(s.is_visible, s.focus_lost_at, s.last_warning_at, s.warnings_this_absence)

    @property
    def restore_pending(self) -> bool:
        return self._restore_requested_at is not None

    # ------------------------------------------------------------------
    # Visibility events
    # ------------------------------------------------------------------

    def set_visible(self, visible: bool, now: Optional[float] = None) -> None:
        """Record a visibility change from the platform."""
        now = self._clock() if now is None else now
        if visible:
            if not self._state.is_visible and self._restore_requested_at is None:
                self._restore_requested_at = now
                logger.debug("Focus restore requested, debouncing for %.1fs", self.restore_debounce_s)
            return

        if self._restore_requested_at is not None:
            # Hidden again before the restore settled: the absence continues
            self._restore_requested_at = None
            return
        if self._state.is_visible:
            self._state.is_visible = False
            self._state.focus_lost_at = now
            logger.info("Listener focus lost")

    # ------------------------------------------------------------------
    # Polling
    # ------------------------------------------------------------------

    def check(self, now: Optional[float] = None) -> Optional[WarningInjectionRequest]:
        """Evaluate the state once. Returns the request posted, if any."""
        now = self._clock() if now is None else now

        if self._restore_requested_at is not None:
            if now - self._restore_requested_at >= self.restore_debounce_s:
                self._restore(now)
            return None

        state = self._state
        if state.is_visible or self.channel.pending is not None:
            return None

        reference = state.last_warning_at if state.last_warning_at is not None else state.focus_lost_at
        if reference is None or now - reference <= self.threshold_s:
            return None

        message = pick_message(self._rng)
        request = WarningInjectionRequest(
            message_id=message.id,
            text=message.text,
            sequence=next(self._sequence),
            created_at=now,
        )
        self.channel.post(request)
        logger.info(
            "Inactivity warning %d ready (message %d, %.0fs since reference)",
            request.sequence, message.id, now - reference,
        )
        return request

    def _restore(self, now: float) -> None:
        absent_for = now - (self._state.focus_lost_at or now)
        warned = self._state.warnings_this_absence
        self._state = FocusState()
        self._restore_requested_at = None
        self.channel.clear()
        logger.info("Listener focus restored after %.0fs (%d warnings)", absent_for, warned)

    def _on_warning_consumed(self, request: WarningInjectionRequest) -> None:
        if self._state.is_visible:
            return
        self._state.last_warning_at = self._clock()
        self._state.warnings_this_absence += 1

    # ------------------------------------------------------------------
    # Periodic task
    # ------------------------------------------------------------------

    async def run(self) -> None:
        """Poll forever; cancel the task to stop."""
        while True:
            try:
                self.check()
            except Exception:
                logger.exception("Inactivity check failed")
            await asyncio.sleep(self.poll_interval_s)

    def start(self) -> asyncio.Task:
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self.run())
        return self._task

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
