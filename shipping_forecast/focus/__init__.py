"""Listener presence tracking and inactivity warnings.

WHY: The broadcast reacts when the listener leaves. This package decides
when a warning is due and hands it to playback; it never plays anything.

HOW: monitor.py holds the state machine and the single-consumer warning
channel; messages.py holds the authored warning texts.
"""

from shipping_forecast.focus.messages import WARNING_MESSAGES, WarningMessage, pick_message
from shipping_forecast.focus.monitor import (
    FocusState,
    InactivityMonitor,
    WarningChannel,
    WarningInjectionRequest,
)

__all__ = [
    "FocusState",
    "InactivityMonitor",
    "WARNING_MESSAGES",
    "WarningChannel",
    "WarningInjectionRequest",
    "WarningMessage",
    "pick_message",
]
