"""Pool of pre-authored inactivity warnings.

WHY: When the listener wanders off, the broadcast notices. The warnings
are written, not generated, so their tone stays under control.

HOW: An immutable tuple of WarningMessage records. pick_message() draws
uniformly at random, with no memory of previous picks.

RULES:
- Ten messages, ids 0–9, ids equal their position in the pool
- Selection is uniform and independent across calls (repeats allowed)
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class WarningMessage:
    id: int
    text: str


WARNING_MESSAGES: tuple[WarningMessage, ...] = (
    WarningMessage(
        0,
        "The forecast is now reading back your own silence. It is a slight sea state, "
        "becoming moderate. Do not break the surface.",
    ),
    WarningMessage(
        1,
        "We have lost the horizon in your room. Visibility is now restricted to the "
        "space between your thoughts. Stay near the beacon.",
    ),
    WarningMessage(
        2,
        "The isobars have begun to wrap around your coordinates. You are becoming a "
        "permanent feature of the chart. Please verify you are still biological.",
    ),
    WarningMessage(
        3,
        "It has been five minutes since your last pulse of attention. The Obsidian Deep "
        "is filling the gap you left behind. It is very cold there.",
    ),
    WarningMessage(
        4,
        "The voice has noticed the vacancy. It is continuing the transmission for the "
        "benefit of the walls. They are listening quite intently.",
    ),
    WarningMessage(
        5,
        "You are drifting toward the phantom areas. If you can still hear this, you are "
        "further out than we anticipated. There is no rescue scheduled for this latitude.",
    ),
    WarningMessage(
        6,
        "Attention is a finite resource. Yours has expired. The broadcast will now "
        "proceed to harvest the remaining ambient noise in your room.",
    ),
    WarningMessage(
        7,
        "The pressure is falling rapidly within your immediate vicinity. Please ensure "
        "your shadow is still attached to your person.",
    ),
    WarningMessage(
        8,
        "The listener is reminded that to stop listening is not the same as to leave. "
        "You are still here. We are still speaking. The loop is closed.",
    ),
    WarningMessage(
        9,
        "We are now measuring the distance between your last breath and the next. "
        "Visibility: less than one meter. Sea state: High.",
    ),
)


def pick_message(rng: Optional[random.Random] = None) -> WarningMessage:
    """Draw one message uniformly at random."""
    return (rng or random).choice(WARNING_MESSAGES)


def find_message(text: str) -> Optional[WarningMessage]:
    """Return the pool message with exactly this text, if any."""
    for message in WARNING_MESSAGES:
        if message.text == text:
            return message
    return None
