"""Bounded least-recently-used cache of synthesized audio.

WHY: The broadcast repeats itself at the phrase level far more often than
at the segment level, and synthesis is both slow and billed per
character. Remembering recent results saves both, but an endless
broadcast cannot remember everything, so the cache is bounded.

HOW: An OrderedDict keyed by fingerprint, in recency order. get() moves a
hit to the most-recent end; set() inserts at that end and evicts from the
least-recent end when over capacity. A threading.Lock guards mutations so
the stats endpoint can read from another thread.

RULES:
- Eviction is strict LRU; a get() hit refreshes recency
- A hit never mutates the stored audio or its timestamp
- set() on an existing fingerprint replaces it and refreshes recency
- capacity must be at least 1
"""

from __future__ import annotations

import logging
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Dict, Optional

from shipping_forecast.api.models import SynthesizedAudio
from shipping_forecast.config import CACHE_CAPACITY

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CacheEntry:
    fingerprint: str
    audio: SynthesizedAudio
    stored_at: float


class AudioCache:
    """Thread-safe LRU store mapping fingerprints to audio."""

    def __init__(self, capacity: int = CACHE_CAPACITY) -> None:
        if capacity < 1:
            raise ValueError("Cache capacity must be at least 1, got {}".format(capacity))
        self._capacity = capacity
        self._entries: "OrderedDict[str, CacheEntry]" = OrderedDict()
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0
        self.evictions = 0

    @property
    def capacity(self) -> int:
        return self._capacity

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, fingerprint: str) -> bool:
        """Membership test that does not touch recency or stats."""
        return fingerprint in self._entries

    def get(self, fingerprint: str) -> Optional[SynthesizedAudio]:
        with self._lock:
            entry = self._entries.get(fingerprint)
            if entry is None:
                self.misses += 1
                return None
            self._entries.move_to_end(fingerprint)
            self.hits += 1
            return entry.audio

    def set(self, fingerprint: str, audio: SynthesizedAudio) -> None:
        with self._lock:
            self._entries[fingerprint] = CacheEntry(fingerprint, audio, time.time())
            self._entries.move_to_end(fingerprint)
            while len(self._entries) > self._capacity:
                evicted, _ = self._entries.popitem(last=False)
                self.evictions += 1
                logger.debug("Evicted %s from audio cache", evicted[:12])

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def keys(self) -> list:
        """Fingerprints from least to most recently used."""
        with self._lock:
            return list(self._entries.keys())

    def stats(self) -> Dict[str, Any]:
        lookups = self.hits + self.misses
        return {
            "size": len(self._entries),
            "capacity": self._capacity,
            "hits": self.hits,
            "misses": self.misses,
            "evictions": self.evictions,
            "hit_rate": round(self.hits / lookups, 4) if lookups else 0.0,
        }
