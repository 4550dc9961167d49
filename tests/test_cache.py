"""Unit tests for the LRU audio cache.

WHY: The cache bounds memory for an endless broadcast while saving the
most useful recent audio. Evicting the wrong entry, or letting a read
skip the recency update, silently raises synthesis cost.

HOW: Direct calls against small-capacity caches with recognisable
fingerprints; a thread-safety check hammers one cache from several
threads.

RULES:
- Each test creates its own AudioCache
"""

from __future__ import annotations

import threading

import pytest

from shipping_forecast.api.models import SynthesizedAudio
from shipping_forecast.audio.cache import AudioCache


def _audio(tag: str) -> SynthesizedAudio:
    return SynthesizedAudio(audio=tag.encode())


class TestLRU:
    def test_get_miss_and_hit(self):
        cache = AudioCache(2)
        assert cache.get("a") is None
        cache.set("a", _audio("a"))
        assert cache.get("a").audio == b"a"
        assert cache.hits == 1
        assert cache.misses == 1

    def test_evicts_least_recently_used(self):
        cache = AudioCache(2)
        cache.set("a", _audio("a"))
        cache.set("b", _audio("b"))
        cache.set("c", _audio("c"))
        assert "a" not in cache
        assert cache.keys() == ["b", "c"]
        assert cache.evictions == 1

    def test_get_refreshes_recency(self):
        cache = AudioCache(2)
        cache.set("a", _audio("a"))
        cache.set("b", _audio("b"))
        cache.get("a")
        cache.set("c", _audio("c"))
        assert cache.keys() == ["a", "c"]

    def test_set_existing_refreshes_and_replaces(self):
        cache = AudioCache(2)
        cache.set("a", _audio("a"))
        cache.set("b", _audio("b"))
        cache.set("a", _audio("a2"))
        cache.set("c", _audio("c"))
        assert cache.keys() == ["a", "c"]
        assert cache.get("a").audio == b"a2"

    def test_hit_returns_same_object(self):
        cache = AudioCache(1)
        stored = _audio("x")
        cache.set("x", stored)
        assert cache.get("x") is stored

    def test_never_exceeds_capacity(self):
        cache = AudioCache(3)
        for i in range(20):
            cache.set(str(i), _audio(str(i)))
            assert len(cache) <= 3
        assert cache.keys() == ["17", "18", "19"]

    def test_contains_does_not_touch_stats(self):
        cache = AudioCache(2)
        cache.set("a", _audio("a"))
        assert "a" in cache
        assert cache.hits == 0 and cache.misses == 0

    def test_capacity_must_be_positive(self):
        with pytest.raises(ValueError):
            AudioCache(0)


class TestStats:
    def test_hit_rate(self):
        cache = AudioCache(2)
        cache.set("a", _audio("a"))
        cache.get("a")
        cache.get("a")
        cache.get("missing")
        stats = cache.stats()
        assert stats["hits"] == 2
        assert stats["misses"] == 1
        assert stats["hit_rate"] == pytest.approx(0.6667)
        assert stats["size"] == 1
        assert stats["capacity"] == 2

    def test_empty_hit_rate(self):
        assert AudioCache().stats()["hit_rate"] == 0.0

    def test_clear(self):
        cache = AudioCache(2)
        cache.set("a", _audio("a"))
        cache.clear()
        assert len(cache) == 0


class TestThreadSafety:
    def test_concurrent_sets(self):
        cache = AudioCache(10)

        def writer(prefix: str) -> None:
            for i in range(200):
                cache.set("{}-{}".format(prefix, i), _audio(prefix))
                cache.get("{}-{}".format(prefix, i))

        threads = [threading.Thread(target=writer, args=(str(n),)) for n in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(cache) == 10
        assert cache.evictions == 4 * 200 - 10
