"""Audio package: synthesis orchestration, caching, fallback and playback.

WHY: Turning segments into sound, and keeping that sound going no matter
what the network does, is the runtime heart of the broadcast.

HOW: orchestrator.py composes the prosody builder, the LRU cache
(cache.py) and the remote adapter; fallback.py provides the pre-recorded
library synthesizer; playback.py runs the loop and sinks.py receives the
finished audio.

RULES:
- Only the orchestrator writes the cache
- Only the playback coordinator sends audio to a sink
"""

from shipping_forecast.audio.base import PlaybackSink, SegmentSynthesizer
from shipping_forecast.audio.cache import AudioCache
from shipping_forecast.audio.fallback import FallbackUnavailableError, LibrarySynthesizer
from shipping_forecast.audio.orchestrator import SynthesisOrchestrator
from shipping_forecast.audio.playback import PlaybackCoordinator, PlaybackState
from shipping_forecast.audio.sinks import DirectorySink, NullSink, StreamSink

__all__ = [
    "AudioCache",
    "DirectorySink",
    "FallbackUnavailableError",
    "LibrarySynthesizer",
    "NullSink",
    "PlaybackCoordinator",
    "PlaybackSink",
    "PlaybackState",
    "SegmentSynthesizer",
    "StreamSink",
    "SynthesisOrchestrator",
]
