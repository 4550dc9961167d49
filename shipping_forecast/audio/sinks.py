"""Playback sinks: where finished audio goes.

WHY: Actually driving a sound card is outside this project; the
coordinator only needs something it can await. These sinks cover the
cases the project itself needs: streaming audio to HTTP listeners,
writing each clip to disk for an external player, and discarding audio
(dry runs, tests). Every one of them holds the coordinator for as long as
the clip would take to hear, so the broadcast runs at speaking pace and
synthesis is never requested faster than it can be listened to.

HOW: audio_duration_s() derives playing time from the encoding and byte
length (PCM from the sample rate, MP3/Opus from the output bitrate).
NullSink has no real audio to time, so by default it holds for the time a
voice would take to read the markup. StreamSink fans audio out to
subscribed listeners chunk by chunk at playback speed, with a bounded
per-listener backlog that drops the oldest chunk when a listener lags.
DirectorySink writes numbered files.

RULES:
- play() returns only when the clip is "finished"
- A listener that falls behind loses old audio; it never slows playback
- DirectorySink file names are <index>-<label>.<ext>, index zero-padded
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import List, Optional, Set, Tuple, Union

from shipping_forecast.api.models import SynthesizedAudio
from shipping_forecast.audio.base import PlaybackSink
from shipping_forecast.config import (
    SPOKEN_MARKUP_CHARS_PER_S,
    STREAM_CHUNK_BYTES,
    STREAM_LISTENER_BACKLOG,
    TTS_AUDIO_ENCODING,
    TTS_COMPRESSED_BITRATE_KBPS,
    TTS_SAMPLE_RATE_HZ,
)

logger = logging.getLogger(__name__)

_EXTENSIONS = {"MP3": ".mp3", "LINEAR16": ".wav", "OGG_OPUS": ".ogg", "MULAW": ".wav", "ALAW": ".wav"}
_MEDIA_TYPES = {"MP3": "audio/mpeg", "LINEAR16": "audio/wav", "OGG_OPUS": "audio/ogg", "MULAW": "audio/wav", "ALAW": "audio/wav"}
_WAV_HEADER_BYTES = 44


def audio_duration_s(
    audio: SynthesizedAudio,
    sample_rate_hz: int = TTS_SAMPLE_RATE_HZ,
    bitrate_kbps: int = TTS_COMPRESSED_BITRATE_KBPS,
) -> float:
    """Playing time of encoded audio, from its encoding and size."""
    data = audio.audio
    if audio.encoding in ("LINEAR16", "MULAW", "ALAW"):
        size = len(data) - _WAV_HEADER_BYTES if data[:4] == b"RIFF" else len(data)
        bytes_per_sample = 2 if audio.encoding == "LINEAR16" else 1
        return max(0, size) / float(sample_rate_hz * bytes_per_sample)
    return len(data) * 8 / (bitrate_kbps * 1000.0)


def spoken_duration_s(audio: SynthesizedAudio) -> float:
    """Time a voice takes to read the markup behind this audio."""
    if audio.character_count:
        return audio.character_count / SPOKEN_MARKUP_CHARS_PER_S
    return audio_duration_s(audio)


def media_type(encoding: str = TTS_AUDIO_ENCODING) -> str:
    return _MEDIA_TYPES.get(encoding, "application/octet-stream")


class NullSink(PlaybackSink):
    """Accepts audio and forgets it after the time it would take to hear.

    clip_duration_s fixes the hold per clip instead (0 for no hold at all).
    """

    def __init__(self, clip_duration_s: Optional[float] = None) -> None:
        self._clip_duration_s = clip_duration_s
        self.played: List[Tuple[str, int]] = []

    async def play(self, audio: SynthesizedAudio, label: str) -> None:
        self.played.append((label, len(audio.audio)))
        duration = spoken_duration_s(audio) if self._clip_duration_s is None else self._clip_duration_s
        if duration > 0:
            await asyncio.sleep(duration)


class StreamSink(PlaybackSink):
    """Streams played audio to any number of listeners, in real time.

    Each listener gets its own queue from subscribe(). Chunks are
    published at the rate the audio plays, so a listener connecting
    mid-broadcast hears it live rather than receiving a backlog.
    """

    def __init__(
        self,
        chunk_bytes: int = STREAM_CHUNK_BYTES,
        backlog: int = STREAM_LISTENER_BACKLOG,
    ) -> None:
        self._chunk_bytes = max(1, chunk_bytes)
        self._backlog = max(1, backlog)
        self._listeners: Set[asyncio.Queue] = set()
        self.dropped_chunks = 0

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def subscribe(self) -> asyncio.Queue:
        queue: asyncio.Queue = asyncio.Queue(maxsize=self._backlog)
        self._listeners.add(queue)
        logger.info("Stream listener connected (total: %d)", len(self._listeners))
        return queue

    def unsubscribe(self, queue: asyncio.Queue) -> None:
        if queue in self._listeners:
            self._listeners.discard(queue)
            logger.info("Stream listener disconnected (total: %d)", len(self._listeners))

    def publish(self, chunk: bytes) -> None:
        for queue in list(self._listeners):
            if queue.full():
                queue.get_nowait()
                self.dropped_chunks += 1
            queue.put_nowait(chunk)

    async def play(self, audio: SynthesizedAudio, label: str) -> None:
        data = audio.audio
        if not data:
            return
        chunks = [data[i:i + self._chunk_bytes] for i in range(0, len(data), self._chunk_bytes)]
        per_chunk_s = audio_duration_s(audio) / len(chunks)
        logger.debug("Streaming %s: %d bytes to %d listeners", label, len(data), len(self._listeners))
        for chunk in chunks:
            self.publish(chunk)
            await asyncio.sleep(per_chunk_s)


class DirectorySink(PlaybackSink):
    """Writes every played clip to a directory, in playback order.

    With realtime (the default) each write is followed by the clip's
    playing time, so an endless run grows the directory at speaking pace.
    """

    def __init__(self, output_dir: Union[str, Path], realtime: bool = True) -> None:
        self._output_dir = Path(output_dir)
        self._realtime = realtime
        self._index = 0

    @property
    def output_dir(self) -> Path:
        return self._output_dir

    async def play(self, audio: SynthesizedAudio, label: str) -> None:
        self._index += 1
        suffix = _EXTENSIONS.get(audio.encoding, ".bin")
        path = self._output_dir / "{:05d}-{}{}".format(self._index, label, suffix)
        await asyncio.get_running_loop().run_in_executor(None, self._write, path, audio.audio)
        logger.debug("Wrote %s (%d bytes)", path, len(audio.audio))
        if self._realtime:
            await asyncio.sleep(audio_duration_s(audio))

    def _write(self, path: Path, data: bytes) -> None:
        self._output_dir.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
