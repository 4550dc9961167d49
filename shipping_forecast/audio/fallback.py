"""Fallback synthesizer built from a library of pre-recorded phrase clips.

WHY: When the remote voice keeps failing, the broadcast must still make a
sound. A directory of pre-recorded clips (area names, wind directions,
forces, visibility words, warnings) is lower fidelity than live synthesis
but has no network dependency at all.

HOW: Each segment maps to an ordered list of clip paths under the library
root, using slugged file names ("North Utsire" → areas/north-utsire.mp3).
Clips that exist are read and concatenated (MP3 frames concatenate
cleanly); missing clips are skipped. Non-area segments use a whole-phrase
clip keyed by variant id.

RULES:
- Library layout: areas/, wind/directions/, wind/forces/, wind/timing/, wind/behaviors/,
  precipitation/, visibility/, icing/, segments/, unsettling/, phrases/
- Phantom areas use areas/<slug>-phantom.mp3
- Raises FallbackUnavailableError when no clip at all exists for a segment
- Never touches the network
"""

from __future__ import annotations

import asyncio
import logging
import re
from pathlib import Path
from typing import List, Optional, Union

from shipping_forecast.api.models import SynthesizedAudio
from shipping_forecast.audio.base import SegmentSynthesizer
from shipping_forecast.config import AUDIO_LIBRARY_DIR
from shipping_forecast.core.ir import AreaForecast, BroadcastSegment
from shipping_forecast.focus.messages import find_message

logger = logging.getLogger(__name__)


class FallbackUnavailableError(RuntimeError):
    """Raised when the clip library has nothing for the requested content."""


def slugify(text: str) -> str:
    """Lowercase, runs of non-alphanumerics to single hyphens, trimmed."""
    return re.sub(r"[^a-z0-9]+", "-", text.lower()).strip("-")


class LibrarySynthesizer(SegmentSynthesizer):
    """Concatenates pre-recorded clips into segment audio."""

    def __init__(self, library_dir: Union[str, Path, None] = None) -> None:
        self._root = Path(library_dir or AUDIO_LIBRARY_DIR)

    @property
    def name(self) -> str:
        return "library"

    @property
    def root(self) -> Path:
        return self._root

    # ------------------------------------------------------------------
    # Clip paths
    # ------------------------------------------------------------------

    def area_clips(self, forecast: AreaForecast) -> List[Path]:
        wind = forecast.wind
        suffix = "-phantom" if forecast.area.is_phantom else ""
        clips = [
            self._root / "areas" / "{}{}.mp3".format(slugify(forecast.area.name), suffix),
            self._root / "wind" / "directions" / "{}.mp3".format(slugify(wind.direction)),
            self._root / "wind" / "forces" / "force-{}.mp3".format(wind.force.low),
        ]
        if wind.force.high is not None:
            clips.append(self._root / "wind" / "forces" / "force-{}.mp3".format(wind.force.high))
        if wind.timing:
            clips.append(self._root / "wind" / "timing" / "{}.mp3".format(slugify(wind.timing)))
        if wind.change:
            clips.append(self._root / "wind" / "behaviors" / "{}.mp3".format(slugify(wind.change)))
        if wind.subsequent is not None and wind.subsequent.timing:
            clips.append(self._root / "wind" / "timing" / "{}.mp3".format(slugify(wind.subsequent.timing)))
        clips.append(self._root / "precipitation" / "{}.mp3".format(slugify(forecast.precipitation.text)))
        clips.append(self._root / "visibility" / "{}.mp3".format(slugify(forecast.visibility.initial)))
        if forecast.icing is not None:
            clips.append(self._root / "icing" / "{}.mp3".format(slugify(forecast.icing.text)))
        return clips

    def segment_clips(self, segment: BroadcastSegment) -> List[Path]:
        if isinstance(segment, AreaForecast):
            return self.area_clips(segment)
        return [self._root / "segments" / "{}.mp3".format(slugify(segment.variant_id))]

    def text_clips(self, text: str) -> List[Path]:
        message = find_message(text)
        if message is not None:
            return [self._root / "unsettling" / "message-{}.mp3".format(message.id)]
        return [self._root / "phrases" / "{}.mp3".format(slugify(text))]

    # ------------------------------------------------------------------
    # SegmentSynthesizer
    # ------------------------------------------------------------------

    async def synthesize_segment(self, segment: BroadcastSegment) -> SynthesizedAudio:
        return await self._assemble(self.segment_clips(segment), segment.label)

    async def synthesize_text(self, text: str, label: str = "warning") -> SynthesizedAudio:
        return await self._assemble(self.text_clips(text), label)

    async def _assemble(self, clips: List[Path], label: str) -> SynthesizedAudio:
        audio = await asyncio.get_running_loop().run_in_executor(None, self._read_clips, clips)
        if audio is None:
            raise FallbackUnavailableError(
                "No library clips for {} under {}".format(label, self._root)
            )
        return SynthesizedAudio(audio=audio, source="library")

    @staticmethod
    def _read_clips(clips: List[Path]) -> Optional[bytes]:
        chunks = []
        for clip in clips:
            if clip.is_file():
                chunks.append(clip.read_bytes())
            else:
                logger.debug("Library clip missing: %s", clip)
        return b"".join(chunks) if chunks else None
