"""End-to-end test against the real speech synthesis service.

WHY: Unit tests run against FakeAdapter and httpx.MockTransport, so only
a real call confirms the request body, authentication and response
decoding match what the service actually accepts and returns.

HOW: Generates a seeded broadcast, renders two segments (one phantom
area among them) and synthesizes them through SynthesisClient.
Skipped automatically if TTS_API_KEY is not set in the environment.

RULES:
- Marked with pytest.mark.skipif when no API key is available
- At most three billable requests
"""

import asyncio
import os
import random

import pytest

# Check for API key before importing modules that trigger dotenv
_HAS_API_KEY = bool(os.getenv("TTS_API_KEY", "").strip())


@pytest.mark.skipif(
    not _HAS_API_KEY,
    reason="TTS_API_KEY not set in environment; skipping real API test",
)
class TestRealSynthesis:
    """Generated markup through the real voice."""

    def test_broadcast_segments_synthesize(self):
        from conftest import make_area_forecast

        from shipping_forecast.api.client import SynthesisClient
        from shipping_forecast.core.broadcast import BroadcastGenerator
        from shipping_forecast.prosody.builder import TemplateBuilder

        broadcast = BroadcastGenerator(random.Random(2024), areas_per_broadcast=1).generate_broadcast()
        builder = TemplateBuilder()
        documents = [
            builder.build(broadcast.introduction).markup,
            builder.build(make_area_forecast("Obsidian Deep", phantom=True)).markup,
        ]

        async def _run():
            async with SynthesisClient() as client:
                results = [await client.synthesize(markup) for markup in documents]
                return results, client.stats

        results, stats = asyncio.run(_run())

        assert all(len(audio.audio) > 1000 for audio in results)
        assert all(audio.source == "remote" for audio in results)
        assert stats.success_count == 2
        assert stats.character_count == sum(len(m) for m in documents)
