"""Tests for the FastAPI control API.

WHY: Validates the control surface a listener's client depends on:
starting and stopping the broadcast, visibility reports, status, stats
and previews, including the conflict and configuration errors.

HOW: The module-level session store is replaced with one whose factory
builds sessions around a FakeAdapter and a NullSink, so a started
broadcast really plays in the background without network or sound.
TestClient is used as a context manager so the app's event loop (and
the broadcast running on it) survives between requests.

RULES:
- The synthesis API is never called
- Each test gets a fresh SessionStore
- Tests cover: happy paths, 409 conflict, 503 misconfiguration
"""

from __future__ import annotations

import asyncio
import random

import pytest
from conftest import FakeAdapter
from fastapi.testclient import TestClient

from shipping_forecast import __version__
from shipping_forecast.audio.sinks import NullSink
from shipping_forecast.server import app as app_module
from shipping_forecast.server.sessions import SessionStore
from shipping_forecast.session import Session

_SERVED_STORE = app_module.session_store


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _fresh_session_store(monkeypatch, tmp_path):
    """Swap in a store whose sessions never touch the network."""

    def factory() -> Session:
        return Session(
            adapter=FakeAdapter(),
            sink=NullSink(clip_duration_s=0.01),
            rng=random.Random(1),
            library_dir=tmp_path,
        )

    store = SessionStore(factory=factory)
    monkeypatch.setattr(app_module, "session_store", store)
    return store


@pytest.fixture
def client():
    with TestClient(app_module.app) as test_client:
        yield test_client


def _area_texts(preview: dict) -> list:
    return [s["text"] for s in preview["segments"] if s["label"] == "area_forecast"]


# ---------------------------------------------------------------------------
# Session control
# ---------------------------------------------------------------------------


class TestSession:
    def test_start_returns_running_session(self, client):
        response = client.post("/session/start")
        assert response.status_code == 200
        body = response.json()
        assert body["running"] is True
        assert len(body["session_id"]) == 12

    def test_start_twice_is_conflict(self, client):
        client.post("/session/start")
        response = client.post("/session/start")
        assert response.status_code == 409
        assert "already running" in response.json()["detail"]

    def test_stop(self, client):
        started = client.post("/session/start").json()
        response = client.post("/session/stop")
        assert response.status_code == 200
        body = response.json()
        assert body == {"session_id": started["session_id"], "running": False, "state": "idle"}

    def test_stop_without_session_is_conflict(self, client):
        response = client.post("/session/stop")
        assert response.status_code == 409
        assert response.json()["detail"] == "No broadcast is running"

    def test_restart_after_stop(self, client):
        first = client.post("/session/start").json()
        client.post("/session/stop")
        second = client.post("/session/start").json()
        assert second["running"] is True
        assert second["session_id"] != first["session_id"]

    def test_missing_api_key_is_503(self, client, _fresh_session_store):
        def broken_factory():
            raise ValueError("TTS_API_KEY not found in environment")

        _fresh_session_store.factory = broken_factory
        response = client.post("/session/start")
        assert response.status_code == 503
        assert "TTS_API_KEY" in response.json()["detail"]


# ---------------------------------------------------------------------------
# Visibility
# ---------------------------------------------------------------------------


class TestVisibility:
    def test_hidden_then_visible(self, client):
        client.post("/session/start")

        hidden = client.post("/visibility", json={"visible": False})
        assert hidden.status_code == 200
        assert hidden.json()["is_visible"] is False
        assert hidden.json()["focus_lost_at"] is not None

        shown = client.post("/visibility", json={"visible": True})
        assert shown.status_code == 200
        assert shown.json()["warnings_this_absence"] == 0

    def test_requires_session(self, client):
        response = client.post("/visibility", json={"visible": False})
        assert response.status_code == 409

    def test_body_is_validated(self, client):
        client.post("/session/start")
        response = client.post("/visibility", json={})
        assert response.status_code == 422


# ---------------------------------------------------------------------------
# Status and stats
# ---------------------------------------------------------------------------


class TestStatus:
    def test_status_without_session(self, client):
        body = client.get("/status").json()
        assert body["running"] is False
        assert body["session_id"] is None
        assert body["playback"] is None

    def test_status_while_running(self, client):
        session_id = client.post("/session/start").json()["session_id"]
        body = client.get("/status").json()
        assert body["session_id"] == session_id
        assert body["running"] is True
        assert body["playback"]["synthesizer"] == "remote"
        assert body["focus"]["is_visible"] is True

    def test_stats_without_session(self, client):
        assert client.get("/stats").json() == {"session_id": None, "orchestrator": None, "usage": None}

    def test_stats_while_running(self, client):
        client.post("/session/start")
        body = client.get("/stats").json()
        assert "cache" in body["orchestrator"]
        assert "estimated_cost" in body["usage"]


# ---------------------------------------------------------------------------
# Preview and health
# ---------------------------------------------------------------------------


class TestPreview:
    def test_opening_broadcast(self, client):
        body = client.get("/broadcast/preview", params={"seed": 7}).json()
        assert body["continuation"] is False
        labels = [s["label"] for s in body["segments"]]
        assert labels[0] == "introduction"
        assert "general_synopsis" in labels
        assert all(s["markup"] is None for s in body["segments"])

    def test_continuation(self, client):
        body = client.get("/broadcast/preview", params={"seed": 7, "continuation": True}).json()
        assert body["continuation"] is True
        assert "introduction" not in [s["label"] for s in body["segments"]]

    def test_markup_included_on_request(self, client):
        body = client.get("/broadcast/preview", params={"seed": 7, "markup": True}).json()
        assert all(s["markup"].startswith("<speak>") for s in body["segments"])

    def test_seed_is_reproducible(self, client):
        first = client.get("/broadcast/preview", params={"seed": 3}).json()
        second = client.get("/broadcast/preview", params={"seed": 3}).json()
        assert first["broadcast_id"] == second["broadcast_id"]
        assert _area_texts(first) == _area_texts(second)


class TestHealth:
    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok", "version": __version__}


# ---------------------------------------------------------------------------
# Listening
# ---------------------------------------------------------------------------


class TestStream:
    def test_stream_documented(self, client):
        paths = client.get("/openapi.json").json()["paths"]
        assert "get" in paths["/stream"]

    def test_served_sessions_play_into_stream(self):
        session = _SERVED_STORE.factory()
        assert session._sink is app_module.broadcast_stream

    def test_listener_receives_published_audio(self):
        async def _run():
            response = await app_module.stream_audio()
            body = response.body_iterator
            pending = asyncio.ensure_future(body.__anext__())
            await asyncio.sleep(0)
            listeners = app_module.broadcast_stream.listener_count
            app_module.broadcast_stream.publish(b"chunk")
            chunk = await asyncio.wait_for(pending, 1.0)
            await body.aclose()
            return response.media_type, listeners, chunk

        media, listeners, chunk = asyncio.run(_run())
        assert media == app_module.media_type()
        assert listeners == 1
        assert chunk == b"chunk"
        assert app_module.broadcast_stream.listener_count == 0
