"""FastAPI application exposing the broadcast's control surface.

WHY: A listener's client (a web page, a kiosk, a curl loop) needs to
start and stop the broadcast, report whether it is being watched, and
see what is playing. FastAPI gives request validation and OpenAPI docs
for free.

HOW: One FastAPI app with a module-level SessionStore. POST endpoints
open and close the session and forward visibility changes to its
inactivity monitor; GET endpoints report status, synthesis statistics
and a preview broadcast generated without playing it. The session plays
into a module-level StreamSink and GET /stream hands each listener its
own feed of it. The lifespan hook closes any open session on shutdown.

RULES:
- All endpoints have OpenAPI descriptions on every parameter and response
- Error responses use a consistent ErrorResponse schema
- 409 for start while running, and for stop/visibility with no session
- 503 when the voice cannot be configured (e.g. missing API key)
- Preview never calls the synthesis API
"""

from __future__ import annotations

import logging
import random
from contextlib import asynccontextmanager
from typing import List, Optional

from fastapi import FastAPI, HTTPException, Query
from fastapi.responses import StreamingResponse

from shipping_forecast import __version__
from shipping_forecast.audio.sinks import StreamSink, media_type
from shipping_forecast.config import API_HOST, API_PORT
from shipping_forecast.core.broadcast import BroadcastGenerator
from shipping_forecast.prosody.builder import TemplateBuilder
from shipping_forecast.server.models import (
    ErrorResponse,
    FocusStatus,
    HealthResponse,
    PreviewResponse,
    PreviewSegment,
    SessionResponse,
    StatsResponse,
    StatusResponse,
    VisibilityUpdate,
)
from shipping_forecast.server.sessions import SessionConflictError, SessionStore
from shipping_forecast.session import Session

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# App and store setup
# ---------------------------------------------------------------------------

broadcast_stream = StreamSink()
session_store = SessionStore(factory=lambda: Session(sink=broadcast_stream))


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Close any open session on shutdown."""
    yield
    await session_store.shutdown()


app = FastAPI(
    lifespan=lifespan,
    title="Infinite Shipping Forecast API",
    description=(
        "Control API for an endless, procedurally generated shipping forecast. "
        "Start and stop the broadcast, report listener visibility, and inspect "
        "playback and synthesis statistics."
    ),
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _require_session():
    session = session_store.current
    if session is None:
        raise HTTPException(status_code=409, detail="No broadcast is running")
    return session


# ---------------------------------------------------------------------------
# Session control
# ---------------------------------------------------------------------------


@app.post(
    "/session/start",
    response_model=SessionResponse,
    tags=["session"],
    summary="Start the broadcast",
    description=(
        "Open a listening session and begin playback. The first broadcast of a "
        "session opens with an introduction; every later one is a continuation."
    ),
    responses={
        409: {"model": ErrorResponse, "description": "Broadcast already running"},
        503: {"model": ErrorResponse, "description": "Voice not configured"},
    },
)
async def start_session() -> SessionResponse:
    try:
        session = await session_store.open()
    except SessionConflictError as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    except ValueError as exc:
        logger.error("Cannot start broadcast: %s", exc)
        raise HTTPException(status_code=503, detail=str(exc))

    status = session.status()
    return SessionResponse(
        session_id=session.id,
        running=session.is_running,
        state=status["playback"]["state"],
    )


@app.post(
    "/session/stop",
    response_model=SessionResponse,
    tags=["session"],
    summary="Stop the broadcast",
    description=(
        "Halt speech immediately, discard buffered audio and pending warnings, "
        "and close the session."
    ),
    responses={
        409: {"model": ErrorResponse, "description": "No broadcast is running"},
    },
)
async def stop_session() -> SessionResponse:
    try:
        session = await session_store.close()
    except SessionConflictError as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    return SessionResponse(session_id=session.id, running=False, state="idle")


@app.post(
    "/visibility",
    response_model=FocusStatus,
    tags=["session"],
    summary="Report listener visibility",
    description=(
        "Tell the inactivity monitor whether the broadcast is visible. After a "
        "sustained absence, warnings are spoken between segments."
    ),
    responses={
        409: {"model": ErrorResponse, "description": "No broadcast is running"},
    },
)
async def update_visibility(update: VisibilityUpdate) -> FocusStatus:
    session = _require_session()
    session.set_visible(update.visible)
    return FocusStatus(**session.status()["focus"])


async def _stream_chunks(queue):
    try:
        while True:
            yield await queue.get()
    finally:
        broadcast_stream.unsubscribe(queue)


@app.get(
    "/stream",
    tags=["session"],
    summary="Listen to the broadcast",
    description=(
        "Continuous audio stream of whatever the broadcast is speaking, delivered "
        "at playback speed. Connect before or after starting the session; silence "
        "between sessions is simply no data."
    ),
    response_class=StreamingResponse,
)
async def stream_audio() -> StreamingResponse:
    queue = broadcast_stream.subscribe()
    return StreamingResponse(_stream_chunks(queue), media_type=media_type())


# ---------------------------------------------------------------------------
# Observability
# ---------------------------------------------------------------------------


@app.get(
    "/status",
    response_model=StatusResponse,
    tags=["status"],
    summary="Broadcast status",
    description="Playback state, the segment being played, and the listener's focus state.",
)
async def get_status() -> StatusResponse:
    session = session_store.current
    if session is None:
        return StatusResponse(running=False)
    status = session.status()
    return StatusResponse(
        session_id=session.id,
        running=session.is_running,
        playback=status["playback"],
        focus=FocusStatus(**status["focus"]),
    )


@app.get(
    "/stats",
    response_model=StatsResponse,
    tags=["status"],
    summary="Synthesis statistics",
    description="Cache hit rate, look-ahead effectiveness, and remote voice usage with estimated cost.",
)
async def get_stats() -> StatsResponse:
    session = session_store.current
    if session is None:
        return StatsResponse()
    stats = session.stats()
    return StatsResponse(
        session_id=session.id,
        orchestrator=stats.get("orchestrator"),
        usage=stats.get("usage"),
    )


@app.get(
    "/broadcast/preview",
    response_model=PreviewResponse,
    tags=["broadcast"],
    summary="Preview a generated broadcast",
    description="Generate a broadcast without synthesizing or playing it.",
)
async def preview_broadcast(
    seed: Optional[int] = Query(default=None, description="Seed for reproducible content."),
    markup: bool = Query(default=False, description="Include the SSML for each segment."),
    continuation: bool = Query(default=False, description="Generate a continuation (no introduction)."),
) -> PreviewResponse:
    rng = random.Random(seed) if seed is not None else random.Random()
    generator = BroadcastGenerator(rng)
    broadcast = generator.generate_continuation() if continuation else generator.generate_broadcast()

    builder = TemplateBuilder() if markup else None
    segments: List[PreviewSegment] = []
    for segment in broadcast.segments():
        segments.append(
            PreviewSegment(
                label=segment.label,
                text=segment.text,
                pause_ms=segment.pause_ms,
                markup=builder.build(segment).markup if builder is not None else None,
            )
        )
    return PreviewResponse(
        broadcast_id=broadcast.id,
        continuation=broadcast.is_continuation,
        segments=segments,
    )


@app.get(
    "/health",
    response_model=HealthResponse,
    tags=["health"],
    summary="Health check",
    description="Liveness check for load balancers and process supervisors.",
)
async def health_check() -> HealthResponse:
    return HealthResponse(status="ok", version=__version__)


def run_api(host: str = API_HOST, port: int = API_PORT) -> None:
    """Serve the control API with uvicorn."""
    import uvicorn

    uvicorn.run(app, host=host, port=port)
