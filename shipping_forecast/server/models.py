"""Pydantic request/response models for the control API.

WHY: The control endpoints need typed schemas for request validation,
response serialization and the generated OpenAPI docs at /docs.

HOW: One model per request or response body. Every field carries a
Field(description=...) so the docs are self-explanatory.

RULES:
- All models use Field(description=...) for OpenAPI documentation
- Playback state values match PlaybackState exactly
- Response models never expose internal objects, only plain values
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class VisibilityUpdate(BaseModel):
    """A visibility change reported by the listener's client.

    WHY: The inactivity monitor only knows what the client tells it: the
    page or window became hidden, or came back.
    """

    visible: bool = Field(description="True when the broadcast is visible to the listener again.")


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class SessionResponse(BaseModel):
    """Result of starting or stopping the broadcast."""

    session_id: str = Field(description="Identifier of the listening session.")
    running: bool = Field(description="Whether playback is running after the request.")
    state: str = Field(
        description="Playback state: idle, playing, synthesizing or speaking.",
        json_schema_extra={"example": "playing"},
    )


class FocusStatus(BaseModel):
    """What the inactivity monitor currently knows about the listener."""

    is_visible: bool = Field(description="Whether the broadcast is currently visible.")
    focus_lost_at: Optional[float] = Field(
        default=None,
        description="Epoch seconds when visibility was lost, if hidden.",
    )
    last_warning_at: Optional[float] = Field(
        default=None,
        description="Epoch seconds when the last warning finished playing.",
    )
    warnings_this_absence: int = Field(description="Warnings played since focus was lost.")
    warning_pending: bool = Field(description="Whether a warning is waiting for a segment boundary.")


class StatusResponse(BaseModel):
    """Current state of the broadcast.

    RULES:
    - session_id is null when no session is open
    - playback and focus are null when no session is open
    """

    session_id: Optional[str] = Field(default=None, description="Open session, if any.")
    running: bool = Field(description="Whether playback is running.")
    playback: Optional[Dict[str, Any]] = Field(
        default=None,
        description="Playback coordinator status: state, current segment, counters.",
    )
    focus: Optional[FocusStatus] = Field(default=None, description="Inactivity monitor state.")


class StatsResponse(BaseModel):
    """Synthesis statistics for the open session."""

    session_id: Optional[str] = Field(default=None, description="Open session, if any.")
    orchestrator: Optional[Dict[str, Any]] = Field(
        default=None,
        description="Adapter calls, look-ahead hits and failures, cache statistics.",
    )
    usage: Optional[Dict[str, Any]] = Field(
        default=None,
        description="Remote synthesis usage: requests, characters, latency, estimated cost.",
    )


class PreviewSegment(BaseModel):
    """One segment of a previewed broadcast."""

    label: str = Field(description="Segment kind, e.g. 'area_forecast'.")
    text: str = Field(description="Plain text of the segment.")
    pause_ms: int = Field(description="Pause after the segment, in milliseconds.")
    markup: Optional[str] = Field(default=None, description="SSML sent to the voice, when requested.")


class PreviewResponse(BaseModel):
    """A generated broadcast that is not played."""

    broadcast_id: str = Field(description="Identifier of the generated broadcast.")
    continuation: bool = Field(description="True when the broadcast has no introduction.")
    segments: List[PreviewSegment] = Field(description="Segments in playback order.")


class ErrorResponse(BaseModel):
    """Standard error response body.

    RULES:
    - detail is always a human-readable error message
    """

    detail: str = Field(description="Human-readable error description.")


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(description="Service health status.", json_schema_extra={"example": "ok"})
    version: str = Field(description="API version string.", json_schema_extra={"example": "0.1.0"})
