"""Infinite Shipping Forecast: an endless, procedurally generated radio broadcast.

WHY: The shipping forecast is a ritual of fixed form and endlessly varied
content. This package generates that content forever, renders it to
speech markup with the right cadence, synthesizes it with a remote voice
and keeps it playing, whispering to the listener when they drift away.

HOW: Four stages: generate (core), render (prosody), synthesize and play
(api + audio), and watch the listener (focus). A Session wires them
together; the CLI and the HTTP API drive a Session.

RULES:
- Generation is pure and never fails at runtime
- The broadcast never goes silent because of a recoverable error
- Nothing persists between sessions
"""

__version__ = "0.1.0"
