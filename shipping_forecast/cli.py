"""Command-line interface for the infinite shipping forecast.

WHY: Developers and operators need a way to hear (or read) the broadcast
without the HTTP control API: preview generated text, inspect the markup
sent to the voice, or run a bounded session that writes its audio to
disk.

HOW: argparse selects one of three modes. --dry-run prints broadcast
text (or SSML with --markup) and never touches the network. --serve
starts the HTTP control API. Otherwise a Session runs with a
DirectorySink (when --output-dir is given) or a NullSink, for
--segments segments or until interrupted. Sinks hold each clip for
its playing time unless --no-pacing is given with --segments. Async
work runs under asyncio.run().

RULES:
- Status messages go to stderr; broadcast text/markup goes to stdout
- --seed makes generated content reproducible
- --dry-run needs no API key
- An unbounded session always runs at speaking pace
- Ctrl-C stops playback cleanly
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import random
import sys
from typing import List, Optional

from shipping_forecast.audio.sinks import DirectorySink, NullSink
from shipping_forecast.config import API_HOST, API_PORT, AUDIO_LIBRARY_DIR
from shipping_forecast.core.broadcast import BroadcastGenerator
from shipping_forecast.prosody.builder import TemplateBuilder
from shipping_forecast.session import Session

logger = logging.getLogger(__name__)


def _status(msg: str) -> None:
    """Print a status message to stderr."""
    print(msg, file=sys.stderr)


def _make_rng(seed: Optional[int]) -> random.Random:
    return random.Random(seed) if seed is not None else random.Random()


def _print_preview(args: argparse.Namespace) -> None:
    """Print one or more generated broadcasts as text or markup."""
    generator = BroadcastGenerator(_make_rng(args.seed))
    builder = TemplateBuilder()

    for index in range(args.broadcasts):
        broadcast = generator.generate_broadcast() if index == 0 else generator.generate_continuation()
        _status("--- {} ({} segments) ---".format(broadcast.id, len(broadcast.segments())))
        for segment in broadcast.segments():
            if args.markup:
                template = builder.build(segment)
                flag = "  [over limit]" if template.over_limit else ""
                print("{}{}".format(template.markup, flag))
            else:
                print(segment.text)
            print()


async def _run_session(args: argparse.Namespace) -> None:
    if args.output_dir:
        sink = DirectorySink(args.output_dir, realtime=not args.no_pacing)
    else:
        sink = NullSink(clip_duration_s=0.0 if args.no_pacing else None)
    session = Session(
        sink=sink,
        rng=_make_rng(args.seed),
        library_dir=args.library_dir,
        max_segments=args.segments,
    )
    async with session:
        _status("Broadcasting (session {}). Press Ctrl-C to stop.".format(session.id))
        try:
            await session.run()
        finally:
            stats = session.stats()
            usage = stats.get("usage", {})
            _status(
                "Played {} segments, {} failed, {} characters synthesized (est. ${:.4f})".format(
                    session.coordinator.segments_played if session.coordinator else 0,
                    session.coordinator.segments_failed if session.coordinator else 0,
                    usage.get("character_count", 0),
                    usage.get("estimated_cost", 0.0),
                )
            )


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the CLI.

    RULES:
    - Modes: --dry-run, --serve, or a playback session (default)
    - --segments bounds a playback session; omitted means run forever
    """
    parser = argparse.ArgumentParser(
        prog="shipping_forecast",
        description="Generate and broadcast an endless, never-repeating shipping forecast.",
    )

    mode = parser.add_mutually_exclusive_group()
    mode.add_argument(
        "--dry-run",
        action="store_true",
        help="Print generated broadcasts instead of synthesizing audio.",
    )
    mode.add_argument(
        "--serve",
        action="store_true",
        help="Run the HTTP control API.",
    )

    parser.add_argument(
        "--markup",
        action="store_true",
        help="With --dry-run, print the SSML sent to the voice instead of plain text.",
    )
    parser.add_argument(
        "--broadcasts",
        type=int,
        default=1,
        help="With --dry-run, number of broadcasts to print (default: %(default)s).",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Seed for reproducible content.",
    )
    parser.add_argument(
        "--segments",
        type=int,
        default=None,
        help="Stop after this many segments (default: run until interrupted).",
    )
    parser.add_argument(
        "--no-pacing",
        action="store_true",
        help="Do not wait for each clip's playing time (requires --segments).",
    )
    parser.add_argument(
        "--output-dir",
        default=None,
        help="Write each played clip to this directory.",
    )
    parser.add_argument(
        "--library-dir",
        default=AUDIO_LIBRARY_DIR,
        help="Pre-recorded clip library used as fallback (default: %(default)s).",
    )
    parser.add_argument("--host", default=API_HOST, help="API host for --serve (default: %(default)s).")
    parser.add_argument("--port", type=int, default=API_PORT, help="API port for --serve (default: %(default)s).")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Entry point for ``python -m shipping_forecast``.

    RULES:
    - argv=None means use sys.argv (normal CLI invocation)
    - Explicit argv is for testing
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.no_pacing and args.segments is None:
        parser.error("--no-pacing requires --segments")

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )

    if args.dry_run:
        _print_preview(args)
        return

    if args.serve:
        from shipping_forecast.server.app import run_api

        run_api(host=args.host, port=args.port)
        return

    try:
        asyncio.run(_run_session(args))
    except KeyboardInterrupt:
        _status("Stopped.")
    except ValueError as e:
        # Missing API key and similar configuration problems
        _status("Error: {}".format(e))
        sys.exit(1)


if __name__ == "__main__":
    main()
