"""Tests for the command-line interface.

WHY: The CLI is how operators preview content and run bounded sessions
without the HTTP API. Argument wiring mistakes only show up when someone
runs it, so the main paths are exercised here through main(argv).

HOW: main() is called with explicit argv. Dry runs are checked through
captured stdout/stderr. Playback sessions swap cli.Session for one built
around a FakeAdapter so no API key or network is needed.

RULES:
- Broadcast content on stdout, status lines on stderr
- The synthesis API is never called
"""

from __future__ import annotations

from unittest.mock import patch

import pytest
from conftest import FakeAdapter

from shipping_forecast import cli
from shipping_forecast.session import Session


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


class TestParser:
    def test_defaults(self):
        args = cli.build_parser().parse_args([])
        assert not args.dry_run
        assert not args.serve
        assert args.broadcasts == 1
        assert args.seed is None
        assert args.segments is None
        assert args.output_dir is None

    def test_modes_are_exclusive(self):
        with pytest.raises(SystemExit):
            cli.build_parser().parse_args(["--dry-run", "--serve"])

    def test_no_pacing_requires_segments(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            cli.main(["--no-pacing"])
        assert exc_info.value.code == 2
        assert "--no-pacing requires --segments" in capsys.readouterr().err

    def test_numeric_options(self):
        args = cli.build_parser().parse_args(["--seed", "5", "--segments", "10", "--port", "9000"])
        assert (args.seed, args.segments, args.port) == (5, 10, 9000)


# ---------------------------------------------------------------------------
# Dry run
# ---------------------------------------------------------------------------


class TestDryRun:
    def test_prints_broadcast_text(self, capsys):
        cli.main(["--dry-run", "--seed", "3"])
        captured = capsys.readouterr()
        assert "The general synopsis" in captured.out
        assert "<speak>" not in captured.out
        assert captured.err.count("--- broadcast-") == 1

    def test_prints_markup(self, capsys):
        cli.main(["--dry-run", "--markup", "--seed", "3"])
        lines = [line for line in capsys.readouterr().out.splitlines() if line]
        assert lines
        assert all(line.startswith("<speak>") for line in lines)

    def test_several_broadcasts(self, capsys):
        cli.main(["--dry-run", "--seed", "3", "--broadcasts", "3"])
        assert capsys.readouterr().err.count("--- broadcast-") == 3

    def test_seed_reproducible(self, capsys):
        cli.main(["--dry-run", "--seed", "11"])
        first = capsys.readouterr().err
        cli.main(["--dry-run", "--seed", "11"])
        assert capsys.readouterr().err == first


# ---------------------------------------------------------------------------
# Playback session
# ---------------------------------------------------------------------------


class TestSessionRun:
    def test_bounded_session_writes_clips(self, monkeypatch, tmp_path, capsys):
        monkeypatch.setattr(cli, "Session", lambda **kwargs: Session(adapter=FakeAdapter(), **kwargs))
        out = tmp_path / "clips"

        cli.main(["--seed", "2", "--segments", "4", "--no-pacing", "--output-dir", str(out)])

        files = sorted(p.name for p in out.iterdir())
        assert len(files) == 4
        assert files[0] == "00001-introduction.mp3"
        assert "Played 4 segments, 0 failed" in capsys.readouterr().err

    def test_configuration_error_exits(self, monkeypatch, capsys):
        def broken(**kwargs):
            raise ValueError("Speech synthesis API key not configured.")

        monkeypatch.setattr(cli, "Session", broken)
        with pytest.raises(SystemExit) as exc_info:
            cli.main(["--segments", "1"])
        assert exc_info.value.code == 1
        assert "Error: Speech synthesis API key not configured." in capsys.readouterr().err


# ---------------------------------------------------------------------------
# Serve
# ---------------------------------------------------------------------------


class TestServe:
    def test_serve_runs_api(self):
        with patch("shipping_forecast.server.app.run_api") as run_api:
            cli.main(["--serve", "--host", "0.0.0.0", "--port", "9001"])
        run_api.assert_called_once_with(host="0.0.0.0", port=9001)
