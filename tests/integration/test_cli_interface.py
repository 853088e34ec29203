#!/usr/bin/env python3
"""
Integration tests for the CLI interface.
Runs the sync, status and argument parsing end to end against the in-memory
catalog, with real settings loading and on-disk state.
"""

import json
import pytest
from datetime import timedelta
from unittest.mock import patch

import main
from likes_router.utils.timestamps import utc_now

@pytest.fixture
def cli_env(monkeypatch, tmp_path):
    """Environment for a configured installation with a temporary data dir."""
    for name in ("REDIS_URL", "LOG_LEVEL", "REBUILD_GENRE_PROFILE_INTERVAL", "TARGET_PLAYLIST_ID_DEFAULT"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("SPOTIFY_CLIENT_ID", "client")
    monkeypatch.setenv("SPOTIFY_CLIENT_SECRET", "secret")
    monkeypatch.setenv("SPOTIFY_REFRESH_TOKEN", "refresh")
    monkeypatch.setenv("TARGET_PLAYLIST_IDS", "rockPL,jazzPL")
    monkeypatch.setenv("DATA_DIR", str(tmp_path / "data"))
    return tmp_path / "data"

class TestCLIInterface:
    """Integration tests for the command line interface."""

    def test_parser_defaults(self):
        parser = main.build_parser()

        args = parser.parse_args(["sync", "--interval", "6"])
        assert args.command == "sync"
        assert args.interval == 6.0

        args = parser.parse_args(["-v", "auth", "--no-browser"])
        assert args.verbose
        assert args.no_browser

        assert parser.parse_args([]).command is None

    def test_first_run_then_routes_new_like(self, cli_env, rock_and_jazz, capsys):
        with patch("main.SpotifyClient", return_value=rock_and_jazz) as client_cls:
            assert main.main(["sync"]) == 0
            out = capsys.readouterr().out
            assert "Initialized watermark" in out
            assert rock_and_jazz.calls["iterate_liked_tracks"] == 0

            rock_and_jazz.like("fresh", utc_now() + timedelta(minutes=1), ["rocker1"])
            assert main.main([]) == 0

        out = capsys.readouterr().out
        assert "Routed 1 new liked tracks" in out
        assert "fresh" in rock_and_jazz.member_ids("rockPL")
        assert client_cls.call_args.kwargs["refresh_token"] == "refresh"

        state = json.loads((cli_env / "state.json").read_text())
        assert set(state["last_profile_rebuild_time"]) == {"rockPL", "jazzPL"}
        assert (cli_env / "playlist_profiles.json").exists()

    def test_missing_configuration_exits_nonzero(self, cli_env, monkeypatch):
        monkeypatch.delenv("SPOTIFY_REFRESH_TOKEN")

        with patch("main.SpotifyClient") as client_cls:
            assert main.main(["sync"]) == 1

        client_cls.assert_not_called()
        assert not (cli_env / "state.json").exists()

    def test_no_targets_exits_nonzero(self, cli_env, monkeypatch):
        monkeypatch.delenv("TARGET_PLAYLIST_IDS")

        with patch("main.SpotifyClient") as client_cls:
            assert main.main(["sync"]) == 1

        client_cls.assert_not_called()

    def test_interval_flag_overrides_bad_environment_value(self, cli_env, rock_and_jazz, monkeypatch):
        monkeypatch.setenv("REBUILD_GENRE_PROFILE_INTERVAL", "daily")

        with patch("main.SpotifyClient", return_value=rock_and_jazz) as client_cls:
            assert main.main(["sync"]) == 1
            client_cls.assert_not_called()

            assert main.main(["sync", "--interval", "6"]) == 0

        assert (cli_env / "state.json").exists()

    def test_api_failure_leaves_state_unchanged(self, cli_env, rock_and_jazz):
        with patch("main.SpotifyClient", return_value=rock_and_jazz):
            assert main.main(["sync"]) == 0
            state_before = (cli_env / "state.json").read_text()

            rock_and_jazz.like("fresh", utc_now() + timedelta(minutes=1), ["rocker1"])
            rock_and_jazz.fail_adds = True
            assert main.main(["sync"]) == 1

        assert (cli_env / "state.json").read_text() == state_before

    def test_status_before_and_after_first_run(self, cli_env, rock_and_jazz, capsys):
        assert main.main(["status"]) == 0
        out = capsys.readouterr().out
        assert "target_playlists: rockPL, jazzPL" in out
        assert "not initialized" in out

        with patch("main.SpotifyClient", return_value=rock_and_jazz):
            main.main(["sync"])
        capsys.readouterr()

        assert main.main(["status"]) == 0
        out = capsys.readouterr().out
        assert "watermark: 20" in out
