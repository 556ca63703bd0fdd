import asyncio
import os
import signal
import sys

import pytest
from typer.testing import CliRunner

from logfollow import (
    FollowCallbacks,
    Follower,
    FollowState,
    PositionRecord,
    StateStore,
    __version__,
)
from logfollow.cli import app, run_until_interrupted

runner = CliRunner()


def test_version():
    result = runner.invoke(app, ["--version"])

    assert result.exit_code == 0
    assert __version__ in result.output


def test_position_shows_saved_record(tmp_path):
    state = tmp_path / "app.state"
    StateStore(state).save(PositionRecord(device=12, inode=345, offset=6789))

    result = runner.invoke(app, ["position", str(state)])

    assert result.exit_code == 0
    assert "345" in result.output
    assert "6789" in result.output


def test_position_without_saved_record(tmp_path):
    result = runner.invoke(app, ["position", str(tmp_path / "none.state")])

    assert result.exit_code == 0
    assert "No saved position" in result.output


def test_position_clear(tmp_path):
    state = tmp_path / "app.state"
    StateStore(state).save(PositionRecord(1, 2, 3))

    result = runner.invoke(app, ["position", str(state), "--clear"])

    assert result.exit_code == 0
    assert not state.exists()


def test_follow_missing_file_fails(tmp_path):
    result = runner.invoke(app, ["follow", str(tmp_path / "missing.log")])

    assert result.exit_code == 1
    assert "Error" in result.output


def test_follow_rejects_bad_poll_interval(tmp_path):
    log = tmp_path / "app.log"
    log.write_text("", encoding="utf-8")

    result = runner.invoke(app, ["follow", str(log), "--poll-interval", "0"])

    assert result.exit_code == 1
    assert "poll_interval" in result.output


def test_follow_state_file_in_missing_directory_fails(tmp_path):
    log = tmp_path / "app.log"
    log.write_text("", encoding="utf-8")

    result = runner.invoke(
        app, ["follow", str(log), "--state-file", str(tmp_path / "nodir" / "app.state")]
    )

    assert result.exit_code == 1
    assert "Error" in result.output
    assert not isinstance(result.exception, OSError)


@pytest.mark.skipif(sys.platform == "win32", reason="needs loop signal handlers")
def test_sigint_stops_follower_and_fires_close(tmp_path):
    log = tmp_path / "app.log"
    log.write_text("line\n", encoding="utf-8")
    events = []

    def on_periodic(ctx):
        events.append("periodic")
        if events.count("periodic") == 1:
            os.kill(os.getpid(), signal.SIGINT)

    follower = Follower(
        log,
        poll_interval=60,
        callbacks=FollowCallbacks(
            on_line=lambda ctx, line: events.append(line),
            on_periodic=on_periodic,
            on_close=lambda ctx: events.append("close"),
        ),
    )

    interrupted = asyncio.run(asyncio.wait_for(run_until_interrupted(follower), timeout=5))

    assert interrupted is True
    assert events == ["line\n", "periodic", "close"]
    assert follower.state is FollowState.STOPPED
