"""CLI interface for logfollow."""

import asyncio
import logging
import signal
from pathlib import Path
from typing import Annotated, Optional

import typer

from . import __version__
from .errors import FollowError
from .follower import FollowCallbacks, FollowContext, Follower, print_line
from .logging_config import setup_logging
from .state import StateStore
from . import output


app = typer.Typer(
    name="logfollow",
    help="logfollow - follow a log file across rotations and restarts",
    no_args_is_help=True,
)


def version_callback(value: bool) -> None:
    if value:
        output.console.print(f"logfollow v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        Optional[bool],
        typer.Option("--version", "-V", callback=version_callback, is_eager=True),
    ] = None,
) -> None:
    """logfollow - like tail -F, but it remembers where it left off."""
    pass


async def _show_opened(ctx: FollowContext) -> None:
    output.print_file_opened(ctx.filename, ctx.identity, await ctx.tell())


async def _show_closed(ctx: FollowContext) -> None:
    output.print_file_closed(ctx.filename, await ctx.tell())


async def run_until_interrupted(follower: Follower) -> bool:
    """
    Run the follower, turning SIGINT into follower.stop() so the close
    callback still fires.

    Returns True if the run ended because of SIGINT.
    """
    loop = asyncio.get_running_loop()
    interrupted = False

    def on_sigint() -> None:
        nonlocal interrupted
        interrupted = True
        follower.stop()

    try:
        loop.add_signal_handler(signal.SIGINT, on_sigint)
        installed = True
    except (NotImplementedError, RuntimeError, ValueError):
        # Windows event loops and non-main threads; Ctrl+C cancels instead
        installed = False

    try:
        await follower.run()
    finally:
        if installed:
            loop.remove_signal_handler(signal.SIGINT)
    return interrupted


@app.command()
def follow(
    path: Annotated[
        Path,
        typer.Argument(help="Log file to follow"),
    ],
    skip_to_end: Annotated[
        bool,
        typer.Option(
            "--skip-to-end", "-s",
            envvar="LOGFOLLOW_SKIP_TO_END",
            help="Start at the end of the file on first open",
        ),
    ] = False,
    state_file: Annotated[
        Optional[Path],
        typer.Option(
            "--state-file", "-f",
            envvar="LOGFOLLOW_STATE_FILE",
            help="Persist the read position here and resume from it",
        ),
    ] = None,
    poll_interval: Annotated[
        float,
        typer.Option(
            "--poll-interval", "-p",
            envvar="LOGFOLLOW_POLL_INTERVAL",
            help="Seconds between checks when idle",
        ),
    ] = 1.0,
    events: Annotated[
        bool,
        typer.Option("--events", "-e", help="Report file open/close on stderr"),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Debug logging on stderr"),
    ] = False,
) -> None:
    """Follow a log file, printing new lines as they are written."""
    setup_logging(logging.DEBUG if verbose else logging.WARNING)

    callbacks = FollowCallbacks(on_line=print_line)
    if events:
        callbacks.on_open = _show_opened
        callbacks.on_close = _show_closed

    try:
        follower = Follower(
            path,
            skip_to_end=skip_to_end,
            state_file=state_file,
            callbacks=callbacks,
            poll_interval=poll_interval,
        )
        if events:
            output.print_startup(path, skip_to_end, state_file)
        if asyncio.run(run_until_interrupted(follower)):
            output.console.print("\n[dim]Stopped following.[/dim]")

    except KeyboardInterrupt:
        output.console.print("\n[dim]Stopped following.[/dim]")
    except FollowError as e:
        output.print_error(str(e))
        raise typer.Exit(1)


@app.command()
def position(
    state_file: Annotated[
        Path,
        typer.Argument(help="State file written by 'logfollow follow --state-file'"),
    ],
    clear: Annotated[
        bool,
        typer.Option("--clear", help="Forget the saved position"),
    ] = False,
) -> None:
    """Show (or clear) the position saved in a state file."""
    store = StateStore(state_file)

    if clear:
        if store.clear():
            output.print_info(f"Cleared {state_file}")
        else:
            output.print_info(f"Nothing to clear at {state_file}")
        return

    output.print_position(state_file, store.load())


if __name__ == "__main__":
    app()
