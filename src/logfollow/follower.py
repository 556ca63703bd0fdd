"""Follow a single log file like ``tail -F``, surviving rotation and restarts."""

import asyncio
import codecs
import inspect
import logging
import os
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any

import aiofiles
import aiofiles.os

from .errors import ConfigError, OpenError
from .state import PositionRecord, StateStore

logger = logging.getLogger(__name__)

LineCallback = Callable[["FollowContext", str], Awaitable[None] | None]
EventCallback = Callable[["FollowContext"], Awaitable[None] | None]


def print_line(ctx: "FollowContext", line: str) -> None:
    """Default line callback: echo the line as-is, like ``tail -f``."""
    print(line, end="", flush=True)


@dataclass
class FollowCallbacks:
    """Observer hooks for a Follower. Any of them may be None."""

    # Called for every line read, terminator included
    on_line: LineCallback | None = print_line
    # Called after every successful open, initial and post-rotation
    on_open: EventCallback | None = None
    # Called before every close
    on_close: EventCallback | None = None
    # Called after each pass that exhausts the currently available lines
    on_periodic: EventCallback | None = None


class FollowState(str, Enum):
    CLOSED = "closed"
    OPEN_READING = "open_reading"
    DRAINING = "draining"
    STOPPED = "stopped"


class FollowContext:
    """
    What a callback gets to see of the Follower.

    Callbacks may request a stop or move the read cursor; the follow loop
    picks up both on its next check.
    """

    def __init__(self, follower: "Follower"):
        self._follower = follower

    @property
    def filename(self) -> Path:
        return self._follower.path

    @property
    def line(self) -> str | None:
        """The line being delivered, if any."""
        return self._follower._line

    @property
    def identity(self) -> tuple[int, int] | None:
        """(device, inode) of the open file, or None when closed."""
        return self._follower.identity

    @property
    def state(self) -> FollowState:
        return self._follower.state

    @property
    def stop_requested(self) -> bool:
        return self._follower.stop_requested

    def stop(self) -> None:
        self._follower.stop()

    async def tell(self) -> int:
        return await self._handle().tell()

    async def seek(self, offset: int, whence: int = os.SEEK_SET) -> int:
        return await self._handle().seek(offset, whence)

    async def readline(self) -> str:
        """Read one extra line from the open file ('' if none available)."""
        data = await self._handle().readline()
        return self._follower._decode(data)

    def _handle(self) -> Any:
        handle = self._follower._handle
        if handle is None:
            raise RuntimeError(f"{self._follower.path} is not open")
        return handle


class Follower:
    """
    Follow one file, delivering appended lines to callbacks.

    The loop polls: after reading everything currently available it checks
    whether the path now names a different file. When it does, the old file
    is read one last time on the next pass (so lines written right before
    the rotation are not lost), then closed and the path reopened.
    """

    def __init__(
        self,
        path: str | Path,
        *,
        skip_to_end: bool = False,
        state_file: str | Path | None = None,
        callbacks: FollowCallbacks | None = None,
        poll_interval: float = 1.0,
        encoding: str = "utf-8",
    ):
        """
        Initialize the follower. Nothing is opened until run().

        Args:
            path: File to follow
            skip_to_end: Start at end of file on the first open (tail -0f)
            state_file: Where to persist the read position between runs
            callbacks: Observer hooks (defaults print each line)
            poll_interval: Seconds to wait between passes when idle
            encoding: Text encoding used to decode lines
        """
        if poll_interval <= 0:
            raise ConfigError(f"poll_interval must be positive, got {poll_interval!r}")
        callbacks = callbacks if callbacks is not None else FollowCallbacks()
        for name in ("on_line", "on_open", "on_close", "on_periodic"):
            cb = getattr(callbacks, name)
            if cb is not None and not callable(cb):
                raise ConfigError(f"{name} must be callable or None")
        try:
            codecs.lookup(encoding)
        except LookupError as e:
            raise ConfigError(f"Unknown encoding: {encoding}", underlying=e) from e
        if state_file is not None:
            state_dir = Path(state_file).parent
            if not state_dir.is_dir():
                raise ConfigError(f"State file directory does not exist: {state_dir}")
            if not os.access(state_dir, os.W_OK):
                raise ConfigError(f"State file directory is not writable: {state_dir}")

        self.path = Path(path)
        self.skip_to_end = skip_to_end
        self.store = StateStore(state_file) if state_file is not None else None
        self.callbacks = callbacks
        self.poll_interval = poll_interval
        self.encoding = encoding

        self.state = FollowState.CLOSED
        self.identity: tuple[int, int] | None = None
        self.context = FollowContext(self)

        self._handle: Any = None
        self._line: str | None = None
        self._opened_before = False
        self._resume: PositionRecord | None = None
        self._stop_requested = False
        self._stop_event: asyncio.Event | None = None

    @property
    def stop_requested(self) -> bool:
        return self._stop_requested

    def stop(self) -> None:
        """Ask the loop to close the file and return."""
        self._stop_requested = True
        if self._stop_event is not None:
            self._stop_event.set()

    async def run(self) -> None:
        """
        Follow the file until stop() is called.

        Raises:
            OpenError: if the path cannot be opened or stat'ed
        """
        self._stop_event = asyncio.Event()
        if self._stop_requested:
            self._stop_event.set()
        self._resume = self.store.load() if self.store else None

        try:
            while not self._stop_requested:
                if self._handle is None:
                    await self._open()
                    if self._stop_requested:
                        break

                await self._read_available()
                if self._stop_requested:
                    break

                await self._fire(self.callbacks.on_periodic)
                if self.state is FollowState.DRAINING:
                    await self._close()
                    continue
                if self._stop_requested:
                    break

                if await self._rotated():
                    logger.info(f"{self.path} was rotated, draining old file")
                    self.state = FollowState.DRAINING
                    continue

                await self._wait()

            if self._handle is not None:
                await self._close()
        finally:
            if self._handle is not None:
                # Only reached when a callback raised or the task was cancelled
                await self._handle.close()
                self._handle = None
                self.identity = None
            self.state = FollowState.STOPPED
            self._line = None

    async def _open(self) -> None:
        try:
            handle = await aiofiles.open(self.path, mode="rb")
        except OSError as e:
            raise OpenError(f"Cannot open {self.path}", underlying=e) from e

        st = os.fstat(handle.fileno())
        self._handle = handle
        self.identity = (st.st_dev, st.st_ino)
        self.state = FollowState.OPEN_READING
        first_open = not self._opened_before
        self._opened_before = True

        resumed = False
        if self._resume is not None and self._resume.matches(self.identity):
            try:
                await handle.seek(self._resume.offset, os.SEEK_SET)
            except (ValueError, OverflowError, OSError) as e:
                logger.warning(f"Cannot resume {self.path} at offset {self._resume.offset}: {e}")
            else:
                logger.debug(f"Resuming {self.path} at offset {self._resume.offset}")
                resumed = True
        elif self._resume is not None:
            logger.info(f"Saved position does not match {self.path}, ignoring it")

        if not resumed and self.skip_to_end and first_open:
            await handle.seek(0, os.SEEK_END)
        self._resume = None

        logger.debug(f"Opened {self.path} (device={st.st_dev} inode={st.st_ino})")
        await self._fire(self.callbacks.on_open)

    async def _read_available(self) -> None:
        """Deliver lines until the read returns nothing or stop is requested."""
        while True:
            data = await self._handle.readline()
            if not data:
                return

            self._line = self._decode(data)
            try:
                await self._fire(self.callbacks.on_line, self._line)
            finally:
                self._line = None

            if self.store is not None:
                await self._save_position()

            if self._stop_requested:
                return

    async def _save_position(self) -> None:
        offset = await self._handle.tell()
        device, inode = self.identity
        try:
            self.store.save(PositionRecord(device=device, inode=inode, offset=offset))
        except OSError as e:
            # Saving is best-effort; the previous record stays in place
            logger.warning(f"Cannot save position to {self.store.path}: {e}")

    async def _rotated(self) -> bool:
        """True if the path no longer names the file we have open."""
        try:
            st = await aiofiles.os.stat(self.path)
        except FileNotFoundError:
            return True
        except OSError as e:
            raise OpenError(f"Cannot stat {self.path}", underlying=e) from e
        return (st.st_dev, st.st_ino) != self.identity

    async def _close(self) -> None:
        await self._fire(self.callbacks.on_close)
        await self._handle.close()
        self._handle = None
        self.identity = None
        self.state = FollowState.CLOSED
        logger.debug(f"Closed {self.path}")

    async def _wait(self) -> None:
        """Sleep one poll interval, waking early if stop() is called."""
        try:
            await asyncio.wait_for(self._stop_event.wait(), timeout=self.poll_interval)
        except asyncio.TimeoutError:
            pass

    async def _fire(self, callback: Callable[..., Any] | None, *args: Any) -> None:
        if callback is None:
            return
        result = callback(self.context, *args)
        if inspect.isawaitable(result):
            await result

    def _decode(self, data: bytes) -> str:
        return data.decode(self.encoding, errors="replace")


def follow(path: str | Path, **kwargs: Any) -> None:
    """Follow ``path`` in the foreground until a callback requests a stop."""
    asyncio.run(Follower(path, **kwargs).run())
