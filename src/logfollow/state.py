"""File-backed store for the follower's read position."""

import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

# Largest offset a signed 64-bit off_t can hold
MAX_OFFSET = 2**63 - 1


@dataclass(frozen=True)
class PositionRecord:
    """A read cursor inside one concrete file instance."""

    device: int
    inode: int
    offset: int

    @property
    def identity(self) -> tuple[int, int]:
        return (self.device, self.inode)

    def matches(self, identity: tuple[int, int] | None) -> bool:
        """True if this record belongs to the file with the given identity."""
        return identity is not None and self.identity == identity

    def format(self) -> str:
        return f"{self.device} {self.inode} {self.offset}"

    @classmethod
    def parse(cls, text: str) -> "PositionRecord | None":
        """
        Parse a ``<device> <inode> <offset>`` line.

        Returns None for anything that is not exactly three non-negative
        integers, or whose offset is beyond what a file can be seeked to.
        """
        fields = text.split()
        if len(fields) != 3:
            return None
        try:
            device, inode, offset = (int(f) for f in fields)
        except ValueError:
            return None
        if device < 0 or inode < 0 or not 0 <= offset <= MAX_OFFSET:
            return None
        return cls(device=device, inode=inode, offset=offset)


class StateStore:
    """Persist a single PositionRecord in a small text file."""

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def load(self) -> PositionRecord | None:
        """Read the saved position, or None if there is no usable one."""
        try:
            text = self.path.read_text(encoding="ascii", errors="replace")
        except FileNotFoundError:
            return None
        except OSError as e:
            logger.warning(f"Cannot read state file {self.path}: {e}")
            return None

        record = PositionRecord.parse(text)
        if record is None:
            logger.warning(f"Ignoring malformed state file {self.path}")
        return record

    def save(self, record: PositionRecord) -> None:
        """Overwrite the state file with ``record``."""
        directory = self.path.parent
        fd, tmp = tempfile.mkstemp(dir=directory, prefix=f".{self.path.name}.")
        try:
            with os.fdopen(fd, "w", encoding="ascii") as f:
                f.write(record.format())
            os.replace(tmp, self.path)
        except BaseException:
            os.unlink(tmp)
            raise

    def clear(self) -> bool:
        """Remove the state file. Returns True if one was removed."""
        try:
            self.path.unlink()
        except FileNotFoundError:
            return False
        return True
