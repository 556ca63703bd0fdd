import logging

from rich.logging import RichHandler

from .output import console


def setup_logging(level: int = logging.WARNING) -> None:
    """
    Route log records to the stderr console via rich.
    Call this at application startup; the library never does. Calling it
    again only adjusts the level.
    """
    root = logging.getLogger()
    root.setLevel(level)

    for handler in root.handlers:
        if isinstance(handler, RichHandler):
            handler.setLevel(level)
            return

    handler = RichHandler(console=console, show_path=False, rich_tracebacks=True)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))
    root.addHandler(handler)
