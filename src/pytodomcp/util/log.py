from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

# stdout carries the protocol; diagnostics only ever go to stderr
stderr_console = Console(stderr=True)

_handler: RichHandler | None = None


def setup_logging(level: str = "INFO") -> None:
    global _handler
    root = logging.getLogger("pytodomcp")
    if _handler is None:
        _handler = RichHandler(console=stderr_console, show_path=False, rich_tracebacks=True)
        _handler.setFormatter(logging.Formatter("%(message)s"))
        root.addHandler(_handler)
        root.propagate = False
    root.setLevel(level.upper())
