"""Logging setup for the repoqa CLI.

Library modules only call ``logging.getLogger(__name__)``; handlers are
installed here, once, by the entry point.
"""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

_NOISY_LOGGERS = ("LiteLLM", "litellm", "httpx", "httpcore", "chromadb")


def setup_logging(level: str = "WARNING", console: Console | None = None) -> None:
    """Route the ``repoqa`` loggers through a Rich handler on stderr.

    Unknown level names fall back to WARNING. Third-party HTTP and LLM
    client loggers are held at WARNING regardless of *level*.
    """
    numeric_level = getattr(logging, level.upper(), logging.WARNING)
    if not isinstance(numeric_level, int):
        numeric_level = logging.WARNING

    handler = RichHandler(
        console=console or Console(stderr=True),
        show_time=False,
        show_path=False,
        rich_tracebacks=False,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))

    root = logging.getLogger("repoqa")
    root.handlers = [handler]
    root.setLevel(numeric_level)
    root.propagate = False

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
