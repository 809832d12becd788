"""CLI console and logging helpers with optional Rich support.

This module intentionally avoids module-level imports of Rich so
bootstrap paths (``--help``, ``--version``) remain functional even when
Rich is not installed.
"""

from __future__ import annotations

import logging
import sys
from typing import Any


def get_rich_console() -> Any | None:
    """Create a Rich console targeting stderr, or ``None`` without Rich."""
    try:
        from rich.console import Console
    except ModuleNotFoundError:
        return None
    return Console(stderr=True)


class _ConsoleProxy:
    """Minimal ``print``-compatible proxy with Rich fallback."""

    def print(self, *objects: object) -> None:
        """Render with Rich when available, else plain stderr print."""
        rich_console = get_rich_console()
        if rich_console is None:
            print(*objects, file=sys.stderr)
            return
        rich_console.print(*objects)

    def print_error(self, label: str, message: str, hint: str | None = None) -> None:
        """Render an error line and an optional hint.

        *message* and *hint* are printed verbatim, never parsed as markup.
        """
        rich_console = get_rich_console()
        if rich_console is None:
            print(f"{label}: {message}", file=sys.stderr)
            if hint:
                print(f"Hint: {hint}", file=sys.stderr)
            return

        from rich.markup import escape

        rich_console.print(f"[bold red]{escape(label)}:[/bold red] {escape(message)}")
        if hint:
            rich_console.print(f"[yellow]Hint:[/yellow] {escape(hint)}")


console = _ConsoleProxy()


def configure_logging(level: int) -> None:
    """Route ``charmctl`` log records to stderr at *level*.

    Uses :class:`rich.logging.RichHandler` when Rich is installed.
    Calling this again replaces the previously installed handler.
    """
    handler: logging.Handler
    rich_console = get_rich_console()
    if rich_console is None:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
    else:
        from rich.logging import RichHandler

        handler = RichHandler(console=rich_console, show_time=False, show_path=False)

    logger = logging.getLogger("charmctl")
    logger.handlers[:] = [handler]
    logger.setLevel(level)
