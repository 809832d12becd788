"""CLI application entry point and command routing for charmctl.

This module is the **sole error boundary** for the entire application.
It catches :class:`~charmctl.exceptions.CharmctlError`,
``KeyboardInterrupt``, and any unexpected ``Exception``, rendering
user-friendly messages and returning well-defined exit codes.

Architecture notes
------------------
* No business logic lives here; commands parse their own arguments and
  delegate to the core services.
* ``CHARMCTL_REPOSITORY`` is read here, once, and handed to the deploy
  command as an explicit default.
* This module is the only place that translates between the domain world
  and the OS process exit code.
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path

from charmctl.cli import exit_codes
from charmctl.cli.bootstrap import BootstrapCommand
from charmctl.cli.command import Command, CommandContext
from charmctl.cli.console import configure_logging, console
from charmctl.cli.deploy import DeployCommand
from charmctl.exceptions import ArgumentError, CharmctlError
from charmctl.utils import REPOSITORY_ENV_VAR
from charmctl.version import __version__


# ---------------------------------------------------------------------------
# Command registry
# ---------------------------------------------------------------------------

def build_commands() -> dict[str, Command]:
    """Instantiate every command keyed by its name."""
    commands: list[Command] = [
        BootstrapCommand(),
        DeployCommand(default_repository=os.environ.get(REPOSITORY_ENV_VAR)),
    ]
    return {command.describe().name: command for command in commands}


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------

def _build_parser(commands: dict[str, Command]) -> argparse.ArgumentParser:
    """Construct the top-level parser.

    Only global flags are parsed here; everything after the command name
    is handed to the command's own :meth:`~Command.resolve`.
    """
    summary = "\n".join(
        f"  {name:<12}{command.describe().purpose}"
        for name, command in sorted(commands.items())
    )
    parser = argparse.ArgumentParser(
        prog="charmctl",
        description="Deploy charms and bootstrap cluster state.",
        epilog=f"commands:\n{summary}",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "-V",
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="show informational messages",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="show debugging messages",
    )
    parser.add_argument("command", nargs="?", default=None, help="command to run")
    parser.add_argument("args", nargs=argparse.REMAINDER, help=argparse.SUPPRESS)
    return parser


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------

def main(argv: list[str] | None = None) -> int:
    """Run the charmctl CLI.

    Parameters
    ----------
    argv:
        Explicit argument list.  When ``None`` (default), ``sys.argv[1:]``
        is used.  Accepting *argv* enables deterministic testing without
        monkeypatching.

    Returns
    -------
    int
        OS process exit code.
    """
    commands = build_commands()
    parser = _build_parser(commands)
    args = parser.parse_args(argv)

    if args.debug:
        configure_logging(logging.DEBUG)
    elif args.verbose:
        configure_logging(logging.INFO)
    else:
        configure_logging(logging.WARNING)

    if args.command is None:
        parser.print_help()
        return exit_codes.SUCCESS

    command = commands.get(args.command)
    if command is None:
        raise ArgumentError(
            f"unrecognized command: charmctl {args.command}",
            hint=f"Available commands: {', '.join(sorted(commands))}.",
        )

    intent = command.resolve(args.args)
    command.execute(intent, CommandContext(cwd=Path.cwd()))
    return exit_codes.SUCCESS


# ---------------------------------------------------------------------------
# Script-level error boundary
# ---------------------------------------------------------------------------

def cli() -> None:
    """Top-level error boundary invoked by the console-script entry point.

    This function wraps :func:`main` and guarantees the process never
    exits with a raw stack trace during normal usage.
    """
    try:
        code = main()
        sys.exit(code)
    except CharmctlError as exc:
        label = f"Error ({exc.phase})" if exc.phase else "Error"
        console.print_error(label, str(exc), exc.hint)
        sys.exit(exit_codes.GENERAL_ERROR)
    except KeyboardInterrupt:
        console.print("\n[yellow]Aborted by user.[/yellow]")
        sys.exit(exit_codes.KEYBOARD_INTERRUPT)
    except Exception as exc:  # noqa: BLE001
        console.print_error(
            "Unexpected error",
            f"{type(exc).__name__}: {exc}",
            "Please report this issue.",
        )
        sys.exit(exit_codes.UNEXPECTED_ERROR)
