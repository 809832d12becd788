"""The contract every charmctl command implements.

A command is driven in three steps by :mod:`charmctl.cli.app`:

1. :meth:`Command.describe`: static metadata used for help output.
2. :meth:`Command.resolve`: parse raw arguments into an immutable
   intent, or raise :class:`~charmctl.exceptions.ArgumentError`.
3. :meth:`Command.execute`: perform the work against collaborators.

Flags are declared as :class:`Option` descriptors; one descriptor lists
every accepted spelling of the flag (``("-n", "--num-units")``).
"""

from __future__ import annotations

import argparse
import sys
from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Generic, NoReturn, TextIO, TypeVar

from charmctl.exceptions import ArgumentError

IntentT = TypeVar("IntentT")


# ---------------------------------------------------------------------------
# Descriptors
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class CommandInfo:
    """Static description of a command."""

    name: str
    args: str
    purpose: str
    doc: str = ""


@dataclass(frozen=True, slots=True)
class Option:
    """A flag accepted under one or more spellings."""

    names: tuple[str, ...]
    dest: str
    help: str = ""
    type: Callable[[str], Any] = str
    default: Any = None
    flag: bool = False
    """Boolean switch taking no value."""


@dataclass(frozen=True, slots=True)
class CommandContext:
    """Process-level facilities handed to :meth:`Command.execute`."""

    cwd: Path
    stdout: TextIO = field(default_factory=lambda: sys.stdout)
    stderr: TextIO = field(default_factory=lambda: sys.stderr)

    def abs_path(self, path: str) -> Path:
        """Resolve *path* against :attr:`cwd` unless it is absolute."""
        expanded = Path(path).expanduser()
        if expanded.is_absolute():
            return expanded
        return self.cwd / expanded


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------

class _ArgumentParser(argparse.ArgumentParser):
    """``ArgumentParser`` that raises instead of exiting on bad input."""

    def error(self, message: str) -> NoReturn:
        raise ArgumentError(message)


class Command(ABC, Generic[IntentT]):
    """Base class for charmctl commands."""

    @abstractmethod
    def describe(self) -> CommandInfo:
        """Return name, usage, purpose, and extended help."""

    @abstractmethod
    def options(self) -> tuple[Option, ...]:
        """Return the flags this command accepts."""

    @abstractmethod
    def resolve(self, args: Sequence[str]) -> IntentT:
        """Validate *args* and return the command's intent.

        Raises
        ------
        ArgumentError
            Naming the first violated constraint.
        UnrecognizedArgumentsError
            When positional arguments are left over.
        """

    @abstractmethod
    def execute(self, intent: IntentT, ctx: CommandContext) -> None:
        """Carry out *intent*."""

    # ------------------------------------------------------------------
    # Helpers for subclasses
    # ------------------------------------------------------------------

    def build_parser(self) -> argparse.ArgumentParser:
        info = self.describe()
        parser = _ArgumentParser(
            prog=f"charmctl {info.name}",
            usage=f"%(prog)s [options] {info.args}".rstrip(),
            description=info.purpose,
            epilog=info.doc.strip() or None,
            formatter_class=argparse.RawDescriptionHelpFormatter,
            allow_abbrev=False,
        )
        for opt in self.options():
            if opt.flag:
                parser.add_argument(
                    *opt.names, dest=opt.dest, action="store_true", help=opt.help,
                )
            else:
                parser.add_argument(
                    *opt.names, dest=opt.dest, type=opt.type, default=opt.default,
                    help=opt.help,
                )
        parser.add_argument("positional", nargs="*", help=argparse.SUPPRESS)
        return parser

    def parse_flags(self, args: Sequence[str]) -> tuple[dict[str, Any], list[str]]:
        """Consume every recognized flag in *args*.

        Flags may appear before, between, or after positional arguments.
        Returns the flag values keyed by destination and the positional
        arguments in order.
        """
        namespace = self.build_parser().parse_intermixed_args(list(args))
        values = vars(namespace)
        positional: list[str] = values.pop("positional")
        return values, positional
