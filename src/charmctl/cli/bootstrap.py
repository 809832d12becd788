"""``charmctl bootstrap`` — initialize a cluster store and register machine 0."""

from __future__ import annotations

import argparse
from collections.abc import Sequence

from charmctl.cli.command import Command, CommandContext, CommandInfo, Option
from charmctl.core.models import DEFAULT_STATE_ADDR, BootstrapIntent
from charmctl.core.protocols import StateOpener
from charmctl.exceptions import ArgumentError, check_empty


def split_addrs(value: str) -> tuple[str, ...]:
    """Parse a comma-separated ``host:port`` list."""
    addrs = tuple(part.strip() for part in value.split(",") if part.strip())
    if not addrs:
        raise argparse.ArgumentTypeError("at least one store address is required")
    return addrs


class BootstrapCommand(Command[BootstrapIntent]):
    """Initialize a store and record the machine running the command.

    Parameters
    ----------
    opener:
        Collaborator for :class:`~charmctl.core.bootstrap_service.BootstrapService`.
        Defaults to the local store under ``CHARMCTL_HOME``.
    """

    def __init__(self, *, opener: StateOpener | None = None) -> None:
        self._opener = opener

    def describe(self) -> CommandInfo:
        return CommandInfo(
            name="bootstrap",
            args="",
            purpose="initialize cluster state",
        )

    def options(self) -> tuple[Option, ...]:
        return (
            Option(
                ("--state-servers", "--zookeeper-servers"), "state_addrs",
                "comma-separated list of store servers",
                type=split_addrs, default=(DEFAULT_STATE_ADDR,),
            ),
            Option(("--instance-id",), "instance_id", "instance id of this machine"),
            Option(("--env-type",), "env_type", "environment type"),
        )

    def resolve(self, args: Sequence[str]) -> BootstrapIntent:
        values, positional = self.parse_flags(args)
        for opt in ("instance_id", "env_type"):
            if not values[opt]:
                raise ArgumentError(f"--{opt.replace('_', '-')} option must be set")
        check_empty(positional)
        return BootstrapIntent(**values)

    def execute(self, intent: BootstrapIntent, ctx: CommandContext) -> None:
        from charmctl.core.bootstrap_service import BootstrapService

        result = BootstrapService(self._opener or self._default_opener()).bootstrap(intent)
        print(
            f"Bootstrapped machine {result.machine_id} (instance {result.instance_id})",
            file=ctx.stdout,
        )

    @staticmethod
    def _default_opener() -> StateOpener:
        from charmctl.infra.local_state import LocalStateOpener
        from charmctl.utils import charmctl_home

        return LocalStateOpener(charmctl_home())
