"""``charmctl deploy`` — deploy a new service from a charm."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import replace
from pathlib import Path

from charmctl.cli.command import Command, CommandContext, CommandInfo, Option
from charmctl.core.models import DeployIntent
from charmctl.core.protocols import RepositoryResolver, StoreConnector
from charmctl.exceptions import ArgumentError, check_empty

logger = logging.getLogger(__name__)

DEPLOY_DOC = """
<charm name> can be a charm URL, or an unambiguously condensed form of it;
assuming a current default series of "precise", the following forms will be
accepted.

For cs:precise/mysql
  mysql
  precise/mysql

For cs:~user/precise/mysql
  cs:~user/mysql
  ~user/mysql

For local:precise/mysql
  local:mysql

In all cases, a versioned charm URL will be expanded as expected (for example,
mysql-33 becomes cs:precise/mysql-33).

<service name>, if omitted, will be derived from <charm name>.
"""


class DeployCommand(Command[DeployIntent]):
    """Deploy a charm as a new service.

    Parameters
    ----------
    default_repository:
        Repository path used when ``--repository`` is not given.
    connector, resolve_repository:
        Collaborators for :class:`~charmctl.core.deploy_service.DeployService`.
        When omitted, the local store and filesystem repositories under
        ``CHARMCTL_HOME`` are used.
    """

    def __init__(
        self,
        default_repository: str | None = None,
        *,
        connector: StoreConnector | None = None,
        resolve_repository: RepositoryResolver | None = None,
    ) -> None:
        self.default_repository = default_repository
        self._connector = connector
        self._resolve_repository = resolve_repository

    def describe(self) -> CommandInfo:
        return CommandInfo(
            name="deploy",
            args="<charm name> [<service name>]",
            purpose="deploy a new service",
            doc=DEPLOY_DOC,
        )

    def options(self) -> tuple[Option, ...]:
        return (
            Option(("-e", "--environment"), "env_name", "environment to operate in"),
            Option(
                ("-n", "--num-units"), "num_units",
                "number of service units to deploy for principal charms",
                type=int, default=1,
            ),
            Option(
                ("-u", "--upgrade"), "bump_revision",
                "increment local charm directory revision", flag=True,
            ),
            Option(("--config",), "config_path", "path to yaml-formatted service config",
                   type=Path),
            Option(("--repository",), "repo_path", "local charm repository",
                   default=self.default_repository),
        )

    def resolve(self, args: Sequence[str]) -> DeployIntent:
        values, positional = self.parse_flags(args)
        if not positional:
            raise ArgumentError("no charm specified")
        check_empty(positional[2:])
        if values["num_units"] < 1:
            raise ArgumentError("must deploy at least one unit")
        return DeployIntent(
            charm_name=positional[0],
            service_name=positional[1] if len(positional) > 1 else None,
            **values,
        )

    def execute(self, intent: DeployIntent, ctx: CommandContext) -> None:
        from charmctl.core.deploy_service import DeployService

        if intent.repo_path:
            intent = replace(intent, repo_path=str(ctx.abs_path(intent.repo_path)))

        result = DeployService(*self._collaborators()).deploy(intent)
        if result.subordinate:
            print(f"Deployed {result.service_name} ({result.charm_url})", file=ctx.stdout)
            print("Charm is subordinate; no units were added.", file=ctx.stderr)
            return
        logger.info("units: %s", ", ".join(result.unit_ids))
        print(
            f"Deployed {result.service_name} ({result.charm_url}) "
            f"with {len(result.unit_ids)} unit(s)",
            file=ctx.stdout,
        )

    def _collaborators(self) -> tuple[StoreConnector, RepositoryResolver]:
        from charmctl.infra.local_state import LocalStoreConnector
        from charmctl.infra.repository import RepositoryLocator
        from charmctl.utils import charmctl_home

        home = charmctl_home()
        connector = self._connector or LocalStoreConnector(home)
        resolve_repository = self._resolve_repository or RepositoryLocator(
            home / "charm-store",
        )
        return connector, resolve_repository
