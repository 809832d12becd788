"""Core deploy service — orchestrates the deploy workflow.

The workflow runs through the phases of
:class:`~charmctl.core.models.DeployPhase` in order::

    connecting → charm-resolving → charm-publishing
               → service-creating → units-creating → done

The store connector and repository resolver are injected at
construction time.

Guarantees
----------
* The store connection is released on every exit path.
* Errors raised in a phase are tagged with that phase and propagate
  otherwise unchanged.
* Unit creation failures surface as
  :class:`~charmctl.exceptions.UnitsCreationError` because the service
  already exists at that point.
"""

from __future__ import annotations

import logging
from contextlib import closing

from charmctl.core.charm_url import infer_charm_url
from charmctl.core.models import CharmURL, DeployIntent, DeployPhase, DeployResult, StoredCharm
from charmctl.core.protocols import (
    CharmRepository,
    RepositoryResolver,
    StateConnection,
    StoreConnector,
)
from charmctl.exceptions import (
    CharmctlError,
    CharmPublishError,
    ConfigNotImplementedError,
    UnitsCreationError,
)

logger = logging.getLogger(__name__)


def publish_charm(
    conn: StateConnection,
    curl: CharmURL,
    repo: CharmRepository,
    bump_revision: bool,
) -> StoredCharm:
    """Make the charm at *curl* available in the store's catalogue.

    A charm already stored at the resolved revision is reused unless
    *bump_revision* forces a new revision of a directory charm.

    Raises
    ------
    CharmNotFoundError
        When *repo* has no charm matching *curl*.
    CharmPublishError
        When a revision bump is requested for a non-directory charm.
    """
    if curl.revision is None:
        curl = curl.with_revision(repo.latest(curl))
    charm = repo.get(curl)

    if bump_revision:
        if not charm.is_dir:
            raise CharmPublishError(
                f"cannot increment revision of charm {str(curl)!r}: not a directory",
            )
        charm = repo.set_revision(charm, charm.revision + 1)
        curl = curl.with_revision(charm.revision)
        logger.debug("bumped %s to revision %d", curl.name, charm.revision)

    existing = conn.charm(curl)
    if existing is not None:
        logger.debug("charm %s already in store", curl)
        return existing
    return conn.add_charm(curl, charm)


class DeployService:
    """Service that drives deployments, one at a time.

    :attr:`phase` holds the phase the most recent deployment reached.

    Parameters
    ----------
    connector:
        Any object satisfying the :class:`StoreConnector` protocol.
    resolve_repository:
        Callable mapping a charm URL and repository path to a
        :class:`CharmRepository`.
    """

    def __init__(
        self,
        connector: StoreConnector,
        resolve_repository: RepositoryResolver,
    ) -> None:
        self._connector: StoreConnector = connector
        self._resolve_repository: RepositoryResolver = resolve_repository
        self.phase: DeployPhase = DeployPhase.CONNECTING

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def deploy(self, intent: DeployIntent) -> DeployResult:
        """Deploy the charm described by *intent*.

        Raises
        ------
        ConnectionError
            When the environment cannot be connected to.
        CharmResolutionError
            When the charm or its repository cannot be located.
        ConfigNotImplementedError
            When *intent* carries a configuration file.
        DuplicateServiceError
            When the service name is already taken.
        UnitsCreationError
            When the service was created but its units were not.
        """
        self._enter(DeployPhase.CONNECTING)
        try:
            with closing(self._connector.connect(intent.env_name)) as conn:
                return self._run(conn, intent)
        except CharmctlError as exc:
            exc.phase = self.phase.value
            logger.debug("deploy failed during %s: %s", self.phase.value, exc)
            raise

    # ------------------------------------------------------------------
    # Phases
    # ------------------------------------------------------------------

    def _run(self, conn: StateConnection, intent: DeployIntent) -> DeployResult:
        self._enter(DeployPhase.CHARM_RESOLVING)
        conf = conn.environ_config()
        curl = infer_charm_url(intent.charm_name, conf.default_series)
        repo = self._resolve_repository(curl, intent.repo_path)

        self._enter(DeployPhase.CHARM_PUBLISHING)
        charm = publish_charm(conn, curl, repo, intent.bump_revision)
        if intent.config_path is not None:
            raise ConfigNotImplementedError(
                "setting service configuration is not implemented",
                hint=f"Deploy without --config {intent.config_path}.",
            )

        self._enter(DeployPhase.SERVICE_CREATING)
        service_name = conn.add_service(intent.service_name or curl.name, charm)
        if charm.meta.subordinate:
            self._enter(DeployPhase.DONE)
            return DeployResult(
                service_name=service_name,
                charm_url=charm.url,
                unit_ids=(),
                subordinate=True,
            )

        self._enter(DeployPhase.UNITS_CREATING)
        try:
            unit_ids = conn.add_units(service_name, intent.num_units)
        except Exception as exc:
            raise UnitsCreationError(service_name, exc) from exc

        self._enter(DeployPhase.DONE)
        return DeployResult(
            service_name=service_name,
            charm_url=charm.url,
            unit_ids=tuple(unit_ids),
            subordinate=False,
        )

    def _enter(self, phase: DeployPhase) -> None:
        self.phase = phase
        logger.debug("deploy: %s", phase.value)
