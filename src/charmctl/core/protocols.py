"""Protocols (interfaces) consumed by the core layer.

These define the contracts that infrastructure adapters must satisfy.
Core code depends ONLY on these protocols, never on the concrete
adapters in :mod:`charmctl.infra`.
"""

from __future__ import annotations

from typing import Protocol

from charmctl.core.models import Charm, CharmURL, EnvironConfig, Machine, StoredCharm


class CharmRepository(Protocol):
    """Contract for a source of charm content."""

    def latest(self, curl: CharmURL) -> int:
        """Return the latest revision available for *curl*.

        Raises
        ------
        CharmNotFoundError
            When no charm matches *curl*.
        """
        ...  # pragma: no cover

    def get(self, curl: CharmURL) -> Charm:
        """Fetch the charm at the exact revision in *curl*.

        Raises
        ------
        CharmNotFoundError
            When no charm matches *curl*.
        """
        ...  # pragma: no cover

    def set_revision(self, charm: Charm, revision: int) -> Charm:
        """Rewrite the revision of a directory charm.

        Raises
        ------
        CharmPublishError
            When *charm* is not a directory charm.
        """
        ...  # pragma: no cover


class RepositoryResolver(Protocol):
    """Contract for choosing the repository that serves a charm URL."""

    def __call__(self, curl: CharmURL, repo_path: str | None) -> CharmRepository:
        """Return the repository for *curl*.

        Raises
        ------
        RepositoryNotFoundError
            When the repository root does not exist or is not readable.
        """
        ...  # pragma: no cover


class StateConnection(Protocol):
    """Contract for an open handle on a cluster state store.

    Implementations must map all backend-specific exceptions to
    :class:`~charmctl.exceptions.CharmctlError` subclasses.
    """

    def environ_config(self) -> EnvironConfig:
        ...  # pragma: no cover

    def charm(self, curl: CharmURL) -> StoredCharm | None:
        """Return the stored charm at *curl*, or ``None`` if absent."""
        ...  # pragma: no cover

    def add_charm(self, curl: CharmURL, charm: Charm) -> StoredCharm:
        ...  # pragma: no cover

    def add_service(self, name: str, charm: StoredCharm) -> str:
        """Create a service bound to *charm* and return its name.

        Raises
        ------
        DuplicateServiceError
            When a service called *name* already exists.
        """
        ...  # pragma: no cover

    def add_units(self, service_name: str, count: int) -> list[str]:
        """Add *count* units to a service and return their ids."""
        ...  # pragma: no cover

    def initialize(self, environ_type: str) -> None:
        """Prepare an empty store for use; a no-op when already initialized."""
        ...  # pragma: no cover

    def register_bootstrap_machine(self, instance_id: str) -> str:
        """Record the bootstrap machine and return its id.

        Raises
        ------
        DuplicateBootstrapError
            When the store already has a bootstrap machine.
        """
        ...  # pragma: no cover

    def all_machines(self) -> list[Machine]:
        ...  # pragma: no cover

    def close(self) -> None:
        """Release the connection.  Safe to call more than once."""
        ...  # pragma: no cover


class StoreConnector(Protocol):
    """Contract for connecting to a named environment."""

    def connect(self, env_name: str | None) -> StateConnection:
        """Open the store of *env_name* (``None`` selects the default).

        Raises
        ------
        ConnectionError
            When the environment cannot be connected to.
        """
        ...  # pragma: no cover


class StateOpener(Protocol):
    """Contract for opening a store directly by address."""

    def open(self, addrs: tuple[str, ...]) -> StateConnection:
        """Open the store served at any of *addrs*.

        Raises
        ------
        StoreUnavailableError
            When none of *addrs* is reachable.
        """
        ...  # pragma: no cover
