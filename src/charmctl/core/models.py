"""Domain models for charmctl.

All models are **frozen** dataclasses — immutable value objects with no
behaviour beyond data access and formatting.  They carry zero I/O and
must remain pure across the entire lifecycle.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from pathlib import Path

DEFAULT_STATE_ADDR: str = "127.0.0.1:2181"
"""Conventional loopback endpoint of a freshly bootstrapped store."""


# ---------------------------------------------------------------------------
# Charm reference
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class CharmURL:
    """A fully-qualified charm reference.

    The canonical text form is ``schema:[~user/]series/name[-revision]``,
    e.g. ``cs:~user/precise/mysql-33`` or ``local:precise/mysql``.
    """

    schema: str
    """``"cs"`` for the charm store, ``"local"`` for a local repository."""

    user: str | None
    series: str
    name: str

    revision: int | None = None
    """Explicit revision, or ``None`` for "latest in the repository"."""

    def with_revision(self, revision: int | None) -> CharmURL:
        return replace(self, revision=revision)

    def __str__(self) -> str:
        user = f"~{self.user}/" if self.user else ""
        rev = f"-{self.revision}" if self.revision is not None else ""
        return f"{self.schema}:{user}{self.series}/{self.name}{rev}"


# ---------------------------------------------------------------------------
# Charm content
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class CharmMeta:
    """The subset of a charm's ``metadata.yaml`` charmctl relies on."""

    name: str
    summary: str = ""
    description: str = ""
    subordinate: bool = False


@dataclass(frozen=True, slots=True)
class Charm:
    """A charm fetched from a repository."""

    meta: CharmMeta
    revision: int

    path: Path | None = None
    """Directory holding the charm, when it is an expanded local charm."""

    @property
    def is_dir(self) -> bool:
        return self.path is not None


@dataclass(frozen=True, slots=True)
class StoredCharm:
    """A charm as recorded in the store's catalogue."""

    url: CharmURL
    meta: CharmMeta


# ---------------------------------------------------------------------------
# Environment
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class EnvironConfig:
    """Configuration of a named environment."""

    name: str
    type: str
    default_series: str = "precise"
    state_servers: tuple[str, ...] = (DEFAULT_STATE_ADDR,)


# ---------------------------------------------------------------------------
# Command intents
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class DeployIntent:
    """Validated input of a single ``deploy`` invocation."""

    charm_name: str
    service_name: str | None = None
    num_units: int = 1
    bump_revision: bool = False
    config_path: Path | None = None
    repo_path: str | None = None
    env_name: str | None = None


@dataclass(frozen=True, slots=True)
class BootstrapIntent:
    """Validated input of a single ``bootstrap`` invocation."""

    instance_id: str
    env_type: str
    state_addrs: tuple[str, ...] = (DEFAULT_STATE_ADDR,)


# ---------------------------------------------------------------------------
# Workflow outcomes
# ---------------------------------------------------------------------------

class DeployPhase(str, Enum):
    """States of the deploy workflow, in execution order."""

    CONNECTING = "connecting"
    CHARM_RESOLVING = "charm-resolving"
    CHARM_PUBLISHING = "charm-publishing"
    SERVICE_CREATING = "service-creating"
    UNITS_CREATING = "units-creating"
    DONE = "done"


@dataclass(frozen=True, slots=True)
class DeployResult:
    service_name: str
    charm_url: CharmURL
    unit_ids: tuple[str, ...]
    subordinate: bool


@dataclass(frozen=True, slots=True)
class BootstrapResult:
    machine_id: str
    instance_id: str


@dataclass(frozen=True, slots=True)
class Machine:
    """A machine entry as reported by the store."""

    id: str
    instance_id: str | None
    bootstrap: bool = False
