"""Core / service layer — pure business logic and data transformations.

Rules
-----
* No ``print()`` calls.
* No filesystem or network I/O.
* No imports from ``cli`` or ``infra``.
* All functions must be fully typed and deterministic.
"""

from charmctl.core.bootstrap_service import BootstrapService
from charmctl.core.charm_url import infer_charm_url, parse_charm_url
from charmctl.core.deploy_service import DeployService, publish_charm
from charmctl.core.models import (
    BootstrapIntent,
    BootstrapResult,
    Charm,
    CharmMeta,
    CharmURL,
    DeployIntent,
    DeployPhase,
    DeployResult,
    EnvironConfig,
    Machine,
    StoredCharm,
)
from charmctl.core.protocols import (
    CharmRepository,
    RepositoryResolver,
    StateConnection,
    StateOpener,
    StoreConnector,
)

__all__: list[str] = [
    "BootstrapIntent",
    "BootstrapResult",
    "BootstrapService",
    "Charm",
    "CharmMeta",
    "CharmRepository",
    "CharmURL",
    "DeployIntent",
    "DeployPhase",
    "DeployResult",
    "DeployService",
    "EnvironConfig",
    "Machine",
    "RepositoryResolver",
    "StateConnection",
    "StateOpener",
    "StoreConnector",
    "StoredCharm",
    "infer_charm_url",
    "parse_charm_url",
    "publish_charm",
]
