"""Infrastructure layer — external system integration.

This layer implements the core protocols on top of the local
filesystem: ``environments.yaml``, the file-backed state store, and the
charm repositories.  Every raw ``OSError`` / ``yaml.YAMLError`` must be
caught here and re-raised as a :class:`~charmctl.exceptions.CharmctlError`
subclass.

Rules
-----
* No imports from ``cli``.
* No user-facing output (no ``print()``, no Rich rendering).
* Must expose clean, typed interfaces consumed by the core layer.
"""

from charmctl.infra.environments import Environments, read_environments
from charmctl.infra.local_state import LocalState, LocalStateOpener, LocalStoreConnector
from charmctl.infra.repository import CharmStoreRepository, LocalRepository, RepositoryLocator

__all__: list[str] = [
    "CharmStoreRepository",
    "Environments",
    "LocalRepository",
    "LocalState",
    "LocalStateOpener",
    "LocalStoreConnector",
    "RepositoryLocator",
    "read_environments",
]
