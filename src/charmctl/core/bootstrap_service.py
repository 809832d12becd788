"""Core bootstrap service — initializes a store and registers machine 0.

Guarantees
----------
* Pure orchestration: the store is reached only through the injected
  :class:`~charmctl.core.protocols.StateOpener`.
* The store connection is released on every exit path.
"""

from __future__ import annotations

import logging
from contextlib import closing

from charmctl.core.models import BootstrapIntent, BootstrapResult
from charmctl.core.protocols import StateOpener

logger = logging.getLogger(__name__)


class BootstrapService:
    """Stateless service that bootstraps a cluster store.

    Parameters
    ----------
    opener:
        Any object satisfying the :class:`StateOpener` protocol.
    """

    def __init__(self, opener: StateOpener) -> None:
        self._opener: StateOpener = opener

    def bootstrap(self, intent: BootstrapIntent) -> BootstrapResult:
        """Initialize the store at ``intent.state_addrs`` and register
        the bootstrap machine.

        Raises
        ------
        StoreUnavailableError
            When no address in ``intent.state_addrs`` is reachable.
        DuplicateBootstrapError
            When the store already has a bootstrap machine.
        """
        logger.debug("bootstrap: opening state at %s", ",".join(intent.state_addrs))
        with closing(self._opener.open(intent.state_addrs)) as conn:
            conn.initialize(intent.env_type)
            machine_id = conn.register_bootstrap_machine(intent.instance_id)
        logger.debug("bootstrap: machine %s is %s", machine_id, intent.instance_id)
        return BootstrapResult(machine_id=machine_id, instance_id=intent.instance_id)
