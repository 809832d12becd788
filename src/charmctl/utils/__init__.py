"""Shared utilities — constants, path helpers, and cross-cutting concerns.

Rules
-----
* No business logic.
* No I/O beyond reading the process environment.
* Importable by any layer.
"""

from __future__ import annotations

import os
from pathlib import Path

HOME_ENV_VAR: str = "CHARMCTL_HOME"
REPOSITORY_ENV_VAR: str = "CHARMCTL_REPOSITORY"
ENV_NAME_ENV_VAR: str = "CHARMCTL_ENV"


def charmctl_home() -> Path:
    """Return the configuration and local data root.

    ``$CHARMCTL_HOME`` when set, else ``~/.charmctl``.
    """
    override = os.environ.get(HOME_ENV_VAR)
    if override:
        return Path(override).expanduser()
    return Path.home() / ".charmctl"
