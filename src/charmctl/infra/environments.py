"""Infrastructure: ``environments.yaml`` loading.

The file lives at ``<CHARMCTL_HOME>/environments.yaml``::

    default: sample
    environments:
      sample:
        type: local
        default-series: precise
        state-servers: ["127.0.0.1:2181"]

Rules
-----
* Parsing via ``yaml.safe_load`` only.
* Every failure surfaces as :class:`EnvironmentConfigError`.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from charmctl.core.models import DEFAULT_STATE_ADDR, EnvironConfig
from charmctl.exceptions import EnvironmentConfigError
from charmctl.utils import ENV_NAME_ENV_VAR

logger = logging.getLogger(__name__)

ENVIRONMENTS_FILE: str = "environments.yaml"


@dataclass(frozen=True)
class Environments:
    """All environments declared in ``environments.yaml``."""

    default: str | None
    environs: dict[str, EnvironConfig] = field(default_factory=dict)

    def select(self, name: str | None) -> EnvironConfig:
        """Return the environment called *name*, or the default one.

        Selection order: *name*, ``$CHARMCTL_ENV``, the ``default`` key,
        then the only environment when exactly one is declared.
        """
        name = name or os.environ.get(ENV_NAME_ENV_VAR) or self.default
        if not name:
            if len(self.environs) == 1:
                return next(iter(self.environs.values()))
            raise EnvironmentConfigError(
                "no default environment found",
                hint="Pass -e <environment> or set 'default' in environments.yaml.",
            )
        try:
            return self.environs[name]
        except KeyError:
            raise EnvironmentConfigError(
                f"unknown environment {name!r}",
                hint=f"Known environments: {', '.join(sorted(self.environs)) or 'none'}.",
            ) from None


def read_environments(home: Path) -> Environments:
    """Load and validate ``environments.yaml`` from *home*."""
    path = home / ENVIRONMENTS_FILE
    try:
        with open(path, encoding="utf-8") as f:
            raw = yaml.safe_load(f)
    except FileNotFoundError:
        raise EnvironmentConfigError(
            f"environment configuration not found: {path}",
            hint="Create environments.yaml or point CHARMCTL_HOME at it.",
        ) from None
    except OSError as exc:
        raise EnvironmentConfigError(f"cannot read {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise EnvironmentConfigError(f"invalid YAML in {path}: {exc}") from exc
    logger.debug("loaded %s", path)
    return parse_environments(raw)


def parse_environments(raw: Any) -> Environments:
    """Convert the parsed YAML document into :class:`Environments`."""
    if not isinstance(raw, dict):
        raise EnvironmentConfigError("environments.yaml must contain a mapping")
    entries = raw.get("environments")
    if not isinstance(entries, dict) or not entries:
        raise EnvironmentConfigError("environments.yaml declares no environments")

    environs = {
        str(name): _parse_environ(str(name), attrs) for name, attrs in entries.items()
    }
    default = raw.get("default")
    return Environments(default=str(default) if default else None, environs=environs)


def _parse_environ(name: str, attrs: Any) -> EnvironConfig:
    if not isinstance(attrs, dict):
        raise EnvironmentConfigError(f"environment {name!r} must be a mapping")
    env_type = attrs.get("type")
    if not env_type:
        raise EnvironmentConfigError(f"environment {name!r} has no type")

    servers = attrs.get("state-servers", [DEFAULT_STATE_ADDR])
    if isinstance(servers, str):
        servers = servers.split(",")
    if not isinstance(servers, list) or not servers:
        raise EnvironmentConfigError(
            f"environment {name!r}: state-servers must be a non-empty list",
        )

    return EnvironConfig(
        name=name,
        type=str(env_type),
        default_series=str(attrs.get("default-series", "precise")),
        state_servers=tuple(str(addr).strip() for addr in servers),
    )
