"""Custom exception hierarchy for charmctl.

All exceptions that cross layer boundaries must inherit from
:class:`CharmctlError`.  Raw ``OSError`` / ``yaml.YAMLError`` instances
must NEVER propagate beyond the infrastructure layer; they are caught
there and re-raised as a typed subclass defined here.

Hierarchy
---------
CharmctlError
├── ArgumentError
│   └── UnrecognizedArgumentsError
├── CharmResolutionError
│   ├── AmbiguousCharmError
│   ├── InvalidCharmNameError
│   ├── RepositoryNotFoundError
│   └── CharmNotFoundError
├── EnvironmentConfigError
├── ConnectionError
├── StoreUnavailableError
├── StoreError
│   ├── DuplicateServiceError
│   ├── DuplicateBootstrapError
│   └── CharmPublishError
├── ConfigNotImplementedError
└── UnitsCreationError
"""

from __future__ import annotations

import json
from collections.abc import Sequence


class CharmctlError(Exception):
    """Base exception for all charmctl errors.

    Every user-visible error condition must map to a subclass of this
    exception so that the CLI error boundary can render a clean message
    without leaking internal stack traces.
    """

    def __init__(self, message: str, *, hint: str | None = None) -> None:
        super().__init__(message)
        self.hint: str | None = hint
        """Optional actionable guidance shown below the error message."""

        self.phase: str | None = None
        """Workflow phase the error was raised in, set by the workflow."""


# --- Argument handling -----------------------------------------------------

class ArgumentError(CharmctlError):
    """Raised when command-line input is missing or malformed."""


class UnrecognizedArgumentsError(ArgumentError):
    """Raised when positional arguments are left over after parsing."""

    def __init__(self, args: Sequence[str]) -> None:
        super().__init__(f"unrecognized args: {json.dumps(list(args))}")
        self.args_left: tuple[str, ...] = tuple(args)


def check_empty(args: Sequence[str]) -> None:
    """Raise :class:`UnrecognizedArgumentsError` if *args* is non-empty."""
    if args:
        raise UnrecognizedArgumentsError(args)


# --- Charm resolution ------------------------------------------------------

class CharmResolutionError(CharmctlError):
    """Base for failures while locating a charm.  The store is untouched."""


class AmbiguousCharmError(CharmResolutionError):
    """Raised when a charm identifier cannot be qualified unambiguously."""


class InvalidCharmNameError(CharmResolutionError):
    """Raised when a charm identifier cannot be parsed."""


class RepositoryNotFoundError(CharmResolutionError):
    """Raised when the repository holding a charm cannot be opened."""


class CharmNotFoundError(CharmResolutionError):
    """Raised when a repository has no charm matching a reference."""


# --- Environment / store ---------------------------------------------------

class EnvironmentConfigError(CharmctlError):
    """Raised when ``environments.yaml`` is missing or invalid."""


class ConnectionError(CharmctlError):
    """Raised when a connection to an environment's store fails."""


class StoreUnavailableError(CharmctlError):
    """Raised when none of the given store addresses can be reached."""


class StoreError(CharmctlError):
    """Raised when the store rejects or fails a mutation."""


class DuplicateServiceError(StoreError):
    """Raised when a service with the requested name already exists."""


class DuplicateBootstrapError(StoreError):
    """Raised when the store already has a bootstrap machine."""


class CharmPublishError(StoreError):
    """Raised when a charm cannot be added to the store's catalogue."""


# --- Deploy ----------------------------------------------------------------

class ConfigNotImplementedError(CharmctlError, NotImplementedError):
    """Raised when a service configuration file is supplied to deploy."""


class UnitsCreationError(CharmctlError):
    """Raised when units fail to be added after the service was created.

    This is a partial failure: the service exists in the store, so the
    recovery path is adding units, not deploying again.
    """

    def __init__(self, service_name: str, cause: Exception) -> None:
        hint = (
            f"The service {service_name!r} exists. Add units to it instead "
            "of deploying it again."
        )
        if isinstance(cause, CharmctlError) and cause.hint:
            hint = f"{hint} {cause.hint}"
        super().__init__(
            f"service {service_name!r} was created but adding units failed: {cause}",
            hint=hint,
        )
        self.service_name: str = service_name
