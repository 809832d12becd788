"""File-backed implementation of the cluster state store.

Each store address ``host:port`` maps to its own state file::

    <root>/state/<host>_<port>/state.yaml

The document holds the environment settings written at bootstrap, the
machine registry, the charm catalogue, and the services with their
units.  Every mutation holds a :class:`filelock.FileLock` on
``state.yaml.lock`` while it reloads, checks, and rewrites the file;
the rewrite is atomic (temporary file in the same directory, then
:func:`os.replace`).

Rules
-----
* No imports from ``cli``.
* No user-facing output; diagnostics go through :mod:`logging`.
* ``OSError`` and ``yaml.YAMLError`` are mapped to
  :class:`~charmctl.exceptions.CharmctlError` subclasses.
"""

from __future__ import annotations

import logging
import os
import tempfile
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import asdict
from pathlib import Path
from typing import Any

import yaml
from filelock import FileLock, Timeout

from charmctl.core.models import Charm, CharmMeta, CharmURL, EnvironConfig, Machine, StoredCharm
from charmctl.exceptions import (
    ConnectionError,
    DuplicateBootstrapError,
    DuplicateServiceError,
    EnvironmentConfigError,
    StoreError,
    StoreUnavailableError,
)
from charmctl.infra.environments import read_environments

logger = logging.getLogger(__name__)

STATE_FILE: str = "state.yaml"
LOCK_TIMEOUT: float = 10


# ---------------------------------------------------------------------------
# Address handling
# ---------------------------------------------------------------------------

def parse_address(addr: str) -> tuple[str, int]:
    """Split ``host:port`` (``[v6]:port`` for IPv6) into its parts.

    Raises
    ------
    ValueError
        When *addr* is not a valid address.
    """
    host, sep, port_text = addr.strip().rpartition(":")
    host = host.strip("[]")
    if not sep or not host or not port_text.isdigit():
        raise ValueError(f"invalid store address {addr!r}")
    port = int(port_text)
    if not 0 < port < 65536:
        raise ValueError(f"invalid port in store address {addr!r}")
    return host, port


def state_dir(root: Path, addr: str) -> Path:
    host, port = parse_address(addr)
    return root / "state" / f"{host.replace(':', '-')}_{port}"


# ---------------------------------------------------------------------------
# Connection
# ---------------------------------------------------------------------------

class LocalState:
    """Open handle on one state file.

    Reads see the file as last written by any connection. Every mutation
    holds ``state.yaml.lock`` while it reloads the file, checks for
    conflicts, and writes the result, so concurrent invocations on one
    address cannot overwrite each other.

    Satisfies :class:`~charmctl.core.protocols.StateConnection`
    structurally.
    """

    def __init__(
        self,
        path: Path,
        *,
        environ: EnvironConfig | None = None,
    ) -> None:
        self.path: Path = path
        self.lock_path: Path = path.with_name(f"{path.name}.lock")
        self._environ = environ
        self._closed = False
        self._data: dict[str, Any] = self._load()

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def _load(self) -> dict[str, Any]:
        try:
            with open(self.path, encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except FileNotFoundError:
            return {}
        except (OSError, yaml.YAMLError) as exc:
            raise StoreError(f"cannot read state file {self.path}: {exc}") from exc
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise StoreError(f"state file {self.path} is corrupt")
        return data

    def _save(self) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp = tempfile.mkstemp(dir=self.path.parent, prefix=".state-")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    yaml.safe_dump(self._data, f, default_flow_style=False, sort_keys=False)
                os.replace(tmp, self.path)
            except BaseException:
                Path(tmp).unlink(missing_ok=True)
                raise
        except OSError as exc:
            raise StoreError(f"cannot write state file {self.path}: {exc}") from exc

    def _acquire_lock(self) -> FileLock:
        return FileLock(self.lock_path, timeout=LOCK_TIMEOUT)

    def _check_open(self) -> None:
        if self._closed:
            raise StoreError("state connection is closed")

    def _read(self) -> dict[str, Any]:
        """Reload and return the current document."""
        self._check_open()
        self._data = self._load()
        return self._data

    @contextmanager
    def _mutate(self) -> Iterator[dict[str, Any]]:
        """Yield the freshly loaded document under the lock, then save it.

        Nothing is written when the block raises.
        """
        self._check_open()
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with self._acquire_lock():
                self._data = self._load()
                yield self._data
                self._save()
        except Timeout as exc:
            raise StoreError(
                f"cannot lock state file {self.path}: another invocation holds it",
            ) from exc
        except OSError as exc:
            raise StoreError(f"cannot lock state file {self.path}: {exc}") from exc

    # ------------------------------------------------------------------
    # StateConnection protocol
    # ------------------------------------------------------------------

    @property
    def initialized(self) -> bool:
        return "environ" in self._read()

    def initialize(self, environ_type: str) -> None:
        with self._mutate() as data:
            environ = data.get("environ")
            if environ is not None:
                existing = environ.get("type")
                if existing != environ_type:
                    raise StoreError(
                        f"state at {self.path} was initialized for environment "
                        f"type {existing!r}, not {environ_type!r}",
                    )
                return
            data.update({
                "environ": {"type": environ_type},
                "machine-seq": 0,
                "machines": [],
                "charms": {},
                "services": {},
            })
        logger.info("initialized state at %s", self.path)

    def environ_config(self) -> EnvironConfig:
        if self._environ is not None:
            self._check_open()
            return self._environ
        environ = self._read().get("environ") or {}
        return EnvironConfig(name=self.path.parent.name, type=str(environ.get("type", "")))

    def charm(self, curl: CharmURL) -> StoredCharm | None:
        attrs = self._read().get("charms", {}).get(str(curl))
        if attrs is None:
            return None
        return StoredCharm(url=curl, meta=CharmMeta(**attrs["meta"]))

    def add_charm(self, curl: CharmURL, charm: Charm) -> StoredCharm:
        with self._mutate() as data:
            data.setdefault("charms", {})[str(curl)] = {
                "meta": asdict(charm.meta),
                "source": str(charm.path) if charm.path else None,
            }
        logger.info("added charm %s", curl)
        return StoredCharm(url=curl, meta=charm.meta)

    def add_service(self, name: str, charm: StoredCharm) -> str:
        with self._mutate() as data:
            services = data.setdefault("services", {})
            if name in services:
                raise DuplicateServiceError(
                    f"cannot add service {name!r}: service already exists",
                    hint="Pass a different service name as the second argument.",
                )
            services[name] = {"charm": str(charm.url), "unit-seq": 0, "units": []}
        logger.info("added service %s", name)
        return name

    def add_units(self, service_name: str, count: int) -> list[str]:
        if count < 1:
            raise StoreError(f"cannot add {count} units")
        with self._mutate() as data:
            service = data.get("services", {}).get(service_name)
            if service is None:
                raise StoreError(f"service {service_name!r} not found")
            seq = int(service.get("unit-seq", 0))
            unit_ids = [f"{service_name}/{n}" for n in range(seq, seq + count)]
            service["unit-seq"] = seq + count
            service.setdefault("units", []).extend(unit_ids)
        logger.info("added units %s", ", ".join(unit_ids))
        return unit_ids

    def register_bootstrap_machine(self, instance_id: str) -> str:
        with self._mutate() as data:
            machines = data.setdefault("machines", [])
            for entry in machines:
                if entry.get("bootstrap"):
                    raise DuplicateBootstrapError(
                        f"bootstrap machine already registered: machine {entry['id']} "
                        f"(instance {entry.get('instance-id')})",
                    )
            seq = int(data.get("machine-seq", 0))
            machine_id = str(seq)
            machines.append({"id": machine_id, "instance-id": instance_id, "bootstrap": True})
            data["machine-seq"] = seq + 1
        logger.info("registered machine %s with instance id %s", machine_id, instance_id)
        return machine_id

    def all_machines(self) -> list[Machine]:
        return [
            Machine(
                id=str(entry["id"]),
                instance_id=entry.get("instance-id"),
                bootstrap=bool(entry.get("bootstrap", False)),
            )
            for entry in self._read().get("machines", [])
        ]

    def services(self) -> dict[str, list[str]]:
        """Return every service name mapped to its unit ids."""
        return {
            name: list(attrs.get("units", []))
            for name, attrs in self._read().get("services", {}).items()
        }

    def close(self) -> None:
        self._closed = True


# ---------------------------------------------------------------------------
# Openers
# ---------------------------------------------------------------------------

class LocalStateOpener:
    """Open local state files by store address.

    Satisfies :class:`~charmctl.core.protocols.StateOpener` structurally.
    """

    def __init__(self, root: Path) -> None:
        self.root: Path = root

    def open(
        self,
        addrs: tuple[str, ...],
        *,
        environ: EnvironConfig | None = None,
        create: bool = True,
    ) -> LocalState:
        """Open the state of the first usable address in *addrs*.

        With ``create=False`` only addresses whose state file already
        exists are considered.
        """
        for addr in addrs:
            try:
                directory = state_dir(self.root, addr)
            except ValueError as exc:
                logger.warning("skipping store address: %s", exc)
                continue
            path = directory / STATE_FILE
            if not create and not path.is_file():
                logger.debug("no state at %s", addr)
                continue
            try:
                directory.mkdir(parents=True, exist_ok=True)
            except OSError as exc:
                logger.warning("store address %s unusable: %s", addr, exc)
                continue
            logger.debug("opened state for %s at %s", addr, path)
            return LocalState(path, environ=environ)
        raise StoreUnavailableError(
            f"no reachable store at {', '.join(addrs) or 'no addresses'}",
        )


class LocalStoreConnector:
    """Connect to environments declared in ``environments.yaml``.

    Satisfies :class:`~charmctl.core.protocols.StoreConnector`
    structurally.
    """

    def __init__(self, home: Path) -> None:
        self.home: Path = home
        self._opener = LocalStateOpener(home)

    def connect(self, env_name: str | None) -> LocalState:
        try:
            environ = read_environments(self.home).select(env_name)
        except EnvironmentConfigError as exc:
            raise ConnectionError(str(exc), hint=exc.hint) from exc

        try:
            state = self._opener.open(environ.state_servers, environ=environ, create=False)
        except StoreUnavailableError as exc:
            raise ConnectionError(
                f"environment {environ.name!r} is not bootstrapped",
                hint="Run 'charmctl bootstrap' against one of its state servers.",
            ) from exc
        except StoreError as exc:
            raise ConnectionError(str(exc)) from exc

        if not state.initialized:
            state.close()
            raise ConnectionError(f"environment {environ.name!r} is not bootstrapped")
        logger.debug("connected to environment %s", environ.name)
        return state
