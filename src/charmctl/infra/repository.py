"""Infrastructure: charm repositories on the local filesystem.

Two repositories are supported:

* :class:`LocalRepository` serves ``local:`` URLs from a directory laid
  out as ``<root>/<series>/<charm dir>/``.
* :class:`CharmStoreRepository` serves ``cs:`` URLs from the offline
  charm-store mirror at ``<CHARMCTL_HOME>/charm-store``, laid out as
  ``<root>/[~user/]<series>/<charm dir>/``.

Each charm directory holds a ``metadata.yaml`` and a ``revision`` file.

Rules
-----
* No imports from ``cli``.
* No user-facing output; unreadable charm directories are logged and
  skipped.
"""

from __future__ import annotations

import logging
import os
from dataclasses import replace
from pathlib import Path

import yaml

from charmctl.core.models import Charm, CharmMeta, CharmURL
from charmctl.exceptions import (
    CharmNotFoundError,
    CharmPublishError,
    CharmResolutionError,
    RepositoryNotFoundError,
)

logger = logging.getLogger(__name__)

METADATA_FILE: str = "metadata.yaml"
REVISION_FILE: str = "revision"


# ---------------------------------------------------------------------------
# Charm directories
# ---------------------------------------------------------------------------

def read_charm_dir(path: Path) -> Charm:
    """Read the charm expanded in *path*.

    Raises
    ------
    CharmResolutionError
        When ``metadata.yaml`` or ``revision`` is missing or invalid.
    """
    try:
        with open(path / METADATA_FILE, encoding="utf-8") as f:
            raw = yaml.safe_load(f)
        revision_text = (path / REVISION_FILE).read_text(encoding="utf-8").strip()
    except (OSError, yaml.YAMLError) as exc:
        raise CharmResolutionError(f"cannot read charm at {path}: {exc}") from exc

    if not isinstance(raw, dict) or not raw.get("name"):
        raise CharmResolutionError(f"charm at {path} has no name in {METADATA_FILE}")
    if not revision_text.isdigit():
        raise CharmResolutionError(f"charm at {path} has invalid revision {revision_text!r}")

    meta = CharmMeta(
        name=str(raw["name"]),
        summary=str(raw.get("summary", "")),
        description=str(raw.get("description", "")),
        subordinate=bool(raw.get("subordinate", False)),
    )
    return Charm(meta=meta, revision=int(revision_text), path=path)


class LocalRepository:
    """Repository of expanded charm directories grouped by series.

    Satisfies :class:`~charmctl.core.protocols.CharmRepository`
    structurally.
    """

    def __init__(self, root: Path) -> None:
        self.root: Path = root

    def _series_dir(self, curl: CharmURL) -> Path:
        return self.root / curl.series

    def _candidates(self, curl: CharmURL) -> list[Charm]:
        """Return every readable charm in the series directory named like *curl*."""
        series_dir = self._series_dir(curl)
        if not series_dir.is_dir():
            return []
        charms: list[Charm] = []
        for entry in sorted(series_dir.iterdir()):
            if not entry.is_dir() or entry.name.startswith("."):
                continue
            try:
                charm = read_charm_dir(entry)
            except CharmResolutionError as exc:
                logger.warning("ignoring charm directory: %s", exc)
                continue
            if charm.meta.name == curl.name:
                charms.append(charm)
        return charms

    def latest(self, curl: CharmURL) -> int:
        charms = self._candidates(curl)
        if not charms:
            raise CharmNotFoundError(
                f"charm not found in {self.root}: {curl.with_revision(None)}",
            )
        return max(charm.revision for charm in charms)

    def get(self, curl: CharmURL) -> Charm:
        revision = curl.revision if curl.revision is not None else self.latest(curl)
        for charm in self._candidates(curl):
            if charm.revision == revision:
                return charm
        raise CharmNotFoundError(
            f"charm not found in {self.root}: {curl.with_revision(revision)}",
        )

    def set_revision(self, charm: Charm, revision: int) -> Charm:
        if charm.path is None:
            raise CharmPublishError(f"charm {charm.meta.name!r} is not a directory")
        try:
            (charm.path / REVISION_FILE).write_text(f"{revision}\n", encoding="utf-8")
        except OSError as exc:
            raise CharmPublishError(
                f"cannot update revision of {charm.path}: {exc}",
            ) from exc
        return replace(charm, revision=revision)


class CharmStoreRepository(LocalRepository):
    """Read-only view of the offline charm-store mirror.

    Charms fetched from the store are bundles, not directories, so their
    revision cannot be bumped.
    """

    def _series_dir(self, curl: CharmURL) -> Path:
        if curl.user:
            return self.root / f"~{curl.user}" / curl.series
        return self.root / curl.series

    def get(self, curl: CharmURL) -> Charm:
        return replace(super().get(curl), path=None)


# ---------------------------------------------------------------------------
# Repository inference
# ---------------------------------------------------------------------------

def _check_root(root: Path, what: str) -> None:
    if not root.exists():
        raise RepositoryNotFoundError(f"{what} not found: {root}")
    if not root.is_dir():
        raise RepositoryNotFoundError(f"{what} is not a directory: {root}")
    if not os.access(root, os.R_OK | os.X_OK):
        raise RepositoryNotFoundError(f"{what} is not readable: {root}")


class RepositoryLocator:
    """Pick the repository serving a charm URL.

    Satisfies :class:`~charmctl.core.protocols.RepositoryResolver`
    structurally.
    """

    def __init__(self, charm_store_root: Path) -> None:
        self.charm_store_root: Path = charm_store_root

    def __call__(self, curl: CharmURL, repo_path: str | None) -> LocalRepository:
        if curl.schema == "local":
            if not repo_path:
                raise RepositoryNotFoundError(
                    f"no repository specified for {curl}",
                    hint="Pass --repository or set CHARMCTL_REPOSITORY.",
                )
            root = Path(repo_path)
            _check_root(root, "charm repository")
            return LocalRepository(root)

        _check_root(self.charm_store_root, "charm store mirror")
        return CharmStoreRepository(self.charm_store_root)
