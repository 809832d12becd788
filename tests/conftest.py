"""Shared pytest fixtures and configuration for the charmctl test suite.

Guidelines
----------
* No network access in any test.
* Core tests mock the store and repositories at the protocol boundary.
* Infra and CLI tests work inside ``tmp_path`` with ``CHARMCTL_HOME``
  pointed at it.
"""

from __future__ import annotations

from pathlib import Path
from typing import Callable

import pytest
import yaml

from charmctl.utils import ENV_NAME_ENV_VAR, HOME_ENV_VAR, REPOSITORY_ENV_VAR


def write_charm(
    root: Path,
    series: str,
    name: str,
    *,
    revision: int = 1,
    subordinate: bool = False,
    dirname: str | None = None,
) -> Path:
    """Create an expanded charm directory under ``root/series``."""
    path = root / series / (dirname or name)
    path.mkdir(parents=True, exist_ok=True)
    meta = {"name": name, "summary": f"{name} charm", "description": "test charm"}
    if subordinate:
        meta["subordinate"] = True
    (path / "metadata.yaml").write_text(yaml.safe_dump(meta), encoding="utf-8")
    (path / "revision").write_text(f"{revision}\n", encoding="utf-8")
    return path


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the developer's own charmctl settings out of every test."""
    for var in (HOME_ENV_VAR, REPOSITORY_ENV_VAR, ENV_NAME_ENV_VAR):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture()
def home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """A charmctl home declaring a single ``sample`` environment."""
    home_dir = tmp_path / "home"
    home_dir.mkdir()
    config = {
        "default": "sample",
        "environments": {
            "sample": {
                "type": "dummy",
                "default-series": "precise",
                "state-servers": ["127.0.0.1:2181"],
            },
        },
    }
    (home_dir / "environments.yaml").write_text(yaml.safe_dump(config), encoding="utf-8")
    monkeypatch.setenv(HOME_ENV_VAR, str(home_dir))
    return home_dir


@pytest.fixture()
def repo(tmp_path: Path) -> Path:
    """A local charm repository holding ``mysql`` and ``logging``."""
    root = tmp_path / "repo"
    write_charm(root, "precise", "mysql", revision=1)
    write_charm(root, "precise", "logging", revision=3, subordinate=True)
    return root


@pytest.fixture()
def make_charm() -> Callable[..., Path]:
    """Expose :func:`write_charm` to tests that build their own layouts."""
    return write_charm
