"""Tests for the file-backed state store (infra/local_state.py).

Every test works inside ``tmp_path``; nothing outside it is touched.
"""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml
from filelock import FileLock

from charmctl.core.models import Charm, CharmMeta, CharmURL, EnvironConfig
from charmctl.exceptions import (
    ConnectionError,
    DuplicateBootstrapError,
    DuplicateServiceError,
    StoreError,
    StoreUnavailableError,
)
from charmctl.infra.local_state import (
    LocalState,
    LocalStateOpener,
    LocalStoreConnector,
    parse_address,
    state_dir,
)

CURL = CharmURL("local", None, "precise", "mysql", 1)


def _bootstrapped(root: Path) -> LocalState:
    state = LocalStateOpener(root).open(("127.0.0.1:2181",))
    state.initialize("dummy")
    return state


# ---------------------------------------------------------------------------
# Addresses
# ---------------------------------------------------------------------------

class TestAddresses:
    def test_host_and_port(self) -> None:
        assert parse_address("zk1:2181") == ("zk1", 2181)

    def test_ipv6(self) -> None:
        assert parse_address("[::1]:2181") == ("::1", 2181)

    @pytest.mark.parametrize("addr", ["zk1", ":2181", "zk1:port", "zk1:0", "zk1:70000"])
    def test_invalid(self, addr: str) -> None:
        with pytest.raises(ValueError):
            parse_address(addr)

    def test_state_dir_per_address(self, tmp_path: Path) -> None:
        assert state_dir(tmp_path, "127.0.0.1:2181") == tmp_path / "state" / "127.0.0.1_2181"


# ---------------------------------------------------------------------------
# Opener
# ---------------------------------------------------------------------------

class TestOpener:
    def test_skips_malformed_addresses(self, tmp_path: Path) -> None:
        state = LocalStateOpener(tmp_path).open(("bogus", "127.0.0.1:2181"))
        assert state.path == tmp_path / "state" / "127.0.0.1_2181" / "state.yaml"

    def test_no_usable_address(self, tmp_path: Path) -> None:
        with pytest.raises(StoreUnavailableError, match="bogus"):
            LocalStateOpener(tmp_path).open(("bogus",))

    def test_without_create_requires_existing_state(self, tmp_path: Path) -> None:
        with pytest.raises(StoreUnavailableError):
            LocalStateOpener(tmp_path).open(("127.0.0.1:2181",), create=False)
        assert not (tmp_path / "state").exists()

    def test_corrupt_state_file(self, tmp_path: Path) -> None:
        path = state_dir(tmp_path, "127.0.0.1:2181") / "state.yaml"
        path.parent.mkdir(parents=True)
        path.write_text("- just\n- a list\n", encoding="utf-8")
        with pytest.raises(StoreError, match="corrupt"):
            LocalStateOpener(tmp_path).open(("127.0.0.1:2181",))


# ---------------------------------------------------------------------------
# Bootstrap machine
# ---------------------------------------------------------------------------

class TestMachines:
    def test_register_bootstrap_machine(self, tmp_path: Path) -> None:
        state = _bootstrapped(tmp_path)
        assert state.register_bootstrap_machine("i-1") == "0"
        machines = state.all_machines()
        assert len(machines) == 1
        assert machines[0].instance_id == "i-1"
        assert machines[0].bootstrap is True

    def test_duplicate_bootstrap(self, tmp_path: Path) -> None:
        state = _bootstrapped(tmp_path)
        state.register_bootstrap_machine("i-1")
        with pytest.raises(DuplicateBootstrapError, match="i-1"):
            state.register_bootstrap_machine("i-2")
        assert len(state.all_machines()) == 1

    def test_initialize_is_idempotent(self, tmp_path: Path) -> None:
        state = _bootstrapped(tmp_path)
        state.register_bootstrap_machine("i-1")
        state.initialize("dummy")
        assert state.environ_config().type == "dummy"
        assert len(state.all_machines()) == 1

    def test_initialize_rejects_other_environment_type(self, tmp_path: Path) -> None:
        state = _bootstrapped(tmp_path)
        with pytest.raises(StoreError, match="'dummy', not 'ec2'"):
            state.initialize("ec2")
        assert state.environ_config().type == "dummy"

    def test_state_persists_across_connections(self, tmp_path: Path) -> None:
        _bootstrapped(tmp_path).register_bootstrap_machine("i-1")
        reopened = LocalStateOpener(tmp_path).open(("127.0.0.1:2181",))
        assert reopened.initialized
        assert reopened.all_machines()[0].instance_id == "i-1"
        raw = yaml.safe_load(reopened.path.read_text(encoding="utf-8"))
        assert raw["environ"] == {"type": "dummy"}


# ---------------------------------------------------------------------------
# Charms, services, units
# ---------------------------------------------------------------------------

class TestServices:
    def test_charm_catalogue(self, tmp_path: Path) -> None:
        state = _bootstrapped(tmp_path)
        assert state.charm(CURL) is None
        charm = Charm(meta=CharmMeta(name="mysql", subordinate=True), revision=1)
        stored = state.add_charm(CURL, charm)
        assert stored.url == CURL
        assert state.charm(CURL) == stored

    def test_add_service_and_units(self, tmp_path: Path) -> None:
        state = _bootstrapped(tmp_path)
        stored = state.add_charm(CURL, Charm(meta=CharmMeta(name="mysql"), revision=1))
        assert state.add_service("db", stored) == "db"
        assert state.add_units("db", 2) == ["db/0", "db/1"]
        assert state.add_units("db", 1) == ["db/2"]
        assert state.services() == {"db": ["db/0", "db/1", "db/2"]}

    def test_duplicate_service(self, tmp_path: Path) -> None:
        state = _bootstrapped(tmp_path)
        stored = state.add_charm(CURL, Charm(meta=CharmMeta(name="mysql"), revision=1))
        state.add_service("db", stored)
        with pytest.raises(DuplicateServiceError, match="db"):
            state.add_service("db", stored)

    def test_units_for_unknown_service(self, tmp_path: Path) -> None:
        with pytest.raises(StoreError, match="not found"):
            _bootstrapped(tmp_path).add_units("nope", 1)

    def test_closed_connection_rejects_calls(self, tmp_path: Path) -> None:
        state = _bootstrapped(tmp_path)
        state.close()
        state.close()
        with pytest.raises(StoreError, match="closed"):
            state.all_machines()


# ---------------------------------------------------------------------------
# Connector
# ---------------------------------------------------------------------------

class TestConnector:
    def test_connect_to_bootstrapped_environment(self, home: Path) -> None:
        _bootstrapped(home).close()
        conn = LocalStoreConnector(home).connect(None)
        conf = conn.environ_config()
        assert conf == EnvironConfig(
            name="sample", type="dummy", default_series="precise",
            state_servers=("127.0.0.1:2181",),
        )

    def test_not_bootstrapped(self, home: Path) -> None:
        with pytest.raises(ConnectionError, match="not bootstrapped"):
            LocalStoreConnector(home).connect("sample")

    def test_unknown_environment(self, home: Path) -> None:
        with pytest.raises(ConnectionError, match="unknown environment 'prod'"):
            LocalStoreConnector(home).connect("prod")

    def test_missing_configuration(self, tmp_path: Path) -> None:
        with pytest.raises(ConnectionError, match="not found"):
            LocalStoreConnector(tmp_path).connect(None)


# ---------------------------------------------------------------------------
# Concurrent connections on one address
# ---------------------------------------------------------------------------

class TestConcurrentConnections:
    def _pair(self, root: Path) -> tuple[LocalState, LocalState]:
        opener = LocalStateOpener(root)
        return opener.open(("127.0.0.1:2181",)), opener.open(("127.0.0.1:2181",))

    def test_second_bootstrap_sees_first(self, tmp_path: Path) -> None:
        first, second = self._pair(tmp_path)
        first.initialize("dummy")
        assert first.register_bootstrap_machine("i-a") == "0"

        second.initialize("dummy")
        with pytest.raises(DuplicateBootstrapError, match="i-a"):
            second.register_bootstrap_machine("i-b")

        machines = LocalStateOpener(tmp_path).open(("127.0.0.1:2181",)).all_machines()
        assert [(m.id, m.instance_id) for m in machines] == [("0", "i-a")]

    def test_services_from_both_connections_survive(self, tmp_path: Path) -> None:
        _bootstrapped(tmp_path).close()
        first, second = self._pair(tmp_path)
        stored = first.add_charm(CURL, Charm(meta=CharmMeta(name="mysql"), revision=1))

        first.add_service("svc-a", stored)
        second.add_service("svc-b", stored)

        assert set(first.services()) == {"svc-a", "svc-b"}

    def test_duplicate_service_across_connections(self, tmp_path: Path) -> None:
        _bootstrapped(tmp_path).close()
        first, second = self._pair(tmp_path)
        stored = first.add_charm(CURL, Charm(meta=CharmMeta(name="mysql"), revision=1))

        first.add_service("db", stored)
        with pytest.raises(DuplicateServiceError):
            second.add_service("db", stored)

    def test_unit_sequence_shared(self, tmp_path: Path) -> None:
        _bootstrapped(tmp_path).close()
        first, second = self._pair(tmp_path)
        stored = first.add_charm(CURL, Charm(meta=CharmMeta(name="mysql"), revision=1))
        first.add_service("db", stored)

        assert first.add_units("db", 1) == ["db/0"]
        assert second.add_units("db", 2) == ["db/1", "db/2"]

    def test_held_lock_times_out(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        monkeypatch.setattr("charmctl.infra.local_state.LOCK_TIMEOUT", 0.05)
        state = _bootstrapped(tmp_path)

        with FileLock(state.lock_path):
            with pytest.raises(StoreError, match="cannot lock"):
                state.register_bootstrap_machine("i-1")

        assert state.all_machines() == []
