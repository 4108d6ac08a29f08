"""
Tests for the probe run lifecycle.
"""

import pytest

from beacon_probe.config.config_main import ConfigurationError, ProbeConfig
from beacon_probe.data.beacon.beacon_client import AckTimeoutError, BeaconConnectionError
from beacon_probe.probe import orchestrator
from beacon_probe.probe.orchestrator import ProbeRun, RunState, run_probe

from conftest import FakeBeaconClient


@pytest.fixture
def config(monkeypatch, tmp_path):
    for name in ("BEACON_PLAYER_UUID", "BEACON_PLAYER_NAME", "BEACON_MTR_ROUTE_ID",
                 "BEACON_MTR_STATION_ID", "BEACON_MTR_PLATFORM_ID", "BEACON_MTR_DEPOT_ID"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("BEACON_PORT", "9000")
    monkeypatch.setenv("BEACON_KEY", "secret")
    monkeypatch.setenv("OUTPUT_DIR", str(tmp_path / "output"))
    return ProbeConfig()


class FactoryRecorder:
    def __init__(self, client):
        self.client = client
        self.configs = []

    def __call__(self, beacon_config):
        self.configs.append(beacon_config)
        return self.client


class TestProbeRun:

    def test_normal_run_closes_once(self, config):
        client = FakeBeaconClient()
        run = ProbeRun(config, ["mtr"], FactoryRecorder(client))
        results = run.execute()

        assert "mtr" in results
        assert client.connect_count == 1
        assert client.close_count == 1
        assert run.state is RunState.CLOSED
        assert run.history == [
            RunState.IDLE, RunState.CONNECTING, RunState.CONNECTED,
            RunState.RUNNING, RunState.DRAINING, RunState.CLOSED,
        ]

    def test_categories_run_in_requested_order(self, config):
        client = FakeBeaconClient()
        ProbeRun(config, ["mtr", "core"], FactoryRecorder(client)).execute()
        events = client.events()
        assert events.index("beacon_ping") < events.index("get_status")

    def test_category_error_drains_then_reraises(self, config):
        client = FakeBeaconClient({"get_server_time": AckTimeoutError("get_server_time", 10)})
        run = ProbeRun(config, ["core", "mtr"], FactoryRecorder(client))

        with pytest.raises(AckTimeoutError):
            run.execute()

        assert client.close_count == 1
        assert run.state is RunState.CLOSED
        assert "beacon_ping" not in client.events()

    def test_missing_key_is_fatal_before_connecting(self, config, monkeypatch):
        monkeypatch.delenv("BEACON_KEY")
        client = FakeBeaconClient()
        run = ProbeRun(ProbeConfig(), ["core"], FactoryRecorder(client))

        with pytest.raises(ConfigurationError):
            run.execute()

        assert run.state is RunState.FATAL_ERROR
        assert RunState.RUNNING not in run.history
        assert client.connect_count == 0

    def test_connection_error_is_fatal(self, config):
        class Unreachable(FakeBeaconClient):
            def connect(self):
                raise BeaconConnectionError("refused")

        client = Unreachable()
        run = ProbeRun(config, ["core"], FactoryRecorder(client))

        with pytest.raises(BeaconConnectionError):
            run.execute()

        assert run.state is RunState.FATAL_ERROR
        assert RunState.RUNNING not in run.history
        assert client.calls == []

    def test_malformed_number_is_fatal(self, config, monkeypatch):
        monkeypatch.setenv("BEACON_MTR_ROUTE_ID", "route-seven")
        client = FakeBeaconClient()
        run = ProbeRun(ProbeConfig(), ["mtr"], FactoryRecorder(client))

        with pytest.raises(ConfigurationError, match="BEACON_MTR_ROUTE_ID"):
            run.execute()

        assert run.history == [RunState.IDLE, RunState.FATAL_ERROR]
        assert client.connect_count == 0

    def test_interrupt_while_connecting_closes_client(self, config):
        class Interrupted(FakeBeaconClient):
            def connect(self):
                raise KeyboardInterrupt()

        client = Interrupted()
        run = ProbeRun(config, ["core"], FactoryRecorder(client))

        with pytest.raises(KeyboardInterrupt):
            run.execute()

        assert client.close_count == 1
        assert run.state is RunState.FATAL_ERROR

    def test_output_directory_is_prepared(self, config, tmp_path):
        stale = tmp_path / "output" / "stale.json"
        stale.parent.mkdir(parents=True)
        stale.write_text("{}")

        ProbeRun(config, ["mtr"], FactoryRecorder(FakeBeaconClient())).execute()

        assert not stale.exists()
        assert (tmp_path / "output" / "mtr_beacon_ping.json").exists()


class TestRunProbe:

    def test_unknown_category(self, config):
        with pytest.raises(ConfigurationError):
            run_probe(["weather"], config, FactoryRecorder(FakeBeaconClient()))

    def test_main_exit_codes(self, config, monkeypatch, tmp_path):
        monkeypatch.setattr(orchestrator, "run_probe", _run_probe_with_fake)

        assert orchestrator.main(["mtr", "--output-dir", str(tmp_path / "cli")]) == 0
        assert (tmp_path / "cli" / "mtr_resolved_targets.json").exists()

        monkeypatch.delenv("BEACON_KEY")
        assert orchestrator.main(["core"]) == 1

    def test_main_rejects_unknown_category(self, config):
        assert orchestrator.main(["weather"]) == 1

    def test_main_malformed_port_exits_one(self, config, monkeypatch):
        monkeypatch.setattr(orchestrator, "run_probe", _run_probe_with_fake)
        monkeypatch.setenv("BEACON_PORT", "ninety")
        assert orchestrator.main(["core"]) == 1


def _run_probe_with_fake(categories, config):
    return run_probe(categories, config, lambda beacon_config: FakeBeaconClient())
