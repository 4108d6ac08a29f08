"""
Shared fixtures for Beacon Probe tests.
"""

import json
import os

import pytest

from beacon_probe.data.artifact_store import ArtifactStore
from beacon_probe.data.beacon.beacon_client import BeaconClient


class FakeBeaconClient(BeaconClient):
    """
    In-memory stand-in for a live Socket.IO session.

    ``responses`` maps event names to a value, an exception instance to
    raise, or a callable receiving the payload.
    """

    def __init__(self, responses=None):
        self.url = "http://fake:0"
        self.key = "test-key"
        self.timeout = 10.0
        self.reconnection_attempts = 3
        self._closed = False
        self.responses = responses or {}
        self.calls = []
        self.connect_count = 0
        self.close_count = 0

    def connect(self):
        self.connect_count += 1
        return self

    def close(self):
        self.close_count += 1
        self._closed = True

    def call(self, event, payload=None, label=None, timeout=None):
        self.calls.append((event, dict(payload or {})))
        response = self.responses.get(event)
        if isinstance(response, Exception):
            raise response
        if callable(response):
            return response(dict(payload or {}))
        return response

    def events(self):
        return [event for event, _ in self.calls]


@pytest.fixture
def fake_client():
    return FakeBeaconClient()


@pytest.fixture
def store(tmp_path):
    artifact_store = ArtifactStore(str(tmp_path / "output"))
    artifact_store.prepare()
    return artifact_store


def read_artifact(store, file_name, subdir=None):
    directory = os.path.join(store.base_dir, subdir) if subdir else store.base_dir
    with open(os.path.join(directory, file_name), encoding="utf-8") as f:
        return json.load(f)
