"""
Shared fixtures for the machine guard tests.
"""
import itertools

import pytest

from core.errors import StoreError
from core.machine_cache import MachineCache
from core.models import Machine, Report, SoundLevel
from storage.log_store import InMemoryLogStore
from storage.machine_store import InMemoryMachineStore

NOW = 1_700_000_000.0


class FakeClock:
    def __init__(self, now=NOW):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


class RecordingPublisher:
    def __init__(self):
        self.issues = []
        self.lights = []
        self.heartbeats = []

    def publish_issue(self, machine_id, payload):
        self.issues.append((machine_id, payload))

    def publish_light_status(self, machine_id, payload):
        self.lights.append((machine_id, payload))

    def publish_heartbeat(self, payload):
        self.heartbeats.append(payload)


class FailingLogStore(InMemoryLogStore):
    """Raises StoreError from the configured operations."""

    def __init__(self, fail_on=("query_open_issue",), **kwargs):
        super().__init__(**kwargs)
        self.fail_on = set(fail_on)
        self.calls = []

    def _maybe_fail(self, name):
        self.calls.append(name)
        if name in self.fail_on:
            raise StoreError(f"{name} unavailable")

    def query_open_issue(self, machine_id):
        self._maybe_fail("query_open_issue")
        return super().query_open_issue(machine_id)

    def query_issue_by_report_id(self, report_id):
        self._maybe_fail("query_issue_by_report_id")
        return super().query_issue_by_report_id(report_id)

    def create_issue(self, draft):
        self._maybe_fail("create_issue")
        return super().create_issue(draft)

    def update_issue(self, issue_id, patch):
        self._maybe_fail("update_issue")
        return super().update_issue(issue_id, patch)


# ── Model fixtures ────────────────────────────────────────────────────────────

@pytest.fixture
def machine():
    return Machine(
        id="M",
        name="Press M",
        min_temp=10.0,
        max_temp=80.0,
        min_vib=0.1,
        max_vib=5.0,
    )


@pytest.fixture
def make_report():
    counter = itertools.count(1)

    def _make(temp=50.0, vib=2.0, sound=SoundLevel.NORMAL, machine_id="M", report_id=None, timestamp=NOW):
        return Report(
            id=report_id or f"r{next(counter)}",
            machine_id=machine_id,
            temp=temp,
            vib=vib,
            sound=SoundLevel(sound),
            timestamp=timestamp,
        )

    return _make


# ── Store fixtures ────────────────────────────────────────────────────────────

@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def log_store(clock):
    return InMemoryLogStore(clock=clock)


@pytest.fixture
def machine_store(machine, log_store):
    store = InMemoryMachineStore(log_store=log_store)
    store.add_machine(machine)
    return store


@pytest.fixture
def machine_cache(machine_store):
    cache = MachineCache(machine_store)
    machine_store.add_listener(cache.invalidate)
    cache.refresh()
    return cache


@pytest.fixture
def publisher():
    return RecordingPublisher()
