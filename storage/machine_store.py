import logging
import threading
import uuid
from dataclasses import replace

from core.models import Machine
from raw_ingest.validator import validate_machine_data

logger = logging.getLogger(__name__)


class InMemoryMachineStore:
    """
    Machine configuration set.

    Deleting a machine also deletes its issues when a log store
    is attached. Listeners are called with the machine id after
    every update or delete (e.g. MachineCache.invalidate).
    """

    def __init__(self, log_store=None):
        self.log_store = log_store
        self._machines = {}
        self._listeners = []
        self._lock = threading.Lock()

    @classmethod
    def from_config(cls, machines_cfg, log_store=None):
        store = cls(log_store=log_store)
        for data in machines_cfg or []:
            store.add_machine(data)
        return store

    def add_listener(self, callback):
        self._listeners.append(callback)

    def _notify(self, machine_id):
        for callback in self._listeners:
            callback(machine_id)

    def get_machine(self, machine_id):
        with self._lock:
            return self._machines.get(machine_id)

    def list_machines(self):
        with self._lock:
            return list(self._machines.values())

    def add_machine(self, data) -> Machine:
        if isinstance(data, Machine):
            machine = data
        else:
            errors = validate_machine_data(data)
            if errors:
                raise ValueError("; ".join(errors))
            if not data.get("id"):
                data = dict(data, id=f"m{uuid.uuid4().hex[:8]}")
            machine = Machine.from_dict(data)

        with self._lock:
            if machine.id in self._machines:
                raise ValueError(f"machine already exists: {machine.id}")
            self._machines[machine.id] = machine

        logger.info("Machine added: %s (%s)", machine.id, machine.name)
        return machine

    def update_machine(self, machine_id, **updates) -> Machine:
        with self._lock:
            if machine_id not in self._machines:
                raise KeyError(machine_id)
            machine = replace(self._machines[machine_id], **updates)
            self._machines[machine_id] = machine

        self._notify(machine_id)
        logger.info("Machine updated: %s", machine_id)
        return machine

    def delete_machine(self, machine_id) -> bool:
        with self._lock:
            removed = self._machines.pop(machine_id, None)

        if removed is None:
            return False

        # Cache forgets the machine before its issues go
        self._notify(machine_id)

        deleted = 0
        if self.log_store is not None:
            deleted = self.log_store.delete_issues_for_machine(machine_id)

        logger.info("Machine deleted: %s (%d issues removed)", machine_id, deleted)
        return True
