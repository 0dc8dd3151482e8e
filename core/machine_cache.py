import logging
import threading

logger = logging.getLogger(__name__)


class MachineCache:
    """
    Machine Cache
    =============
    Read-through mirror of the machine configuration set.

    - Injected wherever machine limits are needed (no module globals)
    - get() falls back to the source on a miss
    - refresh() reloads the whole set from the source
    - invalidate() drops one entry or everything

    source must provide get_machine(machine_id) and list_machines().
    """

    def __init__(self, source):
        self.source = source
        self._machines = {}
        self._lock = threading.Lock()

    # =========================================================
    # READ
    # =========================================================
    def get(self, machine_id):
        with self._lock:
            machine = self._machines.get(machine_id)

        if machine is not None:
            return machine

        machine = self.source.get_machine(machine_id)
        if machine is None:
            return None

        with self._lock:
            self._machines[machine_id] = machine
        return machine

    def ids(self):
        with self._lock:
            return sorted(self._machines)

    def __len__(self):
        with self._lock:
            return len(self._machines)

    # =========================================================
    # WRITE / REFRESH
    # =========================================================
    def refresh(self):
        machines = self.source.list_machines()

        with self._lock:
            self._machines = {m.id: m for m in machines}

        logger.info("Machine cache refreshed (%d machines)", len(machines))
        return len(machines)

    def put(self, machine):
        with self._lock:
            self._machines[machine.id] = machine

    def invalidate(self, machine_id=None):
        with self._lock:
            if machine_id is None:
                self._machines.clear()
            else:
                self._machines.pop(machine_id, None)
