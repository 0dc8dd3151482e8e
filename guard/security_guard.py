import logging
import threading
import time
from collections import defaultdict
from dataclasses import replace

from core.errors import ReportValidationError, StoreError
from core.models import GuardMetrics
from fault_detection.threshold_evaluator import evaluate
from health.light_status import compute_light_status
from health.machine_status import machine_status as status_from_issues
from issue_merge.merger import merge

logger = logging.getLogger(__name__)


class SecurityGuard:
    """
    Security Guard
    ==============
    Per-report orchestration: evaluate -> merge -> store -> publish.

    - Unknown machines are skipped silently
    - Clean reports never touch the store
    - Merge read-then-write runs under a per-machine lock
    - Store failures drop the current report; the next one
      re-evaluates from current state
    """

    def __init__(
        self,
        machines,
        log_store,
        publisher=None,
        stale_after_sec=None,
        clock=time.time,
    ):
        self.machines = machines
        self.log_store = log_store
        self.publisher = publisher
        self.stale_after_sec = stale_after_sec
        self.clock = clock

        self.metrics = GuardMetrics()
        self._locks = defaultdict(threading.Lock)
        self._locks_guard = threading.Lock()

    def _machine_lock(self, machine_id):
        with self._locks_guard:
            return self._locks[machine_id]

    # =========================================================
    # PUBLIC API
    # =========================================================
    def process_report(self, report):
        """
        Handle one report. Returns the applied MergeDecision,
        or None when the report was skipped or dropped.
        """
        machine = self.machines.get(report.machine_id)
        if machine is None:
            logger.debug("Report %s for unknown machine %s skipped", report.id, report.machine_id)
            self.metrics.count("reports_seen")
            self.metrics.count("reports_skipped")
            return None

        self.metrics.count("reports_seen", machine_id=machine.id)

        if self._is_stale(report):
            logger.debug("Stale report %s skipped", report.id)
            self.metrics.count("reports_skipped")
            return None

        try:
            signal = evaluate(report, machine)
        except ReportValidationError as exc:
            logger.warning("Malformed report dropped: %s", exc)
            self.metrics.count("errors")
            return None

        if signal.is_zero:
            return None

        try:
            with self._machine_lock(machine.id):
                decision = self._merge_and_store(report, machine, signal)
        except StoreError:
            logger.exception("Store failure while processing report %s, dropped", report.id)
            self.metrics.count("errors")
            return None

        if decision is not None and not decision.is_noop:
            self._publish(machine.id, decision)
        return decision

    def light_status(self, machine_id):
        return compute_light_status(
            self.log_store.list_issues(machine_id, include_fixed=False)
        )

    def machine_status(self, machine_id):
        return status_from_issues(
            self.log_store.list_issues(machine_id, include_fixed=False)
        )

    # =========================================================
    # INTERNAL
    # =========================================================
    def _is_stale(self, report):
        if self.stale_after_sec is None:
            return False
        return self.clock() - report.timestamp > self.stale_after_sec

    def _merge_and_store(self, report, machine, signal):
        # Idempotence guard against replayed reports
        if self.log_store.query_issue_by_report_id(report.id) is not None:
            logger.debug("Report %s already applied", report.id)
            return None

        existing = self.log_store.query_open_issue(machine.id)
        decision = merge(report, machine, existing, signal=signal)

        if decision.create is not None:
            issue_id = self.log_store.create_issue(decision.create)
            self.metrics.count("issues_created")
            logger.warning(
                "Violation on %s: %s (%d%%) -> issue %s",
                machine.id,
                decision.create.message,
                decision.create.fault_probability,
                issue_id,
            )
            return replace(decision, issue_id=issue_id)

        if decision.update is not None:
            self.log_store.update_issue(decision.issue_id, decision.update)
            self.metrics.count("issues_updated")
            logger.info(
                "Issue %s on %s merged: %s (%d%%)",
                decision.issue_id,
                machine.id,
                decision.update.message,
                decision.update.fault_probability,
            )

        return decision

    def _publish(self, machine_id, decision):
        if self.publisher is None:
            return

        try:
            issue = self.log_store.get_issue(decision.issue_id)
            if issue is not None:
                self.publisher.publish_issue(
                    machine_id,
                    {
                        "action": "created" if decision.create else "updated",
                        "issue": issue.to_dict(),
                    },
                )

            status = self.light_status(machine_id)
            self.publisher.publish_light_status(
                machine_id,
                {
                    "machineId": machine_id,
                    "status": self.machine_status(machine_id),
                    "lights": status.to_dict(),
                    "timestamp": self.clock(),
                },
            )
        except Exception:
            logger.exception("Publishing status for %s failed", machine_id)
