import threading
import time
import uuid
from typing import Protocol

from core.models import Issue, IssueDraft, IssuePatch, IssueStatus


class LogStore(Protocol):
    """
    Issue (log) store contract.
    Backed by the hosted document database in production.
    Implementations raise core.errors.StoreError on transient failures.
    """

    def query_open_issue(self, machine_id: str) -> Issue | None: ...

    def query_issue_by_report_id(self, report_id: str) -> Issue | None: ...

    def create_issue(self, draft: IssueDraft) -> str: ...

    def update_issue(self, issue_id: str, patch: IssuePatch) -> None: ...

    def get_issue(self, issue_id: str) -> Issue | None: ...

    def list_issues(self, machine_id=None, include_fixed=True) -> list[Issue]: ...

    def delete_issues_for_machine(self, machine_id: str) -> int: ...


class InMemoryLogStore:
    """
    In-process LogStore.
    Issues are kept in creation order, so the "first returned"
    open issue is the oldest one.
    """

    def __init__(self, clock=time.time):
        self._clock = clock
        self._issues = {}
        self._lock = threading.Lock()

    # =========================================================
    # QUERIES
    # =========================================================
    def query_open_issue(self, machine_id):
        with self._lock:
            for issue in self._issues.values():
                if issue.machine_id == machine_id and issue.status is IssueStatus.OPEN:
                    return issue
        return None

    def query_issue_by_report_id(self, report_id):
        with self._lock:
            for issue in self._issues.values():
                if issue.report_id == report_id or report_id in issue.report_ids:
                    return issue
        return None

    def get_issue(self, issue_id):
        with self._lock:
            return self._issues.get(issue_id)

    def list_issues(self, machine_id=None, include_fixed=True):
        with self._lock:
            issues = list(self._issues.values())

        if machine_id is not None:
            issues = [i for i in issues if i.machine_id == machine_id]
        if not include_fixed:
            issues = [i for i in issues if not i.is_fixed]
        return issues

    # =========================================================
    # WRITES
    # =========================================================
    def create_issue(self, draft):
        issue_id = uuid.uuid4().hex
        issue = draft.to_issue(issue_id, self._clock())

        with self._lock:
            self._issues[issue_id] = issue
        return issue_id

    def update_issue(self, issue_id, patch):
        with self._lock:
            if issue_id not in self._issues:
                raise KeyError(issue_id)
            self._issues[issue_id] = patch.apply(
                self._issues[issue_id], self._clock()
            )

    def delete_issues_for_machine(self, machine_id):
        with self._lock:
            doomed = [
                issue_id
                for issue_id, issue in self._issues.items()
                if issue.machine_id == machine_id
            ]
            for issue_id in doomed:
                del self._issues[issue_id]
        return len(doomed)
