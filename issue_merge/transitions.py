# issue_merge/transitions.py

import logging

from core.errors import InvalidTransitionError
from core.models import IssuePatch, IssueStatus

logger = logging.getLogger(__name__)

# Forward only. FIXED is terminal: a fresh violation opens a new issue.
ALLOWED_TRANSITIONS = {
    IssueStatus.OPEN: {IssueStatus.IN_PROGRESS},
    IssueStatus.IN_PROGRESS: {IssueStatus.FIXED},
    IssueStatus.FIXED: set(),
}


def transition_patch(issue, target, description=None) -> IssuePatch:
    target = IssueStatus(target)

    if target not in ALLOWED_TRANSITIONS[issue.status]:
        raise InvalidTransitionError(
            f"issue {issue.id}: {issue.status.name} -> {target.name} not allowed"
        )

    if target is IssueStatus.FIXED:
        description = (description or "").strip()
        if not description:
            raise InvalidTransitionError(
                f"issue {issue.id}: a fix description is required"
            )
        return IssuePatch(status=target, fix_description=description)

    return IssuePatch(status=target)


def _apply(store, issue_id, target, description=None):
    issue = store.get_issue(issue_id)
    if issue is None:
        raise KeyError(issue_id)

    patch = transition_patch(issue, target, description)
    store.update_issue(issue_id, patch)

    logger.info(
        "Issue %s (%s) moved to %s",
        issue_id,
        issue.machine_id,
        target.name,
    )
    return store.get_issue(issue_id)


def start_fix(store, issue_id):
    return _apply(store, issue_id, IssueStatus.IN_PROGRESS)


def mark_fixed(store, issue_id, description):
    return _apply(store, issue_id, IssueStatus.FIXED, description)
