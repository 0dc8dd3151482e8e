from core.models import IssueStatus

GREEN = "green"
YELLOW = "yellow"
RED = "red"


def machine_status(issues) -> str:
    """
    Coarse machine status from its issues.
    Any open issue wins over work in progress.
    """
    statuses = {issue.status for issue in issues}

    if IssueStatus.OPEN in statuses:
        return RED
    if IssueStatus.IN_PROGRESS in statuses:
        return YELLOW
    return GREEN
