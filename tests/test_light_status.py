import pytest

from core.models import Issue, IssueStatus, LightTier
from health.light_status import compute_light_status
from health.machine_status import machine_status


def _issue(probability, status=IssueStatus.OPEN, issue_id="i1"):
    return Issue(
        id=issue_id,
        machine_id="M",
        message="High Temp (91.0°C)",
        fault_probability=probability,
        temperature=91.0,
        vibration=2.0,
        status=status,
    )


def _lights(status):
    d = status.to_dict()
    return {k for k in ("green", "greenDim", "yellow", "yellowDim", "red", "redBlink") if d[k]}


def test_no_issues_is_all_clear():
    status = compute_light_status([])

    assert _lights(status) == {"green"}
    assert status.tier is LightTier.CLEAR
    assert not status.work_in_progress


@pytest.mark.parametrize(
    "probability, lights, tier",
    [
        (0, {"green"}, LightTier.CLEAR),
        (1, {"green", "yellowDim"}, LightTier.LOW),
        (29, {"green", "yellowDim"}, LightTier.LOW),
        (30, {"yellow", "green"}, LightTier.WARNING),
        (49, {"yellow", "green"}, LightTier.WARNING),
        (50, {"red", "redBlink", "yellow"}, LightTier.ELEVATED),
        (69, {"red", "redBlink", "yellow"}, LightTier.ELEVATED),
        (70, {"red"}, LightTier.CRITICAL),
        (100, {"red"}, LightTier.CRITICAL),
    ],
)
def test_tiers_follow_breakpoints(probability, lights, tier):
    status = compute_light_status([_issue(probability)])

    assert _lights(status) == lights
    assert status.tier is tier
    assert status.max_probability == probability


def test_tier_is_monotonic_in_probability():
    tiers = [compute_light_status([_issue(p)]).tier for p in range(0, 101)]

    assert tiers == sorted(tiers)
    assert tiers[0] is LightTier.CLEAR
    assert tiers[-1] is LightTier.CRITICAL


def test_highest_probability_wins():
    status = compute_light_status([_issue(10, issue_id="a"), _issue(75, issue_id="b")])

    assert status.tier is LightTier.CRITICAL
    assert status.max_probability == 75


def test_fixed_issues_are_ignored():
    status = compute_light_status([_issue(90, status=IssueStatus.FIXED)])

    assert _lights(status) == {"green"}
    assert status.tier is LightTier.CLEAR


def test_work_in_progress_is_a_modifier_not_a_tier():
    status = compute_light_status(
        [
            _issue(40, status=IssueStatus.IN_PROGRESS, issue_id="a"),
            _issue(10, issue_id="b"),
        ]
    )

    assert status.work_in_progress
    assert status.tier is LightTier.WARNING
    assert status.to_dict()["workInProgress"] is True


def test_machine_status_prefers_open_over_in_progress():
    assert machine_status([]) == "green"
    assert machine_status([_issue(10, status=IssueStatus.IN_PROGRESS)]) == "yellow"
    assert machine_status(
        [_issue(10, status=IssueStatus.IN_PROGRESS), _issue(5, issue_id="b")]
    ) == "red"
    assert machine_status([_issue(90, status=IssueStatus.FIXED)]) == "green"
