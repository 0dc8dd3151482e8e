from core.models import Issue, IssueStatus, SoundLevel
from issue_merge.merger import extend_message, issue_keyword, merge


def _open_issue(**overrides):
    fields = dict(
        id="issue-1",
        machine_id="M",
        message="High Temp (91.0°C)",
        fault_probability=40,
        temperature=91.0,
        vibration=2.0,
        sound=SoundLevel.NORMAL,
        status=IssueStatus.OPEN,
        report_id="r0",
        report_ids=("r0",),
    )
    fields.update(overrides)
    return Issue(**fields)


def test_clean_report_neither_creates_nor_updates(machine, make_report):
    decision = merge(make_report(temp=70.0, vib=2.0), machine, None)

    assert decision.is_noop
    assert decision.create is None
    assert decision.update is None


def test_clean_report_leaves_existing_issue_untouched(machine, make_report):
    decision = merge(make_report(temp=70.0), machine, _open_issue())

    assert decision.is_noop


def test_first_violation_creates_issue(machine, make_report):
    report = make_report(temp=91.0, vib=2.0)
    decision = merge(report, machine, None)

    draft = decision.create
    assert draft is not None
    assert decision.update is None
    assert "High Temp (91.0°C)" in draft.message
    assert draft.fault_probability == 40
    assert draft.status is IssueStatus.OPEN
    assert draft.report_id == report.id
    assert draft.temperature == 91.0
    assert draft.vibration == 2.0


def test_created_issue_is_capped_at_99(machine, make_report):
    decision = merge(make_report(temp=95.0, vib=7.0, sound=SoundLevel.BAD), machine, None)

    assert decision.create.fault_probability == 99


def test_merge_is_additive(machine, make_report):
    decision = merge(make_report(temp=60.0, vib=6.0), machine, _open_issue())

    assert decision.create is None
    assert decision.issue_id == "issue-1"
    assert decision.update.fault_probability == 80


def test_merge_caps_at_100(machine, make_report):
    existing = _open_issue(fault_probability=99)
    decision = merge(make_report(temp=95.0), machine, existing)

    assert decision.update.fault_probability == 100


def test_merge_scenario_appends_new_violation_types(machine, make_report):
    report = make_report(temp=60.0, vib=6.2, sound=SoundLevel.BAD)
    decision = merge(report, machine, _open_issue())

    patch = decision.update
    assert patch.fault_probability == 100
    assert patch.message == "High Temp (91.0°C), High Vib (6.20g), AI Audio Anomaly"
    assert patch.temperature == 60.0
    assert patch.vibration == 6.2
    assert patch.report_ids == ("r0", report.id)


def test_repeated_violation_does_not_duplicate_phrase(machine, make_report):
    decision = merge(make_report(temp=93.5), machine, _open_issue())

    assert decision.update.message == "High Temp (91.0°C)"
    assert decision.update.fault_probability == 80
    assert decision.update.temperature == 93.5


def test_replayed_report_is_noop(machine, make_report):
    report = make_report(temp=91.0, report_id="r0")
    decision = merge(report, machine, _open_issue())

    assert decision.is_noop
    assert decision.issue_id == "issue-1"


def test_most_severe_sound_is_kept(machine, make_report):
    existing = _open_issue(sound=SoundLevel.BAD)
    decision = merge(make_report(temp=91.0, sound=SoundLevel.NOISE), machine, existing)

    assert decision.update.sound is SoundLevel.BAD


def test_worse_sound_replaces_milder_one(machine, make_report):
    existing = _open_issue(sound=SoundLevel.NOISE)
    decision = merge(make_report(sound=SoundLevel.BAD), machine, existing)

    assert decision.update.sound is SoundLevel.BAD


def test_probability_caps_hold_over_long_sequences(machine, make_report):
    issue = None
    for i in range(20):
        report = make_report(temp=81.0 + i, vib=5.5, sound=SoundLevel.NOISE)
        decision = merge(report, machine, issue)
        if decision.create is not None:
            assert decision.create.fault_probability <= 99
            issue = decision.create.to_issue("issue-x", now=0.0)
        else:
            assert decision.update.fault_probability <= 100
            issue = decision.update.apply(issue, now=float(i))

    assert issue.fault_probability == 100
    assert issue.message == "High Temp (81.0°C), High Vib (5.50g), Abnormal Noise"


def test_issue_keyword():
    assert issue_keyword("High Temp (91.0°C)") == "High Temp"
    assert issue_keyword("AI Audio Anomaly") == "AI Audio Anomaly"


def test_extend_message_from_empty():
    assert extend_message("", ["High Vib (6.20g)"]) == "High Vib (6.20g)"


def test_applied_patch_keeps_created_at(machine, make_report):
    existing = _open_issue(created_at=1.0, updated_at=1.0)
    decision = merge(make_report(vib=6.0), machine, existing)

    merged = decision.update.apply(existing, now=5.0)

    assert merged.created_at == 1.0
    assert merged.updated_at == 5.0
    assert merged.status is IssueStatus.OPEN
