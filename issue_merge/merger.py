# issue_merge/merger.py

from core.models import IssueDraft, IssuePatch, MergeDecision
from fault_detection.fault_rules import MERGED_ISSUE_CAP, NEW_ISSUE_CAP
from fault_detection.threshold_evaluator import evaluate

MESSAGE_SEPARATOR = ", "


# =========================================================
# MESSAGE HELPERS
# =========================================================
def issue_keyword(phrase: str) -> str:
    """
    "High Temp (91.0°C)" -> "High Temp"
    Phrases without a parenthesis are their own keyword.
    """
    return phrase.split("(", 1)[0].strip()


def build_message(phrases) -> str:
    return MESSAGE_SEPARATOR.join(phrases)


def extend_message(message: str, phrases) -> str:
    """
    Append each phrase whose keyword is not already in the message.
    Repeated violations keep their first reading in the text.
    """
    parts = [message] if message else []
    seen = message or ""

    for phrase in phrases:
        if issue_keyword(phrase) in seen:
            continue
        parts.append(phrase)
        seen = MESSAGE_SEPARATOR.join(parts)

    return MESSAGE_SEPARATOR.join(parts)


def worst_sound(current, new):
    return new if new.severity > current.severity else current


# =========================================================
# MERGE
# =========================================================
def merge(report, machine, existing_issue=None, signal=None) -> MergeDecision:
    """
    Issue Merger
    ============
    Pure decision: the caller owns every store read and write.

    - zero signal            -> no-op
    - report already merged  -> no-op (replay)
    - no open issue          -> create (probability capped at 99)
    - open issue             -> additive update (capped at 100)

    existing_issue must be the machine's OPEN issue, if any.
    """
    if signal is None:
        signal = evaluate(report, machine)

    if signal.is_zero:
        return MergeDecision(reason="no violation")

    if existing_issue is None:
        return MergeDecision(
            create=IssueDraft(
                machine_id=machine.id,
                message=build_message(signal.issues),
                fault_probability=min(signal.probability, NEW_ISSUE_CAP),
                temperature=report.temp,
                vibration=report.vib,
                sound=signal.sound_level,
                report_id=report.id,
                report_ids=(report.id,),
            ),
            reason="new issue",
        )

    if report.id in existing_issue.report_ids:
        return MergeDecision(
            issue_id=existing_issue.id,
            reason="report already merged",
        )

    probability = min(
        existing_issue.fault_probability + signal.probability,
        MERGED_ISSUE_CAP,
    )

    return MergeDecision(
        update=IssuePatch(
            message=extend_message(existing_issue.message, signal.issues),
            fault_probability=probability,
            temperature=report.temp,
            vibration=report.vib,
            sound=worst_sound(existing_issue.sound, signal.sound_level),
            report_ids=existing_issue.report_ids + (report.id,),
        ),
        issue_id=existing_issue.id,
        reason="merged into open issue",
    )
