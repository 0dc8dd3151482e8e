# fault_detection/threshold_evaluator.py

from math import isfinite

from core.errors import ReportValidationError
from core.models import FaultSignal, SoundLevel
from fault_detection.fault_rules import FAULT_RULES, SOUND_RULES


def _reading(report, name):
    value = getattr(report, name)

    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ReportValidationError(
            f"report {report.id}: {name} is not numeric ({value!r})"
        )
    if not isfinite(value):
        raise ReportValidationError(
            f"report {report.id}: {name} is not finite ({value!r})"
        )

    return float(value)


def evaluate(report, machine) -> FaultSignal:
    """
    Score one report against its machine's limits.

    Returns a zero signal when nothing is exceeded; callers are
    expected to stop there without touching the store.
    """
    probability = 0
    issues = []
    exceeded = set()

    for rule in FAULT_RULES:
        value = _reading(report, rule["reading"])
        limit = getattr(machine, rule["limit"])

        if value > limit:
            probability += rule["points"]
            issues.append(rule["label"].format(value=value))
            exceeded.add(rule["fault_type"])

    try:
        sound = SoundLevel(report.sound)
    except ValueError:
        raise ReportValidationError(
            f"report {report.id}: unknown sound label {report.sound!r}"
        ) from None

    sound_rule = SOUND_RULES[sound]
    if sound_rule["points"]:
        probability += sound_rule["points"]
        issues.append(sound_rule["label"])

    return FaultSignal(
        temperature_exceeded="HIGH_TEMP" in exceeded,
        vibration_exceeded="HIGH_VIB" in exceeded,
        sound_level=sound,
        probability=probability,
        issues=tuple(issues),
    )
