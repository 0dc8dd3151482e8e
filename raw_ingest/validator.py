import time
import uuid
from math import isfinite

from core.errors import ReportValidationError
from core.models import Report, SoundLevel

TEMP_RANGE = (-50.0, 200.0)
VIB_RANGE = (0.0, 100.0)
INTERVAL_RANGE = (1, 3600)


def _number(value):
    if isinstance(value, bool):
        raise ValueError
    number = float(value)
    if not isfinite(number):
        raise ValueError
    return number


def _first(payload, *keys):
    for key in keys:
        if payload.get(key) is not None:
            return payload[key]
    return None


def parse_report(payload: dict, machine_id: str | None = None) -> Report:
    """
    Build a Report from a raw JSON payload.

    Accepted keys:
        id | reportId
        machineId | machine_id   (topic machine id used as fallback)
        temp | temperature       °C
        vib | vibration          g
        sound                    Normal | Noise | Bad (default Normal)
        timestamp                epoch seconds (default now)
    """
    if not isinstance(payload, dict):
        raise ReportValidationError("report payload must be a JSON object")

    errors = []

    machine = _first(payload, "machineId", "machine_id") or machine_id
    if not machine:
        errors.append("machineId is required")

    # Readings past the physical sensor range are rejected, not scored:
    # a 250 °C report never reaches the evaluator as an over-temperature.
    out_of_range = False
    readings = {}
    for name, keys, (low, high), unit in (
        ("temp", ("temp", "temperature"), TEMP_RANGE, "°C"),
        ("vib", ("vib", "vibration"), VIB_RANGE, "g"),
    ):
        raw = _first(payload, *keys)
        try:
            value = _number(raw)
        except (TypeError, ValueError):
            errors.append(f"{name} must be numeric, got {raw!r}")
            continue

        if not low <= value <= high:
            errors.append(f"{name} reading out of valid range ({low} to {high}{unit})")
            out_of_range = True
            continue
        readings[name] = value

    sound_raw = payload.get("sound") or SoundLevel.NORMAL.value
    try:
        sound = SoundLevel(sound_raw)
    except ValueError:
        errors.append(f"unknown sound label {sound_raw!r}")
        sound = None

    timestamp = payload.get("timestamp")
    if timestamp is None:
        timestamp = time.time()
    else:
        try:
            timestamp = _number(timestamp)
        except (TypeError, ValueError):
            errors.append(f"invalid timestamp {timestamp!r}")

    if errors:
        raise ReportValidationError("; ".join(errors), out_of_range=out_of_range)

    return Report(
        id=str(_first(payload, "id", "reportId") or uuid.uuid4().hex),
        machine_id=str(machine),
        temp=readings["temp"],
        vib=readings["vib"],
        sound=sound,
        timestamp=timestamp,
    )


def validate_machine_data(data: dict) -> list:
    """
    Return human readable errors for a machine profile (empty if valid).
    """
    errors = []

    if not str(data.get("name") or "").strip():
        errors.append("Machine name is required")

    min_temp = _first(data, "minTemp", "min_temp")
    max_temp = _first(data, "maxTemp", "max_temp")
    if min_temp is None or max_temp is None:
        errors.append("Temperature limits are required")
    else:
        try:
            min_temp, max_temp = _number(min_temp), _number(max_temp)
        except (TypeError, ValueError):
            errors.append("Temperature limits must be numeric")
        else:
            if min_temp >= max_temp:
                errors.append("Min temperature must be less than max temperature")
            for label, value in (("Min", min_temp), ("Max", max_temp)):
                if not TEMP_RANGE[0] <= value <= TEMP_RANGE[1]:
                    errors.append(f"{label} temperature must be between -50°C and 200°C")

    min_vib = _first(data, "minVib", "min_vib")
    max_vib = _first(data, "maxVib", "max_vib")
    if min_vib is None or max_vib is None:
        errors.append("Vibration limits are required")
    else:
        try:
            min_vib, max_vib = _number(min_vib), _number(max_vib)
        except (TypeError, ValueError):
            errors.append("Vibration limits must be numeric")
        else:
            if min_vib >= max_vib:
                errors.append("Min vibration must be less than max vibration")
            if min_vib < 0 or max_vib < 0:
                errors.append("Vibration values cannot be negative")

    interval = data.get("interval")
    if interval is not None:
        try:
            interval = _number(interval)
        except (TypeError, ValueError):
            errors.append("Report interval must be numeric")
        else:
            if not INTERVAL_RANGE[0] <= interval <= INTERVAL_RANGE[1]:
                errors.append("Report interval must be between 1 and 3600 seconds")

    return errors
