# fault_detection/fault_rules.py

from core.models import SoundLevel

# Over-threshold only. Lower bounds are not scored.
FAULT_RULES = [
    {
        "fault_type": "HIGH_TEMP",
        "reading": "temp",
        "limit": "max_temp",
        "points": 40,
        "label": "High Temp ({value:.1f}°C)",
    },
    {
        "fault_type": "HIGH_VIB",
        "reading": "vib",
        "limit": "max_vib",
        "points": 40,
        "label": "High Vib ({value:.2f}g)",
    },
]

SOUND_RULES = {
    SoundLevel.BAD: {
        "points": 50,
        "label": "AI Audio Anomaly",
    },
    SoundLevel.NOISE: {
        "points": 20,
        "label": "Abnormal Noise",
    },
    SoundLevel.NORMAL: {
        "points": 0,
        "label": None,
    },
}

# Cap for a freshly created issue / for an accumulated merged issue
NEW_ISSUE_CAP = 99
MERGED_ISSUE_CAP = 100
