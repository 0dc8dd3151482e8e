import threading
from dataclasses import dataclass, field, fields, replace
from enum import Enum, IntEnum


# =========================================================
# ENUMS
# =========================================================
class SoundLevel(str, Enum):
    NORMAL = "Normal"
    NOISE = "Noise"
    BAD = "Bad"

    @property
    def severity(self) -> int:
        return _SOUND_SEVERITY[self]


_SOUND_SEVERITY = {
    SoundLevel.NORMAL: 0,
    SoundLevel.NOISE: 1,
    SoundLevel.BAD: 2,
}


class IssueStatus(str, Enum):
    """
    Repair workflow states.

    Values match the status strings stored in the logs collection
    so documents written by the dashboard stay readable.
    """

    OPEN = "not"
    IN_PROGRESS = "in"
    FIXED = "fixed"


class LightTier(IntEnum):
    CLEAR = 0
    LOW = 1
    WARNING = 2
    ELEVATED = 3
    CRITICAL = 4


# =========================================================
# MACHINE
# =========================================================
DEFAULT_REPORT_INTERVAL = 15

_MACHINE_KEYS = {
    "minTemp": "min_temp",
    "maxTemp": "max_temp",
    "minVib": "min_vib",
    "maxVib": "max_vib",
}


@dataclass(frozen=True)
class Machine:
    """
    Machine profile with its configured sensor limits.
    Temperatures in °C, vibration in g, interval in seconds.
    """

    id: str
    name: str
    min_temp: float
    max_temp: float
    min_vib: float
    max_vib: float
    interval: int = DEFAULT_REPORT_INTERVAL
    notes: str = ""
    img: str | None = None

    def __post_init__(self):
        if self.min_temp >= self.max_temp:
            raise ValueError(
                f"machine {self.id}: min_temp must be less than max_temp"
            )
        if self.min_vib >= self.max_vib:
            raise ValueError(
                f"machine {self.id}: min_vib must be less than max_vib"
            )

    @classmethod
    def from_dict(cls, data: dict) -> "Machine":
        """
        Build a Machine from a document dict.
        Accepts camelCase document keys (minTemp) and snake_case keys.
        """
        known = {f.name for f in fields(cls)}
        kwargs = {}

        for key, value in data.items():
            key = _MACHINE_KEYS.get(key, key)
            if key in known:
                kwargs[key] = value

        for key in ("min_temp", "max_temp", "min_vib", "max_vib"):
            if key in kwargs:
                kwargs[key] = float(kwargs[key])

        if kwargs.get("interval") is None:
            kwargs["interval"] = DEFAULT_REPORT_INTERVAL
        kwargs["interval"] = int(kwargs["interval"])

        return cls(**kwargs)


# =========================================================
# REPORT
# =========================================================
@dataclass(frozen=True)
class Report:
    """One timestamped sensor sample from a machine."""

    id: str
    machine_id: str
    temp: float
    vib: float
    sound: SoundLevel = SoundLevel.NORMAL
    timestamp: float = 0.0


# =========================================================
# FAULT SIGNAL
# =========================================================
@dataclass(frozen=True)
class FaultSignal:
    temperature_exceeded: bool = False
    vibration_exceeded: bool = False
    sound_level: SoundLevel = SoundLevel.NORMAL
    probability: int = 0
    issues: tuple[str, ...] = ()

    @property
    def is_zero(self) -> bool:
        return self.probability <= 0


# =========================================================
# ISSUE (LOG)
# =========================================================
@dataclass(frozen=True)
class Issue:
    """
    Tracked fault record for one machine.

    fault_probability is an accumulated 0-100 severity score,
    temperature / vibration always hold the latest merged sample.
    """

    id: str
    machine_id: str
    message: str
    fault_probability: int
    temperature: float
    vibration: float
    sound: SoundLevel = SoundLevel.NORMAL
    status: IssueStatus = IssueStatus.OPEN
    fix_description: str = ""
    report_id: str | None = None
    report_ids: tuple[str, ...] = ()
    created_at: float = 0.0
    updated_at: float = 0.0

    @property
    def is_fixed(self) -> bool:
        return self.status is IssueStatus.FIXED

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "machineId": self.machine_id,
            "message": self.message,
            "faultProbability": self.fault_probability,
            "temperature": self.temperature,
            "vibration": self.vibration,
            "sound": self.sound.value,
            "status": self.status.value,
            "desc": self.fix_description,
            "reportId": self.report_id,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }


@dataclass(frozen=True)
class IssueDraft:
    """Instructions for creating a new issue."""

    machine_id: str
    message: str
    fault_probability: int
    temperature: float
    vibration: float
    sound: SoundLevel
    report_id: str
    report_ids: tuple[str, ...] = ()
    status: IssueStatus = IssueStatus.OPEN

    def to_issue(self, issue_id: str, now: float) -> Issue:
        return Issue(
            id=issue_id,
            machine_id=self.machine_id,
            message=self.message,
            fault_probability=self.fault_probability,
            temperature=self.temperature,
            vibration=self.vibration,
            sound=self.sound,
            status=self.status,
            report_id=self.report_id,
            report_ids=self.report_ids or (self.report_id,),
            created_at=now,
            updated_at=now,
        )


@dataclass(frozen=True)
class IssuePatch:
    """Partial update of an issue. Fields left as None are not written."""

    message: str | None = None
    fault_probability: int | None = None
    temperature: float | None = None
    vibration: float | None = None
    sound: SoundLevel | None = None
    status: IssueStatus | None = None
    fix_description: str | None = None
    report_ids: tuple[str, ...] | None = None

    def changes(self) -> dict:
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if getattr(self, f.name) is not None
        }

    def apply(self, issue: Issue, now: float) -> Issue:
        return replace(issue, updated_at=now, **self.changes())


@dataclass(frozen=True)
class MergeDecision:
    """
    Outcome of merging one report into a machine's issue state.
    At most one of create / update is set.
    """

    create: IssueDraft | None = None
    update: IssuePatch | None = None
    issue_id: str | None = None
    reason: str = ""

    @property
    def is_noop(self) -> bool:
        return self.create is None and self.update is None


@dataclass(frozen=True)
class LightStatus:
    """
    Dashboard light descriptor.
    work_in_progress is a modifier on top of the tier, not a tier.
    """

    green: bool = False
    green_dim: bool = False
    yellow: bool = False
    yellow_dim: bool = False
    red: bool = False
    red_blink: bool = False
    work_in_progress: bool = False
    max_probability: int = 0
    tier: LightTier = LightTier.CLEAR

    def to_dict(self) -> dict:
        return {
            "green": self.green,
            "greenDim": self.green_dim,
            "yellow": self.yellow,
            "yellowDim": self.yellow_dim,
            "red": self.red,
            "redBlink": self.red_blink,
            "workInProgress": self.work_in_progress,
            "maxProbability": self.max_probability,
            "tier": int(self.tier),
        }


@dataclass
class GuardMetrics:
    reports_seen: int = 0
    reports_skipped: int = 0
    issues_created: int = 0
    issues_updated: int = 0
    errors: int = 0
    by_machine: dict = field(default_factory=dict)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def count(self, key, machine_id=None):
        with self._lock:
            setattr(self, key, getattr(self, key) + 1)
            if machine_id is not None:
                self.by_machine[machine_id] = self.by_machine.get(machine_id, 0) + 1

    def snapshot(self) -> dict:
        with self._lock:
            return {
                "reports_seen": self.reports_seen,
                "reports_skipped": self.reports_skipped,
                "issues_created": self.issues_created,
                "issues_updated": self.issues_updated,
                "errors": self.errors,
                "by_machine": dict(self.by_machine),
            }
