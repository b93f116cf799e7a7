from enum import Enum


class RouteMode(str, Enum):
    FASTEST = "fastest"
    SAFEST = "safest"
    BALANCED = "balanced"
    NIGHT_SAFE = "night_safe"
    FEMALE_FRIENDLY = "female_friendly"


class TimeBucket(str, Enum):
    DAY = "day"
    NIGHT = "night"
    DAWN_DUSK = "dawn_dusk"


class PickTarget(str, Enum):
    NONE = "none"
    START = "start"
    END = "end"


class SessionPhase(str, Enum):
    IDLE = "idle"
    PLANNING = "planning"
    PLANNED = "planned"


class SafetyLevel(str, Enum):
    SAFE = "safe"
    CAUTION = "caution"
    DANGER = "danger"


class ReportCategory(str, Enum):
    DARK_SPOT = "dark_spot"
    HARASSMENT = "harassment"
    SUSPICIOUS_ACTIVITY = "suspicious_activity"
    HAZARD = "hazard"
    OTHER = "other"


class SOSTrigger(str, Enum):
    MANUAL = "manual"
    AUTO = "auto"
