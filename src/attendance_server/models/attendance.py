from dataclasses import dataclass, asdict
from typing import Dict, Any, Optional


class AccessDecision:
    """Access flag returned to the terminal"""
    DENY = 0
    ALLOW = 1


@dataclass
class AttendanceLog:
    """Attendance log entry; append-only once stored"""
    enrollid: str
    timestamp: Any  # device clock, stored as sent
    SN: Optional[str] = None
    mode: Any = None  # verify mode code from firmware
    temp: Any = None  # body temperature, stored as sent
    image: Any = None  # opaque blob, stored as sent
    received_at: Optional[str] = None
    access: int = AccessDecision.ALLOW

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for storage"""
        data = asdict(self)
        for optional in ("mode", "temp", "image"):
            if data[optional] is None:
                del data[optional]
        return data
