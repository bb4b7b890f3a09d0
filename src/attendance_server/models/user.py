from dataclasses import dataclass, asdict, field
from typing import Any, Dict, Optional, Tuple


@dataclass
class EnrolledUser:
    """User enrolled on a terminal, keyed by enroll ID and optional backup slot"""

    enrollid: str
    backupnum: Optional[str] = None
    name: Optional[str] = None
    password: Optional[str] = None
    cardid: Optional[str] = None
    fingerprint: Any = None  # opaque template blob
    admin: Any = None
    SN: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    raw: Dict[str, Any] = field(default_factory=dict)

    @property
    def identity(self) -> Tuple[str, Optional[str]]:
        return identity_key(self.enrollid, self.backupnum)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for storage, dropping unset fields"""
        return {key: value for key, value in asdict(self).items() if value is not None}


def identity_key(enrollid: Any, backupnum: Any = None) -> Tuple[str, Optional[str]]:
    """
    Identity used to match stored users.

    Example:
        >>> identity_key(7)
        ('7', None)
        >>> identity_key(7, 0)
        ('7', '0')
    """
    if backupnum is None or str(backupnum) == "":
        return (str(enrollid), None)
    return (str(enrollid), str(backupnum))
