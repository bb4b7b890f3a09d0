from dataclasses import dataclass, asdict, field
from typing import Dict, Any, Optional


@dataclass
class Device:
    """Terminal registered through the 'reg' command, keyed by serial number"""

    SN: str
    model: Optional[str] = None
    capacities: Optional[Dict[str, Any]] = None
    ip: Optional[str] = None
    registered_at: Optional[str] = None
    last_seen: Optional[str] = None
    last_heartbeat: Optional[Dict[str, Any]] = None
    raw: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for storage, dropping unset fields"""
        return {key: value for key, value in asdict(self).items() if value is not None}
