from attendance_server.models.device import Device
from attendance_server.models.user import EnrolledUser, identity_key
from attendance_server.models.attendance import AttendanceLog, AccessDecision

__all__ = [
    "Device",
    "EnrolledUser",
    "identity_key",
    "AttendanceLog",
    "AccessDecision",
]
