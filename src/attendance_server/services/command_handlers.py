"""
Command handlers for JSON-speaking biometric terminals.

One function per device command. Each takes the parsed request object and a
CommandContext and returns a HandlerResult (HTTP status + JSON body). Client
mistakes are answered with status 400; storage write failures are raised and
left to the router.

Commands:
- reg:        device registration (devices collection)
- sendlog:    attendance log upload (logs collection)
- checklive:  heartbeat (devices collection)
- senduser:   user enrollment (users collection)
- sendqrcode: QR-code verification against an allow-list (no persistence)
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from attendance_server.models import (
    AccessDecision,
    AttendanceLog,
    Device,
    EnrolledUser,
    identity_key,
)
from attendance_server.repositories import DEVICES, LOGS, USERS, RecordStore
from attendance_server.shared.logger import app_logger
from attendance_server.utils import (
    iso_now,
    pick_entries,
    pick_field,
    present_fields,
    to_number,
)


# ============================================================================
# FIELD ALIASES (first match wins)
# ============================================================================

SERIAL_ALIASES = ("SN", "sn", "serial", "serialNumber")

# reg
MODEL_ALIASES = ("model", "modelname", "devinfo.modelname")
CAPACITY_ALIASES = ("devinfo", "capacities", "capacity")
IP_ALIASES = ("ip", "IP", "ipaddr")

# sendlog
LOG_CONTAINER_ALIASES = ("logs", "record", "records", "log", "data")
ENROLL_ID_ALIASES = ("enrollid", "enrollId", "enroll_id", "userid", "user_id")
TIMESTAMP_ALIASES = ("timestamp", "time")
VERIFY_MODE_ALIASES = ("mode", "verifymode", "verify_mode")
TEMPERATURE_ALIASES = ("temp", "temperature")
IMAGE_ALIASES = ("image", "photo")

# senduser
USER_CONTAINER_ALIASES = ("user", "users", "record", "records")
USER_ID_ALIASES = ENROLL_ID_ALIASES + ("id",)
BACKUP_NUM_ALIASES = ("backupnum", "backupNum", "backup_num")
USER_FIELD_ALIASES = {
    "name": ("name", "username", "userName"),
    "password": ("password", "pwd", "passwd"),
    "cardid": ("cardid", "cardId", "card_id", "card"),
    "fingerprint": ("fingerprint", "fp", "template"),
    "admin": ("admin", "privilege"),
}

# sendqrcode
QR_CODE_ALIASES = ("qrcode", "record", "code")
QR_PLACEHOLDER_ENROLL_ID = "99999"
QR_PLACEHOLDER_USERNAME = "QR Visitor"
QR_MESSAGE_GRANTED = "Access granted, welcome"
QR_MESSAGE_DENIED = "Invalid QR code, access denied"


# ============================================================================
# TYPE DEFINITIONS
# ============================================================================


@dataclass
class HandlerResult:
    """HTTP status and JSON body produced by a handler"""

    status: int
    body: Dict[str, Any]


@dataclass
class CommandContext:
    """Everything a handler may touch besides the payload"""

    store: RecordStore
    fever_threshold: float = 38.0
    qr_allowlist: List[str] = field(default_factory=list)
    remote_addr: Optional[str] = None


def _reply(ret: str, status: int = 200, result: bool = True, **extra) -> HandlerResult:
    body = {"ret": ret, "result": result}
    body.update(extra)
    body["cloudtime"] = iso_now()
    return HandlerResult(status=status, body=body)


def _serial_of(payload: Dict[str, Any]) -> Optional[str]:
    serial_number = pick_field(payload, SERIAL_ALIASES)
    return str(serial_number) if serial_number is not None else None


# ============================================================================
# ACCESS DECISION
# ============================================================================


def access_decision(temperature: Any, threshold: float = 38.0) -> int:
    """
    Decide entry from a temperature reading.

    Returns:
        AccessDecision.DENY (0) when the reading is numeric and >= threshold,
        AccessDecision.ALLOW (1) otherwise (absent or non-numeric included).

    Example:
        >>> access_decision(39)
        0
        >>> access_decision("36.6")
        1
    """
    reading = to_number(temperature)
    if reading is not None and reading >= threshold:
        return AccessDecision.DENY
    return AccessDecision.ALLOW


# ============================================================================
# reg
# ============================================================================


def handle_reg(payload: Dict[str, Any], ctx: CommandContext) -> HandlerResult:
    """
    Register a terminal, or refresh an existing registration.

    Fields present in the payload overwrite the stored record; fields the
    payload lacks keep their stored value. Defaults are only applied to a
    brand-new record.
    """
    serial_number = _serial_of(payload)
    if not serial_number:
        app_logger.warning("[DEVICE] reg rejected: missing serial number")
        return _reply("reg", status=400, result=False, error="Missing SN")

    now = iso_now()
    incoming = {
        "model": pick_field(payload, MODEL_ALIASES),
        "capacities": pick_field(payload, CAPACITY_ALIASES),
        "ip": pick_field(payload, IP_ALIASES),
    }
    incoming = {key: value for key, value in incoming.items() if value is not None}

    with ctx.store.locked(DEVICES):
        devices = ctx.store.load(DEVICES)
        existing = next(
            (d for d in devices if isinstance(d, dict) and d.get("SN") == serial_number),
            None,
        )

        if existing is not None:
            existing.update(incoming)
            existing["last_seen"] = now
            existing["raw"] = payload
            app_logger.info(f"[DEVICE] Re-registered SN={serial_number}")
        else:
            device = Device(
                SN=serial_number,
                model=incoming.get("model", "unknown"),
                capacities=incoming.get("capacities", {}),
                ip=incoming.get("ip") or ctx.remote_addr or "unknown",
                registered_at=now,
                last_seen=now,
                raw=payload,
            )
            devices.append(device.to_dict())
            app_logger.info(
                f"[DEVICE] Registered new device SN={serial_number}, model={device.model}"
            )

        ctx.store.save(DEVICES, devices)

    return _reply("reg", nosenduser=True)


# ============================================================================
# sendlog
# ============================================================================


def _build_log(
    entry: Dict[str, Any], serial_number: Optional[str], ctx: CommandContext
) -> Optional[AttendanceLog]:
    """Turn one incoming entry into a log, or None when it must be skipped"""
    if not isinstance(entry, dict):
        app_logger.warning(f"[DEVICE] sendlog skipped non-object entry: {entry!r}")
        return None

    enroll_id = pick_field(entry, ENROLL_ID_ALIASES)
    timestamp = pick_field(entry, TIMESTAMP_ALIASES)
    if enroll_id is None or timestamp is None:
        app_logger.warning(
            f"[DEVICE] sendlog skipped entry without enrollid/timestamp from SN={serial_number}"
        )
        return None

    temperature = pick_field(entry, TEMPERATURE_ALIASES)
    return AttendanceLog(
        enrollid=str(enroll_id),
        timestamp=timestamp,
        SN=serial_number,
        mode=pick_field(entry, VERIFY_MODE_ALIASES),
        temp=temperature,
        image=pick_field(entry, IMAGE_ALIASES),
        received_at=iso_now(),
        access=access_decision(temperature, ctx.fever_threshold),
    )


def handle_sendlog(payload: Dict[str, Any], ctx: CommandContext) -> HandlerResult:
    """
    Append uploaded attendance logs.

    Entries lacking an enroll ID or timestamp are skipped; the rest are
    stored and counted. The collection is saved once per request.
    """
    entries, container = pick_entries(payload, LOG_CONTAINER_ALIASES)
    if not entries:
        app_logger.warning("[DEVICE] sendlog rejected: no log entries in payload")
        return _reply("sendlog", status=400, result=False, error="No logs provided")

    serial_number = _serial_of(payload)
    accepted = []
    for entry in entries:
        log = _build_log(entry, serial_number, ctx)
        if log is not None:
            accepted.append(log)

    denied = sum(1 for log in accepted if log.access == AccessDecision.DENY)
    allowed = len(accepted) - denied

    with ctx.store.locked(LOGS):
        logs = ctx.store.load(LOGS)
        logs.extend(log.to_dict() for log in accepted)
        ctx.store.save(LOGS, logs)

    app_logger.info(
        f"[DEVICE] sendlog SN={serial_number}: {len(accepted)}/{len(entries)} "
        f"entries from '{container}' stored, allowed={allowed}, denied={denied}"
    )

    extra = {
        "count": len(accepted),
        "log_count": len(accepted),
        "allowed": allowed,
        "denied": denied,
        "access": AccessDecision.DENY if denied else AccessDecision.ALLOW,
    }
    log_index = payload.get("logindex")
    if log_index is not None:
        extra["logindex"] = log_index

    return _reply("sendlog", **extra)


# ============================================================================
# checklive
# ============================================================================


def handle_checklive(payload: Dict[str, Any], ctx: CommandContext) -> HandlerResult:
    """
    Heartbeat. Updates last_seen for a known device; never creates one.

    Always answers 200 so the terminal keeps its connection state.
    """
    serial_number = _serial_of(payload)

    if serial_number:
        with ctx.store.locked(DEVICES):
            devices = ctx.store.load(DEVICES)
            device = next(
                (d for d in devices if isinstance(d, dict) and d.get("SN") == serial_number),
                None,
            )
            if device is not None:
                device["last_seen"] = iso_now()
                device["last_heartbeat"] = payload
                ctx.store.save(DEVICES, devices)
                app_logger.debug(f"[DEVICE] Heartbeat from SN={serial_number}")
            else:
                app_logger.info(
                    f"[DEVICE] Heartbeat from unregistered device SN={serial_number}"
                )
    else:
        app_logger.info("[DEVICE] Heartbeat without serial number")

    return _reply("checklive")


# ============================================================================
# senduser
# ============================================================================


def _build_user(
    entry: Dict[str, Any], serial_number: Optional[str]
) -> Optional[EnrolledUser]:
    if not isinstance(entry, dict):
        app_logger.warning(f"[DEVICE] senduser skipped non-object entry: {entry!r}")
        return None

    enroll_id = pick_field(entry, USER_ID_ALIASES)
    if enroll_id is None:
        app_logger.warning(
            f"[DEVICE] senduser skipped entry without enrollid from SN={serial_number}"
        )
        return None

    backup_num = pick_field(entry, BACKUP_NUM_ALIASES)
    fields = present_fields(entry, USER_FIELD_ALIASES)
    return EnrolledUser(
        enrollid=str(enroll_id),
        backupnum=str(backup_num) if backup_num is not None else None,
        SN=serial_number,
        raw=entry,
        **fields,
    )


def handle_senduser(payload: Dict[str, Any], ctx: CommandContext) -> HandlerResult:
    """
    Create or update enrolled users.

    Users are matched on enroll ID (plus backup slot when sent). A match is
    shallow-merged with the fields this entry carries; anything else is
    appended as a new user.
    """
    entries, container = pick_entries(payload, USER_CONTAINER_ALIASES)
    if not entries:
        app_logger.warning("[DEVICE] senduser rejected: no user entries in payload")
        return _reply("senduser", status=400, result=False, error="No user data provided")

    serial_number = _serial_of(payload)
    created = 0
    updated = 0

    with ctx.store.locked(USERS):
        users = ctx.store.load(USERS)
        by_identity = {
            identity_key(u.get("enrollid"), u.get("backupnum")): u
            for u in users
            if isinstance(u, dict) and u.get("enrollid") is not None
        }

        for entry in entries:
            user = _build_user(entry, serial_number)
            if user is None:
                continue

            now = iso_now()
            existing = by_identity.get(user.identity)
            if existing is not None:
                existing.update(user.to_dict())
                existing["updated_at"] = now
                updated += 1
            else:
                user.created_at = now
                user.updated_at = now
                record = user.to_dict()
                users.append(record)
                by_identity[user.identity] = record
                created += 1

        ctx.store.save(USERS, users)

    app_logger.info(
        f"[DEVICE] senduser SN={serial_number}: {created + updated}/{len(entries)} "
        f"entries from '{container}' processed (created={created}, updated={updated})"
    )

    return _reply(
        "senduser", count=created + updated, created=created, updated=updated
    )


# ============================================================================
# sendqrcode
# ============================================================================


def handle_sendqrcode(payload: Dict[str, Any], ctx: CommandContext) -> HandlerResult:
    """Check a scanned QR code against the configured allow-list"""
    code = pick_field(payload, QR_CODE_ALIASES)
    code = str(code).strip() if code is not None else None

    if code and code in ctx.qr_allowlist:
        app_logger.info(f"[DEVICE] QR code accepted from SN={_serial_of(payload)}")
        return _reply(
            "sendqrcode",
            access=AccessDecision.ALLOW,
            enrollid=QR_PLACEHOLDER_ENROLL_ID,
            username=QR_PLACEHOLDER_USERNAME,
            message=QR_MESSAGE_GRANTED,
        )

    app_logger.info(f"[DEVICE] QR code rejected from SN={_serial_of(payload)}")
    return _reply("sendqrcode", access=AccessDecision.DENY, message=QR_MESSAGE_DENIED)


COMMAND_HANDLERS = {
    "reg": handle_reg,
    "sendlog": handle_sendlog,
    "checklive": handle_checklive,
    "senduser": handle_senduser,
    "sendqrcode": handle_sendqrcode,
}
