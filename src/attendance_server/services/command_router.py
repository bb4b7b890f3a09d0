"""
Command router: validates the request envelope and dispatches on "cmd".

Outcomes:
- body is not an object, or has no usable "cmd"   -> 400, ret=None
- "cmd" does not name a known command              -> 400, ret=<cmd>
- handler returned                                 -> handler status/body as-is
- handler raised                                   -> 500, generic error
"""

from typing import Any, Callable, Dict, Optional

import sentry_sdk

from attendance_server.schemas import command_envelope_schema, validate_data
from attendance_server.services.command_handlers import (
    COMMAND_HANDLERS,
    CommandContext,
    HandlerResult,
)
from attendance_server.shared.logger import app_logger
from attendance_server.utils import iso_now

Handler = Callable[[Dict[str, Any], CommandContext], HandlerResult]


def normalize_command(cmd: Any) -> str:
    """Lower-case, trimmed form of a command keyword"""
    return str(cmd).strip().lower()


def _error(status: int, ret: Optional[str], message: str) -> HandlerResult:
    return HandlerResult(
        status=status,
        body={"ret": ret, "result": False, "error": message, "cloudtime": iso_now()},
    )


def dispatch_command(
    body: Any,
    ctx: CommandContext,
    handlers: Optional[Dict[str, Handler]] = None,
) -> HandlerResult:
    """
    Route one parsed request body to its command handler.

    Args:
        body: Parsed JSON body (None when the body was not JSON)
        ctx: Store and settings handed to the handler
        handlers: Command table, defaults to COMMAND_HANDLERS

    Returns:
        HandlerResult to be sent back verbatim
    """
    handlers = COMMAND_HANDLERS if handlers is None else handlers

    is_valid, reason = validate_data(body, command_envelope_schema)
    if not is_valid:
        app_logger.warning(f"[API] Rejected request: {reason}")
        return _error(400, None, "Invalid request: missing or invalid cmd")

    cmd = normalize_command(body["cmd"])
    handler = handlers.get(cmd)
    if handler is None:
        app_logger.warning(f"[API] Unknown cmd: {cmd}")
        return _error(400, cmd, f"Unknown cmd: {cmd}")

    app_logger.info(f"[API] Dispatching cmd={cmd}")
    try:
        return handler(body, ctx)
    except Exception as e:
        app_logger.error(f"[API] Error handling cmd={cmd}: {e}", exc_info=True)
        sentry_sdk.capture_exception(e)
        return _error(500, None, "Internal server error")
