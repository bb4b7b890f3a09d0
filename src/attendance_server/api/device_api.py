"""
Device API Controller

Terminals POST one JSON command per request:

- POST /api      - device command endpoint
- POST /pub/api  - same endpoint, path used by some firmware builds

Example Request:
    POST /api
    Content-Type: application/json

    {"cmd": "reg", "SN": "DEV1", "devinfo": {"modelname": "AI518"}}

Example Response:
    {"ret": "reg", "result": true, "nosenduser": true,
     "cloudtime": "2025-01-09T08:30:00.123Z"}
"""

from flask import Blueprint, request, jsonify, current_app

from attendance_server.repositories import get_record_store
from attendance_server.services.command_handlers import CommandContext
from attendance_server.services.command_router import dispatch_command


bp = Blueprint('device_api', __name__)


def _command_context() -> CommandContext:
    return CommandContext(
        store=get_record_store(),
        fever_threshold=current_app.config.get('FEVER_THRESHOLD', 38.0),
        qr_allowlist=current_app.config.get('QR_ALLOWLIST', []),
        remote_addr=request.remote_addr,
    )


@bp.route('/api', methods=['POST'])
@bp.route('/pub/api', methods=['POST'])
def device_command():
    """Dispatch a device command and answer with the handler's status/body"""
    body = request.get_json(force=True, silent=True)
    result = dispatch_command(body, _command_context())
    return jsonify(result.body), result.status
