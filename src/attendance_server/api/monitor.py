"""Read-only status and monitoring routes."""

import os
import time

import psutil
from flask import Blueprint, jsonify, current_app

from attendance_server.repositories import DEVICES, LOGS, USERS, get_record_store
from attendance_server.utils import iso_now


bp = Blueprint('monitor', __name__, url_prefix='/')


def process_uptime() -> float:
    """Seconds since this process started"""
    process = psutil.Process(os.getpid())
    return round(time.time() - process.create_time(), 3)


@bp.route('/', methods=['GET'])
def index():
    return jsonify({
        'message': 'Welcome to Tiny Biometric Attendance Machine Server',
        'status': 200,
        'serStatus': 'Server is running successfully!',
        'timestamp': iso_now(),
    })


@bp.route('/tst', methods=['GET'])
def tst():
    return jsonify({
        'status': 200,
        'message': 'TST Path',
    })


@bp.route('/health', methods=['GET'])
def health():
    return jsonify({
        'status': 'OK',
        'uptime': process_uptime(),
        'timestamp': iso_now(),
    })


@bp.route('/devices', methods=['GET'])
def list_devices():
    return jsonify(get_record_store().load(DEVICES))


@bp.route('/logs', methods=['GET'])
def list_logs():
    """Most recent attendance logs, oldest first"""
    tail_size = current_app.config.get('LOGS_TAIL_SIZE', 100)
    logs = get_record_store().load(LOGS)
    return jsonify(logs[-tail_size:] if tail_size > 0 else [])


@bp.route('/users', methods=['GET'])
def list_users():
    return jsonify(get_record_store().load(USERS))
