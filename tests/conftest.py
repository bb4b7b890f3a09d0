import logging
import os
import tempfile

# Keep the rotating log file out of the user's home while testing
os.environ.setdefault("LOG_DIR", os.path.join(tempfile.gettempdir(), "attendance-server-tests"))

import pytest

from attendance_server import create_app
from attendance_server.repositories import RecordStore
from attendance_server.services.command_handlers import CommandContext
from attendance_server.shared.logger import app_logger


@pytest.fixture
def data_dir(tmp_path):
    return str(tmp_path / "data")


@pytest.fixture
def app(data_dir):
    app = create_app({
        "TESTING": True,
        "DATA_DIR": data_dir,
        "LOG_REQUEST_BODIES": True,
        "QR_ALLOWLIST": ["QR-OK"],
        "FEVER_THRESHOLD": 38.0,
        "LOGS_TAIL_SIZE": 100,
    })
    return app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def store(data_dir):
    store = RecordStore(data_dir)
    store.initialize()
    return store


@pytest.fixture
def ctx(store):
    return CommandContext(store=store, qr_allowlist=["QR-OK"], remote_addr="10.0.0.5")


class RecordingHandler(logging.Handler):
    def __init__(self):
        super().__init__(level=logging.DEBUG)
        self.records = []

    def emit(self, record):
        self.records.append(record)

    def messages(self, level=logging.DEBUG):
        return [r.getMessage() for r in self.records if r.levelno >= level]


@pytest.fixture
def log_records():
    """Records emitted on app_logger (it does not propagate to caplog)"""
    handler = RecordingHandler()
    app_logger.addHandler(handler)
    yield handler
    app_logger.removeHandler(handler)
