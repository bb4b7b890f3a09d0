import logging
import os
import subprocess
import sys
from pathlib import Path
import threading

import pytest

from attendance_server.server import AttendanceService


@pytest.fixture
def service(app):
    saved = sys.excepthook, threading.excepthook
    service = AttendanceService(app)
    yield service
    sys.excepthook, threading.excepthook = saved


def test_plain_http_without_certificates(service, tmp_path):
    service.app.config["SSL_CERT_PATH"] = str(tmp_path / "missing-cert.pem")
    service.app.config["SSL_KEY_PATH"] = str(tmp_path / "missing-key.pem")

    assert service.ssl_context() is None


def test_https_when_both_files_exist(service, tmp_path):
    cert = tmp_path / "cert.pem"
    key = tmp_path / "key.pem"
    cert.write_text("cert")
    key.write_text("key")
    service.app.config["SSL_CERT_PATH"] = str(cert)
    service.app.config["SSL_KEY_PATH"] = str(key)

    assert service.ssl_context() == (str(cert), str(key))


def test_https_needs_the_key_too(service, tmp_path):
    cert = tmp_path / "cert.pem"
    cert.write_text("cert")
    service.app.config["SSL_CERT_PATH"] = str(cert)
    service.app.config["SSL_KEY_PATH"] = str(tmp_path / "key.pem")

    assert service.ssl_context() is None


def test_uncaught_thread_exception_is_logged_not_raised(service, log_records):
    # pytest swaps in its own threading.excepthook while a test runs
    service.install_exception_hooks()

    def boom():
        raise RuntimeError("background failure")

    worker = threading.Thread(target=boom, name="worker-1")
    worker.start()
    worker.join()

    critical = log_records.messages(logging.CRITICAL)
    assert any("worker-1" in message for message in critical)
    record = next(r for r in log_records.records if r.levelno == logging.CRITICAL)
    assert "background failure" in str(record.exc_info[1])


def test_uncaught_exception_hook_logs(service, log_records):
    try:
        raise ValueError("top level")
    except ValueError:
        sys.excepthook(*sys.exc_info())

    critical = [r for r in log_records.records if r.levelno == logging.CRITICAL]
    assert len(critical) == 1
    assert critical[0].getMessage() == "Uncaught exception"
    assert str(critical[0].exc_info[1]) == "top level"


def test_dotenv_log_settings_apply_to_file_handler(tmp_path):
    log_dir = tmp_path / "dotenv-logs"
    (tmp_path / ".env").write_text(f"LOG_DIR={log_dir}\nLOG_FILE_SIZE=12345\n")

    env = os.environ.copy()
    env.pop("LOG_DIR", None)
    env.pop("LOG_FILE_SIZE", None)
    src_dir = str(Path(__file__).resolve().parents[1] / "src")
    env["PYTHONPATH"] = os.pathsep.join(filter(None, [src_dir, env.get("PYTHONPATH")]))

    script = (
        "from logging.handlers import RotatingFileHandler\n"
        "from attendance_server.shared.logger import app_logger\n"
        "handler = next(h for h in app_logger.handlers if isinstance(h, RotatingFileHandler))\n"
        "print(handler.baseFilename)\n"
        "print(handler.maxBytes)\n"
    )
    output = subprocess.run(
        [sys.executable, "-c", script],
        cwd=tmp_path, env=env, capture_output=True, text=True, check=True,
    ).stdout.splitlines()

    assert output[-2] == str(log_dir / "attendance-server.log")
    assert output[-1] == "12345"
