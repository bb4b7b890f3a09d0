#!/usr/bin/env python3
"""
Attendance Server - standalone service wrapper for the device API
"""

import os
import sys
import threading

from dotenv import load_dotenv

from attendance_server import create_app
from attendance_server.shared.logger import app_logger

# Load environment variables
load_dotenv()

SELF_SIGNED_HINT = (
    "openssl req -x509 -newkey rsa:2048 -nodes -days 365 "
    "-keyout {key} -out {cert} -subj /CN=localhost"
)


class AttendanceService:
    def __init__(self, app=None):
        self.app = app or create_app()
        self.install_exception_hooks()

    def install_exception_hooks(self):
        """Log anything that escapes a thread instead of dying silently"""

        def log_uncaught(exc_type, exc_value, exc_traceback):
            if issubclass(exc_type, KeyboardInterrupt):
                sys.__excepthook__(exc_type, exc_value, exc_traceback)
                return
            app_logger.critical(
                "Uncaught exception",
                exc_info=(exc_type, exc_value, exc_traceback),
            )

        def log_uncaught_thread(args):
            if args.exc_type is SystemExit:
                return
            thread_name = args.thread.name if args.thread else "unknown"
            app_logger.critical(
                f"Uncaught exception in thread {thread_name}",
                exc_info=(args.exc_type, args.exc_value, args.exc_traceback),
            )

        sys.excepthook = log_uncaught
        threading.excepthook = log_uncaught_thread

    def ssl_context(self):
        """
        Certificate/key pair to serve HTTPS with, or None for plain HTTP.

        Both files must exist; otherwise print how to generate a
        self-signed pair.
        """
        cert_path = self.app.config.get("SSL_CERT_PATH")
        key_path = self.app.config.get("SSL_KEY_PATH")

        if cert_path and key_path and os.path.isfile(cert_path) and os.path.isfile(key_path):
            app_logger.info(f"TLS enabled with certificate {cert_path}")
            return (cert_path, key_path)

        app_logger.warning("TLS certificate/key not found, serving plain HTTP")
        app_logger.warning(
            "To enable HTTPS, generate a self-signed pair with: "
            + SELF_SIGNED_HINT.format(key=key_path, cert=cert_path)
        )
        return None

    def run(self):
        host = self.app.config.get("HOST", "0.0.0.0")
        port = self.app.config.get("PORT", 3000)
        ssl_context = self.ssl_context()
        scheme = "https" if ssl_context else "http"

        app_logger.info(f"Server is running on {scheme}://{host}:{port}")
        self.app.run(
            host=host,
            port=port,
            debug=self.app.config.get("DEBUG", False),
            ssl_context=ssl_context,
            threaded=True,
            use_reloader=False,
        )


def main():
    try:
        AttendanceService().run()
    except KeyboardInterrupt:
        app_logger.info("Received keyboard interrupt, shutting down")


if __name__ == "__main__":
    main()
