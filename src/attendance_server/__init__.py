from dotenv import find_dotenv, load_dotenv

# Before the package imports below: the logger reads LOG_DIR/LOG_FILE_SIZE at import
load_dotenv(find_dotenv(usecwd=True))

from flask import Flask, jsonify, request
from flask_cors import CORS
import logging
import sentry_sdk
from attendance_server.api.device_api import bp as device_api_blueprint
from attendance_server.api.monitor import bp as monitor_blueprint
from attendance_server.repositories import RecordStore
from attendance_server.shared.logger import EndpointFilter
from attendance_server.utils import iso_now

# Request bodies may carry face images; keep the log readable
MAX_LOGGED_BODY_CHARS = 2000


def create_app(overrides=None):
    # create and configure the app
    app = Flask(__name__)
    app.config.from_object("attendance_server.config.settings")
    if overrides:
        app.config.update(overrides)

    init_sentry(app.config.get("SENTRY_DSN"))

    CORS(app,
         origins=app.config.get("CORS_ORIGINS") or ["*"],
         allow_headers=["Content-Type", "Authorization", "X-Requested-With"],
         methods=["GET", "POST", "OPTIONS"])

    # app.logger is the shared "attendance_server" logger, handlers already attached
    app.logger.setLevel(app.config.get("LOG_LEVEL", "INFO"))

    # Remove health check noise from werkzeug request logs
    werkzeug_logger = logging.getLogger('werkzeug')
    werkzeug_logger.addFilter(EndpointFilter('/health'))

    store = RecordStore(app.config["DATA_DIR"])
    store.initialize()
    app.extensions["record_store"] = store

    app.register_blueprint(device_api_blueprint)
    app.register_blueprint(monitor_blueprint)

    register_request_logging(app)
    register_security_headers(app)
    register_error_handlers(app)

    app.logger.info("Device API routes registered")
    return app


def register_request_logging(app):
    @app.before_request
    def log_request():
        app.logger.info(f"[{iso_now()}] {request.method} {request.full_path.rstrip('?')}")
        if not app.config.get("LOG_REQUEST_BODIES"):
            return

        app.logger.info(f"Headers: {dict(request.headers)}")
        body = request.get_data(as_text=True)
        if body:
            if len(body) > MAX_LOGGED_BODY_CHARS:
                body = f"{body[:MAX_LOGGED_BODY_CHARS]}... ({len(body)} chars)"
            app.logger.info(f"Body: {body}")


def register_security_headers(app):
    @app.after_request
    def add_security_headers(response):
        response.headers.setdefault("X-Content-Type-Options", "nosniff")
        response.headers.setdefault("X-Frame-Options", "SAMEORIGIN")
        response.headers.setdefault("Referrer-Policy", "no-referrer")
        response.headers.setdefault("X-XSS-Protection", "0")
        if request.is_secure:
            response.headers.setdefault(
                "Strict-Transport-Security", "max-age=15552000; includeSubDomains"
            )
        return response


def register_error_handlers(app):
    @app.errorhandler(404)
    def not_found(error):
        return jsonify({
            "error": "Not Found",
            "path": request.path,
            "timestamp": iso_now(),
        }), 404

    @app.errorhandler(405)
    def method_not_allowed(error):
        return jsonify({
            "error": "Method Not Allowed",
            "timestamp": iso_now(),
        }), 405

    @app.errorhandler(500)
    def internal_error(error):
        original = getattr(error, "original_exception", None) or error
        app.logger.error(f"Unhandled error on {request.path}: {original}", exc_info=original)
        return jsonify({
            "error": "Internal server error",
            "timestamp": iso_now(),
        }), 500


def init_sentry(dsn):
    if not dsn:
        return
    sentry_sdk.init(
        dsn=dsn,
        # Set traces_sample_rate to 1.0 to capture 100%
        # of transactions for performance monitoring.
        traces_sample_rate=1.0,
    )
