import os

def strtobool(val):
    """Convert a string representation of truth to true (1) or false (0)."""
    val = val.lower()
    if val in ('y', 'yes', 't', 'true', 'on', '1'):
        return 1
    elif val in ('n', 'no', 'f', 'false', 'off', '0'):
        return 0
    else:
        raise ValueError(f"invalid truth value {val!r}")


def split_list(val):
    """Split a comma-separated setting into a list of non-empty, trimmed items."""
    return [item.strip() for item in (val or "").split(",") if item.strip()]


DEBUG = bool(strtobool(os.getenv("FLASK_DEBUG", "false")))

HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", 3000))

# JSON collections (devices.json, logs.json, users.json) live here
DATA_DIR = os.getenv("DATA_DIR", "data")

# HTTPS is only used when both files exist
SSL_CERT_PATH = os.getenv("SSL_CERT_PATH", os.path.join("certs", "cert.pem"))
SSL_KEY_PATH = os.getenv("SSL_KEY_PATH", os.path.join("certs", "key.pem"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_FILE_SIZE = os.getenv("LOG_FILE_SIZE", "10485760")
LOG_REQUEST_BODIES = bool(strtobool(os.getenv("LOG_REQUEST_BODIES", "true")))

SENTRY_DSN = os.getenv("SENTRY_DSN", "")

CORS_ORIGINS = split_list(os.getenv("CORS_ORIGINS", "*"))

# Device protocol
QR_ALLOWLIST = split_list(
    os.getenv("QR_ALLOWLIST", "QR-ACCESS-001,QR-ACCESS-002,VISITOR-2025")
)
FEVER_THRESHOLD = float(os.getenv("FEVER_THRESHOLD", "38.0"))
LOGS_TAIL_SIZE = int(os.getenv("LOGS_TAIL_SIZE", 100))
