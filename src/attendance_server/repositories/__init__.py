from attendance_server.repositories.record_store import (
    RecordStore,
    COLLECTIONS,
    DEVICES,
    LOGS,
    USERS,
)


def get_record_store() -> RecordStore:
    """Record store bound to the current Flask app"""
    from flask import current_app

    return current_app.extensions["record_store"]


__all__ = [
    "RecordStore",
    "COLLECTIONS",
    "DEVICES",
    "LOGS",
    "USERS",
    "get_record_store",
]
