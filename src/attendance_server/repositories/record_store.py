import json
import os
import threading
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List

from attendance_server.shared.logger import app_logger

DEVICES = "devices"
LOGS = "logs"
USERS = "users"

COLLECTIONS = (DEVICES, LOGS, USERS)


class RecordStore:
    """
    JSON-file store for the devices, logs and users collections.

    Each collection is one JSON array in <data_dir>/<collection>.json. Reads
    are forgiving (missing or corrupt file -> empty list), writes go to a
    temp file that is then renamed over the target.
    """

    def __init__(self, data_dir: str):
        self.data_dir = data_dir
        self._locks = {name: threading.Lock() for name in COLLECTIONS}

    def path_for(self, collection: str) -> str:
        if collection not in COLLECTIONS:
            raise ValueError(f"Unknown collection: {collection}")
        return os.path.join(self.data_dir, f"{collection}.json")

    def initialize(self) -> None:
        """Create the data directory and seed missing collection files with []"""
        os.makedirs(self.data_dir, exist_ok=True)

        for collection in COLLECTIONS:
            path = self.path_for(collection)
            if not os.path.exists(path):
                self.save(collection, [])
                app_logger.info(f"[STORE] Created {path}")

        app_logger.info(f"[STORE] Data directory: {os.path.abspath(self.data_dir)}")

    def load(self, collection: str) -> List[Dict[str, Any]]:
        """
        Read a collection.

        Never raises for I/O or parse problems: a missing, empty, corrupt or
        non-array file is logged and treated as an empty collection.
        """
        path = self.path_for(collection)

        try:
            with open(path, "r", encoding="utf-8") as handle:
                content = handle.read()
        except FileNotFoundError:
            app_logger.warning(f"[STORE] {path} not found, using empty {collection}")
            return []
        except OSError as e:
            app_logger.error(f"[STORE] Failed to read {path}: {e}")
            return []

        if not content.strip():
            app_logger.warning(f"[STORE] {path} is empty, using empty {collection}")
            return []

        try:
            records = json.loads(content)
        except ValueError as e:
            app_logger.error(f"[STORE] Failed to parse {path}: {e}")
            return []

        if not isinstance(records, list):
            app_logger.error(
                f"[STORE] {path} does not hold a JSON array, using empty {collection}"
            )
            return []

        return records

    def save(self, collection: str, records: List[Dict[str, Any]]) -> None:
        """
        Write the whole collection atomically (temp file + os.replace).

        Errors propagate to the caller.
        """
        path = self.path_for(collection)
        tmp_path = f"{path}.tmp"

        os.makedirs(self.data_dir, exist_ok=True)
        try:
            with open(tmp_path, "w", encoding="utf-8") as handle:
                json.dump(records, handle, indent=2, ensure_ascii=False)
            os.replace(tmp_path, path)
        except Exception:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise

        app_logger.debug(f"[STORE] Saved {len(records)} {collection} to {path}")

    @contextmanager
    def locked(self, collection: str) -> Iterator[None]:
        """
        Serialize load/modify/save of one collection within this process.

        Example:
            >>> with store.locked("devices"):
            ...     devices = store.load("devices")
            ...     devices.append({"SN": "A1"})
            ...     store.save("devices", devices)
        """
        self.path_for(collection)
        with self._locks[collection]:
            yield
