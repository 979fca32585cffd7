"""File-backed local snapshot cache."""
import json
import logging
import os
import tempfile
from typing import Any, Optional

logger = logging.getLogger(__name__)


class FileSnapshotCache:
    """Key-value cache storing one JSON file per key.

    Reads and writes never raise; failures are logged and reported as
    None / False.
    """

    def __init__(self, directory: str):
        self.directory = directory

    def _path(self, key: str) -> str:
        safe_key = "".join(c if c.isalnum() or c in "-_." else "_" for c in key)
        return os.path.join(self.directory, f"{safe_key}.json")

    def read(self, key: str) -> Optional[Any]:
        """Return the decoded snapshot stored under key, or None."""
        path = self._path(key)
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
            logger.info(f"Local cache hit: {key}")
            return data
        except FileNotFoundError:
            logger.info(f"Local cache miss: {key}")
            return None
        except (OSError, ValueError) as e:
            logger.error(f"Failed to read local cache {path}: {e}")
            return None

    def write(self, key: str, data: Any) -> bool:
        """Atomically replace the snapshot stored under key."""
        path = self._path(key)
        try:
            os.makedirs(self.directory, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=self.directory, suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(data, f)
                os.replace(tmp_path, path)
            except BaseException:
                if os.path.exists(tmp_path):
                    os.remove(tmp_path)
                raise
            return True
        except (OSError, TypeError, ValueError) as e:
            logger.error(f"Failed to write local cache {path}: {e}")
            return False

    def close(self):
        """Nothing to release for files."""

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
