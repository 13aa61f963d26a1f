"""
JSON persistence for the full task collection.

The file holds every task ever created, completed and deleted ones included,
as a pretty-printed JSON array. ``load``/``save`` never raise: a read failure
degrades to an empty collection, a write failure is logged and reported to
the caller as ``False``.
"""
import json
import logging
import os
from pathlib import Path

from .models import Task


class StorageError(Exception):
    pass


class StorageReadError(StorageError):
    pass


class StorageWriteError(StorageError):
    pass


class TaskStore:
    def __init__(self, path: Path = None):
        self.path = Path(path) if path else self.default_path()

    @staticmethod
    def default_path() -> Path:
        home = os.environ.get("HOME") or os.environ.get("USERPROFILE") or "."
        return Path(home) / ".local" / "share" / "tdui" / "todos.json"

    def read(self):
        if not self.path.exists():
            return []
        try:
            with self.path.open("r", encoding="utf-8") as f:
                records = json.load(f)
        except (OSError, ValueError) as e:
            raise StorageReadError(f"Error reading {self.path}: {e}") from e
        if not isinstance(records, list):
            raise StorageReadError(f"Expected a list of tasks in {self.path}, got {type(records).__name__}")
        try:
            return [Task.from_dict(record) for record in records]
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise StorageReadError(f"Malformed task record in {self.path}: {e}") from e

    def write(self, tasks):
        try:
            payload = json.dumps([t.to_dict() for t in tasks], indent=2, ensure_ascii=False)
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with self.path.open("w", encoding="utf-8") as f:
                f.write(payload)
        except (OSError, TypeError, ValueError) as e:
            raise StorageWriteError(f"Error writing {self.path}: {e}") from e

    def load(self):
        try:
            tasks = self.read()
        except StorageReadError as e:
            logging.error(f"{e}; starting with an empty task list")
            return []
        logging.info(f"Loaded {len(tasks)} tasks from {self.path}")
        return tasks

    def save(self, tasks) -> bool:
        try:
            self.write(tasks)
        except StorageWriteError as e:
            logging.error(str(e))
            return False
        logging.debug(f"Saved {len(tasks)} tasks to {self.path}")
        return True
