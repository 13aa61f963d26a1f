"""
Task entity and the display ordering policy.

A task is never physically removed: completion and deletion are flag flips on
the persisted record, and the "working set" shown in the list, calendar and
detail panels is a plain filter over the full collection.
"""
import re
from datetime import date, datetime, timezone

DATE_FORMAT = "%Y-%m-%d"
TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"

# stored timestamps may carry nine fractional digits; datetime only keeps six
_FRACTION_RE = re.compile(r"(\.\d{6})\d+")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def parse_due_date(text):
    """Parse a YYYY-MM-DD string, returning None if it does not parse."""
    if not text:
        return None
    try:
        return datetime.strptime(text.strip(), DATE_FORMAT).date()
    except ValueError:
        return None


def format_timestamp(value: datetime) -> str:
    return value.astimezone(timezone.utc).strftime(TIMESTAMP_FORMAT)


def parse_timestamp(text: str) -> datetime:
    """Parse an ISO 8601 timestamp into an aware UTC datetime.

    Accepts a trailing ``Z``, explicit offsets, naive values (taken as UTC)
    and more than six fractional digits.
    """
    cleaned = text.strip()
    if cleaned.endswith(("Z", "z")):
        cleaned = cleaned[:-1] + "+00:00"
    cleaned = _FRACTION_RE.sub(r"\1", cleaned)
    value = datetime.fromisoformat(cleaned)
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class Task:
    def __init__(self, id: int, title: str, description: str = "",
                 completed: bool = False, deleted: bool = False,
                 created_at: datetime = None, due_date: date = None,
                 completed_at: datetime = None):
        self.id = id
        self.title = title
        self.description = description
        self.completed = completed
        self.deleted = deleted
        self.created_at = created_at or utc_now()
        self.due_date = due_date
        self.completed_at = completed_at

    @classmethod
    def new(cls, id: int, title: str, description: str = "", due_date: date = None,
            now: datetime = None) -> "Task":
        return cls(id=id, title=title, description=description,
                   created_at=(now or utc_now()).astimezone(timezone.utc), due_date=due_date)

    def __repr__(self):
        return (f"Task(id={self.id}, title={self.title!r}, due_date={self.due_date}, "
                f"completed={self.completed}, deleted={self.deleted})")

    def __eq__(self, other):
        if not isinstance(other, Task):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    __hash__ = None

    @property
    def is_active(self) -> bool:
        return not self.completed and not self.deleted

    def toggle_completed(self, now: datetime = None):
        self.completed = not self.completed
        self.completed_at = (now or utc_now()).astimezone(timezone.utc) if self.completed else None

    def mark_deleted(self):
        self.deleted = True

    def is_overdue(self, today: date) -> bool:
        return self.due_date is not None and not self.completed and self.due_date < today

    def is_due_today(self, today: date) -> bool:
        return self.due_date is not None and not self.completed and self.due_date == today

    def display_string(self) -> str:
        if self.due_date:
            return f"{self.title} (Due: {self.due_date.strftime(DATE_FORMAT)})"
        return self.title

    # -----------------------------------------------------------------
    # On-disk record
    # -----------------------------------------------------------------
    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "completed": self.completed,
            "deleted": self.deleted,
            "created_at": format_timestamp(self.created_at),
            "due_date": self.due_date.strftime(DATE_FORMAT) if self.due_date else None,
            "completed_at": format_timestamp(self.completed_at) if self.completed_at else None,
        }

    @classmethod
    def from_dict(cls, record: dict) -> "Task":
        """Build a task from a stored record.

        Raises KeyError/ValueError/TypeError on a malformed record; the
        storage layer turns those into a read error.
        """
        due = record.get("due_date")
        completed_at = record.get("completed_at")
        task_id = int(record["id"])
        if task_id < 1:
            raise ValueError(f"task id must be positive, got {task_id}")
        return cls(
            id=task_id,
            title=str(record["title"]),
            description=str(record.get("description") or ""),
            completed=bool(record.get("completed", False)),
            deleted=bool(record.get("deleted", False)),
            created_at=parse_timestamp(record["created_at"]),
            due_date=datetime.strptime(due, DATE_FORMAT).date() if due else None,
            completed_at=parse_timestamp(completed_at) if completed_at else None,
        )


def next_task_id(tasks) -> int:
    return max((t.id for t in tasks), default=0) + 1


def working_set(tasks):
    return [t for t in tasks if t.is_active]


# ---------------------------------------------------------------------
# ORDERING POLICY
# ---------------------------------------------------------------------
def task_sort_key(task: Task):
    # dated tasks first; date.min only fills the slot for undated tasks
    return (task.due_date is None, task.due_date or date.min, task.created_at)


def compare_tasks(a: Task, b: Task) -> int:
    ka, kb = task_sort_key(a), task_sort_key(b)
    return (ka > kb) - (ka < kb)


def sort_tasks(tasks: list) -> list:
    """Stable in-place sort of ``tasks`` for display; returns the same list."""
    tasks.sort(key=task_sort_key)
    return tasks
