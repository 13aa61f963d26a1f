"""
Calendar cursor movement and the three-month visible window.

The window is (previous, current, next) month around ``anchor``. Steps are a
day or a week, so a one-month anchor correction after each move is always
enough to keep the cursor visible.
"""
from datetime import date, timedelta


def previous_month(d: date) -> date:
    if d.month == 1:
        return date(d.year - 1, 12, 1)
    return date(d.year, d.month - 1, 1)


def next_month(d: date) -> date:
    if d.month == 12:
        return date(d.year + 1, 1, 1)
    return date(d.year, d.month + 1, 1)


def visible_months(anchor: date):
    prev, nxt = previous_month(anchor), next_month(anchor)
    return [(prev.year, prev.month), (anchor.year, anchor.month), (nxt.year, nxt.month)]


class CalendarNavigator:
    def __init__(self, anchor: date, cursor: date = None):
        self.anchor = anchor
        self.cursor = cursor

    def contains(self, d: date) -> bool:
        return (d.year, d.month) in visible_months(self.anchor)

    def ensure_cursor(self, today: date):
        if self.cursor is None:
            self.cursor = today

    def move(self, days: int, today: date):
        # an unset cursor lands on today rather than moving
        if self.cursor is None:
            self.cursor = today
            return
        self.cursor += timedelta(days=days)
        self.follow_cursor()

    def previous_day(self, today: date):
        self.move(-1, today)

    def next_day(self, today: date):
        self.move(1, today)

    def day_above(self, today: date):
        self.move(-7, today)

    def day_below(self, today: date):
        self.move(7, today)

    def follow_cursor(self):
        if self.cursor is None:
            return
        first, _, last = visible_months(self.anchor)
        selected = (self.cursor.year, self.cursor.month)
        if selected < first:
            self.anchor = previous_month(self.anchor)
        elif selected > last:
            self.anchor = next_month(self.anchor)

    def jump_to_today(self, today: date):
        self.anchor = today
        self.cursor = today


def due_marks(tasks, today: date) -> dict:
    """Map each due date among ``tasks`` to True if a task due then is overdue."""
    marks = {}
    for task in tasks:
        if task.due_date:
            marks[task.due_date] = marks.get(task.due_date, False) or task.is_overdue(today)
    return marks
