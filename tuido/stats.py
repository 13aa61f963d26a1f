"""
Statistics for the Stats tab. Every function takes ``today`` explicitly.
"""
from collections import defaultdict
from datetime import date, timedelta

SPARK_CHARS = " ▁▂▃▄▅▆▇█"


def summarize(all_tasks, working, today: date) -> dict:
    return {
        "overdue": sum(1 for t in working if t.is_overdue(today)),
        "todo": len(working),
        "done": sum(1 for t in all_tasks if t.completed),
        "deleted": sum(1 for t in all_tasks if t.deleted),
    }


def daily_series(all_tasks, today: date, days: int = 90) -> dict:
    """Per-day created/overdue/completed counts, oldest day first."""
    start = today - timedelta(days=days)
    created = defaultdict(int)
    completed = defaultdict(int)
    for task in all_tasks:
        created[task.created_at.date()] += 1
        if task.completed_at:
            completed[task.completed_at.date()] += 1

    series = {"created": [], "overdue": [], "completed": []}
    for offset in range(days + 1):
        day = start + timedelta(days=offset)
        series["created"].append(created.get(day, 0))
        series["completed"].append(completed.get(day, 0))
        # past due on this day and not completed before it
        series["overdue"].append(sum(
            1 for t in all_tasks
            if t.due_date and t.due_date < day
            and (t.completed_at is None or t.completed_at.date() >= day)
        ))
    return series


def mean_time_to_done(all_tasks):
    spans = [t.completed_at - t.created_at for t in all_tasks if t.completed and t.completed_at]
    if not spans:
        return None
    return sum(spans, timedelta()) / len(spans)


def format_duration(span: timedelta) -> str:
    if span is None:
        return "n/a"
    hours = int(span.total_seconds() // 3600)
    days, hours = divmod(hours, 24)
    if days:
        return f"{days}d {hours}h"
    minutes = int(span.total_seconds() // 60) % 60
    return f"{hours}h {minutes}m"


def sparkline(values, width: int) -> str:
    """Render ``values`` in ``width`` cells, bucketing by max when narrower."""
    if not values or width <= 0:
        return ""
    if len(values) > width:
        size = len(values) / width
        values = [max(values[int(i * size):max(int((i + 1) * size), int(i * size) + 1)])
                  for i in range(width)]
    peak = max(values)
    if peak == 0:
        return SPARK_CHARS[0] * len(values)
    top = len(SPARK_CHARS) - 1
    return "".join(SPARK_CHARS[round(v / peak * top)] for v in values)
