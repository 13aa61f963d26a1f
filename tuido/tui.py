"""
Curses front end for tuido.

Layout (Tasks tab):
  - Left third: the task list, overdue tasks in red, tasks due today in yellow.
  - Right top: a three-month calendar (previous/current/next month around the
    anchor) with due dates marked and the day cursor highlighted.
  - Right bottom: details of the selected task with a scrollable description.
The Stats tab shows overdue/todo/done/deleted counts, 90-day trends and the
mean time from creation to completion.

Everything here only reads ``App`` state; all mutations go through
``App.handle_key``.
"""
import calendar
import curses
import logging
import os
import sys
import textwrap
from pathlib import Path

from .app import EDIT_MODES, EDIT_VISIBLE_LINES, App, Confirmation, ConfirmAction, EditField, EditSession, InputMode, Panel, Tab
from .calendar_nav import due_marks, visible_months
from .config import load_config, setup_logging
from .keys import read_key
from .stats import daily_series, format_duration, mean_time_to_done, sparkline, summarize
from .storage import TaskStore

MIN_HEIGHT = 15
MIN_WIDTH = 60
MONTH_WIDTH = 20

FOOTER_HELP = " + new  d done  - delete  tab panels  t today  shift+←/→ tabs  q quit "
EDIT_HELP = "Tab: next field | Enter: save | Alt+Enter: newline | PgUp/PgDn: scroll | Esc: cancel"
CONFIRM_HELP = "Tab/Left/Right: switch | Enter: confirm | Esc: cancel"


# ---------------------------------------------------------------------
# DRAWING HELPERS
# ---------------------------------------------------------------------
def put(stdscr, y, x, text, width, attr=curses.A_NORMAL):
    if width <= 0:
        return
    try:
        stdscr.addnstr(y, x, text, width, attr)
    except curses.error:
        pass


def draw_box(stdscr, y, x, h, w, title="", attr=curses.A_NORMAL):
    if h < 2 or w < 2:
        return
    corners = ((y, x, curses.ACS_ULCORNER), (y, x + w - 1, curses.ACS_URCORNER),
               (y + h - 1, x, curses.ACS_LLCORNER), (y + h - 1, x + w - 1, curses.ACS_LRCORNER))
    try:
        stdscr.hline(y, x + 1, curses.ACS_HLINE | attr, w - 2)
        stdscr.hline(y + h - 1, x + 1, curses.ACS_HLINE | attr, w - 2)
        stdscr.vline(y + 1, x, curses.ACS_VLINE | attr, h - 2)
        stdscr.vline(y + 1, x + w - 1, curses.ACS_VLINE | attr, h - 2)
    except curses.error:
        pass
    for cy, cx, ch in corners:
        try:
            stdscr.addch(cy, cx, ch | attr)
        except curses.error:
            # writing the bottom-right cell of the screen always errors
            pass
    if title:
        put(stdscr, y, x + 2, f" {title} ", w - 4, attr | curses.A_BOLD)


def clear_area(stdscr, y, x, h, w):
    for row in range(h):
        put(stdscr, y + row, x, " " * w, w)


def centered_rect(height, width, percent_y, percent_x):
    h = max(3, height * percent_y // 100)
    w = max(10, width * percent_x // 100)
    return (height - h) // 2, (width - w) // 2, h, w


def wrap_text(text: str, width: int):
    lines = []
    for paragraph in text.split("\n"):
        lines.extend(textwrap.wrap(paragraph, max(1, width)) or [""])
    return lines


def draw_single_month(stdscr, cal, year, month, start_y, start_x, marks, today, cursor=None):
    """Draw one month grid; ``marks`` maps dates to an attribute for due days."""
    title = f"{calendar.month_name[month]} {year}"
    put(stdscr, start_y, start_x, title.center(MONTH_WIDTH), MONTH_WIDTH, curses.A_BOLD)
    put(stdscr, start_y + 1, start_x, " ".join(calendar.day_abbr[(cal.firstweekday + i) % 7][:2]
                                               for i in range(7)), MONTH_WIDTH, curses.A_BOLD)
    for row, week in enumerate(cal.monthdatescalendar(year, month)):
        for col, day in enumerate(week):
            if day.month != month:
                continue
            attr = marks.get(day, curses.A_NORMAL)
            if day == today:
                attr = curses.color_pair(2) | curses.A_BOLD
            if cursor is not None and day == cursor:
                attr = curses.color_pair(7) | curses.A_BOLD
            put(stdscr, start_y + 2 + row, start_x + col * 3, f"{day.day:2}", 2, attr)


# ---------------------------------------------------------------------
# TUIDO TUI CLASS
# ---------------------------------------------------------------------
class TodoTUI:
    def __init__(self, stdscr, app: App, config: dict = None):
        config = config or {}
        self.stdscr = stdscr
        self.app = app
        self.poll_interval = int(config.get("poll_interval_ms", 100))
        first = calendar.MONDAY if str(config.get("first_weekday", "sunday")).lower() == "monday" else calendar.SUNDAY
        self.cal = calendar.Calendar(first)
        curses.curs_set(0)
        curses.start_color()
        curses.use_default_colors()
        curses.init_pair(1, curses.COLOR_CYAN, -1)                    # focused borders
        curses.init_pair(2, curses.COLOR_BLACK, curses.COLOR_CYAN)    # today
        curses.init_pair(3, curses.COLOR_GREEN, -1)                   # completed
        curses.init_pair(5, curses.COLOR_RED, -1)                     # overdue / errors
        curses.init_pair(6, curses.COLOR_YELLOW, -1)                  # due today
        curses.init_pair(7, curses.COLOR_WHITE, curses.COLOR_BLUE)    # calendar cursor
        self.stdscr.keypad(True)

    def run(self):
        while not self.app.should_quit:
            self.draw()
            try:
                key = read_key(self.stdscr, self.poll_interval)
            except KeyboardInterrupt:
                logging.info("Interrupted, quitting")
                break
            self.app.handle_key(key)

    def draw(self):
        self.stdscr.erase()
        height, width = self.stdscr.getmaxyx()
        if height < MIN_HEIGHT or width < MIN_WIDTH:
            self.display_minimum_size_warning(height, width)
            self.stdscr.refresh()
            return
        self.draw_tabs(width)
        if self.app.selected_tab is Tab.TASKS:
            self.draw_tasks_tab(1, 0, height - 2, width)
        else:
            self.draw_stats_tab(1, 0, height - 2, width)
        session = self.app.session
        if isinstance(session, EditSession):
            self.draw_edit_panel(height, width, session)
        elif isinstance(session, Confirmation):
            self.draw_confirm_panel(height, width, session)
        self.display_footer(height, width)
        self.stdscr.refresh()

    def display_minimum_size_warning(self, height, width):
        warning = "Terminal too small. Resize or press 'q' to quit."
        put(self.stdscr, height // 2, max(0, (width - len(warning)) // 2), warning, width, curses.A_BOLD)

    def border_attr(self, panel: Panel):
        return curses.color_pair(1) | curses.A_BOLD if self.app.focused_panel is panel else curses.A_NORMAL

    def draw_tabs(self, width):
        x = 1
        for tab in Tab:
            label = f" {tab.value} "
            attr = curses.A_REVERSE | curses.A_BOLD if tab is self.app.selected_tab else curses.A_NORMAL
            put(self.stdscr, 0, x, label, width - x, attr)
            x += len(label) + 1
        status = f" Focus: {self.app.focused_panel.value} | Mode: {self.app.input_mode.value} "
        put(self.stdscr, 0, max(x, width - len(status) - 1), status, width - x, curses.A_DIM)

    def display_footer(self, height, width):
        if self.app.notice:
            put(self.stdscr, height - 1, 0, f" {self.app.notice} ".ljust(width), width - 1,
                curses.color_pair(5) | curses.A_BOLD)
        else:
            put(self.stdscr, height - 1, 0, FOOTER_HELP, width - 1, curses.color_pair(1))

    # -----------------------------------------------------------------
    # TASKS TAB
    # -----------------------------------------------------------------
    def draw_tasks_tab(self, y, x, h, w):
        list_w = w // 3
        right_w = w - list_w
        cal_h = max(10, h // 3)
        self.draw_task_list(y, x, h, list_w)
        self.draw_calendar(y, x + list_w, cal_h, right_w)
        self.draw_task_details(y + cal_h, x + list_w, h - cal_h, right_w)

    def draw_task_list(self, y, x, h, w):
        draw_box(self.stdscr, y, x, h, w, "List", self.border_attr(Panel.LIST))
        inner_h, inner_w = h - 2, w - 2
        tasks = self.app.tasks
        selected = self.app.selected_index
        if not tasks:
            put(self.stdscr, y + 1, x + 1, "No tasks. Press + to add one.", inner_w, curses.A_DIM)
            return
        offset = max(0, selected - inner_h + 1) if selected is not None else 0
        today = self.app.today
        for row, task in enumerate(tasks[offset:offset + inner_h]):
            idx = row + offset
            attr = curses.A_NORMAL
            if task.is_overdue(today):
                attr = curses.color_pair(5)
            elif task.is_due_today(today):
                attr = curses.color_pair(6)
            prefix = ">> " if idx == selected else "   "
            if idx == selected:
                attr |= curses.A_BOLD
            put(self.stdscr, y + 1 + row, x + 1, f"{prefix}{idx + 1}. {task.display_string()}", inner_w, attr)

    def draw_calendar(self, y, x, h, w):
        draw_box(self.stdscr, y, x, h, w, "Calendar", self.border_attr(Panel.CALENDAR))
        today = self.app.today
        marks = {day: curses.color_pair(5) | curses.A_BOLD if overdue else curses.color_pair(6)
                 for day, overdue in due_marks(self.app.tasks, today).items()}
        cursor = self.app.calendar.cursor if self.app.focused_panel is Panel.CALENDAR else None
        months = visible_months(self.app.calendar.anchor)
        fits = max(1, (w - 2) // (MONTH_WIDTH + 2))
        if fits < len(months):
            # keep the anchor month when the panel cannot show all three
            months = months[1:1 + fits]
        total = len(months) * (MONTH_WIDTH + 2) - 2
        start_x = x + max(1, (w - total) // 2)
        for i, (year, month) in enumerate(months):
            draw_single_month(self.stdscr, self.cal, year, month, y + 1,
                              start_x + i * (MONTH_WIDTH + 2), marks, today, cursor)

    def draw_task_details(self, y, x, h, w):
        draw_box(self.stdscr, y, x, h, w, "Task", self.border_attr(Panel.TASK))
        inner_w = w - 4
        task = self.app.selected_task
        if task is None:
            put(self.stdscr, y + 1, x + 2, "No task selected", inner_w, curses.A_DIM)
            return
        put(self.stdscr, y + 1, x + 2, task.title, inner_w, curses.A_BOLD)
        due = task.due_date.strftime("%Y-%m-%d") if task.due_date else "None"
        due_attr = curses.color_pair(5) if task.is_overdue(self.app.today) else curses.A_NORMAL
        put(self.stdscr, y + 2, x + 2, f"Due: {due}", inner_w, due_attr)
        created = task.created_at.astimezone().strftime("%Y-%m-%d %H:%M")
        put(self.stdscr, y + 3, x + 2, f"Created: {created}", inner_w)
        if task.completed:
            put(self.stdscr, y + 4, x + 2, "Status: ✓ Completed", inner_w, curses.color_pair(3))
        else:
            put(self.stdscr, y + 4, x + 2, "Status: ○ Pending", inner_w, curses.color_pair(6))
        put(self.stdscr, y + 6, x + 2, "Description:", inner_w, curses.A_UNDERLINE)
        available = h - 8
        lines = wrap_text(task.description, inner_w)
        scroll = self.app.selection.detail_scroll
        for row, line in enumerate(lines[scroll:scroll + available]):
            put(self.stdscr, y + 7 + row, x + 2, line, inner_w)

    # -----------------------------------------------------------------
    # STATS TAB
    # -----------------------------------------------------------------
    def draw_stats_tab(self, y, x, h, w):
        today = self.app.today
        counts = summarize(self.app.all_tasks, self.app.tasks, today)
        row_h = max(3, h // 3)
        cell_w = w // 4
        panels = [("Overdue", "overdue"), ("ToDo", "todo"), ("Done", "done"), ("Deleted", "deleted")]
        for i, (label, name) in enumerate(panels):
            px = x + i * cell_w
            pw = cell_w if i < 3 else w - 3 * cell_w
            draw_box(self.stdscr, y, px, row_h, pw, label, curses.color_pair(1))
            value = counts[name]
            if name == "overdue" and value > 0:
                attr = curses.color_pair(5) | curses.A_BOLD
            elif name == "todo":
                attr = curses.color_pair(6) | curses.A_BOLD
            else:
                attr = curses.color_pair(1) | curses.A_BOLD
            text = str(value)
            put(self.stdscr, y + row_h // 2, px + max(1, (pw - len(text)) // 2), text, pw - 2, attr)

        chart_y = y + row_h
        chart_h = max(5, h - 2 * row_h)
        draw_box(self.stdscr, chart_y, x, chart_h, w, "Last 90 days", curses.color_pair(1))
        series = daily_series(self.app.all_tasks, today)
        label_w = 12
        spark_w = w - label_w - 4
        rows = [("Created", "created", curses.color_pair(6)),
                ("Overdue", "overdue", curses.color_pair(5)),
                ("Completed", "completed", curses.color_pair(1))]
        for i, (label, name, attr) in enumerate(rows):
            line_y = chart_y + 1 + i * 2
            if line_y >= chart_y + chart_h - 1:
                break
            put(self.stdscr, line_y, x + 2, f"{label:<{label_w}}", label_w)
            put(self.stdscr, line_y, x + 2 + label_w, sparkline(series[name], spark_w), spark_w, attr)

        mean_y = chart_y + chart_h
        mean_h = max(3, y + h - mean_y)
        draw_box(self.stdscr, mean_y, x, mean_h, w, "Mean time to Done", curses.color_pair(1))
        text = format_duration(mean_time_to_done(self.app.all_tasks))
        put(self.stdscr, mean_y + mean_h // 2, x + max(1, (w - len(text)) // 2), text, w - 2, curses.A_BOLD)

    # -----------------------------------------------------------------
    # OVERLAYS
    # -----------------------------------------------------------------
    def draw_edit_panel(self, height, width, session: EditSession):
        y, x, h, w = centered_rect(height, width, 70, 70)
        clear_area(self.stdscr, y, x, h, w)
        title = "Edit Task" if session.editing_id is not None else "New Task"
        draw_box(self.stdscr, y, x, h, w, title, curses.color_pair(1) | curses.A_BOLD)
        inner_w = w - 4
        mode = self.app.input_mode

        def label_attr(field):
            active = EDIT_MODES[field] is mode
            return curses.color_pair(6) | curses.A_BOLD if active else curses.A_BOLD

        put(self.stdscr, y + 1, x + 2, "Title:", inner_w, label_attr(EditField.TITLE))
        put(self.stdscr, y + 2, x + 2, session.title.ljust(inner_w), inner_w,
            curses.A_REVERSE if mode is InputMode.EDITING_TITLE else curses.A_NORMAL)

        put(self.stdscr, y + 4, x + 2, "Description:", inner_w, label_attr(EditField.DESCRIPTION))
        desc_h = max(1, min(EDIT_VISIBLE_LINES, h - 11))
        lines = session.description.split("\n")
        for row, line in enumerate(lines[session.scroll:session.scroll + desc_h]):
            put(self.stdscr, y + 5 + row, x + 2, line, inner_w,
                curses.A_REVERSE if mode is InputMode.EDITING_DESCRIPTION else curses.A_NORMAL)

        date_y = y + 5 + desc_h + 1
        put(self.stdscr, date_y, x + 2, "Due date (YYYY-MM-DD):", inner_w, label_attr(EditField.DATE))
        put(self.stdscr, date_y + 1, x + 2, session.date_text.ljust(12), inner_w,
            curses.A_REVERSE if mode is InputMode.EDITING_DATE else curses.A_NORMAL)
        put(self.stdscr, y + h - 2, x + 2, EDIT_HELP, inner_w, curses.A_DIM)

    def draw_confirm_panel(self, height, width, session: Confirmation):
        y, x, h, w = centered_rect(height, width, 30, 50)
        h = max(h, 7)
        clear_area(self.stdscr, y, x, h, w)
        task = self.app.find_task(session.task_id)
        if session.action is ConfirmAction.COMPLETE:
            title, question, color = "Done", "Mark this task as done?", curses.color_pair(3)
        else:
            title, question, color = "Delete", "Delete this task?", curses.color_pair(5)
        draw_box(self.stdscr, y, x, h, w, title, color | curses.A_BOLD)
        inner_w = w - 4
        put(self.stdscr, y + 1, x + 2, question.center(inner_w), inner_w, curses.A_BOLD)
        if task is not None:
            put(self.stdscr, y + 2, x + 2, task.title.center(inner_w), inner_w)
        yes_attr = curses.A_REVERSE | color if session.yes_selected else curses.A_NORMAL
        no_attr = curses.A_NORMAL if session.yes_selected else curses.A_REVERSE | color
        mid = x + w // 2
        put(self.stdscr, y + h - 3, mid - 9, "[ Yes ]", 7, yes_attr)
        put(self.stdscr, y + h - 3, mid + 2, "[ No ]", 6, no_attr)
        put(self.stdscr, y + h - 2, x + 2, CONFIRM_HELP.center(inner_w), inner_w, curses.A_DIM)


# ---------------------------------------------------------------------
# MAIN FUNCTION
# ---------------------------------------------------------------------
def main():
    config = load_config()
    setup_logging(config)
    # Alt chords arrive as ESC + key; keep lone Esc responsive
    os.environ.setdefault("ESCDELAY", "25")
    store = TaskStore(Path(config["data_file"]).expanduser())

    def start(stdscr):
        TodoTUI(stdscr, App(store), config).run()

    try:
        curses.wrapper(start)
    except Exception as e:
        logging.critical(f"Unhandled exception: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
