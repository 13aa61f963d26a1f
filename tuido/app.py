"""
Application state machine.

``App`` owns the task collections, the focus model (panel, tab) and the
current input mode, and decides for every key what changes. It never draws
and never reads the terminal; ``tuido.tui`` renders whatever state it holds.

Mode-specific data lives in ``App.session``: None in Normal mode, an
``EditSession`` while a task is being created or edited, a ``Confirmation``
while a complete/delete dialog is open. The input mode is derived from it,
so no buffer can outlive its mode.
"""
import logging
from datetime import datetime
from enum import Enum

from . import keys
from .calendar_nav import CalendarNavigator
from .models import Task, next_task_id, parse_due_date, sort_tasks, working_set
from .selection import Selection

EDIT_SCROLL_STEP = 3
# description rows shown by the edit overlay; auto-scroll keeps the last one in view
EDIT_VISIBLE_LINES = 10


class InputMode(Enum):
    NORMAL = "normal"
    EDITING_TITLE = "editing_title"
    EDITING_DESCRIPTION = "editing_description"
    EDITING_DATE = "editing_date"
    CONFIRM_COMPLETE = "confirm_complete"
    CONFIRM_DELETE = "confirm_delete"


class Panel(Enum):
    LIST = "List"
    CALENDAR = "Calendar"
    TASK = "Task"

    def next(self) -> "Panel":
        order = list(Panel)
        return order[(order.index(self) + 1) % len(order)]


class Tab(Enum):
    TASKS = "Tasks"
    STATS = "Stats"

    def next(self) -> "Tab":
        return Tab.STATS if self is Tab.TASKS else Tab.TASKS

    def previous(self) -> "Tab":
        return self.next()


class EditField(Enum):
    TITLE = "title"
    DESCRIPTION = "description"
    DATE = "date"

    def next(self) -> "EditField":
        order = list(EditField)
        return order[(order.index(self) + 1) % len(order)]


class ConfirmAction(Enum):
    COMPLETE = "complete"
    DELETE = "delete"


class EditSession:
    """Working copy of a task's fields; ``editing_id`` None means create."""

    def __init__(self, title="", description="", due_date=None, editing_id=None):
        self.field = EditField.TITLE
        self.title = title
        self.description = description
        self.due_date = due_date
        self.date_text = due_date.strftime("%Y-%m-%d") if due_date else ""
        self.editing_id = editing_id
        self.scroll = 0

    @classmethod
    def from_task(cls, task: Task) -> "EditSession":
        return cls(task.title, task.description, task.due_date, task.id)

    def scroll_up(self):
        self.scroll = max(0, self.scroll - EDIT_SCROLL_STEP)

    def scroll_down(self):
        self.scroll += EDIT_SCROLL_STEP

    def scroll_to_end(self):
        lines = self.description.count("\n") + 1
        self.scroll = lines - EDIT_VISIBLE_LINES + 1 if lines > EDIT_VISIBLE_LINES else 0


class Confirmation:
    def __init__(self, action: ConfirmAction, task_id: int):
        self.action = action
        self.task_id = task_id
        self.yes_selected = True

    def toggle(self):
        self.yes_selected = not self.yes_selected


EDIT_MODES = {
    EditField.TITLE: InputMode.EDITING_TITLE,
    EditField.DESCRIPTION: InputMode.EDITING_DESCRIPTION,
    EditField.DATE: InputMode.EDITING_DATE,
}

_CONFIRM_MODES = {
    ConfirmAction.COMPLETE: InputMode.CONFIRM_COMPLETE,
    ConfirmAction.DELETE: InputMode.CONFIRM_DELETE,
}


def _local_now() -> datetime:
    return datetime.now().astimezone()


class App:
    def __init__(self, store, clock=None):
        self.store = store
        self.clock = clock or _local_now
        # persisted collection; the working list shares its Task objects
        self.all_tasks = store.load()
        self.tasks = sort_tasks(working_set(self.all_tasks))
        self.selection = Selection.for_size(len(self.tasks))
        self.calendar = CalendarNavigator(anchor=self.today)
        self.focused_panel = Panel.LIST
        self.selected_tab = Tab.TASKS
        self.session = None
        self.notice = ""
        self.should_quit = False
        self._handlers = {
            InputMode.NORMAL: self._handle_normal,
            InputMode.EDITING_TITLE: self._handle_editing_title,
            InputMode.EDITING_DESCRIPTION: self._handle_editing_description,
            InputMode.EDITING_DATE: self._handle_editing_date,
            InputMode.CONFIRM_COMPLETE: self._handle_confirm,
            InputMode.CONFIRM_DELETE: self._handle_confirm,
        }

    # -----------------------------------------------------------------
    # Derived state
    # -----------------------------------------------------------------
    @property
    def now(self) -> datetime:
        return self.clock()

    @property
    def today(self):
        return self.clock().date()

    @property
    def input_mode(self) -> InputMode:
        if isinstance(self.session, EditSession):
            return EDIT_MODES[self.session.field]
        if isinstance(self.session, Confirmation):
            return _CONFIRM_MODES[self.session.action]
        return InputMode.NORMAL

    @property
    def selected_index(self):
        return self.selection.index

    @property
    def selected_task(self):
        return self.selection.current(self.tasks)

    def find_task(self, task_id):
        for task in self.all_tasks:
            if task.id == task_id:
                return task
        return None

    # -----------------------------------------------------------------
    # Focus
    # -----------------------------------------------------------------
    def next_panel(self):
        self.focused_panel = self.focused_panel.next()
        if self.focused_panel is Panel.CALENDAR:
            self.calendar.ensure_cursor(self.today)

    def next_tab(self):
        self.selected_tab = self.selected_tab.next()

    def previous_tab(self):
        self.selected_tab = self.selected_tab.previous()

    def quit(self):
        self.should_quit = True

    # -----------------------------------------------------------------
    # List selection and detail scrolling
    # -----------------------------------------------------------------
    def select_previous_task(self):
        self.selection.select_previous(len(self.tasks))

    def select_next_task(self):
        self.selection.select_next(len(self.tasks))

    def scroll_description_up(self):
        self.selection.scroll_up()

    def scroll_description_down(self):
        self.selection.scroll_down()

    # -----------------------------------------------------------------
    # Calendar
    # -----------------------------------------------------------------
    def select_previous_day(self):
        self.calendar.previous_day(self.today)

    def select_next_day(self):
        self.calendar.next_day(self.today)

    def select_day_above(self):
        self.calendar.day_above(self.today)

    def select_day_below(self):
        self.calendar.day_below(self.today)

    def reset_calendar_to_today(self):
        self.calendar.jump_to_today(self.today)

    # -----------------------------------------------------------------
    # Create / edit
    # -----------------------------------------------------------------
    def open_new_task(self, due_date=None):
        self.session = EditSession(due_date=due_date)

    def open_edit_task(self):
        task = self.selected_task
        if task is not None:
            self.session = EditSession.from_task(task)

    def close_edit(self):
        if isinstance(self.session, EditSession):
            self.session = None

    def scroll_edit_description_up(self):
        if isinstance(self.session, EditSession):
            self.session.scroll_up()

    def scroll_edit_description_down(self):
        if isinstance(self.session, EditSession):
            self.session.scroll_down()

    def save_edit(self):
        session = self.session
        if not isinstance(session, EditSession):
            return
        self.session = None
        if not session.title:
            return

        # a buffer that does not parse, empty included, keeps the previous date
        due_date = parse_due_date(session.date_text)
        if due_date is None:
            due_date = session.due_date
            if session.date_text.strip():
                logging.info(f"Ignoring invalid due date {session.date_text!r}")
                self.notice = f"Invalid date '{session.date_text}' ignored (use YYYY-MM-DD)"

        if session.editing_id is not None:
            task = self.find_task(session.editing_id)
            if task is None:
                logging.error(f"Edited task {session.editing_id} no longer exists")
                return
            task.title = session.title
            task.description = session.description
            task.due_date = due_date
            logging.info(f"Edited task {task.id}")
        else:
            task = Task.new(next_task_id(self.all_tasks), session.title,
                            session.description, due_date, now=self.now)
            self.all_tasks.append(task)
            self.tasks.append(task)
            logging.info(f"Created task {task.id}")

        sort_tasks(self.tasks)
        self.selection.select_id(self.tasks, task.id)
        self._persist()

    # -----------------------------------------------------------------
    # Complete / delete
    # -----------------------------------------------------------------
    def open_confirm(self, action: ConfirmAction):
        task = self.selected_task
        if task is not None:
            self.session = Confirmation(action, task.id)

    def close_confirm(self):
        if isinstance(self.session, Confirmation):
            self.session = None

    def toggle_confirm_choice(self):
        if isinstance(self.session, Confirmation):
            self.session.toggle()

    def confirm(self):
        session = self.session
        if not isinstance(session, Confirmation):
            return
        self.session = None
        if not session.yes_selected:
            return
        if session.action is ConfirmAction.COMPLETE:
            self.complete_task(session.task_id)
        else:
            self.delete_task(session.task_id)

    def complete_task(self, task_id):
        task = self.find_task(task_id)
        if task is not None:
            task.toggle_completed(self.now)
            logging.info(f"Completed task {task_id}")
            self._persist()
        self._drop_from_working(task_id)

    def delete_task(self, task_id):
        task = self.find_task(task_id)
        if task is not None:
            task.mark_deleted()
            logging.info(f"Deleted task {task_id}")
            self._persist()
        self._drop_from_working(task_id)

    def _drop_from_working(self, task_id):
        self.tasks = [t for t in self.tasks if t.id != task_id]
        self.selection.clamp(len(self.tasks))
        self.selection.detail_scroll = 0

    def _persist(self):
        if not self.store.save(self.all_tasks):
            self.notice = f"Could not save tasks to {self.store.path}; changes are only in memory"

    # -----------------------------------------------------------------
    # Key dispatch
    # -----------------------------------------------------------------
    def handle_key(self, key):
        if key is None or key.code == keys.RESIZE:
            return
        self.notice = ""
        self._handlers[self.input_mode](key)

    def _handle_normal(self, key):
        panel = self.focused_panel
        code = key.code
        if code == keys.CHAR and not (key.ctrl or key.alt):
            if key.char == "q":
                self.quit()
            elif key.char == "+":
                self.open_new_task(self.calendar.cursor if panel is Panel.CALENDAR else None)
            elif key.char == "d" and panel is Panel.LIST:
                self.open_confirm(ConfirmAction.COMPLETE)
            elif key.char == "-" and panel is Panel.LIST:
                self.open_confirm(ConfirmAction.DELETE)
            elif key.char == "t" and panel is Panel.CALENDAR:
                self.reset_calendar_to_today()
        elif code == keys.ESC:
            self.quit()
        elif code == keys.TAB and not key.shift:
            self.next_panel()
        elif code in (keys.LEFT, keys.RIGHT) and key.shift:
            if code == keys.LEFT:
                self.previous_tab()
            else:
                self.next_tab()
        elif code == keys.LEFT and panel is Panel.CALENDAR:
            self.select_previous_day()
        elif code == keys.RIGHT and panel is Panel.CALENDAR:
            self.select_next_day()
        elif code == keys.UP:
            if panel is Panel.LIST:
                self.select_previous_task()
            elif panel is Panel.CALENDAR:
                self.select_day_above()
            else:
                self.scroll_description_up()
        elif code == keys.DOWN:
            if panel is Panel.LIST:
                self.select_next_task()
            elif panel is Panel.CALENDAR:
                self.select_day_below()
            else:
                self.scroll_description_down()
        elif code == keys.ENTER:
            if panel is Panel.LIST and self.selected_task is not None:
                self.open_edit_task()
            elif panel is Panel.CALENDAR:
                self.open_new_task(self.calendar.cursor)

    def _handle_edit_common(self, key) -> bool:
        """Keys shared by the three edit fields; True if ``key`` was consumed."""
        session = self.session
        if key.code == keys.TAB and not key.shift:
            session.field = session.field.next()
        elif key.code == keys.ENTER and not key.alt:
            self.save_edit()
        elif key.code == keys.ESC:
            self.close_edit()
        else:
            return False
        return True

    def _handle_editing_title(self, key):
        if self._handle_edit_common(key):
            return
        session = self.session
        if key.code == keys.CHAR and not (key.ctrl or key.alt):
            session.title += key.char
        elif key.code == keys.BACKSPACE:
            session.title = session.title[:-1]

    def _handle_editing_description(self, key):
        session = self.session
        if key.code == keys.ENTER and key.alt:
            session.description += "\n"
            session.scroll_to_end()
            return
        if self._handle_edit_common(key):
            return
        if key.code == keys.CHAR and key.ctrl and key.char == "u":
            self.scroll_edit_description_up()
        elif key.code == keys.CHAR and key.ctrl and key.char == "d":
            self.scroll_edit_description_down()
        elif key.code == keys.CHAR and not (key.ctrl or key.alt):
            session.description += key.char
            session.scroll_to_end()
        elif key.code == keys.BACKSPACE:
            session.description = session.description[:-1]
            session.scroll_to_end()
        elif key.code == keys.PAGE_UP:
            self.scroll_edit_description_up()
        elif key.code == keys.PAGE_DOWN:
            self.scroll_edit_description_down()

    def _handle_editing_date(self, key):
        if self._handle_edit_common(key):
            return
        session = self.session
        if key.code == keys.CHAR and not (key.ctrl or key.alt):
            if (key.char.isdigit() and key.char.isascii()) or key.char == "-":
                session.date_text += key.char
        elif key.code == keys.BACKSPACE:
            session.date_text = session.date_text[:-1]

    def _handle_confirm(self, key):
        if key.code in (keys.TAB, keys.LEFT, keys.RIGHT):
            self.toggle_confirm_choice()
        elif key.code == keys.ENTER:
            self.confirm()
        elif key.code == keys.ESC:
            self.close_confirm()
