"""
Tests for the application state machine, driven through handle_key the same
way the curses loop drives it.
"""
import random
from datetime import date

import pytest

from conftest import make_task
from tuido import keys
from tuido.app import (EDIT_VISIBLE_LINES, App, ConfirmAction, Confirmation, EditField, EditSession,
                       InputMode, Panel, Tab)
from tuido.keys import Key
from tuido.storage import TaskStore

TODAY = date(2024, 6, 15)

ENTER = Key(keys.ENTER)
ALT_ENTER = Key(keys.ENTER, alt=True)
TAB = Key(keys.TAB)
ESC = Key(keys.ESC)
BACKSPACE = Key(keys.BACKSPACE)
UP = Key(keys.UP)
DOWN = Key(keys.DOWN)
LEFT = Key(keys.LEFT)
RIGHT = Key(keys.RIGHT)


def press(app, *pressed):
    for key in pressed:
        if isinstance(key, str):
            for char in key:
                app.handle_key(Key.of(char))
        else:
            app.handle_key(key)


def ids(tasks):
    return [t.id for t in tasks]


class FailingStore(TaskStore):
    def save(self, tasks):
        return False


# ---------------------------------------------------------------------
# Startup
# ---------------------------------------------------------------------
def test_empty_start(make_app):
    app = make_app()
    assert app.tasks == []
    assert app.selected_index is None
    assert app.input_mode is InputMode.NORMAL
    assert app.focused_panel is Panel.LIST
    assert app.selected_tab is Tab.TASKS
    assert app.calendar.anchor == TODAY
    assert app.calendar.cursor is None


def test_start_filters_and_sorts(make_app):
    app = make_app([
        make_task(1),
        make_task(2, due="2024-07-01"),
        make_task(3, due="2024-05-01", completed=True),
        make_task(4, due="2024-06-01", deleted=True),
        make_task(5, due="2024-06-20"),
    ])
    assert ids(app.tasks) == [5, 2, 1]
    assert ids(app.all_tasks) == [1, 2, 3, 4, 5]
    assert app.selected_index == 0


# ---------------------------------------------------------------------
# Create / edit
# ---------------------------------------------------------------------
def test_create_with_earlier_due_date_sorts_first(make_app, store):
    app = make_app([make_task(1, due="2024-06-01"), make_task(2)])
    press(app, "+")
    assert app.input_mode is InputMode.EDITING_TITLE
    press(app, "third", TAB, TAB, "2024-05-01", ENTER)
    assert app.input_mode is InputMode.NORMAL
    assert ids(app.tasks) == [3, 1, 2]
    assert app.selected_task.id == 3
    assert ids(store.read()) == [1, 2, 3]


def test_new_task_fields(make_app, clock, store):
    app = make_app()
    press(app, "+", "buy milk", TAB, "two", ALT_ENTER, "lines", ENTER)
    [task] = app.tasks
    assert task.id == 1
    assert task.title == "buy milk"
    assert task.description == "two\nlines"
    assert task.due_date is None
    assert task.created_at == clock()
    assert not task.completed and not task.deleted
    assert store.read() == [task]


def test_empty_title_is_not_saved(make_app, store):
    app = make_app([make_task(1, due="2024-06-01")])
    before = [t.to_dict() for t in app.tasks]
    press(app, "+", TAB, "description only", ENTER)
    assert app.input_mode is InputMode.NORMAL
    assert [t.to_dict() for t in app.tasks] == before
    assert app.notice == ""


def test_empty_title_on_edit_keeps_task(make_app):
    app = make_app([make_task(1, "keep me")])
    press(app, ENTER)
    for _ in "keep me":
        press(app, BACKSPACE)
    press(app, ENTER)
    assert app.tasks[0].title == "keep me"


def test_escape_cancels_edit(make_app):
    app = make_app([make_task(1, "orig")])
    press(app, ENTER, "changed", ESC)
    assert app.input_mode is InputMode.NORMAL
    assert app.session is None
    assert app.tasks[0].title == "orig"
    assert not app.should_quit


def test_edit_in_place_reselects_moved_task(make_app, store):
    app = make_app([make_task(1, due="2024-06-01"), make_task(2, due="2024-06-10")])
    press(app, ENTER)
    assert isinstance(app.session, EditSession)
    assert app.session.editing_id == 1
    assert app.session.date_text == "2024-06-01"
    press(app, TAB, TAB)
    for _ in range(2):
        press(app, BACKSPACE)
    press(app, "30", ENTER)
    assert ids(app.tasks) == [2, 1]
    assert app.selected_task.id == 1
    assert app.selected_task.due_date == date(2024, 6, 30)
    assert len(store.read()) == 2


def test_invalid_date_keeps_previous_and_sets_notice(make_app):
    app = make_app([make_task(1, due="2024-06-01")])
    press(app, ENTER, TAB, TAB, "99", ENTER)
    assert app.tasks[0].due_date == date(2024, 6, 1)
    assert "Invalid date" in app.notice
    press(app, DOWN)
    assert app.notice == ""


def test_cleared_date_keeps_due_date(make_app):
    app = make_app([make_task(1, due="2024-06-01")])
    press(app, ENTER, TAB, TAB)
    for _ in range(10):
        press(app, BACKSPACE)
    press(app, ENTER)
    assert app.tasks[0].due_date == date(2024, 6, 1)
    assert app.notice == ""


def test_partial_date_keeps_due_date(make_app):
    app = make_app([make_task(1, due="2024-06-01")])
    press(app, ENTER, TAB, TAB, BACKSPACE, BACKSPACE, ENTER)
    assert app.tasks[0].due_date == date(2024, 6, 1)
    assert "Invalid date" in app.notice


def test_date_field_accepts_only_digits_and_dash(make_app):
    app = make_app()
    press(app, "+", TAB, TAB, "2024-x0 6/01", Key.of("1", ctrl=True))
    assert app.input_mode is InputMode.EDITING_DATE
    assert app.session.date_text == "2024-0601"


def test_tab_cycles_edit_fields(make_app):
    app = make_app()
    press(app, "+")
    seen = []
    for _ in range(4):
        seen.append(app.input_mode)
        press(app, TAB)
    assert seen == [InputMode.EDITING_TITLE, InputMode.EDITING_DESCRIPTION,
                    InputMode.EDITING_DATE, InputMode.EDITING_TITLE]


def test_title_ignores_alt_enter(make_app):
    app = make_app()
    press(app, "+", "a", ALT_ENTER)
    assert app.session.title == "a"
    assert app.input_mode is InputMode.EDITING_TITLE


def test_description_scrolling(make_app):
    app = make_app()
    press(app, "+", TAB)
    session = app.session
    press(app, Key(keys.PAGE_UP))
    assert session.scroll == 0
    press(app, Key(keys.PAGE_DOWN), Key.of("d", ctrl=True))
    assert session.scroll == 6
    press(app, Key.of("u", ctrl=True))
    assert session.scroll == 3
    press(app, Key.of("u", ctrl=True), Key.of("u", ctrl=True))
    assert session.scroll == 0
    assert session.description == ""


def test_typing_description_follows_the_end(make_app):
    app = make_app()
    press(app, "+", TAB)
    for n in range(12):
        press(app, str(n % 10), ALT_ENTER)
    # 13 lines with 10 visible
    assert app.session.scroll == 4
    last = app.session.description.count("\n")
    assert app.session.scroll <= last < app.session.scroll + EDIT_VISIBLE_LINES


def test_ids_never_reused_after_completion(make_app):
    app = make_app([make_task(1), make_task(2)])
    press(app, "d", ENTER)
    press(app, DOWN, "d", ENTER)
    assert app.tasks == []
    press(app, "+", "new", ENTER)
    assert ids(app.tasks) == [3]


def test_ids_account_for_hidden_tasks(make_app):
    app = make_app([make_task(1), make_task(7, completed=True), make_task(4, deleted=True)])
    press(app, "+", "next", ENTER)
    assert sorted(ids(app.tasks)) == [1, 8]


# ---------------------------------------------------------------------
# Complete / delete
# ---------------------------------------------------------------------
def test_completing_only_task_empties_selection(make_app, store, clock):
    app = make_app([make_task(1)])
    press(app, "d")
    assert app.input_mode is InputMode.CONFIRM_COMPLETE
    assert isinstance(app.session, Confirmation)
    press(app, ENTER)
    assert app.tasks == []
    assert app.selected_index is None
    [stored] = store.read()
    assert stored.completed
    assert not stored.deleted
    assert stored.completed_at == clock()


def test_delete_is_soft(make_app, store):
    app = make_app([make_task(1), make_task(2)])
    press(app, DOWN, "-")
    assert app.input_mode is InputMode.CONFIRM_DELETE
    press(app, ENTER)
    assert ids(app.tasks) == [1]
    assert app.selected_index == 0
    stored = {t.id: t for t in store.read()}
    assert stored[2].deleted and not stored[2].completed
    assert not stored[1].deleted


def test_changes_survive_reload(make_app, store, clock):
    app = make_app([make_task(1), make_task(2), make_task(3)])
    press(app, "d", ENTER, "-", ENTER)
    reloaded = App(TaskStore(store.path), clock=clock)
    assert ids(reloaded.tasks) == ids(app.tasks) == [3]
    assert reloaded.all_tasks == app.all_tasks


@pytest.mark.parametrize("choice", [[TAB], [LEFT], [RIGHT, RIGHT, RIGHT]])
def test_confirm_no_leaves_task(make_app, choice):
    app = make_app([make_task(1)])
    press(app, "-")
    assert app.session.yes_selected
    press(app, *choice)
    assert not app.session.yes_selected
    press(app, ENTER)
    assert app.input_mode is InputMode.NORMAL
    assert ids(app.tasks) == [1]


def test_confirm_escape_cancels(make_app):
    app = make_app([make_task(1)])
    press(app, "d", ESC)
    assert app.input_mode is InputMode.NORMAL
    assert ids(app.tasks) == [1]
    assert not app.should_quit


def test_confirm_requires_selection(make_app):
    app = make_app()
    press(app, "d", "-")
    assert app.input_mode is InputMode.NORMAL


def test_complete_and_delete_only_from_list_panel(make_app):
    app = make_app([make_task(1)])
    press(app, TAB, "d", "-")
    assert app.input_mode is InputMode.NORMAL


def test_complete_removes_selected_task_from_middle(make_app):
    app = make_app([make_task(1), make_task(2), make_task(3)])
    press(app, DOWN, DOWN, "d", ENTER)
    assert ids(app.tasks) == [1, 2]
    assert app.selected_index == 1


def test_save_failure_sets_notice(tmp_path, clock):
    store = FailingStore(tmp_path / "todos.json")
    app = App(store, clock=clock)
    press(app, "+", "unsaved", ENTER)
    assert ids(app.tasks) == [1]
    assert "Could not save" in app.notice


# ---------------------------------------------------------------------
# Focus, tabs, selection
# ---------------------------------------------------------------------
def test_tab_cycles_panels(make_app):
    app = make_app()
    seen = []
    for _ in range(4):
        seen.append(app.focused_panel)
        press(app, TAB)
    assert seen == [Panel.LIST, Panel.CALENDAR, Panel.TASK, Panel.LIST]


def test_focusing_calendar_sets_cursor(make_app):
    app = make_app()
    press(app, TAB)
    assert app.calendar.cursor == TODAY


def test_shift_arrows_switch_tabs(make_app):
    app = make_app()
    press(app, Key(keys.RIGHT, shift=True))
    assert app.selected_tab is Tab.STATS
    press(app, Key(keys.RIGHT, shift=True))
    assert app.selected_tab is Tab.TASKS
    press(app, Key(keys.LEFT, shift=True))
    assert app.selected_tab is Tab.STATS


def test_list_selection_wraps(make_app):
    app = make_app([make_task(1), make_task(2), make_task(3)])
    press(app, UP)
    assert app.selected_index == 2
    press(app, DOWN)
    assert app.selected_index == 0


def test_task_panel_scrolls_description(make_app):
    app = make_app([make_task(1), make_task(2)])
    press(app, TAB, TAB, UP)
    assert app.selection.detail_scroll == 0
    press(app, DOWN, DOWN)
    assert app.selection.detail_scroll == 2
    assert app.selected_index == 0
    press(app, TAB, DOWN)
    assert app.selection.detail_scroll == 0


def test_quit_keys(make_app):
    app = make_app()
    press(app, "q")
    assert app.should_quit
    app = make_app()
    press(app, ESC)
    assert app.should_quit


def test_q_is_text_while_editing(make_app):
    app = make_app()
    press(app, "+", "q")
    assert not app.should_quit
    assert app.session.title == "q"


def test_resize_and_none_are_ignored(make_app):
    app = make_app()
    app.notice = "keep"
    app.handle_key(None)
    app.handle_key(Key(keys.RESIZE))
    assert app.notice == "keep"


def test_selection_stays_valid_under_random_operations(make_app):
    rng = random.Random(7)
    app = make_app([make_task(i, due=f"2024-06-{i:02d}" if i % 2 else None) for i in range(1, 9)])
    choices = [UP, DOWN, TAB, ENTER, ESC, "d", "-", "+", "x", "2024-06-09"]
    for _ in range(400):
        key = rng.choice(choices)
        if key is ESC and app.input_mode is InputMode.NORMAL:
            continue
        press(app, key)
        if app.input_mode is InputMode.NORMAL and rng.random() < 0.3 and app.tasks:
            press(app, Key(keys.ENTER))
        if app.tasks:
            assert app.selected_index is not None
            assert 0 <= app.selected_index < len(app.tasks)
        else:
            assert app.selected_index is None
        assert all(t.is_active for t in app.tasks)


# ---------------------------------------------------------------------
# Calendar
# ---------------------------------------------------------------------
def test_first_calendar_move_starts_at_today(make_app):
    app = make_app()
    app.focused_panel = Panel.CALENDAR
    press(app, DOWN)
    assert app.calendar.cursor == TODAY
    assert app.calendar.anchor == TODAY
    press(app, DOWN)
    assert app.calendar.cursor == date(2024, 6, 22)


def test_calendar_arrows_and_today(make_app, clock):
    app = make_app()
    press(app, TAB)
    press(app, RIGHT, RIGHT, UP, LEFT)
    assert app.calendar.cursor == date(2024, 6, 9)
    for _ in range(6):
        press(app, UP)
    assert app.calendar.cursor.month == 4
    assert app.calendar.anchor == date(2024, 5, 1)
    press(app, "t")
    assert app.calendar.cursor == TODAY
    assert app.calendar.anchor == TODAY


def test_calendar_plus_prefills_cursor_date(make_app):
    app = make_app()
    press(app, TAB, RIGHT, "+")
    assert app.session.due_date == date(2024, 6, 16)
    assert app.session.date_text == "2024-06-16"
    press(app, "dentist", ENTER)
    assert app.tasks[0].due_date == date(2024, 6, 16)


def test_calendar_enter_opens_new_task(make_app):
    app = make_app([make_task(1)])
    press(app, TAB, ENTER)
    assert app.session.editing_id is None
    assert app.session.due_date == TODAY


def test_list_plus_has_no_date(make_app):
    app = make_app()
    press(app, "+")
    assert app.session.due_date is None
    assert app.session.field is EditField.TITLE


def test_confirmation_targets_task_id(make_app):
    app = make_app([make_task(1), make_task(2)])
    press(app, DOWN, "d")
    assert app.session.action is ConfirmAction.COMPLETE
    assert app.session.task_id == 2
