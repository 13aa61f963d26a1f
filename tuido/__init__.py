"""
tuido: terminal-based personal task tracker.

This package provides a keyboard-driven terminal user interface for managing
a personal list of tasks. It includes:

- A task list sorted by due date, then creation time
- A three-month calendar with due dates and a movable day cursor
- A task detail view with a scrollable description
- A statistics tab (overdue/todo/done/deleted counts and 90-day trends)
- Soft completion and deletion; nothing is ever erased from the data file

For more information, see the README.md file.
"""

from .tui import main

__version__ = "0.1.0"
__author__ = "tuido contributors"
__license__ = "MIT"
__all__ = ['main']
