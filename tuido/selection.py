"""
Task selection within the List panel.

``index`` is None iff the working collection is empty; every operation takes
the current collection size so the index is never left dangling.
"""


class Selection:
    def __init__(self, index=None):
        self.index = index
        # description offset in the Task panel; belongs to the selected task
        self.detail_scroll = 0

    @classmethod
    def for_size(cls, size: int) -> "Selection":
        return cls(0 if size else None)

    def current(self, tasks):
        if self.index is None or not 0 <= self.index < len(tasks):
            return None
        return tasks[self.index]

    def select_previous(self, size: int):
        if size == 0:
            self.index = None
            return
        if self.index is None:
            self.index = 0
        elif self.index > 0:
            self.index -= 1
        else:
            self.index = size - 1
        self.detail_scroll = 0

    def select_next(self, size: int):
        if size == 0:
            self.index = None
            return
        if self.index is None:
            self.index = 0
        elif self.index < size - 1:
            self.index += 1
        else:
            self.index = 0
        self.detail_scroll = 0

    def clamp(self, size: int):
        """Fix up the index after the collection shrank."""
        if size == 0:
            self.index = None
        elif self.index is None:
            self.index = 0
        elif self.index >= size:
            self.index = size - 1

    def select_id(self, tasks, task_id):
        """Point at the task with ``task_id`` after a re-sort moved it."""
        for idx, task in enumerate(tasks):
            if task.id == task_id:
                self.index = idx
                return
        self.clamp(len(tasks))

    def scroll_up(self):
        self.detail_scroll = max(0, self.detail_scroll - 1)

    def scroll_down(self):
        self.detail_scroll += 1
