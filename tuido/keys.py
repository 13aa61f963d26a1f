"""
Translation from curses input to the abstract keys the state machine consumes.

curses has no modifier flags, so they are recovered from what the terminal
sends: shifted arrows arrive as KEY_SLEFT/KEY_SRIGHT, control chords as
control bytes, and Alt+<key> as ESC immediately followed by <key>.
"""
import curses

CHAR = "char"
BACKSPACE = "backspace"
TAB = "tab"
ESC = "esc"
ENTER = "enter"
UP = "up"
DOWN = "down"
LEFT = "left"
RIGHT = "right"
PAGE_UP = "page_up"
PAGE_DOWN = "page_down"
RESIZE = "resize"


class Key:
    __slots__ = ("code", "char", "shift", "ctrl", "alt")

    def __init__(self, code, char=None, shift=False, ctrl=False, alt=False):
        self.code = code
        self.char = char
        self.shift = shift
        self.ctrl = ctrl
        self.alt = alt

    @classmethod
    def of(cls, char, **modifiers) -> "Key":
        return cls(CHAR, char=char, **modifiers)

    def with_alt(self) -> "Key":
        return Key(self.code, self.char, self.shift, self.ctrl, True)

    def __eq__(self, other):
        if not isinstance(other, Key):
            return NotImplemented
        return ((self.code, self.char, self.shift, self.ctrl, self.alt) ==
                (other.code, other.char, other.shift, other.ctrl, other.alt))

    def __hash__(self):
        return hash((self.code, self.char, self.shift, self.ctrl, self.alt))

    def __repr__(self):
        mods = [m for m in ("shift", "ctrl", "alt") if getattr(self, m)]
        label = repr(self.char) if self.code == CHAR else self.code
        return f"Key({'+'.join(mods + [label])})"


_SPECIAL = {
    curses.KEY_UP: Key(UP),
    curses.KEY_DOWN: Key(DOWN),
    curses.KEY_LEFT: Key(LEFT),
    curses.KEY_RIGHT: Key(RIGHT),
    curses.KEY_SLEFT: Key(LEFT, shift=True),
    curses.KEY_SRIGHT: Key(RIGHT, shift=True),
    curses.KEY_PPAGE: Key(PAGE_UP),
    curses.KEY_NPAGE: Key(PAGE_DOWN),
    curses.KEY_BACKSPACE: Key(BACKSPACE),
    curses.KEY_ENTER: Key(ENTER),
    curses.KEY_BTAB: Key(TAB, shift=True),
    curses.KEY_RESIZE: Key(RESIZE),
}


def translate(raw, alt: bool = False):
    """Map a ``get_wch()`` result to a Key, or None for unused keys."""
    if isinstance(raw, int):
        key = _SPECIAL.get(raw)
    elif raw in ("\n", "\r"):
        key = Key(ENTER)
    elif raw == "\t":
        key = Key(TAB)
    elif raw == "\x1b":
        key = Key(ESC)
    elif raw in ("\x7f", "\x08"):
        key = Key(BACKSPACE)
    elif len(raw) == 1 and 0 < ord(raw) <= 0x1a:
        # Ctrl+A .. Ctrl+Z arrive as 0x01 .. 0x1a
        key = Key.of(chr(ord(raw) + 0x60), ctrl=True)
    elif len(raw) == 1 and raw.isprintable():
        key = Key.of(raw)
    else:
        key = None
    if key is not None and alt:
        key = key.with_alt()
    return key


def read_key(win, timeout_ms: int = 100):
    """Read one key, waiting at most ``timeout_ms``; None if nothing came."""
    win.timeout(timeout_ms)
    try:
        raw = win.get_wch()
    except curses.error:
        return None
    if raw != "\x1b":
        return translate(raw)
    # ESC: either a lone Escape or the prefix of an Alt chord
    win.timeout(0)
    try:
        follow = win.get_wch()
    except curses.error:
        follow = None
    finally:
        win.timeout(timeout_ms)
    if follow is None or follow == "\x1b":
        return Key(ESC)
    return translate(follow, alt=True)
