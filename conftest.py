"""Shared fakes: a scripted host surface and a manual timer clock."""

import fnmatch
import heapq
import itertools
import os
import sys

import pytest

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from field_registry import FieldRegistry  # noqa: E402
from overlay import OverlayManager  # noqa: E402
from positioning import ClipArea, Rect  # noqa: E402


class FakeClock:
    """Timers fire only when the test advances time."""

    def __init__(self):
        self.now = 0
        self._seq = itertools.count()
        self._timers = []

    def call_later(self, delay_ms, callback):
        heapq.heappush(self._timers, (self.now + delay_ms, next(self._seq), callback))

    def advance(self, ms):
        target = self.now + ms
        while self._timers and self._timers[0][0] <= target:
            due, _seq, callback = heapq.heappop(self._timers)
            self.now = due
            callback()
        self.now = target

    @property
    def pending(self):
        return len(self._timers)


class FakeField:
    def __init__(self, name, text="", ancestors=("form", "window")):
        self.name = name
        self.text = text
        self.ancestors = tuple(ancestors)
        self.rect = Rect(100, 100, 120, 20)

    def __str__(self):
        return self.name

    def __repr__(self):
        return f"FakeField({self.name!r})"


class FakeSurface:
    def __init__(self, clock=None, slots=42):
        self.clock = clock or FakeClock()
        self.slots = slots
        self.fields = []
        self.visible = False
        self.position = None
        self.moves = 0
        self.rendered = None
        self.controls = []
        self.changes = []
        self.table = Rect(0, 0, 200, 180)
        self.clip = None
        self.watchers = {}
        self._handles = itertools.count(1)
        self.handlers = {}
        self.placeholders = {}

    # --- overlay surface ---------------------------------------------------
    def rebuild_controls(self, config):
        self.controls.append(config)

    def day_slot_count(self):
        return self.slots

    def render(self, cells, year, month):
        self.rendered = (cells, year, month)

    def show_overlay(self):
        self.visible = True

    def hide_overlay(self):
        self.visible = False

    def move_overlay(self, x, y):
        self.position = (x, y)
        self.moves += 1

    def field_rect(self, field):
        return field.rect

    def table_rect(self):
        return self.table

    def clip_area(self, ancestors):
        return self.clip

    def watch_geometry(self, ancestors, callback):
        handle = next(self._handles)
        self.watchers[handle] = (ancestors, callback)
        return handle

    def unwatch_geometry(self, handle):
        del self.watchers[handle]

    def get_text(self, field):
        return field.text

    def set_text(self, field, text):
        field.text = text

    def notify_change(self, field):
        self.changes.append((field, field.text))

    def call_later(self, delay_ms, callback):
        self.clock.call_later(delay_ms, callback)

    # --- field host --------------------------------------------------------
    def add_field(self, *args, **kwargs):
        field = FakeField(*args, **kwargs)
        self.fields.append(field)
        return field

    def is_field(self, widget):
        return isinstance(widget, FakeField)

    def select(self, selector):
        return [f for f in self.fields if fnmatch.fnmatchcase(f.name, selector)]

    def ancestors(self, field):
        return field.ancestors

    def bind_field(self, field, on_focus, on_blur, on_keyup):
        self.handlers[field] = (on_focus, on_blur, on_keyup)
        return f"wiring-{field.name}"

    def unbind_field(self, field, wiring):
        assert wiring == f"wiring-{field.name}"
        del self.handlers[field]

    def apply_placeholder(self, field, text):
        self.placeholders[field] = text

    # --- scripted user actions ---------------------------------------------
    def focus(self, field):
        self.handlers[field][0]()

    def blur(self, field):
        self.handlers[field][1]()

    def type(self, field, text):
        field.text = text
        self.handlers[field][2]()

    def scroll(self, ancestor):
        for ancestors, callback in list(self.watchers.values()):
            if ancestor in ancestors:
                callback()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def surface(clock):
    return FakeSurface(clock)


@pytest.fixture
def toggles():
    return []


@pytest.fixture
def manager(surface, toggles):
    return OverlayManager(surface, on_toggle=lambda: toggles.append(surface.visible))


@pytest.fixture
def registry(manager, surface):
    return FieldRegistry(manager, surface)


@pytest.fixture
def clip_below():
    """A clip area that ends just under a field at y=100..120."""
    return ClipArea(Rect(0, 0, 1000, 150), 1000, 150)
