"""tkinter host for the shared date-picker overlay."""

from __future__ import annotations

import fnmatch
import itertools
from datetime import date
from tkinter import font as tkfont
from tkinter import ttk
import tkinter as tk
from typing import Callable

from calendar_logic import GRID_COLS, GRID_ROWS, GridCell
from field_registry import FieldRegistry
from overlay import HIDE_DELAY_MS, OverlayManager
from picker_config import DEFAULT_MONTH_NAMES, DEFAULT_WEEKDAY_NAMES, PickerConfig
from positioning import ClipArea, Rect, find_clipping_ancestor

# Colours
ACCENT = "#0078D4"
SEL_BG = "#B3D7F2"
HEADER_BG = "#F3F3F3"
GRID_BG = "white"
OTHER_FG = "#AAAAAA"
WEEKEND_FG = "#CC0000"
HOLIDAY_BG = "#FFE0E0"
PLACEHOLDER_FG = "#999999"

CHANGE_EVENT = "<<DateChanged>>"
# Binding tags live in one namespace per Tk interpreter, shared by every surface
_tag_ids = itertools.count(1)

_FIELD_EVENTS = ("<FocusIn>", "<FocusOut>", "<KeyRelease>", "<ButtonPress-1>")


def _new_tag(prefix: str) -> str:
    return f"{prefix}{next(_tag_ids)}"


class _DayGrid:
    """Pre-allocated widget pool: weekday header + 6 weeks of day labels."""

    __slots__ = ("frame", "day_headers", "day_cells")

    def __init__(self, parent: tk.Widget, fonts: dict, on_press) -> None:
        self.frame = tk.Frame(parent, bg=GRID_BG)

        self.day_headers: list[tk.Label] = []
        for col, abbr in enumerate(DEFAULT_WEEKDAY_NAMES):
            fg = WEEKEND_FG if col >= 5 else "#333333"
            lbl = tk.Label(
                self.frame, text=abbr, font=fonts["bold"], bg=GRID_BG, fg=fg, width=3,
            )
            lbl.grid(row=0, column=col)
            self.day_headers.append(lbl)

        self.day_cells: list[tk.Label] = []
        for r in range(GRID_ROWS):
            for c in range(GRID_COLS):
                cell = tk.Label(
                    self.frame, font=fonts["normal"], bg=GRID_BG, width=3,
                    cursor="hand2", borderwidth=0,
                )
                cell.grid(row=r + 1, column=c, padx=1, pady=1)
                cell.bind("<ButtonPress-1>", on_press)
                self.day_cells.append(cell)


class TkPickerSurface:
    """One borderless Toplevel shared by every registered entry."""

    def __init__(self, root: tk.Misc) -> None:
        self.root = root
        self.manager: OverlayManager | None = None
        self.control_tag = _new_tag("DatePickerControl")
        self._widget_dates: dict[int, date] = {}
        self._placeholders: dict[str, str] = {}
        self._saved_fg: dict[str, str] = {}
        self._reposition_after_id: str | None = None
        self._month_names: tuple[str, ...] = DEFAULT_MONTH_NAMES

        self._setup_fonts()
        self.top = tk.Toplevel(root)
        self.top.withdraw()
        self.top.wm_overrideredirect(True)
        self.top.wm_attributes("-topmost", True)
        self.top.configure(bg=GRID_BG)
        self._build_shell()

    # ------------------------------------------------------------------
    # Fonts
    # ------------------------------------------------------------------
    def _setup_fonts(self) -> None:
        families = tkfont.families(self.root)
        base = "Segoe UI" if "Segoe UI" in families else "TkDefaultFont"
        self.font_normal = tkfont.Font(root=self.root, family=base, size=9)
        self.font_bold = tkfont.Font(root=self.root, family=base, size=9, weight="bold")
        self.font_nav = tkfont.Font(root=self.root, family=base, size=11, weight="bold")

    # ------------------------------------------------------------------
    # Build shell (once): nav bar + day grid
    # ------------------------------------------------------------------
    def _build_shell(self) -> None:
        self._table = tk.Frame(self.top, bg=GRID_BG, relief="solid", borderwidth=1)
        self._table.pack(padx=0, pady=0)

        # Navigation row: ◀  [month]  [year]  ▶
        nav = tk.Frame(self._table, bg=HEADER_BG)
        nav.pack(fill="x")

        self._btn_prev = tk.Button(
            nav, text="◀", font=self.font_nav, bg=HEADER_BG, relief="flat",
            command=lambda: self._on_navigate(-1),
        )
        self._btn_prev.pack(side="left", padx=2)

        self._month_box = ttk.Combobox(nav, state="readonly", width=10)
        self._month_box.pack(side="left", padx=2, pady=2)
        self._month_box.bind("<<ComboboxSelected>>", self._on_month_selected)

        self._year_box = ttk.Combobox(nav, state="readonly", width=5)
        self._year_box.pack(side="left", padx=2, pady=2)
        self._year_box.bind("<<ComboboxSelected>>", self._on_year_selected)

        self._btn_next = tk.Button(
            nav, text="▶", font=self.font_nav, bg=HEADER_BG, relief="flat",
            command=lambda: self._on_navigate(1),
        )
        self._btn_next.pack(side="right", padx=2)

        fonts = {"normal": self.font_normal, "bold": self.font_bold}
        self._grid = _DayGrid(self._table, fonts, self._on_cell_press)
        self._grid.frame.pack(padx=4, pady=4)

        for w in (self._btn_prev, self._btn_next, self._month_box, self._year_box):
            w.bindtags((self.control_tag,) + w.bindtags())
        for box in (self._month_box, self._year_box):
            # the dropdown list is a Tcl-only widget that takes focus while open
            popdown = self.top.tk.call("ttk::combobox::PopdownWindow", box)
            listbox = f"{popdown}.f.l"
            tags = self.top.tk.splitlist(self.top.tk.call("bindtags", listbox))
            self.top.tk.call("bindtags", listbox, (self.control_tag,) + tuple(tags))
        for btn in (self._btn_prev, self._btn_next):
            btn.bind("<ButtonPress-1>", lambda e: e.widget.focus_set(), add="+")

    def connect(self, manager: OverlayManager) -> None:
        """Route control and key events to *manager*."""
        self.manager = manager
        self.root.bind_class(self.control_tag, "<FocusIn>", lambda _e: manager.control_focused())
        self.root.bind_class(self.control_tag, "<FocusOut>", lambda _e: manager.control_blurred())
        self.root.bind_all("<KeyPress-Escape>", lambda e: manager.handle_key(e.keysym), add="+")

    # ------------------------------------------------------------------
    # Control events
    # ------------------------------------------------------------------
    def _on_navigate(self, direction: int) -> None:
        if self.manager:
            self.manager.navigate(direction)

    def _on_month_selected(self, _event: tk.Event) -> None:
        idx = self._month_box.current()
        if self.manager and idx >= 0:
            self.manager.select_month(idx + 1)

    def _on_year_selected(self, _event: tk.Event) -> None:
        try:
            year = int(self._year_box.get())
        except ValueError:
            return
        if self.manager:
            self.manager.select_year(year)

    def _on_cell_press(self, event: tk.Event) -> None:
        d = self._widget_dates.get(id(event.widget))
        if d and self.manager:
            self.manager.select_date(d)

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------
    def rebuild_controls(self, config: PickerConfig) -> None:
        self._month_names = config.month_names
        self._month_box.configure(values=list(config.month_names))
        self._year_box.configure(
            values=[str(y) for y in range(config.start_year, config.end_year + 1)])
        for lbl, name in zip(self._grid.day_headers, config.weekday_names):
            lbl.configure(text=name)

    def day_slot_count(self) -> int:
        return len(self._grid.day_cells)

    def render(self, cells: list[GridCell], year: int, month: int) -> None:
        self._month_box.set(self._month_names[month - 1])
        self._year_box.set(str(year))
        self._widget_dates.clear()
        for label, cell in zip(self._grid.day_cells, cells):
            bg, fg = self._day_colors(cell)
            label.configure(
                text=str(cell.calendar_date.day), bg=bg, fg=fg,
                font=self.font_bold if cell.is_today or cell.is_selected else self.font_normal,
            )
            self._widget_dates[id(label)] = cell.calendar_date

    @staticmethod
    def _day_colors(cell: GridCell) -> tuple[str, str]:
        if cell.is_selected:
            return SEL_BG, "black"
        if cell.is_today:
            return ACCENT, "white"
        bg = HOLIDAY_BG if cell.is_holiday else GRID_BG
        if cell.is_other_month:
            return bg, OTHER_FG
        if cell.is_weekend or cell.is_holiday:
            return bg, WEEKEND_FG
        return bg, "black"

    # ------------------------------------------------------------------
    # Show / Hide / Move
    # ------------------------------------------------------------------
    def show_overlay(self) -> None:
        self.top.deiconify()
        self.top.lift()

    def hide_overlay(self) -> None:
        self.top.withdraw()

    def move_overlay(self, x: int, y: int) -> None:
        self.top.geometry(f"+{x}+{y}")

    # ------------------------------------------------------------------
    # Geometry
    # ------------------------------------------------------------------
    @staticmethod
    def _rect(widget: tk.Misc) -> Rect:
        return Rect(widget.winfo_rootx(), widget.winfo_rooty(),
                    widget.winfo_width(), widget.winfo_height())

    def field_rect(self, field: tk.Misc) -> Rect:
        return self._rect(field)

    def table_rect(self) -> Rect:
        self.top.update_idletasks()
        t = self._table
        return Rect(t.winfo_rootx(), t.winfo_rooty(), t.winfo_reqwidth(), t.winfo_reqheight())

    @staticmethod
    def _is_clipping(widget: tk.Misc) -> bool:
        if not isinstance(widget, tk.Canvas):
            return False
        return bool(widget.cget("yscrollcommand") or widget.cget("xscrollcommand"))

    def _clip_of(self, widget: tk.Misc) -> ClipArea:
        # border and focus ring are not part of the visible client area
        inset = int(widget.cget("borderwidth")) + int(widget.cget("highlightthickness"))
        box = self._rect(widget)
        width = max(box.width - 2 * inset, 0)
        height = max(box.height - 2 * inset, 0)
        return ClipArea(Rect(box.left + inset, box.top + inset, width, height), width, height)

    def _viewport(self) -> ClipArea:
        w = self.root.winfo_screenwidth()
        h = self.root.winfo_screenheight()
        return ClipArea(Rect(0, 0, w, h), w, h)

    def clip_area(self, ancestors: tuple) -> ClipArea | None:
        return find_clipping_ancestor(ancestors, self._is_clipping, self._clip_of, self._viewport)

    def watch_geometry(self, ancestors: tuple, callback: Callable[[], None]):
        tag = _new_tag("DatePickerGeometry")
        for w in ancestors:
            w.bindtags((tag,) + w.bindtags())

        def _on_configure(_event: tk.Event) -> None:
            # Debounce (30ms) to batch rapid configure events
            if self._reposition_after_id is not None:
                self.root.after_cancel(self._reposition_after_id)
            self._reposition_after_id = self.root.after(30, _fire)

        def _fire() -> None:
            self._reposition_after_id = None
            callback()

        self.root.bind_class(tag, "<Configure>", _on_configure)
        return tag, ancestors

    def unwatch_geometry(self, handle) -> None:
        tag, ancestors = handle
        if self._reposition_after_id is not None:
            self.root.after_cancel(self._reposition_after_id)
            self._reposition_after_id = None
        for w in ancestors:
            if w.winfo_exists():
                w.bindtags(tuple(t for t in w.bindtags() if t != tag))
        self.root.unbind_class(tag, "<Configure>")

    # ------------------------------------------------------------------
    # Field value
    # ------------------------------------------------------------------
    def get_text(self, field: tk.Entry) -> str:
        if str(field) in self._saved_fg:
            return ""
        return field.get()

    def set_text(self, field: tk.Entry, text: str) -> None:
        self._hide_placeholder(field)
        field.delete(0, "end")
        field.insert(0, text)

    def notify_change(self, field: tk.Entry) -> None:
        field.event_generate(CHANGE_EVENT)

    def call_later(self, delay_ms: int, callback: Callable[[], None]):
        return self.root.after(delay_ms, callback)

    # ------------------------------------------------------------------
    # Field discovery and wiring
    # ------------------------------------------------------------------
    @staticmethod
    def is_field(widget) -> bool:
        if isinstance(widget, (ttk.Combobox, ttk.Spinbox)):
            return False
        return isinstance(widget, (tk.Entry, ttk.Entry))

    def select(self, selector: str) -> list:
        """Fields whose Tk path name matches *selector* (fnmatch syntax)."""
        found = []
        stack = [self.root]
        while stack:
            w = stack.pop()
            if w is self.top:
                continue
            if fnmatch.fnmatchcase(str(w), selector) and self.is_field(w):
                found.append(w)
            stack.extend(reversed(w.winfo_children()))
        return found

    @staticmethod
    def ancestors(field: tk.Misc) -> tuple:
        chain = []
        w = field.master
        while w is not None:
            chain.append(w)
            w = w.master
        return tuple(chain)

    def bind_field(self, field: tk.Entry, on_focus, on_blur, on_keyup) -> str:
        tag = _new_tag("DatePickerField")

        def _focus_in(_event: tk.Event) -> None:
            self._hide_placeholder(field)
            on_focus()

        def _focus_out(_event: tk.Event) -> None:
            on_blur()
            self._show_placeholder(field)

        self.root.bind_class(tag, "<FocusIn>", _focus_in)
        self.root.bind_class(tag, "<FocusOut>", _focus_out)
        self.root.bind_class(tag, "<KeyRelease>", lambda _e: on_keyup())
        # a pick leaves focus on the field, so a click has to reopen the overlay
        self.root.bind_class(tag, "<ButtonPress-1>", _focus_in)
        field.bindtags((tag,) + field.bindtags())
        return tag

    def unbind_field(self, field: tk.Entry, wiring: str) -> None:
        if field.winfo_exists():
            self._hide_placeholder(field)
            field.bindtags(tuple(t for t in field.bindtags() if t != wiring))
        for seq in _FIELD_EVENTS:
            self.root.unbind_class(wiring, seq)
        self._placeholders.pop(str(field), None)

    # ------------------------------------------------------------------
    # Placeholder text
    # ------------------------------------------------------------------
    def apply_placeholder(self, field: tk.Entry, text: str) -> None:
        self._placeholders[str(field)] = text
        if self.root.focus_get() is not field:
            self._show_placeholder(field)

    def _show_placeholder(self, field: tk.Entry) -> None:
        key = str(field)
        text = self._placeholders.get(key)
        if not text or key in self._saved_fg or field.get():
            return
        self._saved_fg[key] = field.cget("foreground")
        field.insert(0, text)
        field.configure(foreground=PLACEHOLDER_FG)

    def _hide_placeholder(self, field: tk.Entry) -> None:
        fg = self._saved_fg.pop(str(field), None)
        if fg is None:
            return
        field.delete(0, "end")
        field.configure(foreground=fg)


def create_date_picker(root: tk.Misc, on_toggle: Callable[[], None] | None = None,
                       hide_delay_ms: int = HIDE_DELAY_MS) -> FieldRegistry:
    """Build the shared overlay for *root* and return its field registry."""
    surface = TkPickerSurface(root)
    manager = OverlayManager(surface, hide_delay_ms=hide_delay_ms, on_toggle=on_toggle)
    surface.connect(manager)
    return FieldRegistry(manager, surface)
