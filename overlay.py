"""The shared picker overlay: attach/detach state machine and deferred hide."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import TYPE_CHECKING, Any, Callable, Protocol

from calendar_logic import GridCell, build_month, shift_month
from date_format import DateFormatError, is_valid, parse, serialize
from picker_config import PickerConfig, now_in
from positioning import ClipArea, Rect, place_overlay

if TYPE_CHECKING:
    from field_registry import FieldBinding

logger = logging.getLogger(__name__)

HIDE_DELAY_MS = 300

# build_month pads six weeks past the first of the month
_MIN_MONTH = (1, 1)
_MAX_MONTH = (9999, 11)


class OverlaySurfaceError(RuntimeError):
    """The host surface cannot render the overlay."""


class OverlaySurface(Protocol):
    """What the overlay needs from the host toolkit."""

    def rebuild_controls(self, config: PickerConfig) -> None:
        """Refill month/year selectors and weekday headers for *config*."""
        ...

    def day_slot_count(self) -> int:
        ...

    def render(self, cells: list[GridCell], year: int, month: int) -> None:
        """Paint the day cells and sync the month/year selectors."""
        ...

    def show_overlay(self) -> None:
        ...

    def hide_overlay(self) -> None:
        ...

    def move_overlay(self, x: int, y: int) -> None:
        ...

    def field_rect(self, field: Any) -> Rect:
        ...

    def table_rect(self) -> Rect:
        ...

    def clip_area(self, ancestors: tuple) -> ClipArea | None:
        ...

    def watch_geometry(self, ancestors: tuple, callback: Callable[[], None]) -> Any:
        """Call *callback* whenever an ancestor moves, scrolls or resizes."""
        ...

    def unwatch_geometry(self, handle: Any) -> None:
        ...

    def get_text(self, field: Any) -> str:
        ...

    def set_text(self, field: Any, text: str) -> None:
        ...

    def notify_change(self, field: Any) -> None:
        ...

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> Any:
        ...


@dataclass
class OverlayState:
    attached_field: FieldBinding | None = None
    display_month: tuple[int, int] | None = None
    selected_date: datetime | None = None
    is_pointer_still_active: bool = False
    visible: bool = False


class OverlayManager:
    """Owns the one overlay and hands it to whichever field has focus.

    A blur never hides immediately: it clears ``is_pointer_still_active``
    and schedules ``hide_if_inactive`` after ``hide_delay_ms``. A focus on
    the field or one of the overlay's controls inside that window sets the
    flag again, and the timer finds it set when it fires.
    """

    def __init__(self, surface: OverlaySurface, hide_delay_ms: int = HIDE_DELAY_MS,
                 on_toggle: Callable[[], None] | None = None) -> None:
        self.surface = surface
        self.hide_delay_ms = hide_delay_ms
        self.on_toggle = on_toggle
        self.state = OverlayState()
        self._watch_handle: Any = None
        self._controls_config: PickerConfig | None = None

    @property
    def attached(self) -> FieldBinding | None:
        return self.state.attached_field

    # ------------------------------------------------------------------
    # Attach / detach
    # ------------------------------------------------------------------
    def show(self, binding: FieldBinding) -> None:
        state = self.state
        if state.attached_field is binding:
            if not state.visible:
                self.surface.show_overlay()
                state.visible = True
                self._notify()
            self.reposition()
            return

        if state.attached_field is not None:
            self.hide()

        state.attached_field = binding
        state.selected_date = None
        if self._controls_config is not binding.config:
            self.surface.rebuild_controls(binding.config)
            self._controls_config = binding.config
        try:
            self._seed_from_field(binding)
            self.render()
        except OverlaySurfaceError:
            state.attached_field = None
            raise

        self.surface.show_overlay()
        state.visible = True
        self._watch_handle = self.surface.watch_geometry(binding.ancestors, self.reposition)
        logger.debug("Overlay attached to %s", binding.name)
        self.reposition()
        self._notify()

    def hide(self) -> None:
        state = self.state
        if self._watch_handle is not None:
            self.surface.unwatch_geometry(self._watch_handle)
            self._watch_handle = None
        if state.attached_field is not None:
            logger.debug("Overlay detached from %s", state.attached_field.name)
        state.attached_field = None
        state.is_pointer_still_active = False
        if state.visible:
            self.surface.hide_overlay()
            state.visible = False
            self._notify()

    def hide_if_inactive(self) -> None:
        if self.state.is_pointer_still_active:
            return
        self.hide()

    def release(self, binding: FieldBinding) -> None:
        """Detach *binding* if it owns the overlay (used on unregistration)."""
        if self.state.attached_field is binding:
            self.hide()

    def _notify(self) -> None:
        if self.on_toggle is not None:
            self.on_toggle()

    # ------------------------------------------------------------------
    # Focus protocol
    # ------------------------------------------------------------------
    def control_focused(self) -> None:
        self.state.is_pointer_still_active = True

    def control_blurred(self) -> None:
        self.state.is_pointer_still_active = False
        self.surface.call_later(self.hide_delay_ms, self.hide_if_inactive)

    def field_focused(self, binding: FieldBinding) -> None:
        self.show(binding)
        self.state.is_pointer_still_active = True

    def field_blurred(self, binding: FieldBinding) -> None:
        field = binding.field
        text = self.surface.get_text(field)
        if text and not is_valid(text, binding.config.format):
            logger.debug("Clearing unparsable value %r in %s", text, binding.name)
            self.surface.set_text(field, "")
            self.surface.notify_change(field)
        self.control_blurred()

    def field_key_released(self, binding: FieldBinding) -> None:
        if self.state.attached_field is not binding:
            return
        self._seed_from_field(binding)
        self.render()

    def handle_key(self, keysym: str) -> None:
        if keysym == "Escape" and self.state.visible:
            self.hide()

    # ------------------------------------------------------------------
    # Display month / selection
    # ------------------------------------------------------------------
    def _seed_from_field(self, binding: FieldBinding) -> None:
        config = binding.config
        text = self.surface.get_text(binding.field)
        when = None
        if text:
            try:
                when = parse(text, config.format)
            except DateFormatError as ex:
                logger.debug("Falling back to now for %s: %s", binding.name, ex)
            else:
                self.state.selected_date = when
        if when is None:
            when = now_in(config.time_zone)
        self._set_display(when.year, when.month)

    def _set_display(self, year: int, month: int) -> None:
        """Clamp the shown month to 0001-01 .. 9999-11.

        A December 9999 grid would run past ``date.max``, so a value in that
        month keeps its selection but is shown on the November grid.
        """
        self.state.display_month = min(max((year, month), _MIN_MONTH), _MAX_MONTH)

    def render(self) -> None:
        binding = self.state.attached_field
        if binding is None or self.state.display_month is None:
            return
        if self.surface.day_slot_count() < 1:
            raise OverlaySurfaceError("overlay surface has no day cells")
        config = binding.config
        year, month = self.state.display_month
        cells = build_month(
            year, month,
            today=now_in(config.time_zone),
            selected=self.state.selected_date,
            holidays=config.holidays,
        )
        self.surface.render(cells, year, month)

    def navigate(self, delta: int) -> None:
        if self.state.display_month is None or self.state.attached_field is None:
            return
        self._set_display(*shift_month(*self.state.display_month, delta))
        self.render()

    def select_month(self, month: int) -> None:
        if self.state.display_month is None or self.state.attached_field is None:
            return
        self._set_display(self.state.display_month[0], month)
        self.render()

    def select_year(self, year: int) -> None:
        if self.state.display_month is None or self.state.attached_field is None:
            return
        self._set_display(year, self.state.display_month[1])
        self.render()

    def select_date(self, day: date) -> None:
        """Write *day* into the attached field and close the overlay."""
        binding = self.state.attached_field
        if binding is None:
            return
        value = datetime(day.year, day.month, day.day)
        self.surface.set_text(binding.field, serialize(value, binding.config.format))
        self.surface.notify_change(binding.field)
        self.state.selected_date = value
        self._set_display(value.year, value.month)
        self.hide()

    # ------------------------------------------------------------------
    # Positioning
    # ------------------------------------------------------------------
    def reposition(self) -> None:
        binding = self.state.attached_field
        if binding is None or not self.state.visible:
            return
        placement = place_overlay(
            self.surface.field_rect(binding.field),
            self.surface.table_rect(),
            self.surface.clip_area(binding.ancestors),
        )
        self.surface.move_overlay(placement.x, placement.y)
