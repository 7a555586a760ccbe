"""Overlay placement relative to its field, kept inside the clipping area."""

from __future__ import annotations

from typing import Callable, Iterable, NamedTuple, TypeVar

FIELD_GAP = 2
FLIP_EXTRA = 6

W = TypeVar("W")


class Rect(NamedTuple):
    left: int
    top: int
    width: int
    height: int

    @property
    def right(self) -> int:
        return self.left + self.width

    @property
    def bottom(self) -> int:
        return self.top + self.height


class ClipArea(NamedTuple):
    """The box of the clipping ancestor plus its visible client size."""
    rect: Rect
    client_width: int
    client_height: int

    @property
    def visible_right(self) -> int:
        return self.rect.left + self.client_width

    @property
    def visible_bottom(self) -> int:
        return self.rect.top + self.client_height


class Placement(NamedTuple):
    x: int
    y: int
    flipped: bool = False
    shifted: bool = False


def place_overlay(field: Rect, table: Rect, clip: ClipArea | None = None) -> Placement:
    """Return the overlay's top-left corner.

    Default is just below the field's bottom-left corner. If the table would
    overflow the clip area at the bottom it moves above the field; if it
    would overflow on the right its right edge is aligned with the field's.
    """
    x = field.left
    y = field.bottom + FIELD_GAP
    flipped = shifted = False
    if clip is not None:
        flipped = y + table.height > clip.visible_bottom
        if flipped:
            y -= field.height + table.height + FLIP_EXTRA
        shifted = x + table.width > clip.visible_right
        if shifted:
            x = field.right - table.width
    return Placement(round(x), round(y), flipped, shifted)


def find_clipping_ancestor(ancestors: Iterable[W],
                           is_clipping: Callable[[W], bool],
                           clip_of: Callable[[W], ClipArea],
                           viewport: Callable[[], ClipArea | None]) -> ClipArea | None:
    """Walk *ancestors* (nearest first) and return the first clipping area.

    When the walk reaches the root without a clipping ancestor the viewport
    applies; *viewport* may return None when no constraint exists.
    """
    for widget in ancestors:
        if is_clipping(widget):
            return clip_of(widget)
    return viewport()
