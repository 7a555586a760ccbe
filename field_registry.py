"""Registration of entry fields with the shared overlay."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field as dc_field
from typing import Any, Callable, Protocol

from overlay import OverlayManager
from picker_config import PickerConfig, build_config

logger = logging.getLogger(__name__)


class FieldHost(Protocol):
    """Host operations used to find fields and wire their events."""

    def is_field(self, widget: Any) -> bool:
        ...

    def select(self, selector: str) -> list:
        """Return every field matching *selector* (possibly none)."""
        ...

    def ancestors(self, field: Any) -> tuple:
        """Containers of *field*, nearest first, ending at the root."""
        ...

    def bind_field(self, field: Any, on_focus: Callable[[], None],
                   on_blur: Callable[[], None], on_keyup: Callable[[], None]) -> Any:
        ...

    def unbind_field(self, field: Any, wiring: Any) -> None:
        ...

    def apply_placeholder(self, field: Any, text: str) -> None:
        ...


@dataclass(eq=False)
class FieldBinding:
    field: Any
    config: PickerConfig
    ancestors: tuple = ()
    wiring: Any = dc_field(default=None, repr=False)

    @property
    def name(self) -> str:
        return str(self.field)


class FieldRegistry:
    """Fields known to one OverlayManager, keyed by field."""

    def __init__(self, manager: OverlayManager, host: FieldHost) -> None:
        self.manager = manager
        self.host = host
        self._bindings: dict[Any, FieldBinding] = {}

    def __contains__(self, field: Any) -> bool:
        return field in self._bindings

    def __len__(self) -> int:
        return len(self._bindings)

    def binding_for(self, field: Any) -> FieldBinding | None:
        return self._bindings.get(field)

    def register(self, field: Any, config: dict | PickerConfig | None = None) -> FieldBinding:
        """Attach the picker to *field*; registering twice is a no-op.

        Raises ConfigError when *config* cannot be merged over the defaults.
        """
        existing = self._bindings.get(field)
        if existing is not None:
            return existing

        if not isinstance(config, PickerConfig):
            config = build_config(config)
        binding = FieldBinding(field, config, tuple(self.host.ancestors(field)))
        manager = self.manager
        binding.wiring = self.host.bind_field(
            field,
            on_focus=lambda: manager.field_focused(binding),
            on_blur=lambda: manager.field_blurred(binding),
            on_keyup=lambda: manager.field_key_released(binding),
        )
        if config.placeholder:
            self.host.apply_placeholder(field, config.placeholder)
        self._bindings[field] = binding
        logger.debug("Registered %s with format %r", binding.name, config.format)
        return binding

    def unregister(self, field: Any) -> bool:
        """Detach the picker from *field*. Returns False if it was not registered."""
        binding = self._bindings.pop(field, None)
        if binding is None:
            return False
        self.manager.release(binding)
        self.host.unbind_field(field, binding.wiring)
        binding.wiring = None
        logger.debug("Unregistered %s", binding.name)
        return True

    def assign(self, target: Any, config: dict | PickerConfig | None = None) -> list[FieldBinding]:
        """Register a field, or every field a selector string matches.

        Widgets that are not text fields are skipped silently.
        """
        if isinstance(target, str):
            candidates = self.host.select(target)
        elif target is None:
            candidates = []
        else:
            candidates = [target]
        return [self.register(f, config) for f in candidates if self.host.is_field(f)]
