"""System-tray icon setup via pystray."""

from datetime import date
from typing import Callable

import pystray
from PIL import Image
from pystray import MenuItem, Menu


def create_tray(
    icon_image: Image.Image,
    on_show: Callable[[], None],
    on_exit: Callable[[], None],
) -> pystray.Icon:
    """Build and return a pystray Icon (not yet started)."""
    menu = Menu(
        MenuItem("Show Form", lambda _icon, _item: on_show(), default=True),
        Menu.SEPARATOR,
        MenuItem("Exit", lambda _icon, _item: on_exit()),
    )
    today = date.today().strftime("%d.%m.%Y")
    return pystray.Icon("entry-date-picker", icon_image, f"Date Picker Demo – {today}", menu)
