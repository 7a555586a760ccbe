"""Demo entry point: a tkinter form using the date picker, plus a pystray icon."""

import ctypes
import logging
import sys
import threading
import tkinter as tk

from icon_gen import create_icon_image
from picker_config import load_settings, settings_for
from picker_window import CHANGE_EVENT, create_date_picker
from tray_icon import create_tray

logger = logging.getLogger(__name__)

# (name, label, defaults)
_FIELDS = [
    ("birthday", "Birthday", {"format": "d.m.Y", "placeholder": "dd.mm.yyyy"}),
    ("appointment", "Appointment", {"format": "Y-m-d H:i", "placeholder": "yyyy-mm-dd hh:mm"}),
    ("invoice_date", "Invoice date", {"format": "m/d/Y", "holiday_presets": ["CH"]}),
]
_DEADLINES = 12


class DemoForm:
    """A small form: plain entries and a scrollable list of deadline entries."""

    def __init__(self, root: tk.Tk) -> None:
        self.root = root
        self.root.title("Date Picker Demo")
        self.registry = create_date_picker(root, on_toggle=self._on_toggle)
        settings = load_settings()

        form = tk.Frame(root, name="form", padx=12, pady=8)
        form.pack(fill="both", expand=True)

        for row, (name, label, defaults) in enumerate(_FIELDS):
            tk.Label(form, text=label).grid(row=row, column=0, sticky="w", pady=4)
            entry = tk.Entry(form, name=name, width=22)
            entry.grid(row=row, column=1, sticky="w", padx=(8, 0), pady=4)
            entry.bind(CHANGE_EVENT, self._on_change, add="+")
            config = dict(defaults)
            config.update(settings_for(settings, name))
            self.registry.assign(entry, config)

        # Deadlines inside a scrolled canvas: the overlay flips to stay visible
        box = tk.LabelFrame(form, text="Deadlines", padx=4, pady=4)
        box.grid(row=len(_FIELDS), column=0, columnspan=2, sticky="nsew", pady=(8, 0))
        canvas = tk.Canvas(box, width=260, height=140, highlightthickness=0)
        scroll = tk.Scrollbar(box, orient="vertical", command=canvas.yview)
        canvas.configure(yscrollcommand=scroll.set)
        canvas.pack(side="left", fill="both", expand=True)
        scroll.pack(side="right", fill="y")

        inner = tk.Frame(canvas, name="deadlines")
        canvas.create_window(0, 0, window=inner, anchor="nw")
        inner.bind("<Configure>",
                   lambda _e: canvas.configure(scrollregion=canvas.bbox("all")))
        for i in range(_DEADLINES):
            tk.Label(inner, text=f"Deadline {i + 1}").grid(row=i, column=0, sticky="w")
            entry = tk.Entry(inner, name=f"deadline_{i + 1}", width=14)
            entry.grid(row=i, column=1, padx=(8, 0), pady=2)
            entry.bind(CHANGE_EVENT, self._on_change, add="+")
        self.registry.assign("*.deadline_*", settings_for(settings, "deadline"))

        self.status = tk.Label(root, anchor="w", fg="#555555", padx=12)
        self.status.pack(fill="x", pady=(0, 6))

        self.root.protocol("WM_DELETE_WINDOW", self.hide)

    def _on_change(self, event: tk.Event) -> None:
        value = event.widget.get()
        self.status.configure(text=f"{event.widget.winfo_name()}: {value or '(cleared)'}")

    def _on_toggle(self) -> None:
        state = self.registry.manager.state
        logger.debug("Picker %s", "shown" if state.visible else "hidden")

    def show(self) -> None:
        self.root.deiconify()
        self.root.lift()
        self.root.focus_force()

    def hide(self) -> None:
        self.registry.manager.hide()
        self.root.withdraw()


def main() -> None:
    logging.basicConfig(
        level=logging.DEBUG if "-v" in sys.argv[1:] else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    # DPI awareness so positions / fonts are crisp on Hi-DPI monitors
    try:
        ctypes.windll.shcore.SetProcessDpiAwareness(1)
    except (AttributeError, OSError):
        pass

    root = tk.Tk()
    form = DemoForm(root)

    # Callbacks marshalled onto the tkinter main thread
    def on_show() -> None:
        root.after(0, form.show)

    def on_exit() -> None:
        def _quit() -> None:
            tray.stop()
            root.destroy()
        root.after(0, _quit)

    tray = create_tray(create_icon_image(), on_show, on_exit)

    # Run pystray in a daemon thread so it doesn't block tkinter
    tray_thread = threading.Thread(target=tray.run, daemon=True)
    tray_thread.start()

    root.mainloop()


if __name__ == "__main__":
    main()
