"""
Tkinter implementations of the UI ports.

- TkMessageSink: messagebox info/error reports
- TkUserPrompt: yes/no confirmation and name entry
- NameConflictDialog: modal conflict resolver showing both images side by side
- TkDispatcher: hands callbacks from worker threads to the Tk event loop

These are adapters for an embedding image browser: it passes TkMessageSink,
TkUserPrompt and NameConflictDialog (as the ConflictResolver) to
ImageOperationHandler, and implements BrowserContext.dispatch with
TkDispatcher so delete-worker completions run on the Tk thread.
"""

import logging
import tkinter as tk
from pathlib import Path
from tkinter import messagebox, simpledialog, ttk
from typing import Callable, Optional

from PIL import Image, ImageTk

import file_ops
from conflict_resolution import ConflictDecision, suggest_new_name

logger = logging.getLogger(__name__)

THUMBNAIL_SIZE = (200, 200)


class TkMessageSink:
    """MessageSink backed by tkinter message boxes."""

    def __init__(self, parent=None):
        self.parent = parent

    def info(self, message: str, title: Optional[str] = None) -> None:
        logger.info(message)
        messagebox.showinfo(title or "Info", message, parent=self.parent)

    def error(self, message: str, title: Optional[str] = None, exc: Optional[BaseException] = None) -> None:
        logger.error(f"{message} ({exc})" if exc else message)
        text = f"{message}\n\n{exc}" if exc else message
        messagebox.showerror(title or "Error", text, parent=self.parent)


class TkUserPrompt:
    """UserPrompt backed by tkinter dialogs."""

    def __init__(self, parent=None):
        self.parent = parent

    def confirm(self, title: str, message: str) -> bool:
        return bool(messagebox.askyesno(title, message, parent=self.parent))

    def ask_new_name(self, message: str, initial: str) -> Optional[str]:
        return simpledialog.askstring("Rename", message, initialvalue=initial, parent=self.parent)


class TkDispatcher:
    """Runs callbacks on the Tk main loop via after()."""

    def __init__(self, root):
        self.root = root

    def dispatch(self, callback: Callable[[], None]) -> None:
        self.root.after(0, callback)


class NameConflictDialog:
    """
    Modal dialog shown when the destination already holds a file with the
    same name. Shows both images and offers rename (with a suggested free
    name), overwrite, skip, and in batch mode cancel-all.
    """

    def __init__(self, parent):
        self.parent = parent
        self.result: Optional[ConflictDecision] = None
        self._photos = []

    def resolve(self, source: Path, dest_dir: Path, batch_mode: bool) -> ConflictDecision:
        source = Path(source)
        dest_dir = Path(dest_dir)
        self.result = None
        self._photos = []

        self.window = tk.Toplevel(self.parent)
        self.window.title("Name conflict")
        self.window.resizable(False, False)
        self._build(source, dest_dir, batch_mode)
        self._setup_modal_behavior()
        self.window.wait_window()

        if self.result is None:
            self.result = ConflictDecision.skip()
        logger.info(f"Name conflict for {source.name}: {self.result.action.value}")
        return self.result

    def _build(self, source: Path, dest_dir: Path, batch_mode: bool):
        main_frame = ttk.Frame(self.window, padding="15")
        main_frame.pack(fill="both", expand=True)

        ttk.Label(
            main_frame,
            text=f"{dest_dir} already contains a file named {source.name}.",
            font=("Arial", 11, "bold")
        ).pack(anchor="w", pady=(0, 10))

        images_frame = ttk.Frame(main_frame)
        images_frame.pack(fill="x", pady=(0, 10))
        self._image_panel(images_frame, "Incoming", source).pack(side="left", padx=(0, 10))
        self._image_panel(images_frame, "Existing", dest_dir / source.name).pack(side="left")

        rename_frame = ttk.Frame(main_frame)
        rename_frame.pack(fill="x", pady=(0, 10))
        ttk.Label(rename_frame, text="New name:").pack(side="left")
        self.name_var = tk.StringVar(value=suggest_new_name(dest_dir, source.name))
        self.name_entry = ttk.Entry(rename_frame, textvariable=self.name_var, width=40)
        self.name_entry.pack(side="left", padx=(5, 0), fill="x", expand=True)
        self.error_label = ttk.Label(main_frame, text="", foreground="red")
        self.error_label.pack(anchor="w")

        button_frame = ttk.Frame(main_frame)
        button_frame.pack(fill="x", pady=(10, 0))
        ttk.Button(button_frame, text="Rename",
                   command=lambda: self._rename(dest_dir)).pack(side="left", padx=(0, 5))
        ttk.Button(button_frame, text="Overwrite",
                   command=lambda: self._finish(ConflictDecision.proceed(dest_dir / source.name))
                   ).pack(side="left", padx=(0, 5))
        ttk.Button(button_frame, text="Skip",
                   command=lambda: self._finish(ConflictDecision.skip())).pack(side="left", padx=(0, 5))
        if batch_mode:
            ttk.Button(button_frame, text="Cancel all",
                       command=lambda: self._finish(ConflictDecision.abort_batch())).pack(side="left")

        self.window.bind('<Return>', lambda e: self._rename(dest_dir))

    def _image_panel(self, parent, caption: str, path: Path):
        frame = ttk.LabelFrame(parent, text=caption, padding="5")
        try:
            with Image.open(path) as img:
                img.thumbnail(THUMBNAIL_SIZE, Image.Resampling.LANCZOS)
                photo = ImageTk.PhotoImage(img)
            self._photos.append(photo)
            ttk.Label(frame, image=photo).pack()
        except (OSError, ValueError) as e:
            logger.debug(f"No preview for {path}: {e}")
            ttk.Label(frame, text="(no preview)").pack()
        try:
            size = file_ops.format_size(path.stat().st_size)
        except OSError:
            size = "?"
        ttk.Label(frame, text=f"{path.name}\n{size}").pack()
        return frame

    def _rename(self, dest_dir: Path):
        new_name = self.name_var.get().strip()
        if not new_name or "/" in new_name or "\\" in new_name:
            self.error_label.config(text="Please enter a valid file name.")
            return
        if file_ops.path_exists(dest_dir / new_name):
            self.error_label.config(text="That name is also taken.")
            return
        self._finish(ConflictDecision.rename(dest_dir / new_name))

    def _finish(self, decision: ConflictDecision):
        self.result = decision
        self.window.destroy()

    def _setup_modal_behavior(self):
        """Set up modal behavior."""
        self.window.transient(self.parent)
        self.window.grab_set()

        # Bind Escape key to skip
        self.window.bind('<Escape>', lambda e: self._finish(ConflictDecision.skip()))

        # Center on parent
        self.window.update_idletasks()
        x = (self.parent.winfo_x() + self.parent.winfo_width() // 2 -
             self.window.winfo_width() // 2)
        y = (self.parent.winfo_y() + self.parent.winfo_height() // 2 -
             self.window.winfo_height() // 2)
        self.window.geometry(f"+{x}+{y}")
        self.name_entry.focus_set()
