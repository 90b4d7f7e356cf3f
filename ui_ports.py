"""
UI Ports

Interfaces the operation engine uses to talk to whoever is driving it, plus
headless implementations for the command line tool and tests:
- MessageSink: user-facing info and error reports
- UserPrompt: yes/no confirmation and "enter a new name" prompts
- BrowserContext: the image browser's current selection and navigation

Tkinter implementations live in tk_prompts.
"""

import logging
from pathlib import Path
from typing import Callable, List, Optional, Protocol

import file_ops


class MessageSink(Protocol):
    def info(self, message: str, title: Optional[str] = None) -> None:
        ...

    def error(self, message: str, title: Optional[str] = None, exc: Optional[BaseException] = None) -> None:
        ...


class UserPrompt(Protocol):
    def confirm(self, title: str, message: str) -> bool:
        ...

    def ask_new_name(self, message: str, initial: str) -> Optional[str]:
        """Return the entered name, or None if the user cancelled."""
        ...


class BrowserContext(Protocol):
    def selected_image(self) -> Optional[Path]:
        ...

    def current_directory(self) -> Optional[Path]:
        ...

    def current_image_files(self) -> List[Path]:
        ...

    def selected_image_removed(self) -> None:
        ...

    def selected_image_renamed(self, new_file: Path) -> None:
        ...

    def reload_current_directory(self) -> None:
        ...

    def set_directory(self, directory: Path) -> None:
        ...

    def disable_directory_tree(self) -> None:
        ...

    def enable_directory_tree(self) -> None:
        ...

    def choose_directory(self) -> Optional[Path]:
        """Ask for a destination directory; None if cancelled."""
        ...

    def dispatch(self, callback: Callable[[], None]) -> None:
        """Run callback on the UI thread."""
        ...


class LoggingMessageSink:
    """MessageSink that writes to the log and keeps every report for inspection."""

    def __init__(self):
        self.logger = logging.getLogger(__name__)
        self.infos: List[str] = []
        self.errors: List[str] = []

    def info(self, message: str, title: Optional[str] = None) -> None:
        self.infos.append(message)
        self.logger.info(f"{title}: {message}" if title else message)

    def error(self, message: str, title: Optional[str] = None, exc: Optional[BaseException] = None) -> None:
        self.errors.append(message)
        text = f"{title}: {message}" if title else message
        if exc is not None:
            text += f" ({exc})"
        self.logger.error(text)

    @property
    def had_errors(self) -> bool:
        return bool(self.errors)


class AutoConfirmPrompt:
    """
    Non-interactive UserPrompt.

    confirm() always returns `answer`. ask_new_name() returns queued names in
    order, then falls back to `default_name` (None means cancel).
    """

    def __init__(self, answer: bool = True, names: Optional[List[Optional[str]]] = None,
                 default_name: Optional[str] = None):
        self.answer = answer
        self.names = list(names or [])
        self.default_name = default_name
        self.confirmations = []
        self.name_requests = []

    def confirm(self, title: str, message: str) -> bool:
        self.confirmations.append((title, message))
        return self.answer

    def ask_new_name(self, message: str, initial: str) -> Optional[str]:
        self.name_requests.append((message, initial))
        if self.names:
            return self.names.pop(0)
        return self.default_name


class HeadlessBrowserContext:
    """
    BrowserContext without a window.

    Tracks a current directory and selection, lists images via file_ops and
    runs dispatched callbacks inline. An explicit file list, when given,
    stands in for the directory listing.
    """

    def __init__(self, directory: Optional[Path] = None, selected: Optional[Path] = None,
                 destination: Optional[Path] = None, files: Optional[List[Path]] = None):
        self.logger = logging.getLogger(__name__)
        self.directory = Path(directory) if directory is not None else None
        self.selected = Path(selected) if selected is not None else None
        self.destination = Path(destination) if destination is not None else None
        self.files = [Path(f) for f in files] if files is not None else None
        self.tree_enabled = True
        self.reloads = 0

    def selected_image(self) -> Optional[Path]:
        return self.selected

    def current_directory(self) -> Optional[Path]:
        return self.directory

    def current_image_files(self) -> List[Path]:
        if self.files is not None:
            return [f for f in self.files if file_ops.path_exists(f)]
        if self.directory is None:
            return []
        return file_ops.list_image_files(self.directory)

    def selected_image_removed(self) -> None:
        self.selected = None

    def selected_image_renamed(self, new_file: Path) -> None:
        self.selected = Path(new_file)

    def reload_current_directory(self) -> None:
        self.reloads += 1
        if self.selected is not None and not file_ops.path_exists(self.selected):
            self.selected = None

    def set_directory(self, directory: Path) -> None:
        self.logger.debug(f"Browsing {directory}")
        self.directory = Path(directory)
        self.selected = None

    def disable_directory_tree(self) -> None:
        self.tree_enabled = False

    def enable_directory_tree(self) -> None:
        self.tree_enabled = True

    def choose_directory(self) -> Optional[Path]:
        return self.destination

    def dispatch(self, callback: Callable[[], None]) -> None:
        callback()
