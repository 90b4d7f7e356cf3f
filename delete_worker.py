"""
Background Delete Worker

Deletes either a whole directory tree or a list of images on a daemon
thread, reporting progress to a ProgressMonitor that the UI can poll and
cancel. When the work ends (finished, failed or cancelled) on_complete(okay)
is called on the worker thread; okay is False if anything could not be
deleted or the user cancelled.

Directory mode: enumerate files then subdirectories, delete every file (with
its companions and delete hooks), remove subdirectories deepest first, then
remove whatever is left of the root.

List mode: delete each file (with companions and delete hooks); a failure
is remembered but the loop carries on.
"""

import logging
import threading
from pathlib import Path
from typing import Callable, Iterable, Optional

import file_ops
from single_file_executor import SingleFileExecutor

logger = logging.getLogger(__name__)

# Placeholder maximum while the tree is still being enumerated
ENUMERATION_MAXIMUM = 1000


class ProgressMonitor:
    """Thread-safe progress and cancellation state shared with the UI."""

    def __init__(self, maximum: int = 100):
        self._lock = threading.Lock()
        self._canceled = threading.Event()
        self._maximum = maximum
        self._progress = 0
        self._note = ""
        self.closed = False

    def set_maximum(self, maximum: int) -> None:
        with self._lock:
            self._maximum = maximum

    def set_progress(self, progress: int) -> None:
        with self._lock:
            self._progress = progress

    def set_note(self, note: str) -> None:
        with self._lock:
            self._note = note

    def snapshot(self):
        """(progress, maximum, note) read under the lock."""
        with self._lock:
            return self._progress, self._maximum, self._note

    def cancel(self) -> None:
        self._canceled.set()

    def is_canceled(self) -> bool:
        return self._canceled.is_set()

    def close(self) -> None:
        with self._lock:
            self.closed = True


class DeleteImageWorker:
    """Deletes a directory tree or a list of files in the background."""

    def __init__(self, executor: SingleFileExecutor, on_complete: Callable[[bool], None],
                 directory: Optional[Path] = None, files: Optional[Iterable[Path]] = None,
                 monitor: Optional[ProgressMonitor] = None):
        if (directory is None) == (files is None):
            raise ValueError("DeleteImageWorker needs exactly one of directory or files.")
        self.executor = executor
        self.on_complete = on_complete
        self.directory = Path(directory) if directory is not None else None
        self.files = [Path(f) for f in files] if files is not None else None
        if monitor is None:
            monitor = ProgressMonitor(len(self.files) if self.files else 100)
        self.monitor = monitor
        self.okay: Optional[bool] = None
        self._thread: Optional[threading.Thread] = None

    def start(self) -> None:
        self._thread = threading.Thread(target=self.run, name="DeleteImageWorker", daemon=True)
        self._thread.start()

    def join(self, timeout: Optional[float] = None) -> bool:
        """Wait for the worker; True if it has finished."""
        if self._thread is None:
            return True
        self._thread.join(timeout)
        return not self._thread.is_alive()

    def cancel(self) -> None:
        self.monitor.cancel()

    def run(self) -> None:
        try:
            if self.directory is not None:
                okay = self._delete_directory()
            else:
                okay = self._delete_files()
        except Exception as e:
            logger.error(f"DeleteImageWorker: unexpected failure: {e}", exc_info=True)
            okay = False
        finally:
            self.monitor.close()

        self.okay = okay
        try:
            self.on_complete(okay)
        except Exception as e:
            logger.error(f"DeleteImageWorker: completion callback failed: {e}", exc_info=True)

    def _delete_directory(self) -> bool:
        directory = self.directory
        monitor = self.monitor
        monitor.set_note(f"Deleting {directory.name}")
        monitor.set_maximum(ENUMERATION_MAXIMUM)
        counter = {'found': 0}

        def listener(path: Path) -> bool:
            monitor.set_note(f"Evaluating: {path.name}")
            counter['found'] += 1
            monitor.set_progress(counter['found'])
            return not monitor.is_canceled()

        files = file_ops.find_files(directory, True, listener)
        if monitor.is_canceled():
            logger.info(f"deleteDirectory: canceled while scanning {directory}")
            return False
        subdirs = file_ops.find_subdirectories(directory, True, listener)
        if monitor.is_canceled():
            logger.info(f"deleteDirectory: canceled while scanning {directory}")
            return False

        monitor.set_maximum(len(files) + len(subdirs))
        okay = True
        progress = 0

        for f in files:
            if monitor.is_canceled():
                return False
            # Extensions (or an earlier companion deletion) may have removed it already
            if file_ops.path_exists(f):
                result = self.executor.delete(f)
                if not result.ok:
                    okay = False
            progress += 1
            monitor.set_progress(progress)
            monitor.set_note(f"Deleting {f.name}")

        for subdir in reversed(subdirs):
            if monitor.is_canceled():
                return False
            logger.info(f"deleteDirectory: {subdir}")
            try:
                file_ops.remove_empty_directory(subdir)
            except OSError as e:
                logger.warning(f"deleteDirectory: could not remove {subdir}: {e}")
                okay = False
            progress += 1
            monitor.set_progress(progress)
            monitor.set_note(f"Deleting {subdir.name}")

        if monitor.is_canceled():
            return False

        logger.info(f"deleteDirectory: {directory}")
        try:
            file_ops.delete_directory(directory)
        except OSError as e:
            logger.error(f"deleteDirectory: problem deleting {directory}: {e}")
            okay = False
        return okay

    def _delete_files(self) -> bool:
        monitor = self.monitor
        monitor.set_maximum(len(self.files))
        okay = True
        for i, f in enumerate(self.files, start=1):
            if monitor.is_canceled():
                logger.info("deleteAllImages: canceled by user.")
                return False
            result = self.executor.delete(f, operation_name="deleteImage")
            if not result.ok:
                okay = False
            monitor.set_progress(i)
            monitor.set_note(f"Deleting {f.name}")
        return okay
