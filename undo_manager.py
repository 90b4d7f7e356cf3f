"""
Undo Manager for the Image File Operation Engine

Reverses the single operation kept in OperationHistory:
- Moves are moved back to where they came from (with conflict handling)
- Copies are deleted, along with their companions
- Symlinks are removed

Directory operations are reversed as a whole: a moved directory is moved
back (optionally renamed), a copied directory is deleted in the background,
a directory symlink is removed.

Every undo is confirmed with the user first. Results come back as a
(success, message) tuple, and problems are also reported to the MessageSink.

Version: 2.0
"""

import logging
from pathlib import Path
from typing import Callable, List, Optional, Tuple

import file_ops
from directory_coordinator import DirectoryOperationCoordinator
from image_operation import LastImageOperation, OperationKind, PayloadScope
from operation_errors import FileTransferError, UndoImpossibleError, ValidationError
from operation_history import OperationHistory
from single_file_executor import OperationOutcome, SingleFileExecutor

UNDO_TITLE = "Undo last operation"
UNDO_DIRECTORY_TITLE = "Undo directory operation"
MOVE_BACK_PROMPT = "Optionally rename this directory while moving it back:"


class UndoManager:
    """Undo the last recorded file or directory operation."""

    def __init__(
        self,
        history: OperationHistory,
        executor: SingleFileExecutor,
        directories: DirectoryOperationCoordinator,
        context,
        messages,
        prompt,
        start_directory_delete: Optional[Callable[[Path], object]] = None
    ):
        """
        Initialize the undo manager.

        Args:
            history: Where the last operation is recorded
            executor: Used to move files back and delete copies
            directories: Used to move a directory back
            context: BrowserContext to refresh afterwards
            messages: MessageSink for user-facing reports
            prompt: UserPrompt for confirmations
            start_directory_delete: Starts a background delete of a directory
                (used to undo a directory copy)
        """
        self.logger = logging.getLogger(__name__)
        self.history = history
        self.executor = executor
        self.directories = directories
        self.context = context
        self.messages = messages
        self.prompt = prompt
        self.start_directory_delete = start_directory_delete

    def undo_last_operation(self) -> Tuple[bool, str]:
        """
        Reverse the last recorded operation.

        Returns:
            (success, message) tuple
        """
        record = self.history.get()
        try:
            if record is None:
                raise UndoImpossibleError("There is no previous operation to undo.")
            if not record.is_undoable():
                raise UndoImpossibleError("The previous operation cannot be undone.")

            self.logger.info(f"Undoing: {record!r}")
            if record.scope == PayloadScope.DIRECTORY:
                return self._undo_directory_operation(record)
            return self._undo_file_operation(record)

        except UndoImpossibleError as e:
            self.logger.warning(f"Undo not possible: {e}")
            self.messages.error(str(e), title=UNDO_TITLE)
            return False, str(e)

    def _undo_directory_operation(self, record: LastImageOperation) -> Tuple[bool, str]:
        target_dir = record.destination
        source_dir = record.source
        if not file_ops.path_exists(target_dir):
            raise UndoImpossibleError(
                f"The target directory {target_dir} seems to no longer exist. Unable to proceed.")

        if record.kind == OperationKind.MOVE:
            confirm_msg = (f"The directory {target_dir}\n"
                           f"will be moved back to where it came from: {source_dir}")
        elif record.kind == OperationKind.COPY:
            confirm_msg = (f"The directory {target_dir}\n"
                           f"which was copied from: {source_dir}\nwill be deleted.")
        else:
            confirm_msg = (f"The symlink {target_dir}\n"
                           f"which links to source dir: {source_dir}\nwill be deleted.")

        if not self.prompt.confirm(UNDO_DIRECTORY_TITLE, confirm_msg + "\n\nProceed?"):
            return False, "Undo cancelled."

        if record.kind == OperationKind.MOVE:
            if not source_dir.exists():
                raise UndoImpossibleError(
                    f"The source dir {source_dir} seems to no longer exist; unable to proceed.")
            try:
                new_dir = self.directories.prepare(OperationKind.MOVE, target_dir, source_dir,
                                                   message=MOVE_BACK_PROMPT)
                if new_dir is None:
                    return False, "Undo cancelled."
                self.logger.info(f"undo: moveDirectory: {target_dir} -> {new_dir}")
                self.directories.execute(OperationKind.MOVE, target_dir, new_dir)
            except (ValidationError, FileTransferError) as e:
                self.messages.error(str(e), title=UNDO_DIRECTORY_TITLE, exc=e)
                return False, str(e)
            self.context.reload_current_directory()
            message = "The directory operation has been undone."

        elif record.kind == OperationKind.COPY:
            if self.start_directory_delete is None:
                raise UndoImpossibleError("Deleting directories is not available here.")
            self.start_directory_delete(target_dir)
            message = f"Deleting the copied directory {target_dir}."

        else:
            self.logger.info(f"undo: unlinkDirectory: {target_dir}")
            try:
                file_ops.delete_file(target_dir)
            except OSError as e:
                self.messages.error(f"Problem removing symlink: {e}", title=UNDO_DIRECTORY_TITLE, exc=e)
                return False, f"Problem removing symlink: {e}"
            self.context.reload_current_directory()
            message = "The symlink has been removed."

        self.messages.info(message, title=UNDO_DIRECTORY_TITLE)
        return True, message

    def _undo_file_operation(self, record: LastImageOperation) -> Tuple[bool, str]:
        affected = record.created_files
        if not affected:
            raise UndoImpossibleError(
                "The list of affected files from the previous operation is empty. Unable to proceed.")
        if not any(file_ops.path_exists(f) for f in affected):
            raise UndoImpossibleError(
                "The file(s) affected by the previous operation seem to no longer exist. Unable to proceed.")

        source_dir = record.source
        target_dir = record.destination
        if not target_dir.exists():
            raise UndoImpossibleError(f"The target directory {target_dir} seems to no longer exist.")

        count = len(affected)
        if record.kind == OperationKind.MOVE:
            confirm_msg = (f"{count} images which were moved\n  from dir: {source_dir}\n"
                           f"  to dir: {target_dir}\nwill be moved back.")
        elif record.kind == OperationKind.COPY:
            confirm_msg = (f"{count} images which were copied\n  from dir: {source_dir}\n"
                           f"  to dir: {target_dir}\nwill be deleted.")
        else:
            confirm_msg = f"{count} symlinks which were created in {target_dir} will be removed."
        if count == 1:
            confirm_msg = confirm_msg.replace("images which were", "image which was")
            confirm_msg = confirm_msg.replace("symlinks which were", "symlink which was")

        if not self.prompt.confirm(UNDO_TITLE, confirm_msg + "\n\nProceed?"):
            return False, "Undo cancelled."

        errors: List[str] = []
        stopped = False
        if record.kind == OperationKind.MOVE:
            if not source_dir.exists():
                raise UndoImpossibleError(
                    f"The source dir {source_dir} seems to no longer exist; unable to proceed.")
            stopped = self._move_back(record, source_dir, errors)
        elif record.kind == OperationKind.COPY:
            self._delete_copies(record, errors)
        else:
            self._remove_links(record, errors)

        self.context.reload_current_directory()

        if errors:
            message = "The last operation was only partly undone:\n" + "\n".join(errors)
            self.messages.error(message, title=UNDO_TITLE)
            return False, message
        if stopped:
            message = "Undo was cancelled part way through."
            self.messages.info(message, title=UNDO_TITLE)
            return False, message

        message = "The last operation has been undone."
        self.messages.info(message, title=UNDO_TITLE)
        return True, message

    def _created_companions(self, record: LastImageOperation, created_file: Path) -> List[Path]:
        """Companions the operation wrote next to created_file that are still there."""
        return [c for c in record.created_companions(created_file) if file_ops.path_exists(c)]

    def _move_back(self, record: LastImageOperation, source_dir: Path, errors: List[str]) -> bool:
        """Move files back; True if the user aborted part way."""
        for f in record.created_files:
            if not file_ops.path_exists(f):
                self.logger.info(f"undo move: file {f} seems to no longer exist; skipping.")
                continue
            result = self.executor.execute(OperationKind.MOVE, f, source_dir, batch_mode=True,
                                           operation_name="undo move",
                                           companions=self._created_companions(record, f))
            if result.outcome == OperationOutcome.ABORTED:
                self.logger.info("undo move: canceled all.")
                return True
            if result.is_error:
                errors.append(result.message)
        return False

    def _delete_copies(self, record: LastImageOperation, errors: List[str]) -> None:
        for f in record.created_files:
            if not file_ops.path_exists(f):
                self.logger.info(f"undo copy: file {f} seems to no longer exist; skipping.")
                continue
            result = self.executor.delete(f, operation_name="undo copy",
                                          companions=self._created_companions(record, f))
            if not result.ok:
                errors.append(result.message)

    def _remove_links(self, record: LastImageOperation, errors: List[str]) -> None:
        for f in record.created_files:
            for path in [f] + record.created_companions(f):
                if not file_ops.path_exists(path):
                    continue
                self.logger.info(f"undo link: removing {path}")
                try:
                    file_ops.delete_file(path)
                except OSError as e:
                    self.logger.error(f"undo link: problem removing {path}: {e}")
                    errors.append(f"Problem removing symlink {path.name}: {e}")
