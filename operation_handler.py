"""
Image Operation Handler

Facade over the file operation engine. The UI (or the command line tool)
calls one method per user action; the handler records the action as the
last operation, runs it through the right coordinator and reports problems
through the MessageSink.

Supported actions:
- move / copy / symlink the selected image, all images in the current
  directory, or the current directory itself
- delete the selected image, all images, or the current directory
  (bulk deletes run on a background DeleteImageWorker)
- rename the selected image (with its companions)
- repeat the last operation against the current selection
- undo the last operation
"""

import logging
import os
from pathlib import Path
from typing import Optional, Tuple

import file_ops
from batch_coordinator import BatchOperationCoordinator
from conflict_resolution import ConflictResolver
from delete_worker import DeleteImageWorker
from directory_coordinator import DirectoryOperationCoordinator
from extension_manager import ExtensionManager, default_extension_manager
from image_operation import ImageOperation, LastImageOperation, OperationKind, PayloadScope
from operation_errors import FileTransferError, ValidationError
from operation_history import OperationHistory
from single_file_executor import OperationOutcome, SingleFileExecutor
from undo_manager import UndoManager

_ERROR_TITLES = {
    OperationOutcome.PERMISSION_ERROR: "Permissions error",
    OperationOutcome.TRANSFER_ERROR: "File transfer error",
}

_VERBS = {
    OperationKind.MOVE: "move",
    OperationKind.COPY: "copy",
    OperationKind.SYMLINK: "link",
}


class ImageOperationHandler:
    """Runs user-initiated file operations against the current browser state."""

    def __init__(
        self,
        context,
        resolver: ConflictResolver,
        messages,
        prompt,
        history: Optional[OperationHistory] = None,
        extensions: Optional[ExtensionManager] = None,
        config=None
    ):
        """
        Initialize the handler.

        Args:
            context: BrowserContext (selection, current directory, navigation)
            resolver: Decides what to do about naming conflicts
            messages: MessageSink for user-facing reports
            prompt: UserPrompt for confirmations and rename prompts
            history: Last-operation slot (a fresh one if not given)
            extensions: Companion files and hooks (the built-in sidecar
                extension if not given)
            config: ConfigManager, or None for default settings
        """
        self.logger = logging.getLogger(__name__)
        self.context = context
        self.messages = messages
        self.prompt = prompt
        self.config = config
        self.history = history if history is not None else OperationHistory()
        if extensions is None:
            companion_exts = config.get_companion_extensions() if config is not None else None
            extensions = default_extension_manager(companion_exts)
        self.extensions = extensions

        self.executor = SingleFileExecutor(resolver, self.extensions, config)
        self.batch = BatchOperationCoordinator(self.executor, config)
        self.directories = DirectoryOperationCoordinator(self.extensions, prompt)
        self.undo_manager = UndoManager(
            self.history, self.executor, self.directories, context, messages, prompt,
            start_directory_delete=self._start_directory_delete
        )
        self.active_worker: Optional[DeleteImageWorker] = None

    def _confirm_delete_all(self) -> bool:
        return self.config is None or self.config.is_confirm_delete_all_enabled()

    def _confirm_delete_directory(self) -> bool:
        return self.config is None or self.config.is_confirm_delete_directory_enabled()

    # Descriptor dispatch

    def execute(self, operation: ImageOperation) -> bool:
        """
        Run an operation descriptor against the current selection.

        If the descriptor has no destination, the user is asked for one.

        Returns:
            True if the operation completed (or, for bulk deletes, started)
        """
        self.logger.info(f"Executing {operation.short_name}")
        if operation.is_delete_operation():
            if operation.scope == PayloadScope.SINGLE_IMAGE:
                return self.delete_image()
            if operation.scope == PayloadScope.ALL_IMAGES:
                return self.delete_all_images()
            return self.delete_directory()

        destination = operation.destination
        if destination is None:
            destination = self.context.choose_directory()
            if destination is None:
                self.logger.info(f"{operation.short_name}: no destination chosen.")
                return False
            operation.set_destination(destination)

        if operation.scope == PayloadScope.SINGLE_IMAGE:
            return self._transfer_image(operation.kind, operation.destination)
        if operation.scope == PayloadScope.ALL_IMAGES:
            return self._transfer_all_images(operation.kind, operation.destination)
        return self._transfer_directory(operation.kind, operation.destination)

    # Move / copy / link

    def move_image(self, destination: Path) -> bool:
        return self._transfer_image(OperationKind.MOVE, destination)

    def move_all_images(self, destination: Path) -> bool:
        return self._transfer_all_images(OperationKind.MOVE, destination)

    def move_directory(self, destination: Path) -> bool:
        return self._transfer_directory(OperationKind.MOVE, destination)

    def copy_image(self, destination: Path) -> bool:
        return self._transfer_image(OperationKind.COPY, destination)

    def copy_all_images(self, destination: Path) -> bool:
        return self._transfer_all_images(OperationKind.COPY, destination)

    def copy_directory(self, destination: Path) -> bool:
        return self._transfer_directory(OperationKind.COPY, destination)

    def link_image(self, destination: Path) -> bool:
        return self._transfer_image(OperationKind.SYMLINK, destination)

    def link_all_images(self, destination: Path) -> bool:
        return self._transfer_all_images(OperationKind.SYMLINK, destination)

    def link_directory(self, destination: Path) -> bool:
        return self._transfer_directory(OperationKind.SYMLINK, destination)

    def _transfer_image(self, kind: OperationKind, destination: Optional[Path]) -> bool:
        name = ImageOperation(kind, PayloadScope.SINGLE_IMAGE).short_name
        image = self.context.selected_image()
        if image is None or not file_ops.path_exists(image):
            self.messages.info(f"{name}: Nothing selected.", title="No image selected")
            return False
        if destination is None:
            self.messages.error(f"{name}: Invalid destination.", title=f"{kind.label} error")
            return False

        # Recorded before any work so a cancelled or failed attempt still counts
        record = LastImageOperation(kind, PayloadScope.SINGLE_IMAGE, destination, Path(image).parent)
        self.history.set(record)

        result = self.executor.execute(kind, Path(image), Path(destination), batch_mode=False,
                                       record=record, operation_name=name)
        if result.ok:
            if kind == OperationKind.MOVE:
                self.context.selected_image_removed()
            return True
        if result.is_error:
            title = _ERROR_TITLES.get(result.outcome, f"{kind.label} error")
            self.messages.error(f"{name}: {result.message}", title=title, exc=result.error)
        return False

    def _transfer_all_images(self, kind: OperationKind, destination: Optional[Path]) -> bool:
        name = ImageOperation(kind, PayloadScope.ALL_IMAGES).short_name
        verb = _VERBS[kind]
        files = self.context.current_image_files()
        if not files:
            self.messages.info(f"{name}: No images to {verb}.", title=f"No images to {verb}")
            return False
        if destination is None:
            self.messages.error(f"{name}: Invalid destination.", title=f"{kind.label} error")
            return False

        source_dir = self.context.current_directory() or Path(files[0]).parent
        record = LastImageOperation(kind, PayloadScope.ALL_IMAGES, destination, source_dir)
        self.history.set(record)

        try:
            result = self.batch.run(kind, files, Path(destination), record=record, operation_name=name)
        except ValidationError as e:
            self.messages.error(f"{name}: {e}", title=f"{kind.label} error", exc=e)
            return False

        self.context.reload_current_directory()
        if result.failed:
            self.messages.error(
                f"{name}: {len(result.failed)} of {len(files)} images failed:\n" + "\n".join(result.errors),
                title="File transfer error"
            )
        return result.all_ok

    def _transfer_directory(self, kind: OperationKind, destination: Optional[Path]) -> bool:
        name = ImageOperation(kind, PayloadScope.DIRECTORY).short_name
        title = f"{kind.label} error"
        source_dir = self.context.current_directory()
        try:
            new_dir = self.directories.prepare(kind, source_dir, destination)
        except ValidationError as e:
            self.messages.error(f"{name}: {e}", title=title, exc=e)
            return False
        if new_dir is None:
            return False

        source_dir = Path(source_dir)
        self.history.set(LastImageOperation(kind, PayloadScope.DIRECTORY, new_dir, source_dir.parent))

        try:
            self.directories.execute(kind, source_dir, new_dir)
        except FileTransferError as e:
            self.messages.error(f"Error during {kind.label.lower()} of directory.", title=title, exc=e)
            return False

        if kind == OperationKind.MOVE:
            self.context.set_directory(source_dir.parent)
        elif kind == OperationKind.COPY:
            self.context.set_directory(source_dir)
            self.messages.info(f"The directory has been copied:\nOriginal: {source_dir}\nCopy: {new_dir}",
                               title="Copy complete")
        else:
            self.context.set_directory(source_dir)
            self.messages.info(f"The directory has been linked:\nOriginal: {source_dir}\nSymlink: {new_dir}",
                               title="Link complete")
        return True

    # Rename

    def rename_image(self, new_name: Optional[str]) -> bool:
        """
        Rename the selected image in place, along with its companions.

        Companions are renamed to the new base name with their own extension,
        unless that name is already taken. Renames are not undoable.
        """
        image = self.context.selected_image()
        if image is None or not file_ops.path_exists(image):
            self.logger.info("renameImage: source file is null or nonexistent.")
            return False
        image = Path(image)

        if not new_name or not new_name.strip():
            self.messages.error("Attempted to rename image with an empty new name.", title="Rename error")
            return False
        if os.sep in new_name or (os.altsep and os.altsep in new_name):
            self.messages.error("An image name can't contain a path separator.", title="Rename error")
            return False

        new_file = image.parent / new_name
        if file_ops.path_exists(new_file):
            self.messages.error("Attempted to rename image to a name that is in use.", title="Rename error")
            return False

        companions = self.extensions.get_companion_files(image)

        self.logger.info(f"renameImage: {image} -> {new_name}")
        self.extensions.pre_image_operation(OperationKind.MOVE, image, new_file)
        try:
            file_ops.move_file(image, new_file)
        except OSError as e:
            self.messages.error(f"Problem renaming {image.name}: {e}", title="Rename error", exc=e)
            return False

        for companion in companions:
            renamed = image.parent / (new_file.stem + companion.suffix)
            if file_ops.path_exists(renamed):
                self.logger.warning(f"renameImage: companion file {renamed} already exists. Skipping.")
                continue
            self.logger.info(f"renameImage (companion): {companion} -> {renamed}")
            try:
                file_ops.move_file(companion, renamed)
            except OSError as e:
                self.logger.warning(f"renameImage (companion): could not rename {companion}: {e}")

        self.extensions.post_image_operation(OperationKind.MOVE, new_file)
        self.context.selected_image_renamed(new_file)
        return True

    # Delete

    def delete_image(self) -> bool:
        image = self.context.selected_image()
        if image is None or not file_ops.path_exists(image):
            self.logger.info("deleteImage: source file is null or nonexistent.")
            return False

        result = self.executor.delete(Path(image), operation_name="deleteImage")
        if not result.ok:
            self.messages.error(f"Error deleting {image} - check permissions.", title="Delete error",
                                exc=result.error)
            return False
        self.context.selected_image_removed()
        return True

    def delete_all_images(self) -> bool:
        """Start deleting every image in the current directory in the background."""
        files = self.context.current_image_files()
        if not files:
            self.messages.info("No images to delete.", title="No images to delete")
            return False
        if self._confirm_delete_all() and \
                not self.prompt.confirm("Confirm delete all", "Really delete all images here?"):
            return False

        self.context.disable_directory_tree()
        worker = DeleteImageWorker(
            self.executor,
            lambda okay: self.context.dispatch(lambda: self.delete_all_images_callback(okay)),
            files=files
        )
        self.active_worker = worker
        worker.start()
        return True

    def deletion_summary(self, directory: Path) -> str:
        """Confirmation text for deleting a directory, counting what's inside."""
        images = file_ops.list_image_files(directory)
        aliens = [
            f for f in file_ops.list_files(directory)
            if not file_ops.is_image_file(f) and not self.extensions.is_companion_file(f)
        ]
        subdirs = file_ops.find_subdirectories(directory, True)

        if not images and not aliens and not subdirs:
            return "Delete this empty directory?"

        message = ""
        if images:
            message += f"{len(images)} images will be deleted!\n"
        if aliens:
            message += f"{len(aliens)} alien files will be deleted!\n"
        if subdirs:
            message += f"{len(subdirs)} subdirectories (total) will be deleted!\n"
        return message

    def delete_directory(self) -> bool:
        """Start deleting the current directory and everything in it."""
        directory = self.context.current_directory()
        if directory is None or not Path(directory).is_dir():
            self.messages.error("Delete directory: no current directory.", title="Delete error")
            return False
        directory = Path(directory)

        if self._confirm_delete_directory() and \
                not self.prompt.confirm("Confirm deletion", self.deletion_summary(directory)):
            return False

        self._start_directory_delete(directory)
        return True

    def _start_directory_delete(self, directory: Path) -> DeleteImageWorker:
        self.context.disable_directory_tree()
        worker = DeleteImageWorker(
            self.executor,
            lambda okay: self.context.dispatch(lambda: self.delete_directory_callback(directory, okay)),
            directory=directory
        )
        self.active_worker = worker
        worker.start()
        return worker

    def wait_for_worker(self, timeout: Optional[float] = None) -> bool:
        """Block until the running delete worker (if any) finishes; True if it did."""
        if self.active_worker is None:
            return True
        return self.active_worker.join(timeout)

    def delete_all_images_callback(self, okay: bool) -> None:
        self.context.enable_directory_tree()
        self.context.reload_current_directory()
        if not okay:
            self.messages.info(
                "Not all images were deleted. Either canceled by user, or permissions error encountered.",
                title="Deletion problem"
            )

    def delete_directory_callback(self, directory: Path, okay: bool) -> None:
        """
        Called once a directory delete finishes.

        okay is logged but not reported: companion-deleting extensions can
        remove files before the worker reaches them, which looks like a failure.
        """
        self.context.enable_directory_tree()
        self.logger.info(f"deleteDirectory: finished {directory} (all deleted okay: {okay})")

        current = self.context.current_directory()
        directory = Path(directory)
        if current is not None and (Path(current) == directory or directory in Path(current).parents):
            self.context.set_directory(directory.parent)
        else:
            self.context.reload_current_directory()

    # Repeat / undo

    def repeat_last_operation(self) -> bool:
        """Run the last operation again, against whatever is selected now."""
        record = self.history.get()
        if record is None:
            self.messages.error("There is no previous operation to repeat.", title="Repeat")
            return False

        destination = record.repeat_destination()
        if not destination.exists() or not destination.is_dir():
            self.messages.error(f"Destination directory \"{destination}\" does not exist or is not a directory",
                                title="Repeat")
            return False

        if record.scope == PayloadScope.DIRECTORY:
            if self.context.current_directory() is None:
                self.messages.error("No directory selected.", title="Repeat")
                return False
        elif self.context.selected_image() is None:
            self.messages.error("No image selected.", title="Repeat")
            return False

        self.logger.info(f"Repeating {record.short_name} to {destination}")
        return self.execute(record.to_operation())

    def undo_last_operation(self) -> Tuple[bool, str]:
        return self.undo_manager.undo_last_operation()
