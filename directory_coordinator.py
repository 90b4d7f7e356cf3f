"""
Directory Operation Coordinator

Moves, copies or symlinks a whole directory into a destination directory
as one bulk filesystem call. Before anything happens the user is offered
the chance to rename the directory, and is asked again for as long as the
chosen name is already taken.
"""

import logging
import os
from pathlib import Path
from typing import Optional

import file_ops
from extension_manager import ExtensionManager
from image_operation import ImageOperation, OperationKind, PayloadScope
from operation_errors import FileTransferError, ValidationError

logger = logging.getLogger(__name__)

RENAME_PROMPT = "Optionally rename this directory while {verb}:"
TAKEN_PROMPT = "That directory already exists. Rename:"

_VERBS = {
    OperationKind.MOVE: "moving",
    OperationKind.COPY: "copying",
    OperationKind.SYMLINK: "linking",
}


class DirectoryOperationCoordinator:
    """Bulk directory move/copy/symlink with a rename-on-the-way prompt."""

    def __init__(self, extensions: ExtensionManager, prompt):
        self.extensions = extensions
        self.prompt = prompt

    def validate(self, source_dir: Optional[Path], destination: Optional[Path]) -> None:
        """
        Raises:
            ValidationError: if either directory is missing, or the destination
                is the source itself or somewhere inside it
        """
        if source_dir is None or not source_dir.exists() or not source_dir.is_dir():
            raise ValidationError("Source directory is null or nonexistent.")
        if destination is None or not destination.exists() or not destination.is_dir():
            raise ValidationError("Destination directory is null or nonexistent.")
        real_source = os.path.realpath(source_dir)
        real_dest = os.path.realpath(destination)
        if real_dest == real_source:
            raise ValidationError("Source and destination directories are the same.")
        if real_dest.startswith(real_source + os.sep):
            raise ValidationError("Destination directory is inside the source directory.")

    def prepare(self, kind: OperationKind, source_dir: Path, destination: Path,
                message: Optional[str] = None) -> Optional[Path]:
        """
        Validate and pick the new directory's name.

        Returns:
            The path the directory will get, or None if the user cancelled

        Raises:
            ValidationError: see validate()
        """
        source_dir = Path(source_dir) if source_dir is not None else None
        destination = Path(destination) if destination is not None else None
        self.validate(source_dir, destination)

        name = source_dir.name
        message = message or RENAME_PROMPT.format(verb=_VERBS.get(kind, "processing"))
        while True:
            new_name = self.prompt.ask_new_name(message, name)
            if new_name is None:
                logger.info(f"{ImageOperation(kind, PayloadScope.DIRECTORY).short_name}: canceled by user.")
                return None
            new_name = new_name.strip()
            new_dir = destination / new_name
            if new_name and os.sep not in new_name and not file_ops.path_exists(new_dir):
                return new_dir
            name = new_name or name
            message = TAKEN_PROMPT

    def execute(self, kind: OperationKind, source_dir: Path, new_dir: Path) -> None:
        """
        Perform the bulk operation and notify extensions.

        Raises:
            FileTransferError: if the filesystem operation fails
        """
        source_dir = Path(source_dir)
        new_dir = Path(new_dir)
        name = ImageOperation(kind, PayloadScope.DIRECTORY).short_name
        logger.info(f"{name}: {source_dir} -> {new_dir}")
        try:
            if kind == OperationKind.MOVE:
                file_ops.move_directory(source_dir, new_dir)
            elif kind == OperationKind.COPY:
                file_ops.copy_directory(source_dir, new_dir)
            elif kind == OperationKind.SYMLINK:
                file_ops.create_symlink(source_dir, new_dir)
            else:
                raise ValueError(f"Unsupported directory operation: {kind}")
        except OSError as e:
            logger.error(f"{name}: problem with {source_dir} -> {new_dir}: {e}")
            raise FileTransferError(f"Error during {kind.label.lower()} of directory: {e}") from e

        if kind == OperationKind.MOVE:
            self.extensions.directory_was_moved(source_dir, new_dir)
        elif kind == OperationKind.COPY:
            self.extensions.directory_was_copied(source_dir, new_dir)
