"""
Single File Executor

Moves, copies or symlinks one image (plus its companion files) into a
destination directory, or deletes one image and its companions.

Each call returns a FileOperationResult rather than raising, so batch
callers can count outcomes and keep going. Execution order for a transfer:
1. Validate source and destination
2. Resolve a name conflict through the ConflictResolver
3. Check the destination is writable
4. Record the destination in the operation record (before any I/O)
5. pre_image_operation hook
6. Replace an existing destination, transfer the main file, then companions
7. Restore the source creation time on moved/copied files
8. post_image_operation hook

There is no rollback: if a companion fails, the files already written stay.
"""

import os
import time
import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import List, Optional

import file_ops
from conflict_resolution import ConflictAction, ConflictResolver
from extension_manager import ExtensionManager
from image_operation import LastImageOperation, OperationKind
from operation_errors import DestinationPermissionError, ValidationError


class OperationOutcome(Enum):
    SUCCESS = "success"
    SKIPPED = "skipped"
    ABORTED = "aborted"
    VALIDATION_ERROR = "validation_error"
    PERMISSION_ERROR = "permission_error"
    TRANSFER_ERROR = "transfer_error"


ERROR_OUTCOMES = (
    OperationOutcome.VALIDATION_ERROR,
    OperationOutcome.PERMISSION_ERROR,
    OperationOutcome.TRANSFER_ERROR,
)

TRANSFER_KINDS = (OperationKind.MOVE, OperationKind.COPY, OperationKind.SYMLINK)


@dataclass
class FileOperationResult:
    """Outcome of a single-file operation."""
    outcome: OperationOutcome
    source: Path
    destination: Optional[Path] = None
    message: str = ""
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.outcome == OperationOutcome.SUCCESS

    @property
    def is_error(self) -> bool:
        return self.outcome in ERROR_OUTCOMES


class SingleFileExecutor:
    """Performs one file operation at a time, with companions and hooks."""

    def __init__(self, resolver: ConflictResolver, extensions: ExtensionManager, config=None):
        self.logger = logging.getLogger(__name__)
        self.resolver = resolver
        self.extensions = extensions
        self.config = config

    @property
    def preserve_date_time(self) -> bool:
        if self.config is None:
            return True
        return self.config.is_preserve_date_time_enabled()

    def validate(self, source: Path, dest_dir: Path) -> None:
        """
        Check that source can be transferred into dest_dir.

        Raises:
            ValidationError: if the source is missing, the destination is not
                an existing directory, or the destination is the source's own directory
        """
        if source is None or dest_dir is None:
            raise ValidationError("Source and destination must both be given.")
        if not file_ops.path_exists(source):
            raise ValidationError(f"Source file does not exist: {source}")
        if source.is_dir() and not source.is_symlink():
            raise ValidationError(f"Source is a directory, not an image: {source}")
        if not dest_dir.exists():
            raise ValidationError(f"Destination does not exist: {dest_dir}")
        if not dest_dir.is_dir():
            raise ValidationError(f"Destination is not a directory: {dest_dir}")
        if os.path.realpath(dest_dir) == os.path.realpath(source.parent):
            raise ValidationError("Source and destination directories are the same.")

    def check_writable(self, dest_dir: Path, destination: Path) -> None:
        """Raises DestinationPermissionError if the destination can't be written."""
        if not os.access(dest_dir, os.W_OK):
            raise DestinationPermissionError(f"Destination directory is not writable: {dest_dir}")
        if file_ops.path_exists(destination) and not destination.is_symlink() \
                and not os.access(destination, os.W_OK):
            raise DestinationPermissionError(f"Destination file is not writable: {destination}")

    def execute(self, kind: OperationKind, source: Path, dest_dir: Path, batch_mode: bool = False,
                record: Optional[LastImageOperation] = None,
                operation_name: Optional[str] = None,
                companions: Optional[List[Path]] = None) -> FileOperationResult:
        """
        Move, copy or symlink one image into dest_dir.

        Args:
            kind: MOVE, COPY or SYMLINK
            source: Image to transfer
            dest_dir: Directory to put it in
            batch_mode: Whether the resolver may offer "abort the batch"
            record: Operation record that receives the final destination path
            operation_name: Name used in log lines (defaults to the kind)
            companions: Companion files to carry along instead of asking the
                extensions (undo passes the ones the operation wrote)

        Returns:
            FileOperationResult describing what happened
        """
        if kind not in TRANSFER_KINDS:
            raise ValueError(f"Unsupported operation kind for transfer: {kind}")
        name = operation_name or kind.label.lower()
        source = Path(source) if source is not None else None
        dest_dir = Path(dest_dir) if dest_dir is not None else None

        try:
            self.validate(source, dest_dir)
        except ValidationError as e:
            self.logger.warning(f"{name}: {e}")
            return FileOperationResult(OperationOutcome.VALIDATION_ERROR, source, message=str(e), error=e)

        destination = dest_dir / source.name
        replacing = False
        if file_ops.path_exists(destination):
            decision = self.resolver.resolve(source, dest_dir, batch_mode)
            action = decision.action
            if action == ConflictAction.ABORT_BATCH and not batch_mode:
                action = ConflictAction.SKIP

            if action == ConflictAction.SKIP:
                self.logger.info(f"{name}: skipped {source} (name conflict)")
                return FileOperationResult(OperationOutcome.SKIPPED, source, destination,
                                           message=f"Skipped {source.name}")
            if action == ConflictAction.ABORT_BATCH:
                self.logger.info(f"{name}: aborted at {source} (name conflict)")
                return FileOperationResult(OperationOutcome.ABORTED, source, destination,
                                           message="Operation cancelled.")
            if action == ConflictAction.RENAME:
                destination = Path(decision.destination) if decision.destination else None
                if destination is not None and len(destination.parts) == 1:
                    destination = dest_dir / destination
                if destination is None or destination.parent != dest_dir \
                        or file_ops.path_exists(destination):
                    e = ValidationError(f"Invalid rename target for {source.name}: {destination}")
                    self.logger.warning(f"{name}: {e}")
                    return FileOperationResult(OperationOutcome.VALIDATION_ERROR, source, destination,
                                               message=str(e), error=e)
            else:
                replacing = True

        try:
            self.check_writable(dest_dir, destination)
        except DestinationPermissionError as e:
            self.logger.error(f"{name}: {e}")
            return FileOperationResult(OperationOutcome.PERMISSION_ERROR, source, destination,
                                       message=str(e), error=e)

        if companions is None:
            companions = self.extensions.get_companion_files(source)
        if record is not None:
            record.add_created_file(destination)

        try:
            created_time = file_ops.get_creation_time(source)
        except OSError as e:
            self.logger.error(f"{name}: could not read {source}: {e}")
            return FileOperationResult(OperationOutcome.TRANSFER_ERROR, source, destination,
                                       message=f"Problem reading {source.name}: {e}", error=e)

        self.extensions.pre_image_operation(kind, source, destination)

        try:
            if replacing:
                self.logger.info(f"{name}: replacing existing {destination}")
                file_ops.delete_file(destination)
            self.logger.info(f"{name}: {source} -> {destination}")
            self._transfer(kind, source, destination)
            written = [destination]

            for companion in companions:
                target = dest_dir / companion.name
                if file_ops.path_exists(target):
                    if not replacing:
                        self.logger.warning(f"{name} (companion): {target} already exists, leaving {companion}")
                        continue
                    file_ops.delete_file(target)
                self.logger.info(f"{name} (companion): {companion} -> {target}")
                self._transfer(kind, companion, target)
                written.append(target)
                if record is not None:
                    record.add_created_companion(destination, target)

            if self.preserve_date_time and kind in (OperationKind.MOVE, OperationKind.COPY):
                for path in written:
                    file_ops.set_modified_time(path, created_time)

        except OSError as e:
            self.logger.error(f"{name}: problem transferring {source} -> {destination}: {e}")
            return FileOperationResult(OperationOutcome.TRANSFER_ERROR, source, destination,
                                       message=f"Problem with {kind.label.lower()} of {source.name}: {e}",
                                       error=e)

        self.extensions.post_image_operation(kind, destination)
        return FileOperationResult(OperationOutcome.SUCCESS, source, destination)

    def _transfer(self, kind: OperationKind, source: Path, destination: Path) -> None:
        if kind == OperationKind.MOVE:
            file_ops.move_file(source, destination)
        elif kind == OperationKind.COPY:
            file_ops.copy_file(source, destination)
        else:
            file_ops.create_symlink(source, destination)

    def delete(self, source: Path, operation_name: str = "deleteImage",
               companions: Optional[List[Path]] = None) -> FileOperationResult:
        """
        Delete one image and its companions.

        companions, when given, replaces the lookup through the extensions.

        Companion deletion is best-effort: failures are logged but don't make
        the result an error.
        """
        source = Path(source)
        if not file_ops.path_exists(source):
            e = ValidationError(f"File does not exist: {source}")
            self.logger.warning(f"{operation_name}: {e}")
            return FileOperationResult(OperationOutcome.VALIDATION_ERROR, source, message=str(e), error=e)

        start_time = time.time()
        if companions is None:
            companions = self.extensions.get_companion_files(source)
        self.extensions.pre_image_operation(OperationKind.DELETE, source, None)
        hook_time = time.time() - start_time
        start_time = time.time()

        self.logger.info(f"{operation_name}: {source}")
        try:
            file_ops.delete_file(source)
        except OSError as e:
            self.logger.error(f"{operation_name}: problem deleting {source}: {e}")
            return FileOperationResult(OperationOutcome.TRANSFER_ERROR, source,
                                       message=f"Problem deleting {source.name}: {e}", error=e)

        self.extensions.post_image_operation(OperationKind.DELETE, source)
        self.delete_companions(companions, operation_name)

        self.logger.debug(f"Deletion of {source}: {hook_time * 1000:.0f}ms for hooks, "
                          f"{(time.time() - start_time) * 1000:.0f}ms for deletion")
        return FileOperationResult(OperationOutcome.SUCCESS, source)

    def delete_companions(self, companions: List[Path], operation_name: str = "deleteImage") -> None:
        for companion in companions:
            if not file_ops.path_exists(companion):
                continue
            self.logger.info(f"{operation_name} (companion): {companion}")
            try:
                file_ops.delete_file(companion)
            except OSError as e:
                self.logger.warning(f"{operation_name} (companion): could not delete {companion}: {e}")
