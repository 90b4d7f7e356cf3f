"""
Exceptions raised by the image file operation engine.

These are raised internally and converted into FileOperationResult outcomes
at the single-file boundary, or into user-facing messages by the
ImageOperationHandler. Naming conflicts are not errors; they are resolved
through a ConflictResolver.
"""


class ImageOperationError(Exception):
    """Base class for all file operation engine errors."""


class ValidationError(ImageOperationError):
    """Missing source/destination, identical locations, or a non-directory target."""


class DestinationPermissionError(ImageOperationError):
    """The destination directory (or file being replaced) is not writable."""


class FileTransferError(ImageOperationError):
    """An I/O failure during the actual move/copy/symlink/delete."""


class UndoImpossibleError(ImageOperationError):
    """There is nothing to undo, or the recorded artifacts are gone."""
