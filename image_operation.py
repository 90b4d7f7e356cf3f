"""
Image Operation Descriptors

Value types describing what a file operation does:
- OperationKind: move, copy, symlink or delete
- PayloadScope: a single image, all images in a directory, or the directory itself
- ImageOperation: kind x scope plus an optional destination directory
- LastImageOperation: an ImageOperation that also remembers its source and
  every file it actually created, used for repeat and undo
"""

from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Union

PathLike = Union[str, Path]


class OperationKind(Enum):
    """What to do with the payload."""
    MOVE = "Move"
    COPY = "Copy"
    SYMLINK = "Symlink"
    DELETE = "Delete"

    @property
    def label(self) -> str:
        return self.value

    def __str__(self) -> str:
        return self.value


class PayloadScope(Enum):
    """What the operation applies to."""
    SINGLE_IMAGE = "Single image"
    ALL_IMAGES = "All images"
    DIRECTORY = "Directory"

    @property
    def label(self) -> str:
        return self.value

    def __str__(self) -> str:
        return self.value


_SHORT_KIND = {
    OperationKind.MOVE: "move",
    OperationKind.COPY: "copy",
    OperationKind.SYMLINK: "link",
    OperationKind.DELETE: "delete",
}

_SHORT_SCOPE = {
    PayloadScope.SINGLE_IMAGE: "SingleImage",
    PayloadScope.ALL_IMAGES: "AllImages",
    PayloadScope.DIRECTORY: "Directory",
}


def _as_path(value: Optional[PathLike]) -> Optional[Path]:
    if value is None:
        return None
    return Path(value)


class ImageOperation:
    """
    Describes a file operation: kind x scope, plus an optional destination.

    The destination may be left unset until the UI resolves it (for example
    by showing a directory chooser), but it must be set before a
    move/copy/symlink is executed. Delete operations never need one.
    """

    def __init__(self, kind: OperationKind, scope: PayloadScope, destination: Optional[PathLike] = None):
        if kind is None or scope is None:
            raise ValueError("Attempted to create an ImageOperation without a kind or scope.")
        self._kind = kind
        self._scope = scope
        self.destination = _as_path(destination)

    @property
    def kind(self) -> OperationKind:
        return self._kind

    @property
    def scope(self) -> PayloadScope:
        return self._scope

    def copy(self) -> "ImageOperation":
        """Return an independent descriptor with the same kind, scope and destination."""
        return ImageOperation(self._kind, self._scope, self.destination)

    def get_destination(self) -> Optional[Path]:
        return self.destination

    def set_destination(self, destination: Optional[PathLike]) -> None:
        self.destination = _as_path(destination)

    def is_undoable(self) -> bool:
        return self._kind != OperationKind.DELETE

    def is_delete_operation(self) -> bool:
        return self._kind == OperationKind.DELETE

    @property
    def short_name(self) -> str:
        """Very short name for log messages, e.g. 'moveSingleImage'."""
        return _SHORT_KIND[self._kind] + _SHORT_SCOPE[self._scope]

    def __eq__(self, other) -> bool:
        if not isinstance(other, ImageOperation):
            return NotImplemented
        return (self._kind, self._scope, self.destination) == (other._kind, other._scope, other.destination)

    def __hash__(self) -> int:
        return hash((self._kind, self._scope, self.destination))

    def __repr__(self) -> str:
        return f"ImageOperation({self._kind.name}, {self._scope.name}, destination={self.destination})"

    # Factories for each kind x scope combination

    @classmethod
    def move_single_image(cls, destination: Optional[PathLike] = None) -> "ImageOperation":
        return cls(OperationKind.MOVE, PayloadScope.SINGLE_IMAGE, destination)

    @classmethod
    def move_all_images(cls, destination: Optional[PathLike] = None) -> "ImageOperation":
        return cls(OperationKind.MOVE, PayloadScope.ALL_IMAGES, destination)

    @classmethod
    def move_directory(cls, destination: Optional[PathLike] = None) -> "ImageOperation":
        return cls(OperationKind.MOVE, PayloadScope.DIRECTORY, destination)

    @classmethod
    def copy_single_image(cls, destination: Optional[PathLike] = None) -> "ImageOperation":
        return cls(OperationKind.COPY, PayloadScope.SINGLE_IMAGE, destination)

    @classmethod
    def copy_all_images(cls, destination: Optional[PathLike] = None) -> "ImageOperation":
        return cls(OperationKind.COPY, PayloadScope.ALL_IMAGES, destination)

    @classmethod
    def copy_directory(cls, destination: Optional[PathLike] = None) -> "ImageOperation":
        return cls(OperationKind.COPY, PayloadScope.DIRECTORY, destination)

    @classmethod
    def link_single_image(cls, destination: Optional[PathLike] = None) -> "ImageOperation":
        return cls(OperationKind.SYMLINK, PayloadScope.SINGLE_IMAGE, destination)

    @classmethod
    def link_all_images(cls, destination: Optional[PathLike] = None) -> "ImageOperation":
        return cls(OperationKind.SYMLINK, PayloadScope.ALL_IMAGES, destination)

    @classmethod
    def link_directory(cls, destination: Optional[PathLike] = None) -> "ImageOperation":
        return cls(OperationKind.SYMLINK, PayloadScope.DIRECTORY, destination)

    @classmethod
    def delete_single_image(cls) -> "ImageOperation":
        return cls(OperationKind.DELETE, PayloadScope.SINGLE_IMAGE)

    @classmethod
    def delete_all_images(cls) -> "ImageOperation":
        return cls(OperationKind.DELETE, PayloadScope.ALL_IMAGES)

    @classmethod
    def delete_directory(cls) -> "ImageOperation":
        return cls(OperationKind.DELETE, PayloadScope.DIRECTORY)


class LastImageOperation(ImageOperation):
    """
    An ImageOperation that tracks its source and the files it created.

    created_files is appended to in execution order, and only for files that
    were about to be written to the destination, so undo acts on exactly what
    the operation produced.
    """

    def __init__(self, kind: OperationKind, scope: PayloadScope, destination: PathLike, source: PathLike):
        if destination is None or source is None:
            raise ValueError("Attempted to create a LastImageOperation without a source or destination.")
        super().__init__(kind, scope, destination)
        self._source = Path(source)
        self._created_files: List[Path] = []
        self._created_companions: Dict[Path, List[Path]] = {}

    @property
    def source(self) -> Path:
        return self._source

    def add_created_file(self, path: PathLike) -> None:
        self._created_files.append(Path(path))

    @property
    def created_files(self) -> List[Path]:
        return list(self._created_files)

    def add_created_companion(self, created_file: PathLike, companion: PathLike) -> None:
        self._created_companions.setdefault(Path(created_file), []).append(Path(companion))

    def created_companions(self, created_file: PathLike) -> List[Path]:
        """Companion files written alongside created_file (pre-existing ones are never listed)."""
        return list(self._created_companions.get(Path(created_file), []))

    def repeat_destination(self) -> Path:
        """
        Directory that a repeat of this operation should target.

        For directory operations the recorded destination is the newly created
        directory itself, so the repeat goes to its parent instead.
        """
        if self.scope == PayloadScope.DIRECTORY:
            return self.destination.parent
        return self.destination

    def to_operation(self) -> ImageOperation:
        """Fresh descriptor with this record's kind, scope and repeat destination."""
        return ImageOperation(self.kind, self.scope, self.repeat_destination())

    def __repr__(self) -> str:
        return (f"LastImageOperation({self.kind.name}, {self.scope.name}, "
                f"source={self._source}, destination={self.destination}, "
                f"created={len(self._created_files)})")
