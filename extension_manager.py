"""
Extension Registry

Extensions can attach companion (sidecar) files to images and observe file
operations. The ExtensionManager is the single object the operation engine
talks to: it asks every registered extension for companions and fans hook
calls out to all of them.

Hooks are synchronous and called in registration order. A hook that raises
is logged and skipped; it never stops the other hooks or the operation.
"""

import logging
from pathlib import Path
from typing import Iterable, List, Optional

from image_operation import OperationKind

logger = logging.getLogger(__name__)

DEFAULT_COMPANION_EXTENSIONS = ['.txt', '.json', '.yaml', '.yml', '.xmp']


class ImageViewerExtension:
    """
    Base class for extensions. Every hook is a no-op by default.

    Subclasses override only what they care about.
    """

    name = "extension"

    def get_companion_files(self, image: Path) -> List[Path]:
        """Companion files of image that currently exist on disk."""
        return []

    def is_companion_file(self, path: Path) -> bool:
        return False

    def pre_image_operation(self, kind: OperationKind, source: Path, destination: Optional[Path]) -> None:
        pass

    def post_image_operation(self, kind: OperationKind, result: Path) -> None:
        pass

    def directory_was_moved(self, old_dir: Path, new_dir: Path) -> None:
        pass

    def directory_was_copied(self, old_dir: Path, new_dir: Path) -> None:
        pass


class SidecarCompanionExtension(ImageViewerExtension):
    """
    Treats sidecar files next to an image as its companions.

    Both naming styles are recognised, for each configured extension:
    - same base name: photo.json for photo.jpg
    - appended: photo.jpg.txt for photo.jpg
    """

    name = "sidecars"

    def __init__(self, extensions: Optional[Iterable[str]] = None):
        exts = DEFAULT_COMPANION_EXTENSIONS if extensions is None else extensions
        self.extensions = [e.lower() if e.startswith('.') else '.' + e.lower() for e in exts]

    def _candidates(self, image: Path) -> List[Path]:
        image = Path(image)
        candidates = []
        for ext in self.extensions:
            candidates.append(image.with_suffix(ext))
            candidates.append(image.with_name(image.name + ext))
        return candidates

    def get_companion_files(self, image: Path) -> List[Path]:
        image = Path(image)
        companions = []
        for candidate in self._candidates(image):
            if candidate != image and candidate.exists() and candidate not in companions:
                companions.append(candidate)
        return companions

    def is_companion_file(self, path: Path) -> bool:
        path = Path(path)
        return path.suffix.lower() in self.extensions


class ExtensionManager:
    """Registry of extensions plus the combined companion/hook interface."""

    def __init__(self, extensions: Optional[Iterable[ImageViewerExtension]] = None):
        self.logger = logging.getLogger(__name__)
        self.extensions: List[ImageViewerExtension] = list(extensions or [])

    def register(self, extension: ImageViewerExtension) -> None:
        self.extensions.append(extension)
        self.logger.debug(f"Registered extension: {extension.name}")

    def get_companion_files(self, image: Path) -> List[Path]:
        """
        Companion files of an image, across all extensions.

        Two extensions claiming the same sidecar yield it once; order follows
        registration order then each extension's own order.
        """
        companions = []
        seen = set()
        for extension in self.extensions:
            try:
                files = extension.get_companion_files(Path(image))
            except Exception as e:
                self.logger.error(f"Extension {extension.name} failed to list companions of {image}: {e}")
                continue
            for f in files:
                f = Path(f)
                if f not in seen:
                    seen.add(f)
                    companions.append(f)
        return companions

    def is_companion_file(self, path: Path) -> bool:
        for extension in self.extensions:
            try:
                if extension.is_companion_file(Path(path)):
                    return True
            except Exception as e:
                self.logger.error(f"Extension {extension.name} failed on {path}: {e}")
        return False

    def _dispatch(self, hook: str, *args) -> None:
        for extension in self.extensions:
            try:
                getattr(extension, hook)(*args)
            except Exception as e:
                self.logger.error(f"Extension {extension.name} raised in {hook}: {e}", exc_info=True)

    def pre_image_operation(self, kind: OperationKind, source: Path, destination: Optional[Path]) -> None:
        self._dispatch('pre_image_operation', kind, source, destination)

    def post_image_operation(self, kind: OperationKind, result: Path) -> None:
        self._dispatch('post_image_operation', kind, result)

    def directory_was_moved(self, old_dir: Path, new_dir: Path) -> None:
        self._dispatch('directory_was_moved', old_dir, new_dir)

    def directory_was_copied(self, old_dir: Path, new_dir: Path) -> None:
        self._dispatch('directory_was_copied', old_dir, new_dir)


def default_extension_manager(companion_extensions: Optional[Iterable[str]] = None) -> ExtensionManager:
    """ExtensionManager with the built-in sidecar extension registered."""
    return ExtensionManager([SidecarCompanionExtension(companion_extensions)])
