"""
File Operations Utility Module

Filesystem primitives used by the image operation engine:
- Moving, copying, symlinking and deleting single files
- Bulk directory move/copy/delete
- Creation-time capture and modified-time restore
- Recursive file/subdirectory enumeration with a cancellable listener
- Image file detection (built-in list plus whatever Pillow can open)
- Disk space validation

Everything here is a thin wrapper over os/shutil; callers decide how to
report failures. Functions raise OSError subclasses on I/O problems.

Version: 2.0
"""

import os
import shutil
import logging
from functools import lru_cache
from pathlib import Path
from typing import Callable, FrozenSet, Iterable, List, Optional, Tuple, Union

from PIL import Image

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

# Called once per discovered entry; returning False halts the search
SearchListener = Callable[[Path], bool]

# Image extensions recognised even without asking Pillow
IMAGE_EXTENSIONS = ('.png', '.jpg', '.jpeg', '.bmp', '.gif', '.webp')


@lru_cache(maxsize=1)
def get_supported_image_extensions() -> FrozenSet[str]:
    """
    Get the lowercase extensions treated as images.

    Combines the built-in list with every extension Pillow has a decoder for.

    Returns:
        Frozen set of extensions including the leading dot
    """
    extensions = set(IMAGE_EXTENSIONS)
    for ext, fmt in Image.registered_extensions().items():
        if fmt in Image.OPEN:
            extensions.add(ext.lower())
    return frozenset(extensions)


def is_image_file(path: PathLike) -> bool:
    """Check whether a path looks like an image by extension."""
    return Path(path).suffix.lower() in get_supported_image_extensions()


def path_exists(path: PathLike) -> bool:
    """Like os.path.exists, but also true for dangling symlinks."""
    return os.path.lexists(path)


def list_image_files(directory: PathLike) -> List[Path]:
    """
    List the images directly inside a directory (not recursive), sorted by name.

    Args:
        directory: Directory to scan

    Returns:
        List of image paths; empty if the directory can't be read
    """
    directory = Path(directory)
    try:
        entries = sorted(directory.iterdir())
    except OSError as e:
        logger.warning(f"Could not list {directory}: {e}")
        return []
    return [p for p in entries if p.is_file() and is_image_file(p)]


def list_files(directory: PathLike) -> List[Path]:
    """List every regular file (or symlink) directly inside a directory, sorted by name."""
    directory = Path(directory)
    try:
        entries = sorted(directory.iterdir())
    except OSError as e:
        logger.warning(f"Could not list {directory}: {e}")
        return []
    return [p for p in entries if p.is_symlink() or p.is_file()]


def move_file(source: PathLike, destination: PathLike) -> None:
    """Move a single file. Fails if the destination already exists."""
    if path_exists(destination):
        raise FileExistsError(f"Destination already exists: {destination}")
    shutil.move(str(source), str(destination))


def copy_file(source: PathLike, destination: PathLike) -> None:
    """Copy a single file with its metadata. Fails if the destination already exists."""
    if path_exists(destination):
        raise FileExistsError(f"Destination already exists: {destination}")
    shutil.copy2(str(source), str(destination))


def create_symlink(target: PathLike, link: PathLike) -> None:
    """Create a symlink at link pointing at the absolute path of target."""
    os.symlink(os.path.abspath(target), str(link))


def delete_file(path: PathLike) -> None:
    """Delete a file or symlink (the link itself, never its target)."""
    os.unlink(str(path))


def move_directory(source: PathLike, destination: PathLike) -> None:
    """Move a whole directory tree. Fails if the destination already exists."""
    if path_exists(destination):
        raise FileExistsError(f"Destination already exists: {destination}")
    shutil.move(str(source), str(destination))


def copy_directory(source: PathLike, destination: PathLike) -> None:
    """Copy a whole directory tree, preserving symlinks as symlinks."""
    shutil.copytree(str(source), str(destination), symlinks=True)


def delete_directory(path: PathLike) -> None:
    """Delete a directory tree, or just the link if path is a symlink to a directory."""
    if os.path.islink(path):
        os.unlink(str(path))
    else:
        shutil.rmtree(str(path))


def remove_empty_directory(path: PathLike) -> None:
    """Remove a directory that must already be empty."""
    os.rmdir(str(path))


def get_creation_time(path: PathLike) -> float:
    """
    Get the creation time of a file.

    Uses the birth time where the platform records one, otherwise the
    modification time.
    """
    st = os.stat(str(path))
    return getattr(st, 'st_birthtime', st.st_mtime)


def set_modified_time(path: PathLike, timestamp: float) -> None:
    """Set the modified time of a file, leaving its access time alone."""
    st = os.stat(str(path))
    os.utime(str(path), (st.st_atime, timestamp))


def find_files(directory: PathLike, recursive: bool = True,
               listener: Optional[SearchListener] = None) -> List[Path]:
    """
    Find all files under a directory.

    Symlinks (including links to directories) are reported as files and never
    followed. Entries are reported top-down, sorted by name within each
    directory.

    Args:
        directory: Directory to search
        recursive: Whether to descend into subdirectories
        listener: Called once per file found; returning False halts the search

    Returns:
        Files found (up to the point the listener halted the search)
    """
    found = []
    for root, dirs, files in os.walk(str(directory)):
        dirs.sort()
        links = [d for d in dirs if os.path.islink(os.path.join(root, d))]
        dirs[:] = [d for d in dirs if d not in links]
        for name in sorted(files + links):
            path = Path(root) / name
            found.append(path)
            if listener is not None and not listener(path):
                return found
        if not recursive:
            break
    return found


def find_subdirectories(directory: PathLike, recursive: bool = True,
                        listener: Optional[SearchListener] = None) -> List[Path]:
    """
    Find all real subdirectories under a directory (symlinks are not included).

    Directories are reported top-down, so reversing the list yields
    deepest-first order.

    Args:
        directory: Directory to search
        recursive: Whether to descend into subdirectories
        listener: Called once per directory found; returning False halts the search

    Returns:
        Subdirectories found (up to the point the listener halted the search)
    """
    found = []
    for root, dirs, _files in os.walk(str(directory)):
        dirs[:] = sorted(d for d in dirs if not os.path.islink(os.path.join(root, d)))
        for name in dirs:
            path = Path(root) / name
            found.append(path)
            if listener is not None and not listener(path):
                return found
        if not recursive:
            break
    return found


def check_disk_space(
    files: Iterable[PathLike],
    destination_folder: PathLike,
    safety_margin: float = 1.1
) -> Tuple[bool, Optional[str]]:
    """
    Check if there's enough disk space for an operation.

    Args:
        files: List of file paths to process (include companions if they travel too)
        destination_folder: Destination folder path
        safety_margin: Multiplier for required space (1.1 = 10% extra)

    Returns:
        (success, error_message) tuple
    """
    if not destination_folder or not os.path.exists(destination_folder):
        return True, None  # Can't check, assume OK

    try:
        total_size = 0
        for file_path in files:
            if os.path.exists(file_path):
                total_size += os.path.getsize(file_path)

        free_space = shutil.disk_usage(str(destination_folder)).free
        required_space = total_size * safety_margin

        if required_space > free_space:
            error_msg = (
                f"Insufficient disk space: need {format_size(required_space)}, "
                f"only {format_size(free_space)} available"
            )
            return False, error_msg

        return True, None

    except OSError as e:
        logger.error(f"Error checking disk space: {e}")
        return True, None  # Log error but allow operation


def format_size(size_bytes: float) -> str:
    """
    Format bytes as human-readable size.

    Args:
        size_bytes: Size in bytes

    Returns:
        Human-readable string (e.g., "1.5 GB")
    """
    for unit in ['B', 'KB', 'MB', 'GB', 'TB']:
        if size_bytes < 1024:
            return f"{size_bytes:.1f} {unit}"
        size_bytes /= 1024
    return f"{size_bytes:.1f} PB"
