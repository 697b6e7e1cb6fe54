"""File operation utilities for nojo."""

import hashlib
import logging
import os
from collections.abc import Iterator
from pathlib import Path

logger = logging.getLogger(__name__)


def write_bytes(path: Path | str, content: bytes) -> None:
    """Write bytes to a file, creating parent directories if needed.

    Args:
        path: Path to the file to write.
        content: Content to write to the file.
    """
    file_path = Path(path)
    file_path.parent.mkdir(parents=True, exist_ok=True)
    file_path.write_bytes(content)


def hash_bytes(content: bytes) -> str:
    """Compute the SHA-256 hex digest of some content.

    Used purely as an equality oracle for detecting modified files.

    Args:
        content: The bytes to hash.

    Returns:
        Hex-encoded SHA-256 digest (64 characters).
    """
    return hashlib.sha256(content).hexdigest()


def compute_file_hash(path: Path | str) -> str:
    """Compute the SHA-256 hex digest of a file's contents.

    Args:
        path: Path to the file to hash.

    Returns:
        Hex-encoded SHA-256 digest.

    Raises:
        OSError: If the file cannot be read.
    """
    return hash_bytes(Path(path).read_bytes())


def iter_tree_files(root: Path) -> Iterator[tuple[Path, str]]:
    """Walk a directory tree and yield every regular file in it.

    Shared by the synchronizer, the profile composer and the pre-install
    snapshot so that all three see the same files in the same order.

    Args:
        root: Directory to walk. A missing directory yields nothing.

    Yields:
        Tuples of (absolute path, POSIX path relative to root), sorted by
        relative path within each directory.
    """
    if not root.is_dir():
        return

    for dirpath, dirnames, filenames in os.walk(root):
        dirnames.sort()
        current = Path(dirpath)
        for filename in sorted(filenames):
            file_path = current / filename
            if not file_path.is_file():
                continue
            yield file_path, file_path.relative_to(root).as_posix()


def remove_empty_parents(directory: Path, stop_at: Path) -> None:
    """Remove empty directories walking upward, stopping at stop_at.

    The stop_at directory itself is removed too when it ends up empty.

    Args:
        directory: Starting directory to check for emptiness.
        stop_at: Highest directory that may be removed.
    """
    while directory == stop_at or directory.is_relative_to(stop_at):
        try:
            if directory.is_dir() and not any(directory.iterdir()):
                directory.rmdir()
                logger.debug(f"Removed empty directory: {directory}")
            else:
                break
        except OSError:
            break
        if directory == stop_at:
            break
        directory = directory.parent
