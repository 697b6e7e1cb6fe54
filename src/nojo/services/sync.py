"""Manifest-aware, non-destructive file synchronization.

This module decides, file by file, whether nojo may write to a
destination path:

- Missing destination: install it and start tracking it.
- Destination tracked as managed and unchanged since nojo wrote it:
  overwrite it with the new content and refresh the tracked hash.
- Destination tracked but edited by the user: leave it alone.
- Destination present but never written by nojo: leave it alone and do
  not start tracking it.

Directories are never pruned while syncing. Any OSError aborts the whole
sync so that counts are never reported for a partially applied tree.
"""

import logging
from collections.abc import Callable, Mapping
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from nojo import __version__
from nojo.models.manifest import FileSource, Manifest
from nojo.utils.files import (
    compute_file_hash,
    hash_bytes,
    iter_tree_files,
    remove_empty_parents,
    write_bytes,
)
from nojo.utils.template import render_file

logger = logging.getLogger(__name__)


class FileSyncStatus(Enum):
    """Outcome of syncing a single file.

    Attributes:
        CREATED: Destination did not exist and was written.
        UPDATED: Unmodified managed file was overwritten.
        MODIFIED: Managed file edited by the user; preserved.
        UNTRACKED: File not written by nojo; preserved.
    """

    CREATED = "created"
    UPDATED = "updated"
    MODIFIED = "modified"
    UNTRACKED = "untracked"

    @property
    def installed(self) -> bool:
        return self in (FileSyncStatus.CREATED, FileSyncStatus.UPDATED)


class SyncResult(BaseModel):
    """Aggregate outcome of a sync.

    Attributes:
        installed: Relative paths that were written.
        preserved: Relative paths left untouched.
    """

    installed: list[str] = Field(default_factory=list)
    preserved: list[str] = Field(default_factory=list)

    @property
    def installed_count(self) -> int:
        return len(self.installed)

    @property
    def preserved_count(self) -> int:
        return len(self.preserved)

    def record(self, path: str, status: FileSyncStatus) -> None:
        """Add one file outcome to the totals."""
        if status.installed:
            self.installed.append(path)
        else:
            self.preserved.append(path)

    def merge(self, other: "SyncResult") -> "SyncResult":
        """Fold another result into this one and return self."""
        self.installed.extend(other.installed)
        self.preserved.extend(other.preserved)
        return self


class RemovalResult(BaseModel):
    """Outcome of removing managed files.

    Attributes:
        removed: Relative paths deleted from disk and the manifest.
        kept: Relative paths left in place because the user modified them.
    """

    removed: list[str] = Field(default_factory=list)
    kept: list[str] = Field(default_factory=list)


class DirectorySynchronizer(BaseModel):
    """Mirror profile trees into the configuration directory.

    All decisions are recorded on the in-memory manifest; the caller is
    responsible for saving it once the whole operation has succeeded.

    Attributes:
        install_dir: The install root. Manifest paths are relative to it
            and template placeholders resolve against it.
        manifest: The loaded manifest to consult and update.
        version: nojo version recorded on new entries.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    install_dir: Path
    manifest: Manifest
    version: str = __version__

    def relative_path(self, path: Path) -> str:
        """Return the manifest key for an absolute destination path."""
        return path.relative_to(self.install_dir).as_posix()

    def sync_file(
        self, source: Path, destination: Path, profile_name: str | None
    ) -> FileSyncStatus:
        """Apply the install/preserve decision to a single file.

        Args:
            source: File to install.
            destination: Absolute destination path under install_dir.
            profile_name: Profile recorded on the manifest entry.

        Returns:
            What happened to the destination.

        Raises:
            OSError: If reading, hashing or writing fails.
        """
        relative_path = self.relative_path(destination)
        content = render_file(source, self.install_dir)
        entry = self.manifest.get_entry(relative_path)

        if destination.exists():
            if entry is None:
                logger.info(f"Preserving existing: {relative_path}")
                return FileSyncStatus.UNTRACKED
            if entry.source != FileSource.managed:
                logger.info(f"Preserving {entry.source.value} file: {relative_path}")
                return FileSyncStatus.UNTRACKED
            if compute_file_hash(destination) != entry.hash:
                logger.info(f"Preserving user-modified: {relative_path}")
                return FileSyncStatus.MODIFIED
            status = FileSyncStatus.UPDATED
        else:
            status = FileSyncStatus.CREATED

        write_bytes(destination, content)
        self.manifest.add_entry(
            relative_path,
            hash_bytes(content),
            source=FileSource.managed,
            profile=profile_name,
            version=self.version,
        )
        logger.debug(f"{status.value.capitalize()}: {relative_path}")
        return status

    def sync_files(
        self,
        files: Mapping[str, Path],
        destination_dir: Path,
        profile_name: str | None,
    ) -> SyncResult:
        """Sync a set of files into a destination directory.

        Args:
            files: Mapping of POSIX path (relative to destination_dir) to
                the source file providing its content.
            destination_dir: Directory the relative paths are rooted at.
            profile_name: Profile recorded on new manifest entries.

        Returns:
            Installed and preserved paths.

        Raises:
            OSError: On the first file that cannot be read or written.
        """
        result = SyncResult()
        for relative, source in sorted(files.items()):
            destination = destination_dir / relative
            status = self.sync_file(source, destination, profile_name)
            result.record(self.relative_path(destination), status)
        return result

    def sync(
        self,
        source_dir: Path,
        destination_dir: Path,
        profile_name: str | None,
        exclude: Callable[[str], bool] | None = None,
    ) -> SyncResult:
        """Mirror a source directory tree into a destination directory.

        A missing source directory is not an error; it syncs zero files.

        Args:
            source_dir: Directory to copy from.
            destination_dir: Directory to copy into.
            profile_name: Profile recorded on new manifest entries.
            exclude: Optional predicate on source-relative POSIX paths;
                matching files are skipped entirely.

        Returns:
            Installed and preserved paths.
        """
        files = {
            relative: path
            for path, relative in iter_tree_files(source_dir)
            if exclude is None or not exclude(relative)
        }
        return self.sync_files(files, destination_dir, profile_name)

    def remove_managed(
        self, destination_dir: Path, profile_name: str | None = None
    ) -> RemovalResult:
        """Delete managed, unmodified files tracked under a directory.

        Entries for files that no longer exist are dropped. Files whose
        content differs from the tracked hash stay on disk and in the
        manifest. Directories emptied by the removal are deleted, up to
        and including destination_dir.

        Args:
            destination_dir: Directory (or single file) to clean up.
            profile_name: When given, only entries for this profile.

        Returns:
            Removed and kept paths.

        Raises:
            OSError: If a file cannot be hashed or deleted.
        """
        result = RemovalResult()
        prefix = self.relative_path(destination_dir)

        for entry in sorted(self.manifest.entries_under(prefix), key=lambda e: e.path):
            if entry.source != FileSource.managed:
                continue
            if profile_name is not None and entry.profile != profile_name:
                continue

            path = self.install_dir / entry.path
            if not path.exists():
                self.manifest.remove_entry(entry.path)
                continue

            if compute_file_hash(path) != entry.hash:
                logger.info(f"Keeping user-modified: {entry.path}")
                result.kept.append(entry.path)
                continue

            path.unlink()
            self.manifest.remove_entry(entry.path)
            result.removed.append(entry.path)
            remove_empty_parents(path.parent, destination_dir)

        return result
