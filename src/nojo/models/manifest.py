"""Pydantic models for the installed-file manifest.

This module defines the data model for the .nojo-manifest.json file used
to track every file nojo has written, together with the content hash it
wrote. Comparing that hash to the file on disk is how later installs tell
an untouched managed file (safe to update) from one the user has edited
(always preserved).

Only schema version 1 is understood. A manifest with any other version,
or one that fails validation, is treated as absent rather than partially
upgraded.
"""

import logging
from datetime import UTC, datetime
from enum import Enum
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from nojo import __version__
from nojo.utils.files import compute_file_hash, iter_tree_files
from nojo.utils.paths import get_claude_dir, get_manifest_path

logger = logging.getLogger(__name__)

MANIFEST_SCHEMA_VERSION = 1


def _now() -> str:
    return datetime.now(UTC).isoformat()


class FileSource(str, Enum):
    """Who a tracked file belongs to.

    Values:
        managed: Written by nojo; may be updated while unmodified.
        user: Created by the user; never overwritten.
        existing: Present before nojo's first install; never overwritten.
    """

    managed = "nojo"
    user = "user"
    existing = "existing"


class ManifestEntry(BaseModel):
    """A single tracked file.

    Attributes:
        path: POSIX path relative to the install root (unique key).
        hash: SHA-256 of the content nojo last wrote to this path.
        source: Ownership of the file.
        profile: Profile the file was installed for, if any.
        version: nojo version that wrote the file.
        installed_at: ISO timestamp of the write.
    """

    model_config = ConfigDict(populate_by_name=True)

    path: str = Field(..., description="Path relative to the install root")
    hash: str = Field(..., description="SHA-256 of the content at install time")
    source: FileSource = Field(default=FileSource.managed, description="File ownership")
    profile: str | None = Field(default=None, description="Owning profile, if any")
    version: str = Field(default="unknown", description="nojo version that wrote the file")
    installed_at: str = Field(
        default_factory=_now,
        alias="installedAt",
        description="ISO timestamp of installation",
    )


class SnapshotFile(BaseModel):
    """A file that existed before nojo's first install."""

    path: str
    hash: str


class PreInstallSnapshot(BaseModel):
    """Inventory of the configuration directory taken before nojo touched it.

    Attributes:
        created_at: When the snapshot was taken.
        files: Every file found, with its content hash.
    """

    model_config = ConfigDict(populate_by_name=True)

    created_at: str = Field(default_factory=_now, alias="createdAt")
    files: list[SnapshotFile] = Field(default_factory=list)


class Manifest(BaseModel):
    """Root model for .nojo-manifest.json.

    Attributes:
        schema_version: Always 1; a missing or different value fails validation.
        nojo_version: nojo version that last saved the manifest.
        created_at: When the manifest was first created.
        updated_at: Refreshed on every save.
        files: Mapping of relative path to tracked entry. Required when loading.
        pre_install_snapshot: Captured once, on first install, if the
            configuration directory already had content.
    """

    model_config = ConfigDict(populate_by_name=True)

    schema_version: Literal[1] = Field(..., alias="schemaVersion")
    nojo_version: str = Field(default=__version__, alias="nojoVersion")
    created_at: str = Field(default_factory=_now, alias="createdAt")
    updated_at: str = Field(default_factory=_now, alias="updatedAt")
    files: dict[str, ManifestEntry] = Field(...)
    pre_install_snapshot: PreInstallSnapshot | None = Field(
        default=None, alias="preInstallSnapshot"
    )

    def add_entry(
        self,
        path: str,
        file_hash: str,
        source: FileSource = FileSource.managed,
        profile: str | None = None,
        version: str = __version__,
    ) -> ManifestEntry:
        """Add or replace the entry for a path.

        Args:
            path: POSIX path relative to the install root.
            file_hash: Hash of the content just written.
            source: Ownership of the file.
            profile: Owning profile, if any.
            version: nojo version performing the write.

        Returns:
            The new entry.
        """
        entry = ManifestEntry(
            path=path,
            hash=file_hash,
            source=source,
            profile=profile,
            version=version,
        )
        self.files[path] = entry
        return entry

    def remove_entry(self, path: str) -> ManifestEntry | None:
        """Remove and return the entry for a path, if tracked."""
        return self.files.pop(path, None)

    def get_entry(self, path: str) -> ManifestEntry | None:
        return self.files.get(path)

    def entries_for_profile(self, profile_name: str) -> list[ManifestEntry]:
        """Return every entry installed for the given profile."""
        return [entry for entry in self.files.values() if entry.profile == profile_name]

    def managed_entries(self) -> list[ManifestEntry]:
        return [entry for entry in self.files.values() if entry.source == FileSource.managed]

    def entries_under(self, prefix: str) -> list[ManifestEntry]:
        """Return entries whose path lies under a directory prefix.

        Args:
            prefix: POSIX directory path relative to the install root
                (e.g. ".claude/skills"). A file path matching the prefix
                exactly is included too.
        """
        prefix = prefix.rstrip("/")
        return [
            entry
            for entry in self.files.values()
            if entry.path == prefix or entry.path.startswith(prefix + "/")
        ]


def create_manifest() -> Manifest:
    """Create an empty manifest with the current schema version.

    Returns:
        New manifest with created/updated timestamps set to now.
    """
    now = _now()
    return Manifest(
        schema_version=MANIFEST_SCHEMA_VERSION,
        created_at=now,
        updated_at=now,
        files={},
    )


def load_manifest(install_dir: Path) -> Manifest | None:
    """Load the manifest for an install root.

    Args:
        install_dir: The install root.

    Returns:
        Manifest model if the file exists and is valid, None otherwise.
        Malformed JSON, a schema version mismatch and structurally invalid
        content all resolve to None.
    """
    path = get_manifest_path(install_dir)
    if not path.exists():
        return None

    try:
        content = path.read_text(encoding="utf-8")
        return Manifest.model_validate_json(content)
    except ValueError as e:
        logger.debug(f"Ignoring invalid manifest at {path}: {e}")
        return None
    except OSError as e:
        logger.warning(f"Could not read manifest at {path}: {e}")
        return None


def save_manifest(install_dir: Path, manifest: Manifest) -> Path:
    """Write the manifest, replacing whatever is on disk.

    Creates the enclosing directory if needed and refreshes ``updated_at``.

    Args:
        install_dir: The install root.
        manifest: Manifest to save.

    Returns:
        Path of the written manifest file.
    """
    path = get_manifest_path(install_dir)
    path.parent.mkdir(parents=True, exist_ok=True)

    manifest.updated_at = _now()
    manifest.nojo_version = __version__

    content = manifest.model_dump_json(indent=2, by_alias=True)
    path.write_text(content + "\n", encoding="utf-8")
    return path


def delete_manifest(install_dir: Path) -> bool:
    """Delete the manifest file and the .claude directory if left empty.

    Args:
        install_dir: The install root.

    Returns:
        True if a manifest file was removed.
    """
    path = get_manifest_path(install_dir)
    removed = False
    if path.exists():
        path.unlink()
        removed = True

    claude_dir = get_claude_dir(install_dir)
    if claude_dir.is_dir() and not any(claude_dir.iterdir()):
        claude_dir.rmdir()
        logger.debug(f"Removed empty directory: {claude_dir}")

    return removed


def snapshot_existing_tree(install_dir: Path, target_dir: Path) -> PreInstallSnapshot:
    """Hash every file under target_dir before nojo writes anything.

    Args:
        install_dir: The install root; snapshot paths are relative to it.
        target_dir: Directory to inventory (normally <install_dir>/.claude).

    Returns:
        Snapshot listing each readable file with its hash.
    """
    files: list[SnapshotFile] = []

    for file_path, _ in iter_tree_files(target_dir):
        relative_path = file_path.relative_to(install_dir).as_posix()
        try:
            files.append(SnapshotFile(path=relative_path, hash=compute_file_hash(file_path)))
        except OSError as e:
            logger.warning(f"Skipping unreadable file in snapshot {relative_path}: {e}")

    return PreInstallSnapshot(files=files)
