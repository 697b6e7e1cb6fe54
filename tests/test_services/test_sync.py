"""Tests for the manifest-aware directory synchronizer."""

from pathlib import Path
from unittest.mock import patch

import pytest

from nojo.models import FileSource, create_manifest
from nojo.services.sync import DirectorySynchronizer, FileSyncStatus, SyncResult
from nojo.utils.files import hash_bytes


@pytest.fixture
def synchronizer(install_dir: Path) -> DirectorySynchronizer:
    """Create a synchronizer with an empty manifest."""
    return DirectorySynchronizer(install_dir=install_dir, manifest=create_manifest())


@pytest.fixture
def source_file(tmp_path: Path) -> Path:
    """Create a source file with version 1 content."""
    path = tmp_path / "src" / "SKILL.md"
    path.parent.mkdir(parents=True)
    path.write_bytes(b"v1")
    return path


class TestSyncFile:
    """Tests for the per-file install/preserve decision."""

    def test_creates_missing_destination(
        self, synchronizer: DirectorySynchronizer, source_file: Path, install_dir: Path
    ) -> None:
        """Test that a missing file is written and tracked."""
        destination = install_dir / ".claude" / "skills" / "x" / "SKILL.md"

        status = synchronizer.sync_file(source_file, destination, "alpha")

        assert status == FileSyncStatus.CREATED
        assert destination.read_bytes() == b"v1"
        entry = synchronizer.manifest.get_entry(".claude/skills/x/SKILL.md")
        assert entry.hash == hash_bytes(b"v1")
        assert entry.source == FileSource.managed
        assert entry.profile == "alpha"

    def test_updates_unmodified_managed_file(
        self, synchronizer: DirectorySynchronizer, source_file: Path, install_dir: Path
    ) -> None:
        """Test that a tracked, untouched file takes the new content."""
        destination = install_dir / ".claude" / "skills" / "x" / "SKILL.md"
        synchronizer.sync_file(source_file, destination, "alpha")
        source_file.write_bytes(b"v2")

        status = synchronizer.sync_file(source_file, destination, "alpha")

        assert status == FileSyncStatus.UPDATED
        assert destination.read_bytes() == b"v2"
        assert synchronizer.manifest.get_entry(".claude/skills/x/SKILL.md").hash == hash_bytes(
            b"v2"
        )

    def test_preserves_user_modified_file(
        self, synchronizer: DirectorySynchronizer, source_file: Path, install_dir: Path
    ) -> None:
        """Test that an edited managed file is left alone and keeps its old hash."""
        destination = install_dir / ".claude" / "skills" / "x" / "SKILL.md"
        synchronizer.sync_file(source_file, destination, "alpha")
        destination.write_bytes(b"v1-edited")
        source_file.write_bytes(b"v2")

        status = synchronizer.sync_file(source_file, destination, "alpha")

        assert status == FileSyncStatus.MODIFIED
        assert destination.read_bytes() == b"v1-edited"
        assert synchronizer.manifest.get_entry(".claude/skills/x/SKILL.md").hash == hash_bytes(
            b"v1"
        )

    def test_preserves_untracked_file(
        self, synchronizer: DirectorySynchronizer, source_file: Path, install_dir: Path
    ) -> None:
        """Test that a file nojo never wrote is neither changed nor tracked."""
        destination = install_dir / ".claude" / "skills" / "x" / "SKILL.md"
        destination.parent.mkdir(parents=True)
        destination.write_bytes(b"mine")

        status = synchronizer.sync_file(source_file, destination, "alpha")

        assert status == FileSyncStatus.UNTRACKED
        assert destination.read_bytes() == b"mine"
        assert synchronizer.manifest.get_entry(".claude/skills/x/SKILL.md") is None

    @pytest.mark.parametrize("source", [FileSource.user, FileSource.existing])
    def test_preserves_non_managed_entries(
        self,
        synchronizer: DirectorySynchronizer,
        source_file: Path,
        install_dir: Path,
        source: FileSource,
    ) -> None:
        """Test that files owned by the user are never overwritten."""
        destination = install_dir / ".claude" / "CLAUDE.md"
        destination.parent.mkdir(parents=True)
        destination.write_bytes(b"mine")
        synchronizer.manifest.add_entry(".claude/CLAUDE.md", hash_bytes(b"mine"), source=source)

        status = synchronizer.sync_file(source_file, destination, "alpha")

        assert status == FileSyncStatus.UNTRACKED
        assert destination.read_bytes() == b"mine"

    def test_hashes_rendered_template(
        self, synchronizer: DirectorySynchronizer, tmp_path: Path, install_dir: Path
    ) -> None:
        """Test that markdown is rendered before writing and hashing."""
        source = tmp_path / "CLAUDE.md"
        source.write_text("Skills live in {{skills_dir}}")
        destination = install_dir / ".claude" / "CLAUDE.md"

        synchronizer.sync_file(source, destination, None)

        rendered = f"Skills live in {install_dir / '.claude' / 'skills'}".encode()
        assert destination.read_bytes() == rendered
        assert synchronizer.manifest.get_entry(".claude/CLAUDE.md").hash == hash_bytes(rendered)

    def test_write_failure_propagates(
        self, synchronizer: DirectorySynchronizer, source_file: Path, install_dir: Path
    ) -> None:
        """Test that I/O errors abort instead of being reported as preserved."""
        destination = install_dir / ".claude" / "skills" / "x" / "SKILL.md"

        with patch("nojo.services.sync.write_bytes", side_effect=OSError("disk full")):
            with pytest.raises(OSError, match="disk full"):
                synchronizer.sync_file(source_file, destination, "alpha")

        assert synchronizer.manifest.files == {}


class TestSync:
    """Tests for whole-tree syncing."""

    def test_mirrors_tree_and_counts(
        self, synchronizer: DirectorySynchronizer, tmp_path: Path, install_dir: Path
    ) -> None:
        """Test that every source file is installed once."""
        source_dir = tmp_path / "skills"
        (source_dir / "a").mkdir(parents=True)
        (source_dir / "a" / "SKILL.md").write_text("a")
        (source_dir / "b.md").write_text("b")
        destination_dir = install_dir / ".claude" / "skills"

        result = synchronizer.sync(source_dir, destination_dir, "alpha")

        assert result.installed == [".claude/skills/a/SKILL.md", ".claude/skills/b.md"]
        assert result.preserved_count == 0
        assert (destination_dir / "a" / "SKILL.md").read_text() == "a"

    def test_second_sync_updates_everything(
        self, synchronizer: DirectorySynchronizer, tmp_path: Path, install_dir: Path
    ) -> None:
        """Test that an unchanged re-run reinstalls without preserving."""
        source_dir = tmp_path / "skills"
        source_dir.mkdir()
        (source_dir / "x.md").write_text("x")
        destination_dir = install_dir / ".claude" / "skills"
        synchronizer.sync(source_dir, destination_dir, "alpha")

        result = synchronizer.sync(source_dir, destination_dir, "alpha")

        assert result.installed_count == 1
        assert result.preserved_count == 0

    def test_exclude_predicate_skips_files(
        self, synchronizer: DirectorySynchronizer, tmp_path: Path, install_dir: Path
    ) -> None:
        """Test that excluded files are neither written nor counted."""
        source_dir = tmp_path / "commands"
        source_dir.mkdir()
        (source_dir / "docs.md").write_text("docs")
        (source_dir / "go.md").write_text("go")
        destination_dir = install_dir / ".claude" / "commands"

        result = synchronizer.sync(
            source_dir, destination_dir, None, exclude=lambda rel: rel == "docs.md"
        )

        assert result.installed == [".claude/commands/go.md"]
        assert not (destination_dir / "docs.md").exists()

    def test_missing_source_syncs_nothing(
        self, synchronizer: DirectorySynchronizer, tmp_path: Path, install_dir: Path
    ) -> None:
        """Test that an absent source directory is not an error."""
        result = synchronizer.sync(tmp_path / "missing", install_dir / ".claude", None)

        assert result == SyncResult()

    def test_sync_result_merge(self) -> None:
        """Test folding results together."""
        first = SyncResult(installed=["a"], preserved=["b"])

        merged = first.merge(SyncResult(installed=["c"]))

        assert merged is first
        assert merged.installed == ["a", "c"]
        assert merged.preserved == ["b"]


class TestRemoveManaged:
    """Tests for remove_managed."""

    def _install(
        self, synchronizer: DirectorySynchronizer, tmp_path: Path, install_dir: Path
    ) -> Path:
        source_dir = tmp_path / "skills"
        (source_dir / "a").mkdir(parents=True)
        (source_dir / "a" / "SKILL.md").write_text("a")
        (source_dir / "b").mkdir()
        (source_dir / "b" / "SKILL.md").write_text("b")
        destination_dir = install_dir / ".claude" / "skills"
        synchronizer.sync(source_dir, destination_dir, "alpha")
        return destination_dir

    def test_removes_unmodified_and_prunes_directories(
        self, synchronizer: DirectorySynchronizer, tmp_path: Path, install_dir: Path
    ) -> None:
        """Test that unmodified files go and emptied directories follow."""
        destination_dir = self._install(synchronizer, tmp_path, install_dir)

        result = synchronizer.remove_managed(destination_dir)

        assert result.removed == [".claude/skills/a/SKILL.md", ".claude/skills/b/SKILL.md"]
        assert result.kept == []
        assert not destination_dir.exists()
        assert synchronizer.manifest.files == {}

    def test_keeps_modified_files(
        self, synchronizer: DirectorySynchronizer, tmp_path: Path, install_dir: Path
    ) -> None:
        """Test that user edits survive removal, on disk and in the manifest."""
        destination_dir = self._install(synchronizer, tmp_path, install_dir)
        (destination_dir / "a" / "SKILL.md").write_text("edited")

        result = synchronizer.remove_managed(destination_dir)

        assert result.kept == [".claude/skills/a/SKILL.md"]
        assert (destination_dir / "a" / "SKILL.md").read_text() == "edited"
        assert not (destination_dir / "b").exists()
        assert synchronizer.manifest.get_entry(".claude/skills/a/SKILL.md") is not None

    def test_filters_by_profile(
        self, synchronizer: DirectorySynchronizer, tmp_path: Path, install_dir: Path
    ) -> None:
        """Test that only the named profile's files are removed."""
        destination_dir = self._install(synchronizer, tmp_path, install_dir)

        result = synchronizer.remove_managed(destination_dir, profile_name="beta")

        assert result.removed == []
        assert (destination_dir / "a" / "SKILL.md").exists()

    def test_drops_entries_for_missing_files(
        self, synchronizer: DirectorySynchronizer, tmp_path: Path, install_dir: Path
    ) -> None:
        """Test that stale entries are cleaned up without being reported."""
        destination_dir = self._install(synchronizer, tmp_path, install_dir)
        (destination_dir / "a" / "SKILL.md").unlink()

        result = synchronizer.remove_managed(destination_dir)

        assert result.removed == [".claude/skills/b/SKILL.md"]
        assert synchronizer.manifest.files == {}

    def test_leaves_untracked_files(
        self, synchronizer: DirectorySynchronizer, tmp_path: Path, install_dir: Path
    ) -> None:
        """Test that files nojo never tracked are untouched."""
        destination_dir = self._install(synchronizer, tmp_path, install_dir)
        (destination_dir / "mine.md").write_text("mine")

        synchronizer.remove_managed(destination_dir)

        assert (destination_dir / "mine.md").exists()
