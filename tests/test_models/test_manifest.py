"""Unit tests for Manifest model and functions.

Focused tests for manifest handling:
- Entry bookkeeping and serialization aliases
- Fail-soft loading (malformed JSON, wrong schema version, wrong shape)
- Save/load round trip and deletion
- Pre-install snapshots
"""

import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from nojo.models import (
    FileSource,
    Manifest,
    create_manifest,
    delete_manifest,
    load_manifest,
    save_manifest,
    snapshot_existing_tree,
)
from nojo.utils.files import hash_bytes
from nojo.utils.paths import get_manifest_path


def write_manifest_json(install_dir: Path, data: object) -> Path:
    path = get_manifest_path(install_dir)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data))
    return path


class TestManifest:
    """Tests for the Manifest model."""

    def test_create_manifest_defaults(self) -> None:
        """Test that a new manifest is empty with schema version 1."""
        manifest = create_manifest()

        assert manifest.schema_version == 1
        assert manifest.files == {}
        assert manifest.pre_install_snapshot is None
        assert manifest.created_at == manifest.updated_at

    def test_serialization_uses_camel_case(self) -> None:
        """Test that on-disk keys use camelCase and the managed source is 'nojo'."""
        manifest = create_manifest()
        manifest.add_entry(".claude/CLAUDE.md", "abc", profile="alpha")

        data = json.loads(manifest.model_dump_json(by_alias=True))

        assert {"schemaVersion", "nojoVersion", "createdAt", "updatedAt", "files"} <= set(data)
        entry = data["files"][".claude/CLAUDE.md"]
        assert entry["source"] == "nojo"
        assert entry["profile"] == "alpha"
        assert "installedAt" in entry

    def test_add_get_remove_entry(self) -> None:
        """Test in-memory entry mutation."""
        manifest = create_manifest()

        manifest.add_entry("a.md", "h1")
        manifest.add_entry("a.md", "h2")

        assert manifest.get_entry("a.md").hash == "h2"
        assert manifest.remove_entry("a.md").hash == "h2"
        assert manifest.get_entry("a.md") is None
        assert manifest.remove_entry("a.md") is None

    def test_entries_for_profile(self) -> None:
        """Test filtering entries by owning profile."""
        manifest = create_manifest()
        manifest.add_entry("a.md", "h", profile="alpha")
        manifest.add_entry("b.md", "h", profile="beta")
        manifest.add_entry("c.md", "h")

        assert [e.path for e in manifest.entries_for_profile("alpha")] == ["a.md"]

    def test_entries_under_prefix(self) -> None:
        """Test that prefix matching respects path components."""
        manifest = create_manifest()
        manifest.add_entry(".claude/skills/s/SKILL.md", "h")
        manifest.add_entry(".claude/skills-extra/x.md", "h")
        manifest.add_entry(".claude/CLAUDE.md", "h")

        assert [e.path for e in manifest.entries_under(".claude/skills")] == [
            ".claude/skills/s/SKILL.md"
        ]
        assert [e.path for e in manifest.entries_under(".claude/CLAUDE.md")] == [
            ".claude/CLAUDE.md"
        ]

    def test_managed_entries_excludes_user_files(self) -> None:
        """Test that only nojo-owned entries are managed."""
        manifest = create_manifest()
        manifest.add_entry("a.md", "h")
        manifest.add_entry("b.md", "h", source=FileSource.user)

        assert [e.path for e in manifest.managed_entries()] == ["a.md"]

    def test_schema_version_and_files_are_required(self) -> None:
        """Test that validation rejects a document missing either key."""
        with pytest.raises(ValidationError):
            Manifest.model_validate({"files": {}})
        with pytest.raises(ValidationError):
            Manifest.model_validate({"schemaVersion": 1})


class TestLoadManifest:
    """Tests for load_manifest fail-soft behavior."""

    def test_missing_file_returns_none(self, tmp_path: Path) -> None:
        """Test that no manifest is a normal, absent state."""
        assert load_manifest(tmp_path) is None

    def test_malformed_json_returns_none(self, tmp_path: Path) -> None:
        """Test that malformed JSON loads as absent."""
        path = get_manifest_path(tmp_path)
        path.parent.mkdir(parents=True)
        path.write_text("{not json")

        assert load_manifest(tmp_path) is None

    @pytest.mark.parametrize("version", [0, 2])
    def test_schema_version_mismatch_returns_none(self, tmp_path: Path, version: object) -> None:
        """Test that any schema version other than 1 loads as absent."""
        write_manifest_json(tmp_path, {"schemaVersion": version, "files": {}})

        assert load_manifest(tmp_path) is None

    def test_missing_schema_version_returns_none(self, tmp_path: Path) -> None:
        """Test that a manifest without schemaVersion loads as absent."""
        write_manifest_json(tmp_path, {"files": {}})

        assert load_manifest(tmp_path) is None

    def test_missing_files_returns_none(self, tmp_path: Path) -> None:
        """Test that a manifest without a files object loads as absent."""
        write_manifest_json(tmp_path, {"schemaVersion": 1})

        assert load_manifest(tmp_path) is None

    def test_files_not_object_returns_none(self, tmp_path: Path) -> None:
        """Test that a structurally invalid manifest loads as absent."""
        write_manifest_json(tmp_path, {"schemaVersion": 1, "files": []})

        assert load_manifest(tmp_path) is None

    def test_invalid_source_returns_none(self, tmp_path: Path) -> None:
        """Test that an unknown entry source loads as absent."""
        write_manifest_json(
            tmp_path,
            {
                "schemaVersion": 1,
                "files": {"a.md": {"path": "a.md", "hash": "h", "source": "someone"}},
            },
        )

        assert load_manifest(tmp_path) is None

    def test_loads_valid_manifest(self, tmp_path: Path) -> None:
        """Test loading a manifest written by hand."""
        write_manifest_json(
            tmp_path,
            {
                "schemaVersion": 1,
                "nojoVersion": "0.1.0",
                "createdAt": "2026-01-01T00:00:00+00:00",
                "updatedAt": "2026-01-01T00:00:00+00:00",
                "files": {
                    "a.md": {
                        "path": "a.md",
                        "hash": "h",
                        "source": "existing",
                        "version": "0.1.0",
                        "installedAt": "2026-01-01T00:00:00+00:00",
                    }
                },
            },
        )

        manifest = load_manifest(tmp_path)

        assert manifest is not None
        assert manifest.get_entry("a.md").source == FileSource.existing


class TestSaveManifest:
    """Tests for save_manifest and delete_manifest."""

    def test_save_creates_directory(self, tmp_path: Path) -> None:
        """Test that saving creates .claude when missing."""
        path = save_manifest(tmp_path, create_manifest())

        assert path == get_manifest_path(tmp_path)
        assert path.exists()

    def test_round_trip_preserves_files(self, tmp_path: Path) -> None:
        """Test that save(load(m)) changes nothing but updatedAt."""
        manifest = create_manifest()
        manifest.add_entry(".claude/skills/s/SKILL.md", "h1", profile="alpha")
        manifest.add_entry(".claude/notes.md", "h2", source=FileSource.user)
        save_manifest(tmp_path, manifest)

        loaded = load_manifest(tmp_path)
        assert loaded is not None
        save_manifest(tmp_path, loaded)
        reloaded = load_manifest(tmp_path)

        assert reloaded is not None
        assert reloaded.files == manifest.files
        assert reloaded.created_at == manifest.created_at

    def test_save_refreshes_updated_at(self, tmp_path: Path) -> None:
        """Test that every save refreshes updatedAt."""
        manifest = create_manifest()
        manifest.updated_at = "2000-01-01T00:00:00+00:00"

        save_manifest(tmp_path, manifest)

        assert manifest.updated_at != "2000-01-01T00:00:00+00:00"

    def test_delete_removes_file_and_empty_claude_dir(self, tmp_path: Path) -> None:
        """Test that deleting the last nojo file also removes .claude."""
        save_manifest(tmp_path, create_manifest())

        assert delete_manifest(tmp_path) is True
        assert not (tmp_path / ".claude").exists()

    def test_delete_keeps_non_empty_claude_dir(self, tmp_path: Path) -> None:
        """Test that .claude stays when it still has content."""
        save_manifest(tmp_path, create_manifest())
        (tmp_path / ".claude" / "settings.json").write_text("{}")

        delete_manifest(tmp_path)

        assert (tmp_path / ".claude" / "settings.json").exists()

    def test_delete_without_manifest(self, tmp_path: Path) -> None:
        """Test that deleting a missing manifest reports False."""
        assert delete_manifest(tmp_path) is False


class TestSnapshotExistingTree:
    """Tests for snapshot_existing_tree function."""

    def test_hashes_every_file(self, tmp_path: Path) -> None:
        """Test that each existing file is recorded relative to the install root."""
        claude_dir = tmp_path / ".claude"
        (claude_dir / "skills" / "mine").mkdir(parents=True)
        (claude_dir / "CLAUDE.md").write_bytes(b"rules")
        (claude_dir / "skills" / "mine" / "SKILL.md").write_bytes(b"skill")

        snapshot = snapshot_existing_tree(tmp_path, claude_dir)

        assert {(f.path, f.hash) for f in snapshot.files} == {
            (".claude/CLAUDE.md", hash_bytes(b"rules")),
            (".claude/skills/mine/SKILL.md", hash_bytes(b"skill")),
        }

    def test_missing_directory_gives_empty_snapshot(self, tmp_path: Path) -> None:
        """Test that snapshotting nothing is not an error."""
        assert snapshot_existing_tree(tmp_path, tmp_path / ".claude").files == []
