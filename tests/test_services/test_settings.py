"""Tests for settings.json merging."""

import json
from pathlib import Path

import pytest

from nojo.services.settings import (
    SETTINGS_SCHEMA_URL,
    SettingsFileError,
    add_additional_directory,
    has_additional_directory,
    read_settings,
    remove_additional_directory,
)


@pytest.fixture
def settings_file(tmp_path: Path) -> Path:
    """Return the settings.json path inside a .claude directory."""
    return tmp_path / ".claude" / "settings.json"


class TestReadSettings:
    """Tests for read_settings function."""

    def test_missing_file(self, settings_file: Path) -> None:
        """Test that a missing file reads as None."""
        assert read_settings(settings_file) is None

    @pytest.mark.parametrize("content", ["{oops", "[]", "42"])
    def test_rejects_non_object(self, settings_file: Path, content: str) -> None:
        """Test that invalid or non-object JSON raises."""
        settings_file.parent.mkdir(parents=True)
        settings_file.write_text(content)

        with pytest.raises(SettingsFileError):
            read_settings(settings_file)


class TestAddAdditionalDirectory:
    """Tests for add_additional_directory function."""

    def test_creates_file_with_schema(self, settings_file: Path, tmp_path: Path) -> None:
        """Test that a new settings file carries the $schema key."""
        skills_dir = tmp_path / ".claude" / "skills"

        assert add_additional_directory(settings_file, skills_dir) is True

        data = json.loads(settings_file.read_text())
        assert data == {
            "$schema": SETTINGS_SCHEMA_URL,
            "permissions": {"additionalDirectories": [str(skills_dir)]},
        }

    def test_preserves_other_keys(self, settings_file: Path, tmp_path: Path) -> None:
        """Test that unrelated settings and directories survive the merge."""
        settings_file.parent.mkdir(parents=True)
        settings_file.write_text(
            json.dumps(
                {
                    "model": "opus",
                    "permissions": {"allow": ["Bash"], "additionalDirectories": ["/srv"]},
                }
            )
        )
        skills_dir = tmp_path / ".claude" / "skills"

        add_additional_directory(settings_file, skills_dir)

        data = json.loads(settings_file.read_text())
        assert data["model"] == "opus"
        assert data["permissions"]["allow"] == ["Bash"]
        assert data["permissions"]["additionalDirectories"] == ["/srv", str(skills_dir)]

    def test_is_idempotent(self, settings_file: Path, tmp_path: Path) -> None:
        """Test that adding twice does not duplicate the entry."""
        skills_dir = tmp_path / ".claude" / "skills"
        add_additional_directory(settings_file, skills_dir)

        assert add_additional_directory(settings_file, skills_dir) is False

        data = json.loads(settings_file.read_text())
        assert data["permissions"]["additionalDirectories"] == [str(skills_dir)]

    @pytest.mark.parametrize(
        "settings",
        [
            {"permissions": None},
            {"permissions": ["Bash"]},
            {"permissions": {"additionalDirectories": None}},
            {"permissions": {"additionalDirectories": "/srv"}},
        ],
    )
    def test_rejects_wrong_permission_types(
        self, settings_file: Path, tmp_path: Path, settings: dict
    ) -> None:
        """Test that mistyped permissions raise and leave the file untouched."""
        settings_file.parent.mkdir(parents=True)
        original = json.dumps(settings)
        settings_file.write_text(original)

        with pytest.raises(SettingsFileError):
            add_additional_directory(settings_file, tmp_path / "skills")

        assert settings_file.read_text() == original
        assert has_additional_directory(settings_file, tmp_path / "skills") is False


class TestRemoveAdditionalDirectory:
    """Tests for remove_additional_directory and has_additional_directory."""

    def test_round_trip_deletes_created_file(self, settings_file: Path, tmp_path: Path) -> None:
        """Test that removing the only entry deletes a file nojo created."""
        skills_dir = tmp_path / ".claude" / "skills"
        add_additional_directory(settings_file, skills_dir)
        assert has_additional_directory(settings_file, skills_dir) is True

        assert remove_additional_directory(settings_file, skills_dir) is True

        assert not settings_file.exists()
        assert has_additional_directory(settings_file, skills_dir) is False

    def test_keeps_user_settings(self, settings_file: Path, tmp_path: Path) -> None:
        """Test that removal only drops nojo's entry."""
        skills_dir = tmp_path / ".claude" / "skills"
        settings_file.parent.mkdir(parents=True)
        settings_file.write_text(json.dumps({"model": "opus"}))
        add_additional_directory(settings_file, skills_dir)

        remove_additional_directory(settings_file, skills_dir)

        assert json.loads(settings_file.read_text()) == {"model": "opus"}

    def test_absent_entry_is_noop(self, settings_file: Path, tmp_path: Path) -> None:
        """Test that removing an unknown directory changes nothing."""
        settings_file.parent.mkdir(parents=True)
        settings_file.write_text(json.dumps({"permissions": {"additionalDirectories": ["/srv"]}}))

        assert remove_additional_directory(settings_file, tmp_path / "skills") is False
        assert remove_additional_directory(tmp_path / "missing.json", tmp_path) is False
