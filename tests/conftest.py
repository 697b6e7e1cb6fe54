"""Shared pytest fixtures for nojo tests."""

import json
import re
from pathlib import Path

import pytest
from typer.testing import CliRunner

from nojo.services import ProfileComposer, ProfileLifecycleController, default_registry

SKILL_TEMPLATE = "---\nname: {name}\ndescription: {description}\n---\n\n# {name}\n"


def strip_ansi(text: str) -> str:
    """Strip ANSI escape codes from text."""
    return re.sub(r"\x1b\[[0-9;]*m", "", text)


def skill_md(name: str, description: str = "A test skill") -> str:
    """Return SKILL.md content with valid frontmatter."""
    return SKILL_TEMPLATE.format(name=name, description=description)


def write_tree(root: Path, files: dict[str, str]) -> Path:
    """Write a mapping of relative path to content under root.

    Args:
        root: Directory to write into.
        files: Relative POSIX paths and their text content.

    Returns:
        The root directory.
    """
    for relative, content in files.items():
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
    root.mkdir(parents=True, exist_ok=True)
    return root


def write_profile(
    profiles_dir: Path,
    name: str,
    files: dict[str, str],
    builtin: bool = True,
    mixins: tuple[str, ...] = (),
) -> Path:
    """Create a profile directory with a profile.json.

    Args:
        profiles_dir: Directory holding profiles.
        name: Profile name.
        files: Profile content, relative to the profile directory.
        builtin: Value written to profile.json.
        mixins: Mixin names listed in profile.json.

    Returns:
        Path to the profile directory.
    """
    profile_dir = write_tree(profiles_dir / name, files)
    metadata = {
        "builtin": builtin,
        "description": f"The {name} profile",
        "mixins": {mixin: {} for mixin in mixins},
    }
    (profile_dir / "profile.json").write_text(json.dumps(metadata), encoding="utf-8")
    return profile_dir


@pytest.fixture
def runner() -> CliRunner:
    """Create a CliRunner for testing commands."""
    return CliRunner()


@pytest.fixture
def install_dir(tmp_path: Path) -> Path:
    """Create an empty install root.

    Args:
        tmp_path: pytest's built-in tmp_path fixture.

    Returns:
        Path to the install root.
    """
    root = tmp_path / "home"
    root.mkdir()
    return root


@pytest.fixture
def source_dir(tmp_path: Path) -> Path:
    """Create a source tree with two builtin profiles and one mixin.

    alpha layers the "shared" mixin and ships one skill; beta ships one
    different skill and no mixins.

    Returns:
        Directory holding profiles/ and _mixins/.
    """
    root = tmp_path / "source"
    write_tree(
        root / "_mixins" / "shared",
        {
            "subagents/helper.md": "---\nname: helper\n---\nHelps.\n",
            "slashcommands/hello.md": "Say hello from {{commands_dir}}\n",
            "slashcommands/docs.md": "Documentation only\n",
        },
    )
    write_profile(
        root / "profiles",
        "alpha",
        {
            "CLAUDE.md": "Alpha rules. Skills: {{skills_dir}}\n",
            "skills/s/SKILL.md": skill_md("s"),
        },
        mixins=("shared",),
    )
    write_profile(
        root / "profiles",
        "beta",
        {
            "CLAUDE.md": "Beta rules\n",
            "skills/b/SKILL.md": skill_md("b"),
        },
    )
    return root


@pytest.fixture
def composer(source_dir: Path) -> ProfileComposer:
    """Create a composer over the test source tree."""
    return ProfileComposer(
        profiles_dir=source_dir / "profiles", mixins_dir=source_dir / "_mixins"
    )


@pytest.fixture
def controller(install_dir: Path, composer: ProfileComposer) -> ProfileLifecycleController:
    """Create a lifecycle controller with a fresh registry."""
    return ProfileLifecycleController(
        install_dir=install_dir, registry=default_registry(), composer=composer
    )
