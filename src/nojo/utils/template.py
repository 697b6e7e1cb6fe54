"""Template substitution for installed markdown files.

Profile markdown may reference installed locations through placeholder
tokens such as ``{{skills_dir}}``. The tokens are replaced with absolute
paths under the install root before a file is written or hashed.
"""

from pathlib import Path

from nojo.utils.paths import (
    get_agents_dir,
    get_claude_dir,
    get_commands_dir,
    get_profiles_dir,
    get_skills_dir,
)

TEMPLATE_SUFFIXES = frozenset({".md"})


def is_template_file(path: Path) -> bool:
    """Return True if the file's content goes through substitution."""
    return path.suffix.lower() in TEMPLATE_SUFFIXES


def template_values(install_dir: Path) -> dict[str, str]:
    """Build the placeholder table for an install root.

    Args:
        install_dir: The install root.

    Returns:
        Mapping of placeholder token to absolute path string.
    """
    return {
        "{{install_dir}}": str(install_dir),
        "{{claude_dir}}": str(get_claude_dir(install_dir)),
        "{{skills_dir}}": str(get_skills_dir(install_dir)),
        "{{profiles_dir}}": str(get_profiles_dir(install_dir)),
        "{{commands_dir}}": str(get_commands_dir(install_dir)),
        "{{agents_dir}}": str(get_agents_dir(install_dir)),
    }


def substitute_template_paths(content: str, install_dir: Path) -> str:
    """Replace every placeholder token in content.

    Args:
        content: Markdown text to transform.
        install_dir: The install root the paths are resolved against.

    Returns:
        The content with all known placeholders replaced.
    """
    for token, value in template_values(install_dir).items():
        content = content.replace(token, value)
    return content


def render_file(source: Path, install_dir: Path) -> bytes:
    """Return the exact bytes that installing source would write.

    Template files are decoded with ``surrogateescape`` so that bytes which
    are not valid UTF-8 and CRLF line endings come back out unchanged.

    Args:
        source: The file inside a profile tree.
        install_dir: The install root used for substitution.

    Returns:
        Substituted bytes for template files, raw bytes otherwise.

    Raises:
        OSError: If the source file cannot be read.
    """
    content = source.read_bytes()
    if not is_template_file(source):
        return content
    text = content.decode("utf-8", errors="surrogateescape")
    return substitute_template_paths(text, install_dir).encode("utf-8", errors="surrogateescape")
