"""nojo - Profile manager for Claude Code configuration directories."""

__version__ = "0.4.0"
