"""nojo CLI commands."""

from nojo.commands.check import check
from nojo.commands.install import install
from nojo.commands.install_location import install_location
from nojo.commands.list_profiles import list_profiles
from nojo.commands.switch_profile import switch_profile
from nojo.commands.uninstall import uninstall

__all__ = [
    "install",
    "uninstall",
    "switch_profile",
    "list_profiles",
    "check",
    "install_location",
]
