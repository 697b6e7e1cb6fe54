"""nojo utilities."""

from nojo.utils.console import (
    console,
    print_error,
    print_info,
    print_step,
    print_success,
    print_warning,
    set_silent,
)
from nojo.utils.files import (
    compute_file_hash,
    hash_bytes,
    iter_tree_files,
    remove_empty_parents,
    write_bytes,
)
from nojo.utils.paths import get_install_dirs, normalize_install_dir
from nojo.utils.template import render_file, substitute_template_paths

__all__ = [
    "compute_file_hash",
    "console",
    "get_install_dirs",
    "hash_bytes",
    "iter_tree_files",
    "normalize_install_dir",
    "print_error",
    "print_info",
    "print_step",
    "print_success",
    "print_warning",
    "remove_empty_parents",
    "render_file",
    "set_silent",
    "substitute_template_paths",
    "write_bytes",
]
