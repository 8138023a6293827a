"""Utility modules for nodenuke.

This module exports commonly used utility functions.
"""

from nodenuke.utils.formatting import (
    console,
    create_entry_table,
    err_console,
    format_age,
    format_entry_row,
    format_size,
    print_error,
    print_info,
    print_success,
    print_warning,
    truncate_left,
)

__all__ = [
    "console",
    "create_entry_table",
    "err_console",
    "format_age",
    "format_entry_row",
    "format_size",
    "print_error",
    "print_info",
    "print_success",
    "print_warning",
    "truncate_left",
]
