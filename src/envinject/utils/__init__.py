"""Utility modules for envinject."""

from .console import (
    _rich_success,
    _rich_error,
    _rich_warning,
    _rich_info,
    _rich_debug,
    _rich_echo,
    _get_console,
    set_verbosity,
    STATUS_SYMBOLS,
    QUIET,
    NORMAL,
    VERBOSE,
)

__all__ = [
    '_rich_success',
    '_rich_error',
    '_rich_warning',
    '_rich_info',
    '_rich_debug',
    '_rich_echo',
    '_get_console',
    'set_verbosity',
    'STATUS_SYMBOLS',
    'QUIET',
    'NORMAL',
    'VERBOSE',
]
