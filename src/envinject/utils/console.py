"""Console utility functions for formatting and output."""

from rich.console import Console
from rich.theme import Theme


# Status symbols for consistent iconography
STATUS_SYMBOLS = {
    'success': '✨',
    'running': '🚀',
    'warning': '⚠️',
    'error': '❌',
    'check': '✅',
    'list': '📋',
    'preview': '👀',
    'key': '🔑',
}

# Verbosity levels
QUIET = 0
NORMAL = 1
VERBOSE = 2

_verbosity = NORMAL
_consoles = {}

_THEME = Theme({
    "info": "cyan",
    "warning": "yellow",
    "error": "bold red",
    "success": "bold green",
    "muted": "dim white",
})


def set_verbosity(level: int) -> None:
    """Set how chatty the console helpers are (QUIET, NORMAL or VERBOSE)."""
    global _verbosity
    _verbosity = level


def _get_console(stderr: bool = False) -> Console:
    """Get a Rich console for stdout or stderr.

    The console resolves sys.stdout/sys.stderr at print time, so redirected
    streams are honoured.
    """
    console = _consoles.get(stderr)
    if console is None:
        console = Console(stderr=stderr, theme=_THEME, highlight=False, soft_wrap=True)
        _consoles[stderr] = console
    return console


def _rich_echo(message: str, color: str = "white", bold: bool = False, symbol: str = None,
               stderr: bool = False, level: int = NORMAL):
    """Echo message with Rich formatting when the verbosity allows it."""
    if _verbosity < level:
        return

    if symbol and symbol in STATUS_SYMBOLS:
        message = f"{STATUS_SYMBOLS[symbol]} {message}"

    style = f"bold {color}" if bold else color
    # markup and emoji codes disabled: paths, keys and values are printed literally
    _get_console(stderr=stderr).print(message, style=style, markup=False, emoji=False)


def _rich_success(message: str, symbol: str = None):
    """Display success message in bold green."""
    _rich_echo(message, color="success", symbol=symbol)


def _rich_error(message: str, symbol: str = None):
    """Display error message on stderr. Never silenced."""
    _rich_echo(message, color="error", symbol=symbol, stderr=True, level=QUIET)


def _rich_warning(message: str, symbol: str = None):
    """Display warning message on stderr."""
    _rich_echo(message, color="warning", symbol=symbol, stderr=True)


def _rich_info(message: str, symbol: str = None):
    """Display info message in the info style."""
    _rich_echo(message, color="info", symbol=symbol)


def _rich_debug(message: str, symbol: str = None):
    """Display a dimmed message, only in verbose mode."""
    _rich_echo(message, color="muted", symbol=symbol, level=VERBOSE)

