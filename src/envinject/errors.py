"""Error types raised by the injection pass."""


class InjectionError(Exception):
    """Base class for all envinject errors."""


class ConfigError(InjectionError):
    """Raised when the run cannot start safely.

    Covers a missing or unreadable root directory, an empty substitution set
    in strict mode, overlapping placeholder tokens and invalid configuration
    files. Always raised before any asset file is touched.
    """


class InjectionTimeoutError(InjectionError, TimeoutError):
    """Raised when a run exceeds its configured time budget."""

    def __init__(self, timeout: float, pending: int = 0):
        self.timeout = timeout
        self.pending = pending
        message = f"Injection exceeded its time budget of {timeout:g}s"
        if pending:
            message += f" with {pending} file(s) left unprocessed"
        super().__init__(message)
