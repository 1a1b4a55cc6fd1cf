"""Data models for substitution entries and injection results."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional


@dataclass(frozen=True)
class SubstitutionEntry:
    """One placeholder token and the value that replaces it."""
    key: str
    token: str
    value: str

    # surrogateescape restores the raw bytes of environment values that
    # were not valid UTF-8 when the interpreter decoded them
    @property
    def token_bytes(self) -> bytes:
        return self.token.encode("utf-8", "surrogateescape")

    @property
    def value_bytes(self) -> bytes:
        return self.value.encode("utf-8", "surrogateescape")

    def describe(self, show_value: bool = False) -> str:
        """Render the replacement record for this entry.

        The value is only included when explicitly requested.
        """
        if show_value:
            return f"{self.key} -> {self.value!r}"
        return self.key


@dataclass
class FileOutcome:
    """Result of processing a single asset file."""
    path: Path
    replacements: int = 0
    written: bool = False
    error: Optional[str] = None

    @property
    def failed(self) -> bool:
        return self.error is not None

    def get_relative_path(self, base_dir: Path) -> Path:
        """Get path relative to base directory."""
        try:
            return self.path.relative_to(base_dir)
        except ValueError:
            return self.path


@dataclass
class InjectionResult:
    """Complete results of one injection run."""
    root_dir: Path
    entries: List[SubstitutionEntry] = field(default_factory=list)
    outcomes: List[FileOutcome] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    elapsed: float = 0.0
    dry_run: bool = False

    @property
    def files_scanned(self) -> int:
        return len(self.outcomes)

    @property
    def files_modified(self) -> int:
        """Files that were (or, in a dry run, would have been) rewritten."""
        return sum(1 for outcome in self.outcomes if outcome.replacements and not outcome.failed)

    @property
    def total_replacements(self) -> int:
        return sum(outcome.replacements for outcome in self.outcomes if not outcome.failed)

    @property
    def errors(self) -> List[FileOutcome]:
        return [outcome for outcome in self.outcomes if outcome.failed]

    @property
    def success(self) -> bool:
        """True when every selected file was processed without an I/O error."""
        return not self.errors
