"""Runtime configuration injection into built static assets.

The injector rewrites placeholder tokens left in the build output with
values taken from the runtime environment. A run is a bounded startup step:

1. derive the substitution set from an environment snapshot,
2. enumerate asset files under the root directory,
3. replace tokens literally, file by file, writing back only files that
   actually changed.

Configuration problems abort the run before any file is touched. I/O
failures on individual files are recorded on the result and the remaining
files are still processed.

Idempotence does not hold when a value embeds a token of the same set;
such entries are reported as warnings and left as they are.
"""

import os
import shutil
import tempfile
import time
from concurrent.futures import ThreadPoolExecutor, wait
from pathlib import Path
from typing import List, Mapping, Optional, Union

from ..config import InjectionConfig
from ..errors import InjectionTimeoutError
from ..models import FileOutcome, InjectionResult, SubstitutionEntry
from ..utils.console import _rich_info, _rich_warning, _rich_debug
from .discovery import find_asset_files, validate_root
from .substitution import derive_substitution_set, find_self_references


class Injector:
    """Applies a substitution set to the asset files under a root directory."""

    def __init__(self, config: Optional[InjectionConfig] = None):
        self.config = config or InjectionConfig()

    def run(self, root_dir: Union[str, Path], env: Mapping[str, str]) -> InjectionResult:
        """Inject environment values into the assets under root_dir.

        Args:
            root_dir: Directory tree of built assets.
            env: Environment snapshot. It is copied once and not consulted
                again during the run.

        Returns:
            InjectionResult: Per-file outcomes and run metadata.

        Raises:
            ConfigError: Invalid root, empty set in strict mode, or
                overlapping tokens.
            InjectionTimeoutError: The run exceeded config.timeout.
        """
        started = time.monotonic()
        snapshot = dict(env)
        config = self.config

        root = validate_root(root_dir, writable=not config.dry_run)
        entries = derive_substitution_set(snapshot, config)
        result = InjectionResult(root_dir=root, entries=entries, dry_run=config.dry_run)

        for key in find_self_references(entries):
            message = f"value of {key} contains a placeholder token; repeated runs may change it again"
            result.warnings.append(message)
            _rich_warning(message, symbol="warning")

        if not entries:
            _rich_info(f"No environment variables with prefix {config.prefix!r}; nothing to inject")
            result.elapsed = time.monotonic() - started
            return result

        for entry in entries:
            _rich_info(f"Injecting {entry.describe(show_value=config.show_values)}", symbol="key")

        walk_errors = []
        files = find_asset_files(root, config.extensions, errors=walk_errors)
        _rich_debug(f"Found {len(files)} asset file(s) under {root}")

        deadline = started + config.timeout if config.timeout else None
        if config.workers > 1 and len(files) > 1:
            result.outcomes = self._process_parallel(files, entries, deadline)
        else:
            result.outcomes = self._process_sequential(files, entries, deadline)

        if walk_errors:
            # Unlistable directories count as failed files so the run cannot pass
            result.outcomes.extend(_walk_error_outcome(root, error) for error in walk_errors)
            result.outcomes.sort(key=lambda outcome: outcome.get_relative_path(root).as_posix())

        for outcome in result.outcomes:
            if outcome.replacements and not outcome.failed:
                _rich_debug(f"{outcome.get_relative_path(root)}: {outcome.replacements} replacement(s)")

        result.elapsed = time.monotonic() - started
        return result

    def process_file(self, path: Path, entries: List[SubstitutionEntry]) -> FileOutcome:
        """Replace every token in one file.

        The file is read as bytes so any text encoding survives untouched.
        Nothing is written when no token occurs, keeping mtimes stable.
        """
        try:
            data = path.read_bytes()
        except InjectionTimeoutError:
            raise
        except OSError as e:
            return FileOutcome(path=path, error=_describe_os_error(path, e))

        replacements = 0
        for entry in entries:
            occurrences = data.count(entry.token_bytes)
            if occurrences:
                data = data.replace(entry.token_bytes, entry.value_bytes)
                replacements += occurrences

        if not replacements or self.config.dry_run:
            return FileOutcome(path=path, replacements=replacements)

        try:
            _atomic_write(path, data)
        except InjectionTimeoutError:
            raise
        except OSError as e:
            return FileOutcome(path=path, replacements=replacements, error=_describe_os_error(path, e))
        return FileOutcome(path=path, replacements=replacements, written=True)

    def _process_sequential(self, files: List[Path], entries: List[SubstitutionEntry],
                            deadline: Optional[float]) -> List[FileOutcome]:
        outcomes = []
        for index, path in enumerate(files):
            if deadline is not None and time.monotonic() > deadline:
                raise InjectionTimeoutError(self.config.timeout, pending=len(files) - index)
            outcomes.append(self.process_file(path, entries))
        return outcomes

    def _process_parallel(self, files: List[Path], entries: List[SubstitutionEntry],
                          deadline: Optional[float]) -> List[FileOutcome]:
        # Outcomes keep the sorted file order whatever the completion order
        executor = ThreadPoolExecutor(max_workers=self.config.workers, thread_name_prefix="envinject")
        try:
            futures = [executor.submit(self.process_file, path, entries) for path in files]
            remaining = None if deadline is None else max(0.0, deadline - time.monotonic())
            _, not_done = wait(futures, timeout=remaining)
            if not_done:
                raise InjectionTimeoutError(self.config.timeout, pending=len(not_done))
            return [future.result() for future in futures]
        finally:
            executor.shutdown(wait=False, cancel_futures=True)


def inject(root_dir: Union[str, Path], env: Mapping[str, str],
           config: Optional[InjectionConfig] = None) -> InjectionResult:
    """Run one injection pass over root_dir. See Injector.run."""
    return Injector(config).run(root_dir, env)


def _atomic_write(path: Path, data: bytes) -> None:
    """Atomically replace path with data, keeping its permission bits."""
    fd, tmp_name = tempfile.mkstemp(prefix=".envinject-", dir=str(path.parent))
    try:
        with os.fdopen(fd, "wb") as fh:
            fh.write(data)
        shutil.copymode(path, tmp_name)
        os.replace(tmp_name, path)
    except Exception:
        try:
            os.unlink(tmp_name)
        except OSError:
            pass
        raise


def _describe_os_error(path: Path, error: OSError) -> str:
    reason = error.strerror or str(error)
    return f"{path}: {reason}"


def _walk_error_outcome(root: Path, error: OSError) -> FileOutcome:
    path = Path(error.filename) if error.filename else root
    return FileOutcome(path=path, error=_describe_os_error(path, error))
