"""Discovery of asset files eligible for rewriting."""

import os
from pathlib import Path
from typing import Iterable, List, Optional, Union

from ..errors import ConfigError, InjectionTimeoutError


def validate_root(root_dir: Union[str, Path], writable: bool = True) -> Path:
    """Check that the asset root exists and is a readable, writable directory.

    Raises:
        ConfigError: If the root is missing or not accessible.
    """
    root = Path(root_dir)
    if not root.exists():
        raise ConfigError(f"root directory does not exist: {root}")
    if not root.is_dir():
        raise ConfigError(f"root path is not a directory: {root}")
    if not os.access(root, os.R_OK | os.X_OK):
        raise ConfigError(f"root directory is not readable: {root}")
    if writable and not os.access(root, os.W_OK):
        raise ConfigError(f"root directory is not writable: {root}")
    return root


def find_asset_files(root_dir: Union[str, Path], extensions: Iterable[str],
                     errors: Optional[List[OSError]] = None) -> List[Path]:
    """Find regular files under root_dir whose extension is selected.

    Symbolic links are skipped, both for files and directories, so a run
    never reaches outside the root. Matching is case-insensitive on the
    final suffix.

    Args:
        root_dir: Directory to walk.
        extensions: Normalized extensions (lowercase, leading dot).
        errors: When given, directories that cannot be listed are appended
            here as OSError instances. Otherwise the first one is raised.

    Returns:
        List[Path]: Matching files in lexicographic order of their path
            relative to root_dir.
    """
    root = Path(root_dir)
    wanted = set(extensions)
    found = []

    def _walk_error(error: OSError) -> None:
        if errors is None or isinstance(error, InjectionTimeoutError):
            raise error
        errors.append(error)

    for dirpath, dirnames, filenames in os.walk(root, onerror=_walk_error, followlinks=False):
        current = Path(dirpath)
        for filename in filenames:
            file_path = current / filename
            if file_path.suffix.lower() not in wanted:
                continue
            if file_path.is_symlink() or not file_path.is_file():
                continue
            found.append(file_path)

    return sorted(found, key=lambda p: p.relative_to(root).as_posix())
