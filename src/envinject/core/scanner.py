"""Read-only scan for placeholder tokens left in asset files."""

import re
from pathlib import Path
from typing import Dict, List, Pattern, Union

from ..config import InjectionConfig
from .discovery import find_asset_files, validate_root


def build_token_pattern(config: InjectionConfig) -> Pattern[bytes]:
    """Compile a bytes pattern matching any token the config could produce.

    Keys are the prefix followed by letters, digits and underscores, the
    character set of portable environment variable names.
    """
    before, after = config.token_for("\x00").split("\x00")
    # Non-greedy when a suffix follows, so adjacent tokens stay separate
    quantifier = "*?" if after else "*"
    key_pattern = re.escape(config.prefix) + "[A-Za-z0-9_]" + quantifier
    pattern = re.escape(before) + key_pattern + re.escape(after)
    return re.compile(pattern.encode("utf-8", "surrogateescape"))


def scan(root_dir: Union[str, Path], config: InjectionConfig = None) -> Dict[Path, List[str]]:
    """Find placeholder tokens still present under root_dir.

    Returns:
        Dict mapping each file that contains tokens to the sorted, distinct
        tokens found in it. Files are in discovery order.

    Raises:
        ConfigError: If root_dir is not a readable directory.
        OSError: If a directory or file under root_dir cannot be read.
    """
    config = config or InjectionConfig()
    root = validate_root(root_dir, writable=False)
    pattern = build_token_pattern(config)

    found = {}
    for path in find_asset_files(root, config.extensions):
        tokens = {match.decode("utf-8", errors="replace") for match in pattern.findall(path.read_bytes()) if match}
        if tokens:
            found[path] = sorted(tokens)
    return found
