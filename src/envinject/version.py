"""Version management for envinject."""

import re
import sys
from importlib.metadata import version, PackageNotFoundError
from pathlib import Path

# Build-time version constant (injected by release tooling)
__BUILD_VERSION__ = None


def get_version() -> str:
    """
    Get the current version.

    Uses the build-time constant when present, then falls back to reading
    pyproject.toml next to the source tree (development checkouts), then to
    installed package metadata.

    Returns:
        str: Version string
    """
    if __BUILD_VERSION__:
        return __BUILD_VERSION__

    if getattr(sys, 'frozen', False):
        # PyInstaller bundle
        pyproject_path = Path(sys._MEIPASS) / 'pyproject.toml'
    else:
        pyproject_path = Path(__file__).parent.parent.parent / "pyproject.toml"

    try:
        if pyproject_path.exists():
            content = pyproject_path.read_text(encoding='utf-8')
            match = re.search(r'^version\s*=\s*["\']([^"\']+)["\']', content, re.MULTILINE)
            if match and re.match(r'^\d+\.\d+\.\d+(a\d+|b\d+|rc\d+)?$', match.group(1)):
                return match.group(1)
    except OSError:
        pass

    try:
        return version("envinject")
    except PackageNotFoundError:
        pass

    return "unknown"


__version__ = get_version()
