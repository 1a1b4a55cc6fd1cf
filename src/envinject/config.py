"""Configuration management for envinject."""

from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional, Tuple, Union

import yaml

from .errors import ConfigError


DEFAULT_PREFIX = "MY_APP_"
DEFAULT_EXTENSIONS = (".js", ".css")
DEFAULT_TOKEN_FORMAT = "__{key}__"
DEFAULT_CONFIG_FILE = "envinject.yml"

# Keys accepted in the `injection:` section of the config file
CONFIG_FILE_KEYS = ("root", "prefix", "extensions", "strict", "token_format", "timeout", "workers")


def normalize_extensions(extensions: Union[str, Iterable[str]]) -> Tuple[str, ...]:
    """Normalize extensions to lowercase with a leading dot.

    Accepts an iterable or a comma separated string (the form used by
    environment variables). Order is preserved, duplicates dropped.
    """
    if isinstance(extensions, str):
        extensions = extensions.split(",")

    normalized = []
    for ext in extensions:
        ext = str(ext).strip().lower()
        if not ext:
            continue
        if not ext.startswith("."):
            ext = "." + ext
        if ext not in normalized:
            normalized.append(ext)
    return tuple(normalized)


@dataclass
class InjectionConfig:
    """Configuration for one injection run."""
    root: Optional[str] = None
    prefix: str = DEFAULT_PREFIX
    extensions: Tuple[str, ...] = DEFAULT_EXTENSIONS
    strict: bool = False
    token_format: str = DEFAULT_TOKEN_FORMAT
    timeout: Optional[float] = None  # seconds; None disables the budget
    workers: int = 1
    dry_run: bool = False
    check_collisions: bool = True
    show_values: bool = False

    def __post_init__(self):
        """Normalize and validate values after initialization."""
        self.extensions = normalize_extensions(self.extensions)
        self.validate()

    def validate(self) -> None:
        """Check option values, raising ConfigError on the first problem."""
        if self.prefix is None:
            raise ConfigError("prefix must be a string")
        if not self.extensions:
            raise ConfigError("at least one file extension is required")
        if self.token_format.count("{key}") != 1:
            raise ConfigError(
                f"token format {self.token_format!r} must contain '{{key}}' exactly once"
            )
        try:
            self.token_format.format(key="")
        except (IndexError, KeyError, ValueError) as e:
            raise ConfigError(f"invalid token format {self.token_format!r}: {e}")
        if self.timeout is not None and self.timeout <= 0:
            raise ConfigError("timeout must be a positive number of seconds")
        if self.workers < 1:
            raise ConfigError("workers must be at least 1")

    def token_for(self, key: str) -> str:
        """Return the placeholder token that stands for an environment key."""
        return self.token_format.format(key=key)

    @classmethod
    def from_yaml(cls, config_path: Optional[Union[str, Path]] = None, **overrides) -> 'InjectionConfig':
        """Create configuration from a YAML file with command-line overrides.

        Args:
            config_path: Explicit config file. When omitted, `envinject.yml` in
                the working directory is used if it exists.
            **overrides: Values that take precedence over the file. Values of
                None are ignored so unset CLI flags keep the file's values.

        Returns:
            InjectionConfig: Configuration with file values and overrides applied.

        Raises:
            ConfigError: If an explicit config file is missing, or any config
                file is malformed.
        """
        values = {}

        path = Path(config_path) if config_path else Path(DEFAULT_CONFIG_FILE)
        if config_path and not path.is_file():
            raise ConfigError(f"config file not found: {path}")

        if path.is_file():
            values.update(_load_config_file(path))

        # Command-line overrides (highest priority)
        for key, value in overrides.items():
            if value is not None:
                values[key] = value

        try:
            return cls(**values)
        except TypeError as e:
            raise ConfigError(f"invalid configuration: {e}")


def _load_config_file(path: Path) -> dict:
    """Read the `injection:` section of a YAML config file."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"could not read config file {path}: {e}")

    if not isinstance(data, dict):
        raise ConfigError(f"config file {path} must contain a mapping")

    section = data.get("injection", {}) or {}
    if not isinstance(section, dict):
        raise ConfigError(f"'injection' in {path} must be a mapping")

    unknown = sorted(set(section) - set(CONFIG_FILE_KEYS))
    if unknown:
        raise ConfigError(f"unknown option(s) in {path}: {', '.join(unknown)}")

    return dict(section)
