"""envinject: runtime configuration injection for built static assets."""

from .config import InjectionConfig
from .core.injector import Injector, inject
from .core.scanner import scan
from .errors import ConfigError, InjectionError, InjectionTimeoutError
from .models import FileOutcome, InjectionResult, SubstitutionEntry
from .version import __version__

__all__ = [
    'InjectionConfig',
    'Injector',
    'inject',
    'scan',
    'ConfigError',
    'InjectionError',
    'InjectionTimeoutError',
    'FileOutcome',
    'InjectionResult',
    'SubstitutionEntry',
    '__version__',
]
