"""Output formatting for envinject results."""

from .formatters import InjectionFormatter

__all__ = ['InjectionFormatter']
