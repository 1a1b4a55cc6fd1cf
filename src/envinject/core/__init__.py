"""Core injection pipeline: substitution set, discovery, rewrite and scan."""

from .discovery import find_asset_files, validate_root
from .injector import Injector, inject
from .scanner import build_token_pattern, scan
from .substitution import derive_substitution_set, find_collisions, find_self_references

__all__ = [
    'Injector',
    'inject',
    'scan',
    'build_token_pattern',
    'derive_substitution_set',
    'find_collisions',
    'find_self_references',
    'find_asset_files',
    'validate_root',
]
