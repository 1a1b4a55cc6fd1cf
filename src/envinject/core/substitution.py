"""Substitution set derivation and token overlap checks."""

from typing import List, Mapping, Tuple

from ..config import InjectionConfig
from ..errors import ConfigError
from ..models import SubstitutionEntry


def derive_substitution_set(env: Mapping[str, str], config: InjectionConfig) -> List[SubstitutionEntry]:
    """Select the environment entries that take part in the run.

    Every key starting with the configured prefix becomes an entry; its token
    comes from the token format and its value is used verbatim. Entries are
    sorted by key so logs and ordering are reproducible.

    Args:
        env: Environment snapshot for this run.
        config: Run configuration.

    Returns:
        List[SubstitutionEntry]: Entries sorted by key.

    Raises:
        ConfigError: If strict mode is on and nothing matched, or if
            collision checking is on and two tokens overlap.
    """
    entries = [
        SubstitutionEntry(key=key, token=config.token_for(key), value=value)
        for key, value in sorted(env.items())
        if key.startswith(config.prefix)
    ]

    if config.strict and not entries:
        raise ConfigError(
            f"no environment variables found with prefix {config.prefix!r} (strict mode)"
        )

    if config.check_collisions:
        collisions = find_collisions(entries)
        if collisions:
            inner, outer = collisions[0]
            raise ConfigError(
                f"placeholder {inner!r} overlaps with {outer!r}; "
                "no key may be a substring of another. Rename one of them, or pass "
                "--no-collision-check if their tokens cannot overlap"
            )

    return entries


def find_collisions(entries: List[SubstitutionEntry]) -> List[Tuple[str, str]]:
    """Find pairs of keys whose key or token is contained in another's.

    Returns:
        List of (inner_key, outer_key) pairs, sorted.
    """
    collisions = []
    for inner in entries:
        for outer in entries:
            if inner.key == outer.key:
                continue
            if inner.key in outer.key or inner.token in outer.token:
                collisions.append((inner.key, outer.key))
    return sorted(collisions)


def find_self_references(entries: List[SubstitutionEntry]) -> List[str]:
    """Return keys whose value embeds a token from the same set.

    Such configuration is not idempotent: a later run may rewrite the
    injected value again.
    """
    tokens = [entry.token for entry in entries]
    return [
        entry.key for entry in entries
        if any(token in entry.value for token in tokens)
    ]
