"""Exclusion sets for the install and removal phases.

An exclusion set names features the engine must leave alone in one
phase. Matching is exact membership on the feature name.
"""

from collections.abc import Iterable

ExclusionSet = frozenset[str]

EMPTY_EXCLUSIONS: ExclusionSet = frozenset()


def is_excluded(name: str, exclusions: ExclusionSet) -> bool:
    """Check if a feature name is in an exclusion set."""
    return name in exclusions


def build_exclusion_set(*groups: Iterable[str] | None) -> ExclusionSet:
    """Merge several groups of names into one exclusion set.

    Each value may itself hold several names separated by commas, so
    both ``--install-exclude A --install-exclude B`` and
    ``--install-exclude A,B`` produce the same set. Blank names are
    dropped and surrounding whitespace is stripped.

    Args:
        *groups: Iterables of raw values (CLI options, settings lists).
            None groups are skipped.

    Returns:
        Immutable set of feature names.
    """
    names: set[str] = set()
    for group in groups:
        if group is None:
            continue
        for value in group:
            for part in value.split(","):
                name = part.strip()
                if name:
                    names.add(name)
    return frozenset(names)
