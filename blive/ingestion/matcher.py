"""Command interest matching shared by the internal and public router passes."""

from __future__ import annotations

from collections.abc import Iterable

ALL = "ALL"
OTHERS = "OTHERS"

# None means "no declared set", which routes like ALL
CommandInterest = frozenset[str] | None


def make_interest(*commands: str | Iterable[str]) -> CommandInterest:
    """Build an interest set. Accepts names or iterables of names; empty input gives None."""
    names: set[str] = set()
    for command in commands:
        if isinstance(command, str):
            names.add(command)
        else:
            names.update(command)
    return frozenset(names) if names else None


def has_exact(interest: CommandInterest, command: str) -> bool:
    """Case-sensitive membership; no normalisation of either side."""
    return interest is not None and command in interest


def has_all(interest: CommandInterest) -> bool:
    return interest is not None and ALL in interest


def has_others(interest: CommandInterest) -> bool:
    return interest is not None and OTHERS in interest
