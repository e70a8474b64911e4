"""Per-unit validation rules for the constraint validator.

Each rule is a callable that accepts a ``UnitGroup`` (every known role
one identity would hold under one top-level unit) and the
``RoleCatalog``, and returns a list of ``Violation`` objects.  Rules are
independent: one rule finding a problem never suppresses another.

Rule codes:

    ROLE004  Roles from different divisions under one top-level unit
    ROLE005  Both roles of a mutually-exclusive pair under one top-level unit
"""
from __future__ import annotations

from dataclasses import dataclass
from functools import reduce
from typing import Callable

from spse_roles.catalog.catalog import RoleCatalog
from spse_roles.model.nodes import Division, UnitGroup
from spse_roles.validator.violations import Violation, ViolationKind

Rule = Callable[[UnitGroup, RoleCatalog], list[Violation]]


# ---------------------------------------------------------------------------
# ROLE004: division isolation
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DivisionFold:
    """Accumulator for the division-isolation check.

    ``division`` is the division adopted from the first role; ``conflicts``
    holds every later ``(role, division)`` that disagreed with it.
    """

    division: Division | None = None
    conflicts: tuple[tuple[str, Division], ...] = ()

    def step(self, entry: tuple[str, Division]) -> "DivisionFold":
        role, division = entry
        if self.division is None:
            return DivisionFold(division=division)
        if division != self.division:
            return DivisionFold(self.division, self.conflicts + ((role, division),))
        return self


def fold_divisions(entries: list[tuple[str, Division]]) -> DivisionFold:
    """Fold ``(role, division)`` pairs into a ``DivisionFold``."""
    return reduce(DivisionFold.step, entries, DivisionFold())


def rule_division_isolation(group: UnitGroup, catalog: RoleCatalog) -> list[Violation]:
    """ROLE004: All roles under one top-level unit must share a division."""
    entries: list[tuple[str, Division]] = []
    for role in group.roles:
        division = catalog.division_of(role)
        if division is not None:
            entries.append((role, division))

    folded = fold_divisions(entries)
    return [
        Violation(
            kind=ViolationKind.DIVISION_CONFLICT,
            message=(
                f"User's roles in {group.top_level_unit} may not cross-function "
                f"different division: {folded.division}, {division}"
            ),
            unit=group.top_level_unit,
            role=role,
            suggestion=f"Keep only roles from {folded.division!s} under {group.top_level_unit}",
            rule="division_isolation",
        )
        for role, division in folded.conflicts
    ]


# ---------------------------------------------------------------------------
# ROLE005: mutually-exclusive pairs
# ---------------------------------------------------------------------------


def rule_mutual_exclusion(group: UnitGroup, catalog: RoleCatalog) -> list[Violation]:
    """ROLE005: One identity may not hold both roles of an exclusive pair in a unit."""
    present = set(group.roles)
    violations: list[Violation] = []
    for first, second in catalog.hierarchy.exclusive_pairs:
        if first in present and second in present:
            violations.append(Violation(
                kind=ViolationKind.MUTUAL_EXCLUSION_CONFLICT,
                message=(
                    f"User's roles in {group.top_level_unit} may not contain "
                    f"{first} and {second} at the same time"
                ),
                unit=group.top_level_unit,
                role=f"{first}/{second}",
                suggestion=f"Remove either {first} or {second} from {group.top_level_unit}",
                rule="mutual_exclusion",
            ))
    return violations


# ---------------------------------------------------------------------------
# Rule registry
# ---------------------------------------------------------------------------

DEFAULT_RULES: list[Rule] = [
    rule_division_isolation,
    rule_mutual_exclusion,
]
