"""IncrementalMerger: expand an "add roles" request with existing roles.

Division isolation and mutual exclusion are defined over everything an
identity holds under a top-level unit, so an additive request cannot be
validated on its own.  The merger splices the identity's current roles
for every top-level unit the request touches into the working set, and
the union is what gets validated.

Current roles are kept as a name-sorted tuple; the run belonging to one
unit prefix ``"{klpd}:"`` is found with two ``bisect`` lookups, so each
touched unit costs a logarithmic search plus the length of its run.

Usage
-----
::

    from spse_roles.merger import IncrementalMerger

    merger = IncrementalMerger(validator)
    expanded, violations = merger.merge_and_validate(
        "auth0|alice", ["A:A2:PPK"], directory.get_identity_roles("auth0|alice")
    )
"""
from __future__ import annotations

import logging
from bisect import bisect_left
from collections.abc import Iterable
from dataclasses import dataclass, field

from spse_roles.model.keys import SEPARATOR, RoleKey, unit_prefix
from spse_roles.validator.validator import ConstraintValidator, parse_role_keys
from spse_roles.validator.violations import Violation

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MergeResult:
    """Outcome of a merge.

    Parameters
    ----------
    expanded:
        Requested roles plus the current roles of every touched top-level
        unit, deduplicated and ordered by formatted name.
    violations:
        ``MalformedRole`` violations for entries that could not be parsed.
    """

    expanded: tuple[RoleKey, ...]
    violations: list[Violation] = field(default_factory=list)


class CurrentRoleIndex:
    """Name-sorted view of an identity's current roles, searchable by unit prefix."""

    def __init__(self, current: Iterable[RoleKey]) -> None:
        keys = sorted(set(current), key=str)
        self._keys: tuple[RoleKey, ...] = tuple(keys)
        self._names: tuple[str, ...] = tuple(str(key) for key in keys)

    def run(self, top_level_unit: str) -> tuple[RoleKey, ...]:
        """Return every current role held under ``top_level_unit``."""
        prefix = unit_prefix(top_level_unit)
        # "{unit};" is the smallest string greater than every "{unit}:..." name.
        upper = prefix[: -len(SEPARATOR)] + chr(ord(SEPARATOR) + 1)
        start = bisect_left(self._names, prefix)
        end = bisect_left(self._names, upper, lo=start)
        return self._keys[start:end]

    def __len__(self) -> int:
        return len(self._keys)


class IncrementalMerger:
    """Merges requested roles with current roles before validation.

    Parameters
    ----------
    validator:
        Validator used by ``merge_and_validate``.  May be ``None`` when only
        ``merge`` is needed.
    """

    def __init__(self, validator: ConstraintValidator | None = None) -> None:
        self._validator = validator

    def merge(
        self,
        identity: str,
        requested: Iterable[RoleKey | str],
        current: Iterable[RoleKey | str],
    ) -> MergeResult:
        """Return the union of ``requested`` and the touched units' ``current`` roles.

        Malformed entries in either input are reported and left out; they
        are never matched against a unit prefix.
        """
        requested_keys, violations = parse_role_keys(requested)
        current_keys, current_violations = parse_role_keys(current)
        violations.extend(current_violations)

        index = CurrentRoleIndex(current_keys)
        working: dict[RoleKey, None] = dict.fromkeys(requested_keys)
        for unit in sorted({key.top_level_unit for key in requested_keys}):
            working.update(dict.fromkeys(index.run(unit)))

        expanded = tuple(sorted(working, key=str))
        logger.debug(
            "Merged %d requested role(s) for %r into %d", len(requested_keys), identity, len(expanded)
        )
        return MergeResult(expanded=expanded, violations=violations)

    def merge_and_validate(
        self,
        identity: str,
        requested: Iterable[RoleKey | str],
        current: Iterable[RoleKey | str],
    ) -> tuple[tuple[RoleKey, ...], list[Violation]]:
        """Merge, then validate the union.  Inputs are never modified.

        Returns
        -------
        tuple[tuple[RoleKey, ...], list[Violation]]
            The expanded set and every violation (malformed entries first).
        """
        if self._validator is None:
            raise RuntimeError("IncrementalMerger was created without a validator")
        result = self.merge(identity, requested, current)
        violations = list(result.violations)
        violations.extend(self._validator.validate(identity, result.expanded))
        return result.expanded, violations
