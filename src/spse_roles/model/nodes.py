"""Value types for the role-assignment policy engine.

All types are frozen dataclasses so they can be shared freely between
concurrent validations and used as dictionary keys.
"""
from __future__ import annotations

from dataclasses import dataclass

from spse_roles.model.keys import OrgUnit, RoleKey


@dataclass(frozen=True, order=True, slots=True)
class Division:
    """A coarse functional category, e.g. ``"Pengelola LPSE"``.

    The set of divisions is whatever the loaded hierarchy declares; roles
    in different divisions may never be mixed for one identity within one
    top-level unit.
    """

    name: str

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True, slots=True)
class Role:
    """A catalog entry.

    Parameters
    ----------
    name:
        Role function name, e.g. ``"PPK"``.
    division:
        Division the role belongs to, derived from the hierarchy table.
    external_id:
        Opaque handle used when talking to the directory.  ``None`` when
        the directory does not list this role.
    """

    name: str
    division: Division
    external_id: str | None = None


@dataclass(frozen=True, slots=True)
class RoleAssignment:
    """``identity`` holds ``key.role`` in ``key.unit``."""

    identity: str
    key: RoleKey

    @property
    def unit(self) -> OrgUnit:
        return self.key.unit

    @property
    def role(self) -> str:
        return self.key.role


@dataclass(frozen=True, slots=True)
class UnitGroup:
    """All of one identity's assignments under a single top-level unit.

    This is the scope at which division isolation and mutual exclusion
    are checked; the sub-unit only says where a role is exercised.
    """

    top_level_unit: str
    keys: tuple[RoleKey, ...]

    @property
    def roles(self) -> tuple[str, ...]:
        return tuple(key.role for key in self.keys)

    @property
    def units(self) -> tuple[OrgUnit, ...]:
        """Distinct sub-units referenced by the group, in first-seen order."""
        return tuple(dict.fromkeys(key.unit for key in self.keys))


def group_by_top_level_unit(keys: tuple[RoleKey, ...] | list[RoleKey]) -> list[UnitGroup]:
    """Partition ``keys`` by top-level unit, preserving first-seen order."""
    buckets: dict[str, list[RoleKey]] = {}
    for key in keys:
        buckets.setdefault(key.top_level_unit, []).append(key)
    return [UnitGroup(top, tuple(members)) for top, members in buckets.items()]
