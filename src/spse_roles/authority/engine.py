"""AuthorityEngine: may this assigner grant that role in that unit?

Delegation is decided per target org unit, from the roles the assigner
holds *in that same unit*.  The ordered rule table comes from the
hierarchy configuration; with the default LPSE table:

- ``Admin PPE`` may grant anything except ``Admin PPE`` and ``Auditor``;
- otherwise ``Admin Agency`` may grant anything except ``Admin PPE``,
  ``Auditor`` and ``Admin Agency``;
- otherwise nothing may be granted in the unit.

An identity holding the hierarchy's ``superuser_role`` among its global
roles gets the union of every rule in every unit, without a role lookup.

Usage
-----
::

    from spse_roles.authority import AuthorityEngine
    from spse_roles.model import OrgUnit, RoleKey

    engine = AuthorityEngine(catalog)
    engine.can_assign([RoleKey("A", "A1", "Admin PPE")], OrgUnit("A", "A1"), "PPK")  # True
"""
from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence

from spse_roles.catalog.catalog import RoleCatalog
from spse_roles.catalog.hierarchy import AuthorityRule
from spse_roles.directory.protocol import Directory, MembershipNotFoundError
from spse_roles.model.keys import OrgUnit, RoleKey, coerce_key

logger = logging.getLogger(__name__)

NO_ACCESS_REASON = "no administrative access in this unit"
NOT_ALLOWED_REASON = "Action not allowed"

HeldRole = RoleKey | tuple[OrgUnit, str] | str


class AuthorityDeniedError(PermissionError):
    """The assigner may not grant ``role`` in ``unit``.  Terminal for the request."""

    def __init__(self, unit: OrgUnit, role: str | None, reason: str) -> None:
        self.unit = unit
        self.role = role
        self.reason = reason
        target = f"{role!r} in " if role else ""
        super().__init__(f"{reason}: {target}{unit.display_name}")


def _as_key(held: HeldRole) -> RoleKey:
    if isinstance(held, tuple):
        unit, role = held
        return RoleKey.of(unit, role)
    return coerce_key(held)


class AuthorityEngine:
    """Evaluates authority delegation rules against a role catalog.

    Parameters
    ----------
    catalog:
        Defines which roles exist; a role outside the catalog can never be
        granted.
    rules:
        Ordered delegation rules.  Defaults to the catalog hierarchy's
        ``authority_rules``.
    """

    def __init__(
        self,
        catalog: RoleCatalog,
        rules: Sequence[AuthorityRule] | None = None,
    ) -> None:
        self._catalog = catalog
        self._rules: tuple[AuthorityRule, ...] = tuple(
            rules if rules is not None else catalog.hierarchy.authority_rules
        )

    @property
    def rules(self) -> tuple[AuthorityRule, ...]:
        return self._rules

    def is_superuser(self, global_roles: Iterable[str]) -> bool:
        """Return ``True`` if ``global_roles`` include the hierarchy's superuser role."""
        return self._catalog.hierarchy.superuser_role in set(global_roles)

    def grantable(self, held_roles: Iterable[str], is_superuser: bool = False) -> frozenset[str]:
        """Return the roles grantable by someone holding ``held_roles`` in one unit."""
        all_roles = frozenset(self._catalog.roles)
        if is_superuser:
            allowed: set[str] = set()
            for rule in self._rules:
                allowed |= all_roles - rule.denied
            return frozenset(allowed)

        held = set(held_roles)
        for rule in self._rules:
            if rule.granter in held:
                return all_roles - rule.denied
        return frozenset()

    def can_assign(
        self,
        assigner_roles: Iterable[HeldRole],
        target_unit: OrgUnit,
        target_role: str,
        is_superuser: bool = False,
    ) -> bool:
        """Return ``True`` if the assigner may grant ``target_role`` in ``target_unit``.

        Parameters
        ----------
        assigner_roles:
            Every role the assigner holds, as ``RoleKey`` values,
            ``(OrgUnit, role)`` pairs or role strings.  Only those held in
            ``target_unit`` count.
        target_unit:
            Where the role would be granted.
        target_role:
            The role name to grant.
        is_superuser:
            Whether the assigner carries the superuser marker.
        """
        if target_role not in self._catalog:
            return False
        if is_superuser:
            return target_role in self.grantable((), is_superuser=True)
        held = [key.role for key in map(_as_key, assigner_roles) if key.unit == target_unit]
        return target_role in self.grantable(held)

    def check(
        self,
        assigner_roles: Iterable[HeldRole],
        assignments: Iterable[RoleKey | str],
        is_superuser: bool = False,
    ) -> None:
        """Batch form of ``can_assign``; fails closed on the first disallowed entry.

        Every entry is parsed before any authority decision is made.

        Raises
        ------
        MalformedRoleError
            If an assignment string is not ``"{klpd}:{satker}:{role}"``.
        AuthorityDeniedError
            For the first assignment the assigner may not grant.
        """
        held = [_as_key(role) for role in assigner_roles]
        keys = [coerce_key(entry) for entry in assignments]
        for key in keys:
            if not self.can_assign(held, key.unit, key.role, is_superuser=is_superuser):
                raise AuthorityDeniedError(key.unit, key.role, NOT_ALLOWED_REASON)

    def authorize(
        self,
        directory: Directory,
        assigner: str,
        assignments: Iterable[RoleKey | str],
    ) -> None:
        """Check ``assigner``'s authority for every assignment using the directory.

        The assigner's global roles and its roles in each touched unit are
        read from ``directory``.  Holding the hierarchy's ``superuser_role``
        globally makes the assigner a superuser.  A missing membership
        counts as holding no roles there; for anyone else that is reported
        as no administrative access.  Malformed entries are rejected
        before the directory is consulted.

        Raises
        ------
        MalformedRoleError
            If an assignment string is not ``"{klpd}:{satker}:{role}"``.
        AuthorityDeniedError
            On the first unit or role the assigner may not grant.
        DirectoryUnavailableError
            If the directory cannot be reached.
        """
        by_unit: dict[OrgUnit, list[str]] = {}
        for entry in assignments:
            key = coerce_key(entry)
            by_unit.setdefault(key.unit, []).append(key.role)

        is_superuser = self.is_superuser(directory.get_global_roles(assigner))
        for unit, roles in by_unit.items():
            held: list[str] = []
            if not is_superuser:
                try:
                    held = directory.get_member_roles(unit, assigner)
                except MembershipNotFoundError:
                    logger.debug("%r has no membership in %s", assigner, unit)
                    raise AuthorityDeniedError(unit, None, NO_ACCESS_REASON) from None
            allowed = self.grantable(held, is_superuser=is_superuser)
            for role in roles:
                if role not in allowed:
                    raise AuthorityDeniedError(unit, role, NOT_ALLOWED_REASON)
