"""spse-roles — role-assignment policy engine for LPSE organizational units.

Public API
----------
The stable public surface is everything exported from this module.
Anything inside submodules not re-exported here is considered private
and may change without notice.

Example
-------
::

    import spse_roles
    from spse_roles.catalog import RoleCatalog
    from spse_roles.model import OrgUnit

    catalog = RoleCatalog.from_directory(spse_roles.DEFAULT_HIERARCHY, directory)

    # Is this proposed role set consistent?
    violations = spse_roles.validate_assignments(
        "auth0|alice", ["A:A1:PP", "A:A2:PPK"], catalog
    )

    # May this assigner grant the role?
    spse_roles.can_assign(
        ["A:A1:Admin PPE"], OrgUnit("A", "A1"), "Admin Agency", False, catalog
    )

    # Add roles: merge with what the identity already holds, then validate
    expanded, violations = spse_roles.merge_and_validate(
        "auth0|alice", ["A:A2:PPK"], directory.get_identity_roles("auth0|alice"), catalog
    )

    spse_roles.__version__
    '0.1.0'
"""
from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import TYPE_CHECKING

from spse_roles.catalog.hierarchy import DEFAULT_HIERARCHY, Hierarchy, load_hierarchy

__version__: str = "0.1.0"

if TYPE_CHECKING:
    from spse_roles.catalog.catalog import RoleCatalog
    from spse_roles.catalog.hierarchy import AuthorityRule
    from spse_roles.directory.protocol import Directory
    from spse_roles.model.keys import OrgUnit, RoleKey
    from spse_roles.model.nodes import RoleAssignment
    from spse_roles.validator.violations import Violation


def validate_assignments(
    identity: str,
    assignments: Iterable["RoleAssignment | RoleKey | str"],
    catalog: "RoleCatalog",
    directory: "Directory | None" = None,
) -> list["Violation"]:
    """Validate a proposed role set for one identity.

    Parameters
    ----------
    identity:
        The identity the roles would be assigned to.
    assignments:
        ``RoleAssignment`` or ``RoleKey`` values, or
        ``"{klpd}:{satker}:{role}"`` strings.
    catalog:
        The role catalog.
    directory:
        When given, referenced org units are checked for existence.

    Returns
    -------
    list[Violation]
        Every violation found; empty when the set is valid.
    """
    from spse_roles.validator.validator import validate as _validate

    return _validate(identity, assignments, catalog, directory=directory)


def can_assign(
    assigner_roles: Iterable["RoleKey | tuple[OrgUnit, str] | str"],
    target_unit: "OrgUnit",
    target_role: str,
    is_superuser: bool,
    catalog: "RoleCatalog",
    rules: "Sequence[AuthorityRule] | None" = None,
) -> bool:
    """Return ``True`` if the assigner may grant ``target_role`` in ``target_unit``.

    Parameters
    ----------
    assigner_roles:
        Every role the assigner holds.
    target_unit:
        Where the role would be granted.
    target_role:
        Role name to grant.
    is_superuser:
        Whether the assigner carries the superuser marker.
    catalog:
        The role catalog.
    rules:
        Delegation rules; defaults to the catalog hierarchy's rules.
    """
    from spse_roles.authority.engine import AuthorityEngine

    return AuthorityEngine(catalog, rules=rules).can_assign(
        assigner_roles, target_unit, target_role, is_superuser=is_superuser
    )


def merge_and_validate(
    identity: str,
    requested: Iterable["RoleKey | str"],
    current_roles: Iterable["RoleKey | str"],
    catalog: "RoleCatalog",
    directory: "Directory | None" = None,
) -> tuple[tuple["RoleKey", ...], list["Violation"]]:
    """Merge requested roles with the identity's current roles, then validate.

    Returns
    -------
    tuple[tuple[RoleKey, ...], list[Violation]]
        The expanded role set and every violation found in it.
    """
    from spse_roles.merger.merger import IncrementalMerger
    from spse_roles.validator.validator import ConstraintValidator

    merger = IncrementalMerger(ConstraintValidator(catalog, directory=directory))
    return merger.merge_and_validate(identity, requested, current_roles)


__all__ = [
    "__version__",
    "validate_assignments",
    "can_assign",
    "merge_and_validate",
    "DEFAULT_HIERARCHY",
    "Hierarchy",
    "load_hierarchy",
]
