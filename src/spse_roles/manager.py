"""RoleManager: add, rewrite and delete an identity's roles through a directory.

Every operation runs all of its checks before the first directory write,
so a rejected request leaves the directory untouched:

1. authority (when an assigner is given): ``AuthorityDeniedError``;
2. validation: ``ViolationReport`` carrying every violation;
3. writes, grouped per org unit.

``DirectoryUnavailableError`` from any step propagates unchanged.
"""
from __future__ import annotations

import logging
from collections.abc import Iterable

from spse_roles.authority.engine import AuthorityEngine
from spse_roles.catalog.catalog import RoleCatalog
from spse_roles.directory.protocol import Directory
from spse_roles.merger.merger import IncrementalMerger
from spse_roles.model.keys import OrgUnit, RoleKey
from spse_roles.request import RoleRequest
from spse_roles.validator.validator import ConstraintValidator
from spse_roles.validator.violations import ViolationReport

logger = logging.getLogger(__name__)


class MissingExternalIdError(LookupError):
    """A role is in the hierarchy but the directory has no id for it."""

    def __init__(self, role: str) -> None:
        self.role = role
        super().__init__(f"Role {role!r} has no directory id; reload the catalog")


def _by_unit(keys: Iterable[RoleKey]) -> dict[OrgUnit, list[RoleKey]]:
    grouped: dict[OrgUnit, list[RoleKey]] = {}
    for key in keys:
        grouped.setdefault(key.unit, []).append(key)
    return grouped


class RoleManager:
    """Applies validated role changes to a directory.

    Parameters
    ----------
    catalog:
        The role catalog.
    directory:
        The directory collaborator to read from and write to.
    """

    def __init__(self, catalog: RoleCatalog, directory: Directory) -> None:
        self._catalog = catalog
        self._directory = directory
        self._validator = ConstraintValidator(catalog, directory=directory)
        self._merger = IncrementalMerger(self._validator)
        self._engine = AuthorityEngine(catalog)

    def add_roles(self, request: RoleRequest, assigner: str | None = None) -> tuple[RoleKey, ...]:
        """Add the requested roles to what the identity already holds.

        Returns
        -------
        tuple[RoleKey, ...]
            The validated union of requested and current roles in the
            touched top-level units.
        """
        self._authorize(request, assigner)
        current = self._directory.get_identity_roles(request.identity)
        expanded, violations = self._merger.merge_and_validate(
            request.identity, request.keys, current
        )
        if violations:
            raise ViolationReport(violations)

        held = set(current)
        additions = self._plan(k for k in request.keys if k not in held)
        self._apply(request.identity, additions, assign=True)
        return expanded

    def rewrite_roles(self, request: RoleRequest, assigner: str | None = None) -> tuple[RoleKey, ...]:
        """Replace all of the identity's roles with the requested set."""
        self._authorize(request, assigner)
        violations = self._validator.validate(request.identity, request.assignments)
        if violations:
            raise ViolationReport(violations)

        current = self._directory.get_identity_roles(request.identity)
        removals = self._plan(current)
        additions = self._plan(request.keys)
        self._apply(request.identity, removals, assign=False)
        self._apply(request.identity, additions, assign=True)
        return tuple(dict.fromkeys(request.keys))

    def delete_roles(self, request: RoleRequest, assigner: str | None = None) -> tuple[RoleKey, ...]:
        """Remove the requested roles; roles the identity does not hold are ignored.

        Returns
        -------
        tuple[RoleKey, ...]
            The identity's remaining roles.
        """
        self._authorize(request, assigner)
        current = self._directory.get_identity_roles(request.identity)
        requested = set(request.keys)
        removals = self._plan(k for k in current if k in requested)
        self._apply(request.identity, removals, assign=False)
        return tuple(k for k in current if k not in requested)

    def _authorize(self, request: RoleRequest, assigner: str | None) -> None:
        if assigner is not None:
            self._engine.authorize(self._directory, assigner, request.keys)

    def _plan(self, keys: Iterable[RoleKey]) -> list[tuple[OrgUnit, list[str]]]:
        plan: list[tuple[OrgUnit, list[str]]] = []
        for unit, unit_keys in _by_unit(keys).items():
            ids: list[str] = []
            for key in unit_keys:
                rid = self._catalog.external_id_of(key.role)
                if rid is None:
                    raise MissingExternalIdError(key.role)
                ids.append(rid)
            plan.append((unit, ids))
        return plan

    def _apply(self, identity: str, plan: list[tuple[OrgUnit, list[str]]], assign: bool) -> None:
        for unit, ids in plan:
            if assign:
                self._directory.assign_member_roles(unit, identity, ids)
            else:
                self._directory.delete_member_roles(unit, identity, ids)
            logger.info(
                "%s %d role(s) for %r in %s",
                "Assigned" if assign else "Removed",
                len(ids),
                identity,
                unit,
            )
