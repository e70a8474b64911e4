"""ConstraintValidator: consistency checks for one identity's role set.

The ``ConstraintValidator`` decomposes each proposed assignment, groups
the roles by top-level unit, verifies referenced org units against the
directory (when one is injected), rejects unknown roles, and then runs
the per-unit rules.  A top-level unit whose org unit is missing reports
only that.  Every other problem is collected; nothing stops at the first
failure.

Usage
-----
::

    from spse_roles.catalog import RoleCatalog
    from spse_roles.validator import ConstraintValidator

    validator = ConstraintValidator(catalog, directory=directory)
    violations = validator.validate("auth0|alice", ["A:A1:PP", "A:A2:PPK"])
    if violations:
        ...
"""
from __future__ import annotations

import logging
from collections.abc import Iterable

from spse_roles.catalog.catalog import RoleCatalog
from spse_roles.directory.protocol import Directory
from spse_roles.model.keys import MalformedRoleError, RoleKey, coerce_key
from spse_roles.model.nodes import RoleAssignment, UnitGroup, group_by_top_level_unit
from spse_roles.validator.rules import DEFAULT_RULES, Rule
from spse_roles.validator.violations import Violation, ViolationKind

Entry = RoleAssignment | RoleKey | str

logger = logging.getLogger(__name__)


def parse_role_keys(entries: Iterable[Entry]) -> tuple[list[RoleKey], list[Violation]]:
    """Split ``entries`` into parsed keys and ``MalformedRole`` violations."""
    keys: list[RoleKey] = []
    violations: list[Violation] = []
    for entry in entries:
        try:
            keys.append(entry.key if isinstance(entry, RoleAssignment) else coerce_key(entry))
        except MalformedRoleError as exc:
            violations.append(Violation(
                kind=ViolationKind.MALFORMED_ROLE,
                message=str(exc),
                role=exc.text,
                suggestion="Use the form '<klpd>:<satker>:<role>'",
                rule="role_format",
            ))
    return keys, violations


class ConstraintValidator:
    """Validator for proposed role assignments.

    Parameters
    ----------
    catalog:
        The role catalog used to resolve role names to divisions.
    directory:
        Optional directory used to confirm that referenced org units
        exist.  When ``None`` the org-unit check is skipped.
        ``DirectoryUnavailableError`` raised by it propagates unchanged.
    rules:
        Per-unit rules to run.  Defaults to ``DEFAULT_RULES``.
    """

    def __init__(
        self,
        catalog: RoleCatalog,
        directory: Directory | None = None,
        rules: list[Rule] | None = None,
    ) -> None:
        self._catalog = catalog
        self._directory = directory
        self._rules: list[Rule] = rules if rules is not None else list(DEFAULT_RULES)

    def validate(self, identity: str, assignments: Iterable[Entry]) -> list[Violation]:
        """Check ``assignments`` for one identity.

        Parameters
        ----------
        identity:
            The identity the roles would be assigned to.
        assignments:
            ``RoleAssignment`` or ``RoleKey`` values, or
            ``"{klpd}:{satker}:{role}"`` strings.

        Returns
        -------
        list[Violation]
            All violations; empty when the set is valid.  Malformed entries
            come first, then each top-level unit in first-seen order.  A
            top-level unit with a missing org unit reports only that; the
            input is treated as a set, so repeated entries count once.
        """
        keys, violations = parse_role_keys(assignments)
        keys = list(dict.fromkeys(keys))

        unknown_seen: set[str] = set()
        for group in group_by_top_level_unit(keys):
            missing = self._missing_units(group)
            if missing:
                # A missing unit is the only finding for its top-level group.
                violations.extend(missing)
                continue

            known: list[RoleKey] = []
            for key in group.keys:
                if key.role in self._catalog:
                    known.append(key)
                elif key.role not in unknown_seen:
                    unknown_seen.add(key.role)
                    violations.append(self._unknown_role(key))
            if known:
                violations.extend(self._run_rules(UnitGroup(group.top_level_unit, tuple(known))))

        if violations:
            logger.debug(
                "Rejected %d assignment(s) for %r with %d violation(s)",
                len(keys),
                identity,
                len(violations),
            )
        return violations

    def _missing_units(self, group: UnitGroup) -> list[Violation]:
        if self._directory is None:
            return []
        return [
            Violation(
                kind=ViolationKind.UNKNOWN_ORG_UNIT,
                message=f"Organization unit not found: {unit.display_name}",
                unit=unit.directory_name,
                suggestion="Check the KLPD and Satuan Kerja names",
                rule="known_org_unit",
            )
            for unit in group.units
            if not self._directory.get_org_unit(unit)
        ]

    def _unknown_role(self, key: RoleKey) -> Violation:
        return Violation(
            kind=ViolationKind.UNKNOWN_ROLE,
            message=f"Role Function not found: {key.role}",
            unit=key.unit.directory_name,
            role=key.role,
            suggestion="Use one of: " + ", ".join(self._catalog.roles),
            rule="known_role",
        )

    def _run_rules(self, group: UnitGroup) -> list[Violation]:
        found: list[Violation] = []
        for rule in self._rules:
            try:
                found.extend(rule(group, self._catalog))
            except Exception as exc:  # noqa: BLE001
                # Rule failures are reported as ROLE999 alongside other findings.
                found.append(Violation(
                    kind=ViolationKind.INTERNAL_ERROR,
                    message=f"Internal validator error in rule {rule.__name__!r}: {exc}",
                    unit=group.top_level_unit,
                    suggestion="Please report this as a bug",
                    rule=rule.__name__,
                ))
        return found

    def add_rule(self, rule: Rule) -> None:
        """Add a custom per-unit rule to this validator instance."""
        self._rules.append(rule)

    @property
    def rule_count(self) -> int:
        return len(self._rules)


def validate(
    identity: str,
    assignments: Iterable[Entry],
    catalog: RoleCatalog,
    directory: Directory | None = None,
) -> list[Violation]:
    """Convenience function: validate with the default rules."""
    return ConstraintValidator(catalog, directory=directory).validate(identity, assignments)
