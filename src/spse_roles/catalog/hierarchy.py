"""Role hierarchy configuration.

A ``Hierarchy`` bundles everything about the deployment's role taxonomy
that the policy engine treats as configuration:

- the division table (division name -> ordered role names),
- the mutually-exclusive role pairs,
- the authority delegation rules,
- the name of the identity-level superuser marker role.

``DEFAULT_HIERARCHY`` mirrors the LPSE deployment.  Other taxonomies are
loaded from YAML without code changes::

    divisions:
      Pengelola LPSE: [Admin PPE, Admin Agency, Verifikator, Helpdesk]
      Pelaku Pengadaan LPSE: [PPK, KUPBJ, Anggota Pokmil, PP]
      Auditor: [Auditor]
    exclusive:
      - [PP, PPK]
    authority:
      - granter: Admin PPE
        denied: [Admin PPE, Auditor]
      - granter: Admin Agency
        denied: [Admin PPE, Auditor, Admin Agency]
    superuser_role: Super Admin
"""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml


class HierarchyError(ValueError):
    """Raised when a hierarchy table is internally inconsistent or unreadable."""


@dataclass(frozen=True)
class AuthorityRule:
    """Holders of ``granter`` in a unit may grant any role there except ``denied``."""

    granter: str
    denied: frozenset[str] = field(default_factory=frozenset)

    def permits(self, target_role: str) -> bool:
        return target_role not in self.denied


@dataclass(frozen=True)
class Hierarchy:
    """Immutable role taxonomy.

    Parameters
    ----------
    divisions:
        Ordered ``(division name, role names)`` pairs.
    exclusive_pairs:
        Role pairs that one identity may never hold together within a
        top-level unit.
    authority_rules:
        Delegation rules, evaluated in order; the first rule whose granter
        the assigner holds decides.
    superuser_role:
        Name of the global role that marks an identity as superuser.
    """

    divisions: tuple[tuple[str, tuple[str, ...]], ...]
    exclusive_pairs: tuple[tuple[str, str], ...] = ()
    authority_rules: tuple[AuthorityRule, ...] = ()
    superuser_role: str = "Super Admin"

    def __post_init__(self) -> None:
        seen: dict[str, str] = {}
        for division, roles in self.divisions:
            if not division:
                raise HierarchyError("Division names must not be empty")
            for role in roles:
                if role in seen:
                    raise HierarchyError(
                        f"Role {role!r} is listed under both {seen[role]!r} and {division!r}"
                    )
                seen[role] = division
        for first, second in self.exclusive_pairs:
            if first == second:
                raise HierarchyError(f"Exclusive pair ({first!r}, {second!r}) names one role twice")
            for role in (first, second):
                if role not in seen:
                    raise HierarchyError(f"Exclusive pair references unknown role {role!r}")
        for rule in self.authority_rules:
            if rule.granter not in seen:
                raise HierarchyError(f"Authority rule granter {rule.granter!r} is not a known role")
            unknown = sorted(rule.denied - seen.keys())
            if unknown:
                raise HierarchyError(
                    f"Authority rule for {rule.granter!r} denies unknown role(s): {', '.join(unknown)}"
                )

    @property
    def division_names(self) -> tuple[str, ...]:
        return tuple(name for name, _ in self.divisions)

    @property
    def role_names(self) -> tuple[str, ...]:
        return tuple(role for _, roles in self.divisions for role in roles)

    def division_index(self) -> dict[str, str]:
        """Return the reverse index ``role name -> division name``."""
        return {role: division for division, roles in self.divisions for role in roles}

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Hierarchy":
        """Build a ``Hierarchy`` from the mapping form shown in the module docstring.

        Raises
        ------
        HierarchyError
            If required keys are missing or have the wrong shape.
        """
        if not isinstance(data, dict):
            raise HierarchyError("Hierarchy document must be a mapping")
        raw_divisions = data.get("divisions")
        if not isinstance(raw_divisions, dict) or not raw_divisions:
            raise HierarchyError("'divisions' must be a non-empty mapping of division -> roles")

        divisions: list[tuple[str, tuple[str, ...]]] = []
        for name, roles in raw_divisions.items():
            if not isinstance(roles, list) or not all(isinstance(r, str) for r in roles):
                raise HierarchyError(f"Division {name!r} must map to a list of role names")
            divisions.append((str(name), tuple(roles)))

        pairs: list[tuple[str, str]] = []
        for pair in data.get("exclusive") or []:
            if not isinstance(pair, list) or len(pair) != 2:
                raise HierarchyError(f"Exclusive entry {pair!r} must be a list of two role names")
            pairs.append((str(pair[0]), str(pair[1])))

        rules: list[AuthorityRule] = []
        for entry in data.get("authority") or []:
            if not isinstance(entry, dict) or "granter" not in entry:
                raise HierarchyError(f"Authority entry {entry!r} must be a mapping with 'granter'")
            rules.append(
                AuthorityRule(
                    granter=str(entry["granter"]),
                    denied=frozenset(str(r) for r in entry.get("denied") or []),
                )
            )

        return cls(
            divisions=tuple(divisions),
            exclusive_pairs=tuple(pairs),
            authority_rules=tuple(rules),
            superuser_role=str(data.get("superuser_role", "Super Admin")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "divisions": {name: list(roles) for name, roles in self.divisions},
            "exclusive": [list(pair) for pair in self.exclusive_pairs],
            "authority": [
                {"granter": rule.granter, "denied": sorted(rule.denied)}
                for rule in self.authority_rules
            ],
            "superuser_role": self.superuser_role,
        }

    def to_yaml(self) -> str:
        return yaml.dump(self.to_dict(), default_flow_style=False, allow_unicode=True, sort_keys=False)


DEFAULT_HIERARCHY = Hierarchy(
    divisions=(
        ("Pengelola LPSE", ("Admin PPE", "Admin Agency", "Verifikator", "Helpdesk")),
        ("Pelaku Pengadaan LPSE", ("PPK", "KUPBJ", "Anggota Pokmil", "PP")),
        ("Auditor", ("Auditor",)),
    ),
    exclusive_pairs=(("PP", "PPK"),),
    authority_rules=(
        AuthorityRule("Admin PPE", frozenset({"Admin PPE", "Auditor"})),
        AuthorityRule("Admin Agency", frozenset({"Admin PPE", "Auditor", "Admin Agency"})),
    ),
    superuser_role="Super Admin",
)


def load_hierarchy(path: str | Path) -> Hierarchy:
    """Load a ``Hierarchy`` from a YAML (or JSON) file.

    Raises
    ------
    HierarchyError
        If the file cannot be read or does not describe a valid hierarchy.
    """
    try:
        text = Path(path).read_text(encoding="utf-8")
    except OSError as exc:
        raise HierarchyError(f"Cannot read hierarchy file {str(path)!r}: {exc}") from exc
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise HierarchyError(f"Hierarchy file {str(path)!r} is not valid YAML: {exc}") from exc
    return Hierarchy.from_dict(data)
