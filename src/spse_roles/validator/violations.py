"""Violation types for the constraint validator.

A ``Violation`` names one rejected entry of a proposed role set with
enough detail (role, unit, rule) for a caller to act on it.  Violations
are always collected and returned together, never one at a time.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ViolationKind(Enum):
    """Validation failure categories, each with a stable code."""

    MALFORMED_ROLE = "ROLE001"
    UNKNOWN_ROLE = "ROLE002"
    UNKNOWN_ORG_UNIT = "ROLE003"
    DIVISION_CONFLICT = "ROLE004"
    MUTUAL_EXCLUSION_CONFLICT = "ROLE005"
    INTERNAL_ERROR = "ROLE999"

    @property
    def code(self) -> str:
        return self.value


@dataclass(frozen=True)
class Violation:
    """A single reason a proposed role set was rejected.

    Parameters
    ----------
    kind:
        The failure category.
    message:
        Human-readable description of the problem.
    unit:
        The organizational unit concerned: a top-level unit name, or a
        ``"<klpd>-<satker>"`` directory name.  ``None`` when the problem is
        not tied to a unit.
    role:
        The offending role name or role string, if any.
    suggestion:
        Optional human-readable fix suggestion.
    rule:
        The rule name that produced this violation.
    """

    kind: ViolationKind
    message: str
    unit: str | None = field(default=None)
    role: str | None = field(default=None)
    suggestion: str | None = field(default=None)
    rule: str = field(default="")

    @property
    def code(self) -> str:
        return self.kind.code

    def __str__(self) -> str:
        where = f" in {self.unit}" if self.unit else ""
        suggestion_part = f" (hint: {self.suggestion})" if self.suggestion else ""
        return f"[{self.code}] {self.kind.name}{where}: {self.message}{suggestion_part}"

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-ready mapping of this violation."""
        return {
            "code": self.code,
            "kind": self.kind.name,
            "message": self.message,
            "unit": self.unit,
            "role": self.role,
            "suggestion": self.suggestion,
            "rule": self.rule,
        }


@dataclass
class ViolationReport(Exception):
    """Aggregates every violation found for one request.

    Raised by operations that must not proceed on an invalid role set.

    Parameters
    ----------
    violations:
        All violations, in the order the validator produced them.
    """

    violations: list[Violation] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.args = (str(self),)

    @property
    def has_violations(self) -> bool:
        return bool(self.violations)

    @property
    def messages(self) -> list[str]:
        return [v.message for v in self.violations]

    def __str__(self) -> str:
        if not self.violations:
            return "ViolationReport (no violations)"
        lines = [f"ViolationReport ({len(self.violations)} violation(s)):"]
        for violation in self.violations:
            lines.append(f"  {violation}")
        return "\n".join(lines)
