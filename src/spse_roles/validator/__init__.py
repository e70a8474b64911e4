"""Constraint validator module.

Exports the ``ConstraintValidator`` class, the ``validate`` convenience
function, ``Violation`` types, and the built-in per-unit rules.
"""
from __future__ import annotations

from spse_roles.validator.rules import DEFAULT_RULES, Rule
from spse_roles.validator.validator import ConstraintValidator, validate
from spse_roles.validator.violations import Violation, ViolationKind, ViolationReport

__all__ = [
    "ConstraintValidator",
    "validate",
    "Violation",
    "ViolationKind",
    "ViolationReport",
    "Rule",
    "DEFAULT_RULES",
]
