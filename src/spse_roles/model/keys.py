"""Structured keys for organizational units and role assignments.

Role assignments travel as strings of the form ``"{klpd}:{satker}:{role}"``
(for example ``"A:A1:PP"``).  This module is the only place that string
form is parsed or produced; everything else works with ``RoleKey`` and
``OrgUnit`` values.

Usage
-----
::

    from spse_roles.model.keys import RoleKey

    key = RoleKey.parse("A:A1:Admin PPE")
    key.unit            # OrgUnit(top_level_unit='A', sub_unit='A1')
    str(key)            # 'A:A1:Admin PPE'
"""
from __future__ import annotations

from dataclasses import dataclass

SEPARATOR = ":"
UNIT_NAME_SEPARATOR = "-"


class MalformedRoleError(ValueError):
    """Raised when a role string cannot be split into unit and role parts."""

    def __init__(self, text: str, reason: str = "") -> None:
        self.text = text
        self.reason = reason
        detail = f": {reason}" if reason else ""
        super().__init__(f"Role {text!r} is not in correct format{detail}")


@dataclass(frozen=True, order=True, slots=True)
class OrgUnit:
    """Composite key ``(top_level_unit, sub_unit)``, e.g. a KLPD and a Satuan Kerja.

    Parameters
    ----------
    top_level_unit:
        The outermost organizational grouping (agency / institution).
    sub_unit:
        The subdivision of ``top_level_unit`` where roles are exercised.
    """

    top_level_unit: str
    sub_unit: str

    def __str__(self) -> str:
        return self.directory_name

    @property
    def directory_name(self) -> str:
        """Name under which the directory stores this unit, e.g. ``"A-A1"``."""
        return f"{self.top_level_unit}{UNIT_NAME_SEPARATOR}{self.sub_unit}"

    @property
    def display_name(self) -> str:
        return f"KLPD {self.top_level_unit}: Satuan Kerja {self.sub_unit}"


@dataclass(frozen=True, slots=True)
class RoleKey:
    """One role held in one sub-unit: ``(top_level_unit, sub_unit, role)``.

    Keys are not ordered; sort with ``key=str`` to line up with
    name-sorted role lists coming from the directory.
    """

    top_level_unit: str
    sub_unit: str
    role: str

    def __str__(self) -> str:
        return SEPARATOR.join((self.top_level_unit, self.sub_unit, self.role))

    @property
    def unit(self) -> OrgUnit:
        return OrgUnit(self.top_level_unit, self.sub_unit)

    @classmethod
    def of(cls, unit: OrgUnit, role: str) -> "RoleKey":
        """Build a key from an ``OrgUnit`` and a role name."""
        return cls(unit.top_level_unit, unit.sub_unit, role)

    @classmethod
    def parse(cls, text: str) -> "RoleKey":
        """Parse ``"{klpd}:{satker}:{role}"`` into a ``RoleKey``.

        Parameters
        ----------
        text:
            The role string to decompose.

        Returns
        -------
        RoleKey
            The structured key.

        Raises
        ------
        MalformedRoleError
            If ``text`` does not have exactly three non-blank parts.
        """
        if not isinstance(text, str):
            raise MalformedRoleError(repr(text), "expected a string")
        parts = text.split(SEPARATOR)
        if len(parts) != 3:
            raise MalformedRoleError(
                text, f"expected 3 parts separated by {SEPARATOR!r}, got {len(parts)}"
            )
        if any(not part.strip() for part in parts):
            raise MalformedRoleError(text, "unit and role parts must not be blank")
        return cls(*parts)


def unit_prefix(top_level_unit: str) -> str:
    """Return the string prefix shared by every formatted key under ``top_level_unit``."""
    return f"{top_level_unit}{SEPARATOR}"


def coerce_key(value: RoleKey | str) -> RoleKey:
    """Return ``value`` as a ``RoleKey``, parsing strings.

    Raises
    ------
    MalformedRoleError
        If ``value`` is a string that does not parse.
    """
    if isinstance(value, RoleKey):
        return value
    return RoleKey.parse(value)
