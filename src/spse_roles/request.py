"""Decoding of role-assignment request bodies.

The role-management service receives request bodies of the form::

    {
      "id": "auth0|alice",
      "klpd": [
        {
          "name": "A",
          "satuan-kerja": [
            {"name": "A1", "roles": ["Admin PPE", "Admin Agency"]}
          ]
        }
      ]
    }

``decode_request`` turns that structure into a ``RoleRequest`` holding
structured ``RoleKey`` values.  Role names are taken verbatim; whether
they exist is for the validator to decide.  Other keys are ignored.
"""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from spse_roles.model.keys import SEPARATOR, RoleKey
from spse_roles.model.nodes import RoleAssignment


class RequestError(ValueError):
    """Raised when a request body does not have the expected structure."""


@dataclass(frozen=True)
class RoleRequest:
    """A decoded request: the identity and the roles it names."""

    identity: str
    keys: tuple[RoleKey, ...]

    @property
    def role_strings(self) -> list[str]:
        return [str(key) for key in self.keys]

    @property
    def assignments(self) -> tuple[RoleAssignment, ...]:
        return tuple(RoleAssignment(self.identity, key) for key in self.keys)


def _require_str(value: Any, what: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise RequestError(f"{what} must be a non-empty string")
    if SEPARATOR in value:
        raise RequestError(f"{what} {value!r} must not contain {SEPARATOR!r}")
    return value


def _require_list(value: Any, what: str) -> list[Any]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise RequestError(f"{what} must be a list")
    return value


def decode_request(payload: dict[str, Any], identity: str | None = None) -> RoleRequest:
    """Decode a request body into a ``RoleRequest``.

    Parameters
    ----------
    payload:
        The decoded JSON/YAML body.
    identity:
        Overrides ``payload["id"]`` when given.

    Raises
    ------
    RequestError
        If the body is not shaped like the structure in the module docstring.
    """
    if not isinstance(payload, dict):
        raise RequestError("Request body must be a mapping")

    ident = identity if identity is not None else payload.get("id", "")
    if not isinstance(ident, str):
        raise RequestError("'id' must be a string")

    keys: list[RoleKey] = []
    for klpd in _require_list(payload.get("klpd"), "'klpd'"):
        if not isinstance(klpd, dict):
            raise RequestError("Each 'klpd' entry must be a mapping")
        top = _require_str(klpd.get("name"), "KLPD name")
        for satker in _require_list(klpd.get("satuan-kerja"), f"'satuan-kerja' of {top}"):
            if not isinstance(satker, dict):
                raise RequestError(f"Each 'satuan-kerja' entry of {top} must be a mapping")
            sub = _require_str(satker.get("name"), f"Satuan Kerja name in {top}")
            for role in _require_list(satker.get("roles"), f"'roles' of {top}-{sub}"):
                if not isinstance(role, str):
                    raise RequestError(f"Role names in {top}-{sub} must be strings")
                keys.append(RoleKey(top, sub, role))

    return RoleRequest(identity=ident, keys=tuple(keys))


def load_request(path: str | Path, identity: str | None = None) -> RoleRequest:
    """Read and decode a request body from a YAML or JSON file."""
    try:
        data = yaml.safe_load(Path(path).read_text(encoding="utf-8"))
    except OSError as exc:
        raise RequestError(f"Cannot read request file {str(path)!r}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise RequestError(f"Request file {str(path)!r} is not valid YAML/JSON: {exc}") from exc
    return decode_request(data, identity=identity)
