"""Unit tests for spse_roles.request: decoding role-assignment request bodies."""
from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest

from spse_roles.model import RoleAssignment, RoleKey
from spse_roles.request import RequestError, RoleRequest, decode_request, load_request


def _payload(**overrides: Any) -> dict[str, Any]:
    body: dict[str, Any] = {
        "id": "auth0|alice",
        "klpd": [
            {
                "name": "A",
                "satuan-kerja": [
                    {"name": "A1", "roles": ["Admin PPE", "Admin Agency"]},
                    {"name": "A2", "roles": ["PPK"]},
                ],
            },
            {"name": "B", "satuan-kerja": [{"name": "B1", "roles": ["PP"]}]},
        ],
        "superadmin": False,
    }
    body.update(overrides)
    return body


class TestDecodeRequest:
    def test_flattens_nested_structure(self) -> None:
        request = decode_request(_payload())
        assert request.identity == "auth0|alice"
        assert request.keys == (
            RoleKey("A", "A1", "Admin PPE"),
            RoleKey("A", "A1", "Admin Agency"),
            RoleKey("A", "A2", "PPK"),
            RoleKey("B", "B1", "PP"),
        )

    def test_role_strings(self) -> None:
        request = RoleRequest("auth0|x", (RoleKey("A", "A1", "PP"),))
        assert request.role_strings == ["A:A1:PP"]

    def test_assignments_carry_identity(self) -> None:
        request = RoleRequest("auth0|x", (RoleKey("A", "A1", "PP"), RoleKey("B", "B1", "PPK")))
        assert request.assignments == (
            RoleAssignment("auth0|x", RoleKey("A", "A1", "PP")),
            RoleAssignment("auth0|x", RoleKey("B", "B1", "PPK")),
        )

    def test_identity_override(self) -> None:
        assert decode_request(_payload(), identity="auth0|bob").identity == "auth0|bob"

    def test_other_keys_are_ignored(self) -> None:
        body = _payload()
        del body["superadmin"]
        assert decode_request(_payload(superadmin="yes")) == decode_request(body)

    def test_empty_body_decodes_to_empty_request(self) -> None:
        request = decode_request({"id": "auth0|x"})
        assert request.keys == ()

    def test_unknown_role_names_are_kept(self) -> None:
        body = _payload(klpd=[{"name": "A", "satuan-kerja": [{"name": "A1", "roles": ["Ghost"]}]}])
        assert decode_request(body).keys == (RoleKey("A", "A1", "Ghost"),)

    def test_missing_satuan_kerja_is_empty(self) -> None:
        assert decode_request(_payload(klpd=[{"name": "A"}])).keys == ()


class TestDecodeRequestErrors:
    def test_body_must_be_mapping(self) -> None:
        with pytest.raises(RequestError):
            decode_request(["A:A1:PP"])  # type: ignore[arg-type]

    def test_id_must_be_string(self) -> None:
        with pytest.raises(RequestError, match="'id'"):
            decode_request(_payload(id=7))

    def test_klpd_must_be_list(self) -> None:
        with pytest.raises(RequestError, match="must be a list"):
            decode_request(_payload(klpd={"name": "A"}))

    def test_klpd_name_required(self) -> None:
        with pytest.raises(RequestError, match="KLPD name"):
            decode_request(_payload(klpd=[{"satuan-kerja": []}]))

    def test_names_must_not_contain_separator(self) -> None:
        body = _payload(klpd=[{"name": "A:B", "satuan-kerja": []}])
        with pytest.raises(RequestError, match="must not contain"):
            decode_request(body)

    def test_satker_name_required(self) -> None:
        body = _payload(klpd=[{"name": "A", "satuan-kerja": [{"roles": ["PP"]}]}])
        with pytest.raises(RequestError, match="Satuan Kerja name"):
            decode_request(body)

    def test_role_names_must_be_strings(self) -> None:
        body = _payload(klpd=[{"name": "A", "satuan-kerja": [{"name": "A1", "roles": [1]}]}])
        with pytest.raises(RequestError, match="must be strings"):
            decode_request(body)


class TestLoadRequest:
    def test_yaml_file(self, tmp_path: Path) -> None:
        path = tmp_path / "request.yaml"
        path.write_text(
            "id: auth0|alice\n"
            "klpd:\n"
            "  - name: A\n"
            "    satuan-kerja:\n"
            "      - name: A1\n"
            "        roles: [PP]\n",
            encoding="utf-8",
        )
        assert load_request(path).keys == (RoleKey("A", "A1", "PP"),)

    def test_json_file(self, tmp_path: Path) -> None:
        path = tmp_path / "request.json"
        path.write_text(json.dumps(_payload()), encoding="utf-8")
        assert len(load_request(path).keys) == 4

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(RequestError, match="Cannot read"):
            load_request(tmp_path / "absent.yaml")

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.yaml"
        path.write_text("klpd: [unclosed", encoding="utf-8")
        with pytest.raises(RequestError, match="not valid"):
            load_request(path)
