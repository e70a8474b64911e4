"""Authority delegation: who may grant which role where."""
from __future__ import annotations

from spse_roles.authority.engine import AuthorityDeniedError, AuthorityEngine

__all__ = ["AuthorityEngine", "AuthorityDeniedError"]
