"""Incremental merging of requested and current roles."""
from __future__ import annotations

from spse_roles.merger.merger import CurrentRoleIndex, IncrementalMerger, MergeResult

__all__ = ["IncrementalMerger", "MergeResult", "CurrentRoleIndex"]
