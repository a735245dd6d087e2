"""Switcher data models — Pydantic v2, frozen."""

from switcher.models.commit import CommitRef
from switcher.models.facts import SystemFacts
from switcher.models.plan import (
    Buildable,
    BuildableKind,
    BuildPlan,
    system_fragment,
    user_fragment,
)

__all__ = [
    "CommitRef",
    "SystemFacts",
    "Buildable",
    "BuildableKind",
    "BuildPlan",
    "system_fragment",
    "user_fragment",
]
