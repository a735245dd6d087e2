"""Switcher: build and switch NixOS and home-manager configurations.

Resolves the latest commit of a configuration flake, pins the flake
reference to it, and drives ``nom build``, ``nixos-rebuild switch`` and
``home-manager switch`` against that exact commit.
"""

__version__ = "0.1.0"

from switcher.core.flake_ref import FlakeRef
from switcher.core.orchestrator import Orchestrator

__all__ = ["FlakeRef", "Orchestrator", "__version__"]
