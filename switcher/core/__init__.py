"""Core pipeline: flake references, system capability, orchestration."""
