"""
Test fixtures for deterministic testing.

This module provides:
- registry_fixture: seed registry data and on-disk registry documents
- registry_seed.json: pinned registry that tests make assertions against
"""

from .registry_fixture import seed_registry, seed_registry_data, write_registry_file

__all__ = ["seed_registry", "seed_registry_data", "write_registry_file"]
