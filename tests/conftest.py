"""
Test configuration - ensures repo root is in sys.path + determinism guards.

This allows tests to import from top-level packages (taskdesk, api, cli).
Enforces determinism: no test reaches the real Asana API, the real clock
for due dates, or the registry under config/.
"""

import sys
from datetime import date
from pathlib import Path

import pytest

# Add repo root to sys.path so tests can import taskdesk.*, api.*, cli.*
REPO_ROOT = Path(__file__).parent.parent
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from taskdesk.registry import RegistryStore  # noqa: E402
from tests.fixtures import seed_registry  # noqa: E402

# Wednesday
FIXED_TODAY = date(2026, 10, 14)


@pytest.fixture(autouse=True)
def _isolate_environment(monkeypatch, tmp_path):
    """No real token, no real registry path."""
    monkeypatch.delenv("ASANA_ACCESS_TOKEN", raising=False)
    monkeypatch.setenv("TASKDESK_REGISTRY", str(tmp_path / "no-registry.yaml"))


@pytest.fixture
def registry():
    return seed_registry()


@pytest.fixture
def store(registry):
    return RegistryStore.from_snapshot(registry)


@pytest.fixture
def today():
    return FIXED_TODAY


@pytest.fixture
def revops(registry):
    return next(p for p in registry.projects if p.name == "Revenue Operations")


@pytest.fixture
def onboarding(registry):
    return next(p for p in registry.projects if p.name == "Client Onboarding")
