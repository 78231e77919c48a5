from __future__ import annotations

import os
from pathlib import Path

APP_ENV_REGISTRY = "TASKDESK_REGISTRY"


def project_root() -> Path:
    """
    Repository/project root directory.
    Contains taskdesk/, api/, cli/, config/, tests/.
    """
    return Path(__file__).parent.parent.resolve()


def registry_path() -> Path:
    """
    Canonical registry document path.

    Resolution order:
    1. TASKDESK_REGISTRY env var (explicit override)
    2. <project root>/config/registry.yaml (default)
    """
    if os.environ.get(APP_ENV_REGISTRY):
        return Path(os.environ[APP_ENV_REGISTRY]).expanduser().resolve()
    return project_root() / "config" / "registry.yaml"
