"""
Centralized configuration for taskdesk.

All values that vary by deployment belong here.
Override via environment variables where marked.
"""

import os

# ============================================================
# Asana
# ============================================================

ASANA_API_BASE: str = os.environ.get("TASKDESK_ASANA_API_BASE", "https://app.asana.com/api/1.0")
"""Asana REST base URL."""

ASANA_TOKEN_ENV: str = "ASANA_ACCESS_TOKEN"
"""Environment variable holding the Asana bearer token. Read only by the task client."""

ASANA_TIMEOUT_SECONDS: float = float(os.environ.get("TASKDESK_ASANA_TIMEOUT", "30"))
"""Per-request HTTP timeout."""

CREATE_MAX_ATTEMPTS: int = int(os.environ.get("TASKDESK_CREATE_MAX_ATTEMPTS", "2"))
"""Attempts for one task creation, counting the first. Only 429s are retried."""

RATE_LIMIT_BUFFER_SECONDS: float = 0.5
"""Added on top of Retry-After before the next attempt."""

DEFAULT_RETRY_AFTER_SECONDS: float = 1.0
"""Used when a 429 arrives without a usable Retry-After header."""

# ============================================================
# Registry
# ============================================================

REGISTRY_TTL_SECONDS: float = float(os.environ.get("TASKDESK_REGISTRY_TTL", "300"))
"""How long a loaded registry is served before the next load re-reads the file."""

FALLBACK_DUE_DAYS: int = 3
"""Due-date offset when neither the project nor the registry defines one."""

FALLBACK_TIMEZONE: str = "America/New_York"

# ============================================================
# Logging
# ============================================================

LOG_LEVEL: str = os.environ.get("TASKDESK_LOG_LEVEL", "INFO")
