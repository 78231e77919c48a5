"""
Observability helpers: invocation-scoped context and log formatting.
"""

from .context import (
    InvocationContext,
    generate_invocation_id,
    get_invocation_id,
    set_invocation_id,
)
from .logging import HumanFormatter, JSONFormatter, configure_logging

__all__ = [
    "InvocationContext",
    "generate_invocation_id",
    "get_invocation_id",
    "set_invocation_id",
    "JSONFormatter",
    "HumanFormatter",
    "configure_logging",
]
