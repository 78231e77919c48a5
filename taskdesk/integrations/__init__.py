"""
External service integrations.
"""

from .asana_writer import (
    AsanaAPIError,
    AsanaConfigError,
    AsanaPermalinkError,
    AsanaRateLimitError,
    AsanaWriter,
    MaxRetriesExceeded,
    Permalink,
)

__all__ = [
    "AsanaAPIError",
    "AsanaConfigError",
    "AsanaPermalinkError",
    "AsanaRateLimitError",
    "AsanaWriter",
    "MaxRetriesExceeded",
    "Permalink",
]
