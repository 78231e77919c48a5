"""
Rate-limit aware retry for task creation.

Provides:
- RetryPolicy: attempt budget, backoff function and sleep, as data
- create_with_retry: create + permalink, retrying the whole create on 429

Only AsanaRateLimitError is retried. Everything else propagates on the first
occurrence, including a permalink failure after the task was created (the
task is not deleted and not re-created).
"""

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field

from . import config
from .integrations.asana_writer import AsanaRateLimitError, AsanaWriter, MaxRetriesExceeded
from .models import TaskResult

logger = logging.getLogger(__name__)


def retry_after_backoff(retry_after: float) -> float:
    """Server-requested wait plus a small buffer."""
    return retry_after + config.RATE_LIMIT_BUFFER_SECONDS


@dataclass
class RetryPolicy:
    """Bounded retry configuration for rate-limited calls."""

    max_attempts: int = config.CREATE_MAX_ATTEMPTS
    backoff: Callable[[float], float] = retry_after_backoff
    sleep: Callable[[float], None] = field(default=time.sleep, repr=False)

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")


def create_with_retry(
    client: AsanaWriter,
    payload: dict,
    policy: RetryPolicy | None = None,
) -> TaskResult:
    """
    Create a task and fetch its permalink.

    Args:
        client: Task client
        payload: Asana create-task body
        policy: Retry policy (defaults to RetryPolicy())

    Returns:
        TaskResult for the created task

    Raises:
        MaxRetriesExceeded: every attempt hit a 429
        AsanaAPIError: any other failure, immediately
    """
    policy = policy or RetryPolicy()

    for attempt in range(1, policy.max_attempts + 1):
        try:
            task_gid = client.create_task(payload)
        except AsanaRateLimitError as e:
            if attempt >= policy.max_attempts:
                logger.error(f"Rate limited on final attempt {attempt}/{policy.max_attempts}")
                break
            delay = policy.backoff(e.retry_after)
            logger.warning(
                f"Attempt {attempt}/{policy.max_attempts} rate limited. Retrying in {delay:.1f}s"
            )
            policy.sleep(delay)
            continue

        link = client.fetch_permalink(task_gid)
        return TaskResult(
            task_id=task_gid,
            permalink=link.url,
            assignee_name=link.assignee_name or link.assignee_email,
        )

    raise MaxRetriesExceeded(policy.max_attempts)
