"""
Per-operation timeout configuration for managed disk operations.

Create, update and delete wait on Azure long-running operations and default
to a long ceiling; read is a single GET and defaults to a short one.

Usage:
    from managed_disk_provider.timeout_config import Timeouts

    deadline = Deadline(Timeouts.DISK_CREATE)
    poller.wait(timeout=deadline.remaining())

Environment Variables:
    All timeout values can be overridden via environment variables:
    - MDP_TIMEOUT_CREATE: Create a disk (default: 1800s)
    - MDP_TIMEOUT_READ: Read a disk (default: 300s)
    - MDP_TIMEOUT_UPDATE: Update a disk (default: 1800s)
    - MDP_TIMEOUT_DELETE: Delete a disk (default: 1800s)
"""

import logging
import os
import time
from dataclasses import dataclass, field
from typing import Final, Optional

logger = logging.getLogger(__name__)


def _get_timeout(env_var: str, default: int) -> int:
    """Get timeout value from environment variable or use default.

    Args:
        env_var: Environment variable name
        default: Default timeout in seconds

    Returns:
        Timeout value in seconds
    """
    value = os.environ.get(env_var)
    if value is not None:
        try:
            timeout = int(value)
            if timeout <= 0:
                logger.warning(
                    f"Invalid timeout value for {env_var}: {value}. "
                    f"Must be positive. Using default: {default}s"
                )
                return default
            return timeout
        except ValueError:
            logger.warning(
                f"Invalid timeout value for {env_var}: {value}. "
                f"Must be integer. Using default: {default}s"
            )
            return default
    return default


class Timeouts:
    """Default timeout constants for disk operations, in seconds."""

    DISK_CREATE: Final[int] = _get_timeout("MDP_TIMEOUT_CREATE", 30 * 60)
    DISK_READ: Final[int] = _get_timeout("MDP_TIMEOUT_READ", 5 * 60)
    DISK_UPDATE: Final[int] = _get_timeout("MDP_TIMEOUT_UPDATE", 30 * 60)
    DISK_DELETE: Final[int] = _get_timeout("MDP_TIMEOUT_DELETE", 30 * 60)


@dataclass(frozen=True)
class OperationTimeouts:
    """Timeouts for each handler operation, overridable per resource."""

    create: float = field(default_factory=lambda: float(Timeouts.DISK_CREATE))
    read: float = field(default_factory=lambda: float(Timeouts.DISK_READ))
    update: float = field(default_factory=lambda: float(Timeouts.DISK_UPDATE))
    delete: float = field(default_factory=lambda: float(Timeouts.DISK_DELETE))

    def __post_init__(self) -> None:
        for name in ("create", "read", "update", "delete"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} timeout must be positive")

    def for_operation(self, operation: str) -> float:
        try:
            return float(getattr(self, operation))
        except AttributeError:
            raise ValueError(f"Unknown operation: {operation}") from None


class Deadline:
    """A point in time after which an operation is abandoned.

    Uses the monotonic clock, so wall-clock adjustments do not affect it.
    """

    def __init__(self, seconds: float, clock=time.monotonic) -> None:
        self.timeout = seconds
        self._clock = clock
        self._expires_at = clock() + seconds

    def remaining(self) -> float:
        return max(0.0, self._expires_at - self._clock())

    def expired(self) -> bool:
        return self.remaining() <= 0.0

    def __repr__(self) -> str:
        return f"Deadline(timeout={self.timeout}, remaining={self.remaining():.1f})"


def log_timeout_event(
    operation: str,
    timeout_value: float,
    resource_name: Optional[str] = None,
    level: str = "warning",
) -> None:
    """Log a timeout event with consistent formatting.

    Args:
        operation: Name of the operation that timed out
        timeout_value: Timeout value that was exceeded
        resource_name: Optional disk the operation targeted
        level: Log level (debug, info, warning, error)
    """
    log_func = getattr(logger, level, logger.warning)
    target = f" for disk {resource_name!r}" if resource_name else ""
    log_func(
        f"Operation '{operation}'{target} timed out after {timeout_value:g} seconds"
    )
