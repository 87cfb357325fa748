"""Synchronous wait on Azure long-running operations.

The azure-core LROPoller polls the service on its own thread. This module
waits on it in bounded slices so that the operation deadline and a caller
supplied cancellation event are honoured between slices.
"""

import logging
import threading
from typing import Any, Optional

from azure.core.polling import LROPoller

from .exceptions import DiskOperationCancelledError, DiskOperationTimeoutError
from .timeout_config import Deadline, log_timeout_event

logger = logging.getLogger(__name__)

INITIAL_WAIT_SLICE = 1.0
MAX_WAIT_SLICE = 30.0


def wait_for_completion(
    poller: LROPoller,
    deadline: Deadline,
    operation: str,
    resource_name: Optional[str] = None,
    resource_group: Optional[str] = None,
    cancel_event: Optional[threading.Event] = None,
) -> Any:
    """Block until the poller reaches a terminal state.

    Args:
        poller: Poller returned by a ``begin_*`` SDK call
        deadline: Deadline for the whole operation
        operation: Operation label used in errors and logs
        resource_name: Disk name for error context
        resource_group: Resource group for error context
        cancel_event: When set, the wait is abandoned

    Returns:
        The poller's final result

    Raises:
        DiskOperationTimeoutError: If the deadline passes first
        DiskOperationCancelledError: If cancel_event is set first
        azure.core.exceptions.HttpResponseError: If the operation failed
    """
    wait_slice = INITIAL_WAIT_SLICE
    while not poller.done():
        if cancel_event is not None and cancel_event.is_set():
            raise DiskOperationCancelledError(
                f"Cancelled while waiting for {operation} of Managed Disk "
                f"{resource_name!r} (Resource Group {resource_group!r})",
                resource_name=resource_name,
                resource_group=resource_group,
                operation=operation,
            )
        remaining = deadline.remaining()
        if remaining <= 0:
            log_timeout_event(operation, deadline.timeout, resource_name)
            raise DiskOperationTimeoutError(
                f"Timed out waiting for {operation} of Managed Disk "
                f"{resource_name!r} (Resource Group {resource_group!r})",
                timeout_value=deadline.timeout,
                resource_name=resource_name,
                resource_group=resource_group,
                operation=operation,
            )
        logger.debug(
            f"Waiting up to {min(wait_slice, remaining):.1f}s for {operation} "
            f"of {resource_name} (status: {poller.status()})"
        )
        # Re-raises the failure from the polling thread, if any
        poller.wait(timeout=min(wait_slice, remaining))
        wait_slice = min(wait_slice * 2, MAX_WAIT_SLICE)

    return poller.result()
