"""Tests for waiting on long-running operations."""

import threading
import time
from unittest.mock import Mock

import pytest
from azure.core.exceptions import HttpResponseError, ResourceNotFoundError
from azure.core.polling import LROPoller, PollingMethod

from managed_disk_provider.exceptions import (
    DiskOperationCancelledError,
    DiskOperationTimeoutError,
    is_not_found,
)
from managed_disk_provider.polling import (
    INITIAL_WAIT_SLICE,
    MAX_WAIT_SLICE,
    wait_for_completion,
)
from managed_disk_provider.timeout_config import Deadline


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


def poller_finishing_after(waits, clock=None):
    """Poller that reports done after the given number of waits.

    When a clock is given, each wait advances it by the requested timeout.
    """
    poller = Mock()
    state = {"waits": 0}

    def wait(timeout=None):
        state["waits"] += 1
        if clock is not None:
            clock.now += timeout

    poller.wait.side_effect = wait
    poller.done.side_effect = lambda: state["waits"] >= waits
    poller.status.return_value = "InProgress"
    poller.result.return_value = "final"
    return poller


class TestWaitForCompletion:
    """Test wait_for_completion."""

    def test_already_done(self):
        poller = poller_finishing_after(0)

        result = wait_for_completion(poller, Deadline(60), "create", "disk1", "rg")

        assert result == "final"
        poller.wait.assert_not_called()

    def test_waits_in_growing_slices(self):
        clock = FakeClock()
        poller = poller_finishing_after(4, clock)

        wait_for_completion(poller, Deadline(600, clock=clock), "create", "disk1", "rg")

        timeouts = [c.kwargs["timeout"] for c in poller.wait.call_args_list]
        assert timeouts == [
            INITIAL_WAIT_SLICE,
            INITIAL_WAIT_SLICE * 2,
            INITIAL_WAIT_SLICE * 4,
            INITIAL_WAIT_SLICE * 8,
        ]

    def test_slice_is_capped(self):
        clock = FakeClock()
        poller = poller_finishing_after(10, clock)

        wait_for_completion(poller, Deadline(3600, clock=clock), "delete", "disk1", "rg")

        timeouts = [c.kwargs["timeout"] for c in poller.wait.call_args_list]
        assert max(timeouts) == MAX_WAIT_SLICE

    def test_slice_never_exceeds_remaining_time(self):
        clock = FakeClock()
        poller = poller_finishing_after(2, clock)

        wait_for_completion(poller, Deadline(2.5, clock=clock), "update", "disk1", "rg")

        timeouts = [c.kwargs["timeout"] for c in poller.wait.call_args_list]
        assert timeouts == [1.0, 1.5]

    def test_timeout(self):
        clock = FakeClock()
        poller = poller_finishing_after(100, clock)

        with pytest.raises(DiskOperationTimeoutError) as exc_info:
            wait_for_completion(
                poller, Deadline(5, clock=clock), "create", "disk1", "rg"
            )

        error = exc_info.value
        assert error.timeout_value == 5
        assert error.operation == "create"
        assert error.resource_name == "disk1"
        assert error.resource_group == "rg"
        assert error.context["timeout"] == "5s"
        assert clock.now == pytest.approx(5)
        poller.result.assert_not_called()

    def test_cancellation(self):
        poller = poller_finishing_after(100)
        cancel_event = threading.Event()
        cancel_event.set()

        with pytest.raises(DiskOperationCancelledError) as exc_info:
            wait_for_completion(
                poller, Deadline(60), "delete", "disk1", "rg", cancel_event=cancel_event
            )

        assert exc_info.value.error_code == "DISK_OPERATION_CANCELLED"
        poller.wait.assert_not_called()

    def test_cancellation_between_slices(self):
        poller = poller_finishing_after(100)
        cancel_event = threading.Event()
        poller.wait.side_effect = lambda timeout=None: cancel_event.set()

        with pytest.raises(DiskOperationCancelledError):
            wait_for_completion(
                poller, Deadline(60), "create", "disk1", "rg", cancel_event=cancel_event
            )

        assert poller.wait.call_count == 1

    def test_operation_failure_propagates(self):
        poller = poller_finishing_after(0)
        poller.result.side_effect = HttpResponseError(message="Conflict")

        with pytest.raises(HttpResponseError):
            wait_for_completion(poller, Deadline(60), "create", "disk1", "rg")


class SleepingPollingMethod(PollingMethod):
    """Polling method that finishes, or fails, after a delay."""

    def __init__(self, delay, error=None):
        self._delay = delay
        self._error = error
        self._finished = False

    def initialize(self, client, initial_response, deserialization_callback):
        pass

    def run(self):
        time.sleep(self._delay)
        if self._error is not None:
            raise self._error
        self._finished = True

    def status(self):
        return "Succeeded" if self._finished else "InProgress"

    def finished(self):
        return self._finished

    def resource(self):
        return "final"

    def get_continuation_token(self):
        return "continuation-token"


class TestWaitForCompletionWithLROPoller:
    """Test waiting on a real azure-core LROPoller."""

    def test_returns_result(self):
        poller = LROPoller(None, None, None, SleepingPollingMethod(0.05))

        result = wait_for_completion(poller, Deadline(5), "create", "disk1", "rg")

        assert result == "final"
        assert poller.done()

    def test_not_found_from_polling_is_reraised(self):
        poller = LROPoller(
            None,
            None,
            None,
            SleepingPollingMethod(0.05, error=ResourceNotFoundError(message="gone")),
        )

        with pytest.raises(ResourceNotFoundError) as exc_info:
            wait_for_completion(poller, Deadline(5), "delete", "disk1", "rg")

        assert is_not_found(exc_info.value)

    def test_deadline_passes_while_operation_runs(self):
        poller = LROPoller(None, None, None, SleepingPollingMethod(1.0))

        with pytest.raises(DiskOperationTimeoutError) as exc_info:
            wait_for_completion(poller, Deadline(0.1), "create", "disk1", "rg")

        assert exc_info.value.timeout_value == 0.1
        assert not poller.done()
