"""Tests for the shared provider context."""

from unittest.mock import Mock

import pytest

from managed_disk_provider.config_manager import AzureCredentialsConfig, ProviderConfig
from managed_disk_provider.handlers.context import ProviderContext
from managed_disk_provider.timeout_config import OperationTimeouts


@pytest.fixture
def config():
    return ProviderConfig(
        azure=AzureCredentialsConfig(subscription_id="sub"),
        timeouts=OperationTimeouts(create=100, read=10, update=200, delete=300),
    )


class TestProviderContext:
    """Test timeout resolution and defaults."""

    def test_falls_back_to_config_timeouts(self, config):
        context = ProviderContext(compute_client=Mock(), config=config)

        assert context.effective_timeouts() is config.timeouts

    def test_per_resource_timeouts_override(self, config):
        override = OperationTimeouts(create=5, read=5, update=5, delete=5)
        context = ProviderContext(compute_client=Mock(), config=config, timeouts=override)

        assert context.effective_timeouts() is override

    def test_deadline_for_operation(self, config):
        context = ProviderContext(compute_client=Mock(), config=config)

        deadline = context.deadline_for("update")

        assert deadline.timeout == 200.0
        assert 0 < deadline.remaining() <= 200.0

    def test_each_context_has_its_own_cancel_event(self, config):
        first = ProviderContext(compute_client=Mock(), config=config)
        second = ProviderContext(compute_client=Mock(), config=config)

        first.cancel_event.set()

        assert not second.cancel_event.is_set()
