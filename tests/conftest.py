import copy
from typing import Any, Dict, Tuple
from unittest.mock import Mock

import pytest
from azure.core.exceptions import ResourceNotFoundError
from azure.mgmt.compute.models import Disk

from managed_disk_provider.config_manager import AzureCredentialsConfig, ProviderConfig
from managed_disk_provider.handlers.context import ProviderContext

SUBSCRIPTION_ID = "00000000-0000-0000-0000-000000000000"
RESOURCE_GROUP = "example-resources"
DISK_NAME = "example-disk"
DISK_ID = (
    f"/subscriptions/{SUBSCRIPTION_ID}/resourceGroups/{RESOURCE_GROUP}"
    f"/providers/Microsoft.Compute/disks/{DISK_NAME}"
)
STORAGE_ACCOUNT_ID = (
    f"/subscriptions/{SUBSCRIPTION_ID}/resourceGroups/{RESOURCE_GROUP}"
    "/providers/Microsoft.Storage/storageAccounts/acct"
)
DISK_ENCRYPTION_SET_ID = (
    f"/subscriptions/{SUBSCRIPTION_ID}/resourceGroups/{RESOURCE_GROUP}"
    "/providers/Microsoft.Compute/diskEncryptionSets/example-des"
)
KEY_VAULT_ID = (
    f"/subscriptions/{SUBSCRIPTION_ID}/resourceGroups/{RESOURCE_GROUP}"
    "/providers/Microsoft.KeyVault/vaults/example-kv"
)
SOURCE_DISK_ID = (
    f"/subscriptions/{SUBSCRIPTION_ID}/resourceGroups/{RESOURCE_GROUP}"
    "/providers/Microsoft.Compute/disks/source-disk"
)
IMAGE_ID = (
    f"/subscriptions/{SUBSCRIPTION_ID}/providers/Microsoft.Compute/locations/westeurope"
    "/publishers/Canonical/artifacttypes/vmimage/offers/UbuntuServer/skus/18.04-LTS"
    "/versions/latest"
)

# Size the fake service assigns when a request leaves disk_size_gb unset
SERVER_DEFAULT_DISK_SIZE_GB = 30


def done_poller(result: Any = None) -> Mock:
    """A poller whose long-running operation has already finished."""
    poller = Mock()
    poller.done.return_value = True
    poller.result.return_value = result
    poller.status.return_value = "Succeeded"
    return poller


class FakeDisksOperations:
    """In-memory stand-in for ComputeManagementClient.disks."""

    def __init__(self) -> None:
        self.disks: Dict[Tuple[str, str], Disk] = {}

    @staticmethod
    def _key(resource_group_name: str, disk_name: str) -> Tuple[str, str]:
        return resource_group_name.lower(), disk_name

    def begin_create_or_update(
        self, resource_group_name: str, disk_name: str, disk: Disk, **kwargs: Any
    ) -> Mock:
        stored = copy.deepcopy(disk)
        stored.id = (
            f"/subscriptions/{SUBSCRIPTION_ID}/resourceGroups/{resource_group_name}"
            f"/providers/Microsoft.Compute/disks/{disk_name}"
        )
        stored.name = disk_name
        if stored.disk_size_gb is None:
            stored.disk_size_gb = SERVER_DEFAULT_DISK_SIZE_GB
        self.disks[self._key(resource_group_name, disk_name)] = stored
        return done_poller(stored)

    def get(self, resource_group_name: str, disk_name: str, **kwargs: Any) -> Disk:
        try:
            return copy.deepcopy(self.disks[self._key(resource_group_name, disk_name)])
        except KeyError:
            raise ResourceNotFoundError(
                message=f"The Resource '{disk_name}' was not found"
            ) from None

    def begin_delete(
        self, resource_group_name: str, disk_name: str, **kwargs: Any
    ) -> Mock:
        self.disks.pop(self._key(resource_group_name, disk_name), None)
        return done_poller()


@pytest.fixture
def fake_disks() -> FakeDisksOperations:
    return FakeDisksOperations()


@pytest.fixture
def compute_client(fake_disks: FakeDisksOperations) -> Mock:
    """Mock ComputeManagementClient backed by the in-memory disk store."""
    client = Mock()
    client.disks = Mock(wraps=fake_disks)
    return client


@pytest.fixture
def provider_config() -> ProviderConfig:
    return ProviderConfig(
        azure=AzureCredentialsConfig(subscription_id=SUBSCRIPTION_ID),
        resources_should_be_imported=False,
    )


@pytest.fixture
def provider_context(compute_client: Mock, provider_config: ProviderConfig) -> ProviderContext:
    return ProviderContext(compute_client=compute_client, config=provider_config)


@pytest.fixture
def disk_config() -> Dict[str, Any]:
    """Flat attribute map for a minimal empty disk."""
    return {
        "name": DISK_NAME,
        "resource_group_name": RESOURCE_GROUP,
        "location": "West Europe",
        "storage_account_type": "Standard_LRS",
        "create_option": "Empty",
        "disk_size_gb": 1,
        "tags": {"environment": "staging"},
    }
