"""Managed Disk handler.

Handles: Microsoft.Compute/disks
Implements: azurerm_managed_disk

Create and update submit the full disk definition, block on the long-running
operation, then re-fetch the disk so the returned state is the server's
canonical view (including server-assigned values such as the default size).
"""

from typing import Any, ClassVar, Dict, Mapping, Optional, Set, Union

import structlog
from azure.core.exceptions import AzureError
from azure.mgmt.compute.models import (
    Disk,
    DiskSku,
    Encryption,
    EncryptionSettingsCollection,
    EncryptionSettingsElement,
    EncryptionType,
    KeyVaultAndKeyReference,
    KeyVaultAndSecretReference,
    SourceVault,
)

from ...exceptions import (
    DiskAlreadyExistsError,
    DiskOperationError,
    DiskOperationTimeoutError,
    is_not_found,
    wrap_azure_exception,
)
from ...polling import wait_for_completion
from ...resource_id import DISK_TYPE_SEGMENT, parse_disk_id
from ...timeout_config import Deadline, log_timeout_event
from .. import handler
from ..base_handler import ResourceHandler
from ..context import ProviderContext
from .disk_models import MANAGED_DISK_SCHEMA, DiskSpec, DiskState, EncryptionSettings

logger = structlog.get_logger(__name__)

TERRAFORM_TYPE = "azurerm_managed_disk"


def expand_encryption_settings(
    settings: Optional[EncryptionSettings],
) -> Optional[EncryptionSettingsCollection]:
    """Convert the legacy encryption settings block to the SDK model."""
    if settings is None:
        return None

    element = EncryptionSettingsElement()
    if settings.disk_encryption_key is not None:
        element.disk_encryption_key = KeyVaultAndSecretReference(
            secret_url=settings.disk_encryption_key.secret_url,
            source_vault=SourceVault(id=settings.disk_encryption_key.source_vault_id),
        )
    if settings.key_encryption_key is not None:
        element.key_encryption_key = KeyVaultAndKeyReference(
            key_url=settings.key_encryption_key.key_url,
            source_vault=SourceVault(id=settings.key_encryption_key.source_vault_id),
        )

    return EncryptionSettingsCollection(
        enabled=settings.enabled, encryption_settings=[element]
    )


def flatten_encryption_settings(
    collection: Optional[EncryptionSettingsCollection],
) -> Optional[Dict[str, Any]]:
    """Convert the SDK encryption settings collection to a flat block."""
    if collection is None:
        return None

    block: Dict[str, Any] = {
        "enabled": bool(collection.enabled),
        "disk_encryption_key": [],
        "key_encryption_key": [],
    }
    elements = collection.encryption_settings or []
    if elements:
        element = elements[0]
        secret = element.disk_encryption_key
        if secret is not None:
            block["disk_encryption_key"] = [
                {
                    "secret_url": secret.secret_url or "",
                    "source_vault_id": secret.source_vault.id
                    if secret.source_vault
                    else "",
                }
            ]
        key = element.key_encryption_key
        if key is not None:
            block["key_encryption_key"] = [
                {
                    "key_url": key.key_url or "",
                    "source_vault_id": key.source_vault.id if key.source_vault else "",
                }
            ]
    return block


@handler
class ManagedDiskHandler(ResourceHandler):
    """Handler for Azure Managed Disks.

    Implements:
        - azurerm_managed_disk
    """

    HANDLED_TYPES: ClassVar[Set[str]] = {
        "Microsoft.Compute/disks",
    }

    TERRAFORM_TYPES: ClassVar[Set[str]] = {
        TERRAFORM_TYPE,
    }

    SCHEMA = MANAGED_DISK_SCHEMA

    def create(
        self, config: Union[DiskSpec, Mapping[str, Any]], context: ProviderContext
    ) -> DiskState:
        return self.create_or_update(
            self._to_spec(config), context, is_new_resource=True
        )

    def update(
        self, config: Union[DiskSpec, Mapping[str, Any]], context: ProviderContext
    ) -> DiskState:
        return self.create_or_update(
            self._to_spec(config), context, is_new_resource=False
        )

    def create_or_update(
        self, spec: DiskSpec, context: ProviderContext, is_new_resource: bool
    ) -> DiskState:
        """Create or update a managed disk and return its canonical state.

        Args:
            spec: Validated desired configuration
            context: Provider context with the compute client
            is_new_resource: True when the disk is not yet tracked in state

        Returns:
            DiskState re-read from Azure after the operation completed

        Raises:
            DiskAlreadyExistsError: New resource already exists and imports are required
            DiskOperationError: Submission, wait or re-read failed
            DiskOperationTimeoutError: The operation deadline passed
        """
        operation = "create" if is_new_resource else "update"
        deadline = context.deadline_for(operation)
        client = context.compute_client
        name = spec.name
        resource_group = spec.resource_group_name

        logger.info(
            f"Preparing arguments for Managed Disk {name!r} "
            f"(Resource Group {resource_group!r}) {operation}"
        )

        if is_new_resource and context.config.resources_should_be_imported:
            self._ensure_not_exists(client, name, resource_group, deadline)

        disk = self.build_disk(spec)

        try:
            poller = client.disks.begin_create_or_update(
                resource_group_name=resource_group,
                disk_name=name,
                disk=disk,
            )
        except AzureError as e:
            raise wrap_azure_exception(
                e, "Error creating/updating Managed Disk", name, resource_group, operation
            ) from e

        try:
            wait_for_completion(
                poller,
                deadline,
                operation,
                resource_name=name,
                resource_group=resource_group,
                cancel_event=context.cancel_event,
            )
        except AzureError as e:
            raise wrap_azure_exception(
                e,
                "Error waiting for create/update of Managed Disk",
                name,
                resource_group,
                operation,
            ) from e

        self._check_deadline(deadline, operation, name, resource_group)
        try:
            read = client.disks.get(
                resource_group_name=resource_group,
                disk_name=name,
                timeout=deadline.remaining(),
            )
        except AzureError as e:
            raise wrap_azure_exception(
                e, "Error retrieving Managed Disk", name, resource_group, operation
            ) from e

        if not read.id:
            raise DiskOperationError(
                f"Error reading Managed Disk {name!r} "
                f"(Resource Group {resource_group!r}): ID was nil",
                resource_name=name,
                resource_group=resource_group,
                operation=operation,
            )

        logger.info(f"Managed Disk {read.id} {operation} completed")
        return self.flatten_disk(read, resource_group)

    def read(self, resource_id: str, context: ProviderContext) -> Optional[DiskState]:
        """Fetch a managed disk by ID.

        Returns:
            DiskState, or None when the disk no longer exists and should be
            dropped from state

        Raises:
            InvalidResourceIdError: If the ID is malformed
            DiskOperationError: On any error other than not-found
        """
        parsed = parse_disk_id(resource_id)
        resource_group = parsed.resource_group
        name = parsed.name_for(DISK_TYPE_SEGMENT)
        deadline = context.deadline_for("read")

        try:
            disk = context.compute_client.disks.get(
                resource_group_name=resource_group,
                disk_name=name,
                timeout=deadline.remaining(),
            )
        except AzureError as e:
            if is_not_found(e):
                logger.info(f"Disk {resource_id!r} does not exist - removing from state")
                return None
            raise wrap_azure_exception(
                e, "Error making Read request on Managed Disk", name, resource_group, "read"
            ) from e

        return self.flatten_disk(disk, resource_group)

    def delete(self, resource_id: str, context: ProviderContext) -> None:
        """Delete a managed disk by ID.

        A disk that is already gone, either before submission or while
        waiting, counts as deleted.

        Raises:
            InvalidResourceIdError: If the ID is malformed
            DiskOperationError: On any error other than not-found
            DiskOperationTimeoutError: The delete deadline passed
        """
        parsed = parse_disk_id(resource_id)
        resource_group = parsed.resource_group
        name = parsed.name_for(DISK_TYPE_SEGMENT)
        deadline = context.deadline_for("delete")
        client = context.compute_client

        try:
            poller = client.disks.begin_delete(
                resource_group_name=resource_group, disk_name=name
            )
        except AzureError as e:
            if is_not_found(e):
                logger.info(f"Managed Disk {resource_id!r} was already deleted")
                return
            raise wrap_azure_exception(
                e, "Error deleting Managed Disk", name, resource_group, "delete"
            ) from e

        try:
            wait_for_completion(
                poller,
                deadline,
                "delete",
                resource_name=name,
                resource_group=resource_group,
                cancel_event=context.cancel_event,
            )
        except AzureError as e:
            if is_not_found(e):
                logger.info(f"Managed Disk {resource_id!r} was deleted out of band")
                return
            raise wrap_azure_exception(
                e,
                "Error waiting for deletion of Managed Disk",
                name,
                resource_group,
                "delete",
            ) from e

        logger.info(f"Managed Disk {resource_id} deleted")

    # Conversion between DiskSpec / Disk / DiskState

    @staticmethod
    def build_disk(spec: DiskSpec) -> Disk:
        """Build the API request body from a validated spec."""
        if spec.uses_customer_managed_key:
            encryption = Encryption(
                type=EncryptionType.ENCRYPTION_AT_REST_WITH_CUSTOMER_KEY,
                disk_encryption_set_id=spec.disk_encryption_set_id,
            )
        else:
            encryption = Encryption(
                type=EncryptionType.ENCRYPTION_AT_REST_WITH_PLATFORM_KEY
            )

        return Disk(
            location=spec.location,
            sku=DiskSku(name=spec.storage_account_type.value),
            zones=list(spec.zones) or None,
            tags=dict(spec.tags),
            creation_data=spec.creation_source.to_creation_data(),
            os_type=spec.os_type.value if spec.os_type else None,
            disk_size_gb=spec.disk_size_gb,
            disk_iops_read_write=spec.disk_iops_read_write,
            disk_m_bps_read_write=spec.disk_mbps_read_write,
            encryption=encryption,
            encryption_settings_collection=expand_encryption_settings(
                spec.encryption_settings
            ),
        )

    def flatten_disk(self, disk: Disk, resource_group: str) -> DiskState:
        """Flatten an API response into DiskState.

        Missing nested structures leave the matching fields unset.
        """
        state = DiskState(
            id=disk.id,
            name=disk.name,
            resource_group_name=resource_group,
            location=self.normalize_location(disk.location) if disk.location else None,
            zones=list(disk.zones or []),
            storage_account_type=self.enum_value(disk.sku.name) if disk.sku else None,
            os_type=self.enum_value(disk.os_type),
            disk_size_gb=disk.disk_size_gb,
            disk_iops_read_write=disk.disk_iops_read_write,
            disk_mbps_read_write=disk.disk_m_bps_read_write,
            encryption_settings=flatten_encryption_settings(
                disk.encryption_settings_collection
            ),
            tags=dict(disk.tags or {}),
        )

        creation_data = disk.creation_data
        if creation_data is not None:
            state.create_option = self.enum_value(creation_data.create_option)
            state.source_uri = creation_data.source_uri
            state.source_resource_id = creation_data.source_resource_id
            state.storage_account_id = creation_data.storage_account_id
            if creation_data.image_reference is not None:
                state.image_reference_id = creation_data.image_reference.id

        encryption = disk.encryption
        if encryption is not None:
            state.disk_encryption_set_id = encryption.disk_encryption_set_id
            state.encryption_type = self.enum_value(encryption.type)

        return state

    # Helpers

    @staticmethod
    def _to_spec(config: Union[DiskSpec, Mapping[str, Any]]) -> DiskSpec:
        if isinstance(config, DiskSpec):
            return config
        return DiskSpec.from_config(config)

    @staticmethod
    def _check_deadline(
        deadline: Deadline, operation: str, name: str, resource_group: str
    ) -> None:
        if deadline.expired():
            log_timeout_event(operation, deadline.timeout, name)
            raise DiskOperationTimeoutError(
                f"Timed out during {operation} of Managed Disk {name!r} "
                f"(Resource Group {resource_group!r})",
                timeout_value=deadline.timeout,
                resource_name=name,
                resource_group=resource_group,
                operation=operation,
            )

    def _ensure_not_exists(
        self, client: Any, name: str, resource_group: str, deadline: Deadline
    ) -> None:
        """Refuse to adopt a disk that exists but is not tracked in state."""
        try:
            existing = client.disks.get(
                resource_group_name=resource_group,
                disk_name=name,
                timeout=deadline.remaining(),
            )
        except AzureError as e:
            if is_not_found(e):
                return
            raise wrap_azure_exception(
                e,
                "Error checking for presence of existing Managed Disk",
                name,
                resource_group,
                "create",
            ) from e

        if existing.id:
            raise DiskAlreadyExistsError(existing.id, TERRAFORM_TYPE)
