"""
Azure Compute client construction.

Selects a credential from provider configuration: an explicit service
principal when one is fully configured, otherwise DefaultAzureCredential
(environment, managed identity, Azure CLI, ...).
"""

import logging
from typing import Optional, Union

from azure.core.credentials import TokenCredential
from azure.identity import ClientSecretCredential, DefaultAzureCredential
from azure.mgmt.compute import ComputeManagementClient

from .config_manager import AzureCredentialsConfig

logger = logging.getLogger(__name__)


def create_credential(
    config: AzureCredentialsConfig,
) -> Union[ClientSecretCredential, DefaultAzureCredential]:
    """
    Build the credential for the configured tenant.

    Args:
        config: Azure credential settings

    Returns:
        ClientSecretCredential if a service principal is configured,
        DefaultAzureCredential otherwise
    """
    if config.has_service_principal():
        logger.debug(
            f"Using service principal {config.get_safe_client_id()} "
            f"for tenant {config.tenant_id}"
        )
        return ClientSecretCredential(
            tenant_id=config.tenant_id,
            client_id=config.client_id,
            client_secret=config.client_secret,
        )

    logger.debug("No service principal configured, using DefaultAzureCredential")
    return DefaultAzureCredential()


def create_compute_client(
    config: AzureCredentialsConfig,
    credential: Optional[TokenCredential] = None,
) -> ComputeManagementClient:
    """
    Create a ComputeManagementClient for the configured subscription.

    Args:
        config: Azure credential settings (validated)
        credential: Optional pre-built credential

    Returns:
        ComputeManagementClient
    """
    config.validate()
    credential = credential or create_credential(config)
    return ComputeManagementClient(credential, config.subscription_id)
