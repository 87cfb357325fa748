"""Base handler interface for resource type handlers.

This module defines the abstract base class that all resource handlers
must implement. Each handler maps one Terraform resource type onto the
Azure management API: it declares a schema and implements create, read,
update and delete against remote state.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, ClassVar, Optional, Set

from ..exceptions import RemoteResourceNotFoundError
from .context import ProviderContext
from .schema import ResourceSchema

logger = logging.getLogger(__name__)


class ResourceHandler(ABC):
    """Abstract base class for resource handlers.

    Handlers should be:
    - Stateless: all per-call state lives in ProviderContext
    - Synchronous: each operation returns only on a terminal outcome
    - Testable: the Azure client is injected through the context

    Usage:
        @handler
        class ManagedDiskHandler(ResourceHandler):
            HANDLED_TYPES = {"Microsoft.Compute/disks"}
            TERRAFORM_TYPES = {"azurerm_managed_disk"}
            SCHEMA = MANAGED_DISK_SCHEMA

            def read(self, resource_id, context):
                ...
    """

    # Azure resource type(s) this handler manages
    HANDLED_TYPES: ClassVar[Set[str]] = set()

    # Terraform resource type(s) this handler implements
    TERRAFORM_TYPES: ClassVar[Set[str]] = set()

    SCHEMA: ClassVar[Optional[ResourceSchema]] = None

    @classmethod
    def can_handle(cls, type_name: str) -> bool:
        """Check if this handler can process the given Terraform or Azure type.

        Args:
            type_name: e.g. "azurerm_managed_disk" or "Microsoft.Compute/disks"

        Returns:
            True if handler can process this type
        """
        type_name_lower = type_name.lower()
        return any(
            t.lower() == type_name_lower
            for t in cls.HANDLED_TYPES | cls.TERRAFORM_TYPES
        )

    @abstractmethod
    def create(self, config: Any, context: ProviderContext) -> Any:
        """Create the resource and return its canonical remote state.

        Args:
            config: Flat attribute map or typed spec
            context: Shared provider context

        Returns:
            Remote state; its ``id`` is the persistent key
        """
        raise NotImplementedError

    @abstractmethod
    def read(self, resource_id: str, context: ProviderContext) -> Optional[Any]:
        """Fetch remote state by ID.

        Returns:
            Remote state, or None when the resource no longer exists
        """
        raise NotImplementedError

    @abstractmethod
    def update(self, config: Any, context: ProviderContext) -> Any:
        """Apply mutable changes in place and return the canonical remote state."""
        raise NotImplementedError

    @abstractmethod
    def delete(self, resource_id: str, context: ProviderContext) -> None:
        """Delete the resource. Deleting an absent resource succeeds."""
        raise NotImplementedError

    def import_state(self, resource_id: str, context: ProviderContext) -> Any:
        """Adopt an existing remote resource by ID.

        Default implementation is a passthrough read.
        """
        state = self.read(resource_id, context)
        if state is None:
            raise RemoteResourceNotFoundError(
                f"Cannot import non-existent remote object {resource_id!r}",
                resource_id=resource_id,
            )
        return state

    # Utility methods available to all handlers

    @staticmethod
    def normalize_location(location: str) -> str:
        """Normalize an Azure location ("West Europe" -> "westeurope")."""
        return location.replace(" ", "").lower()

    @staticmethod
    def enum_value(value: Any) -> Optional[str]:
        """Return the string value of an SDK enum or plain string."""
        if value is None:
            return None
        return getattr(value, "value", value)
