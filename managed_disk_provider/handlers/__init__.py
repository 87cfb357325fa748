"""Handler registry for resource type dispatch.

This module provides the HandlerRegistry class that manages registration
and lookup of resource handlers, by Terraform resource type
(e.g. "azurerm_managed_disk") or by Azure resource type
(e.g. "Microsoft.Compute/disks").
"""

import logging
from typing import Dict, List, Optional, Type

from .base_handler import ResourceHandler
from .context import ProviderContext

logger = logging.getLogger(__name__)


class HandlerRegistry:
    """Registry for resource handlers with type-based dispatch.

    Usage:
        @handler
        class MyHandler(ResourceHandler):
            TERRAFORM_TYPES = {"azurerm_managed_disk"}
            HANDLED_TYPES = {"Microsoft.Compute/disks"}
            ...

        # Later:
        handler = HandlerRegistry.get_handler("azurerm_managed_disk")
        if handler:
            state = handler.read(resource_id, context)
    """

    _handlers: List[Type[ResourceHandler]] = []
    _type_cache: Dict[str, Type[ResourceHandler]] = {}

    @classmethod
    def register(cls, handler_class: Type[ResourceHandler]) -> Type[ResourceHandler]:
        """Register a handler class.

        Args:
            handler_class: Handler class to register

        Returns:
            The handler class (unchanged)
        """
        # Avoid duplicate registration
        if handler_class not in cls._handlers:
            cls._handlers.append(handler_class)

            for type_name in handler_class.HANDLED_TYPES | handler_class.TERRAFORM_TYPES:
                cls._type_cache[type_name.lower()] = handler_class
                logger.debug(
                    f"Registered handler {handler_class.__name__} for {type_name}"
                )

        return handler_class

    @classmethod
    def get_handler(cls, type_name: str) -> Optional[ResourceHandler]:
        """Get handler instance for a Terraform or Azure type.

        Args:
            type_name: e.g. "azurerm_managed_disk" or "Microsoft.Compute/disks"

        Returns:
            Handler instance or None if no handler registered
        """
        ensure_handlers_registered()
        handler_class = cls._type_cache.get(type_name.lower())
        if handler_class is not None:
            return handler_class()

        for handler_class in cls._handlers:
            if handler_class.can_handle(type_name):
                cls._type_cache[type_name.lower()] = handler_class
                return handler_class()

        return None

    @classmethod
    def get_all_supported_types(cls) -> List[str]:
        """Get all Terraform resource types supported by registered handlers."""
        types = set()
        for handler_class in cls._handlers:
            types.update(handler_class.TERRAFORM_TYPES)
        return sorted(types)

    @classmethod
    def get_all_handlers(cls) -> List[Type[ResourceHandler]]:
        """Get all registered handler classes (copy)."""
        return cls._handlers.copy()

    @classmethod
    def clear(cls) -> None:
        """Clear all registered handlers.

        Primarily for testing.
        """
        global _handlers_registered
        cls._handlers = []
        cls._type_cache = {}
        _handlers_registered = False


def handler(cls: Type[ResourceHandler]) -> Type[ResourceHandler]:
    """Decorator to register a handler class.

    Usage:
        @handler
        class ManagedDiskHandler(ResourceHandler):
            TERRAFORM_TYPES = {"azurerm_managed_disk"}
            ...
    """
    return HandlerRegistry.register(cls)


def _register_all_handlers() -> None:
    """Import all handler modules to trigger registration."""
    # Compute handlers
    from .compute import disks

    # Re-register in case the registry was cleared after the first import
    HandlerRegistry.register(disks.ManagedDiskHandler)

    logger.debug(
        f"Registered {len(HandlerRegistry._handlers)} handlers "
        f"covering {len(HandlerRegistry.get_all_supported_types())} resource types"
    )


# Delay registration until first use to avoid an import cycle with handler modules
_handlers_registered = False


def ensure_handlers_registered() -> None:
    """Ensure all handlers are registered.

    Called lazily on first handler lookup.
    """
    global _handlers_registered
    if not _handlers_registered:
        _handlers_registered = True
        _register_all_handlers()


__all__ = [
    "HandlerRegistry",
    "ProviderContext",
    "ResourceHandler",
    "ensure_handlers_registered",
    "handler",
]
