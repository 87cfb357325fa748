"""
Exception hierarchy for the managed disk provider.

Every error raised by a handler operation is scoped to that single resource
operation. Not-found during read/delete is a normal outcome and is never
raised from those operations.
"""

from typing import Any, Dict, List, Optional


class ManagedDiskProviderError(Exception):
    """
    Base exception class for all managed disk provider errors.

    Provides structured error information including context, error codes,
    and optional recovery suggestions.
    """

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
        recovery_suggestion: Optional[str] = None,
    ) -> None:
        """
        Initialize the base exception.

        Args:
            message: Human-readable error message
            error_code: Optional error code for programmatic handling
            context: Optional dictionary with error context
            cause: Optional underlying exception that caused this error
            recovery_suggestion: Optional suggestion for error recovery
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.context = context or {}
        self.cause = cause
        self.recovery_suggestion = recovery_suggestion

    def __str__(self) -> str:
        """Return a formatted error message with context."""
        result = self.message
        if self.error_code:
            result = f"[{self.error_code}] {result}"
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            result += f" (context: {context_str})"
        if self.cause:
            result += f" (caused by: {self.cause})"
        if self.recovery_suggestion:
            result += f" (suggestion: {self.recovery_suggestion})"
        return result

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "error_code": self.error_code,
            "context": self.context,
            "cause": str(self.cause) if self.cause else None,
            "recovery_suggestion": self.recovery_suggestion,
        }


# Configuration-related exceptions
class ConfigurationError(ManagedDiskProviderError):
    """Base class for configuration-related errors."""

    pass


class InvalidConfigurationError(ConfigurationError):
    """Raised when provider configuration validation fails."""

    def __init__(
        self, message: str, config_section: Optional[str] = None, **kwargs: Any
    ) -> None:
        context = kwargs.get("context", {})
        if config_section:
            context["config_section"] = config_section
        kwargs["context"] = context
        kwargs.setdefault("error_code", "INVALID_CONFIG")
        kwargs.setdefault(
            "recovery_suggestion", "Check the .env file and ARM_* environment variables"
        )
        super().__init__(message, **kwargs)


class MissingConfigurationError(ConfigurationError):
    """Raised when required configuration is missing."""

    def __init__(
        self, message: str, missing_keys: Optional[List[str]] = None, **kwargs: Any
    ) -> None:
        context = kwargs.get("context", {})
        if missing_keys:
            context["missing_keys"] = missing_keys
        kwargs["context"] = context
        kwargs.setdefault("error_code", "MISSING_CONFIG")
        kwargs.setdefault(
            "recovery_suggestion",
            f"Set required configuration: {', '.join(missing_keys)}"
            if missing_keys
            else "Set required configuration",
        )
        super().__init__(message, **kwargs)


# Validation-related exceptions
class DiskValidationError(ManagedDiskProviderError):
    """Raised when a disk configuration is rejected before any API call."""

    def __init__(
        self,
        message: str,
        resource_name: Optional[str] = None,
        validation_errors: Optional[List[str]] = None,
        **kwargs: Any,
    ) -> None:
        context = kwargs.get("context", {})
        if resource_name:
            context["resource_name"] = resource_name
        kwargs["context"] = context
        kwargs.setdefault("error_code", "DISK_VALIDATION_FAILED")
        super().__init__(message, **kwargs)
        self.validation_errors = validation_errors or []

    def __str__(self) -> str:
        result = super().__str__()
        if self.validation_errors:
            result += "\n" + "\n".join(f"  - {e}" for e in self.validation_errors)
        return result


class InvalidResourceIdError(ManagedDiskProviderError):
    """Raised when a persistent resource identifier cannot be parsed."""

    def __init__(
        self, message: str, resource_id: Optional[str] = None, **kwargs: Any
    ) -> None:
        context = kwargs.get("context", {})
        if resource_id is not None:
            context["resource_id"] = resource_id
        kwargs["context"] = context
        kwargs.setdefault("error_code", "INVALID_RESOURCE_ID")
        super().__init__(message, **kwargs)


# Azure operation exceptions
class DiskOperationError(ManagedDiskProviderError):
    """Raised when an Azure API call for a disk fails.

    Carries the disk name, resource group and the operation that failed.
    """

    def __init__(
        self,
        message: str,
        resource_name: Optional[str] = None,
        resource_group: Optional[str] = None,
        operation: Optional[str] = None,
        **kwargs: Any,
    ) -> None:
        context = kwargs.get("context", {})
        if resource_name:
            context["resource_name"] = resource_name
        if resource_group:
            context["resource_group"] = resource_group
        if operation:
            context["operation"] = operation
        kwargs["context"] = context
        kwargs.setdefault("error_code", "DISK_OPERATION_FAILED")
        super().__init__(message, **kwargs)
        self.resource_name = resource_name
        self.resource_group = resource_group
        self.operation = operation


class DiskOperationTimeoutError(DiskOperationError):
    """Raised when a long-running operation does not finish before its deadline.

    The remote operation may still be running; a subsequent read reveals the
    actual state.
    """

    def __init__(
        self, message: str, timeout_value: Optional[float] = None, **kwargs: Any
    ) -> None:
        context = kwargs.get("context", {})
        if timeout_value is not None:
            context["timeout"] = f"{timeout_value:g}s"
        kwargs["context"] = context
        kwargs.setdefault("error_code", "DISK_OPERATION_TIMEOUT")
        kwargs.setdefault(
            "recovery_suggestion",
            "Refresh the resource to discover its current state, or raise the "
            "MDP_TIMEOUT_* setting for this operation",
        )
        super().__init__(message, **kwargs)
        self.timeout_value = timeout_value


class DiskOperationCancelledError(DiskOperationError):
    """Raised when the caller cancels a wait on a long-running operation."""

    def __init__(self, message: str, **kwargs: Any) -> None:
        kwargs.setdefault("error_code", "DISK_OPERATION_CANCELLED")
        super().__init__(message, **kwargs)


class DiskAlreadyExistsError(ManagedDiskProviderError):
    """Raised when creating a disk that already exists outside of state."""

    def __init__(
        self,
        resource_id: str,
        terraform_type: str = "azurerm_managed_disk",
        **kwargs: Any,
    ) -> None:
        context = kwargs.get("context", {})
        context["resource_id"] = resource_id
        kwargs["context"] = context
        kwargs.setdefault("error_code", "DISK_ALREADY_EXISTS")
        kwargs.setdefault(
            "recovery_suggestion",
            f"Import the existing resource into state as {terraform_type} "
            f"before managing it",
        )
        super().__init__(
            f"A resource with the ID {resource_id!r} already exists", **kwargs
        )
        self.resource_id = resource_id
        self.terraform_type = terraform_type


class RemoteResourceNotFoundError(ManagedDiskProviderError):
    """Raised when importing a resource that does not exist."""

    def __init__(self, message: str, resource_id: Optional[str] = None, **kwargs: Any) -> None:
        context = kwargs.get("context", {})
        if resource_id:
            context["resource_id"] = resource_id
        kwargs["context"] = context
        kwargs.setdefault("error_code", "RESOURCE_NOT_FOUND")
        super().__init__(message, **kwargs)


# Utility functions for exception handling
def is_not_found(exc: Exception) -> bool:
    """Return True when an Azure SDK exception means the resource is absent."""
    from azure.core.exceptions import HttpResponseError, ResourceNotFoundError

    if isinstance(exc, ResourceNotFoundError):
        return True
    return isinstance(exc, HttpResponseError) and exc.status_code == 404


def wrap_azure_exception(
    exc: Exception,
    message: str,
    resource_name: Optional[str] = None,
    resource_group: Optional[str] = None,
    operation: Optional[str] = None,
) -> DiskOperationError:
    """
    Wrap an Azure SDK exception in our exception hierarchy.

    Args:
        exc: The original exception
        message: What was being attempted, e.g. "Error deleting Managed Disk"
        resource_name: Disk name
        resource_group: Resource group name
        operation: Operation label (create, read, update, delete)

    Returns:
        DiskOperationError: Wrapped exception with disk context
    """
    from azure.core.exceptions import ClientAuthenticationError, HttpResponseError

    kwargs: Dict[str, Any] = {}
    if isinstance(exc, ClientAuthenticationError):
        kwargs["error_code"] = "AZURE_AUTH_FAILED"
        kwargs["recovery_suggestion"] = (
            "Try running 'az login' or check the ARM_* service principal settings"
        )
    elif isinstance(exc, HttpResponseError) and exc.status_code:
        kwargs["context"] = {"status_code": exc.status_code}

    return DiskOperationError(
        f"{message} {resource_name!r} (Resource Group {resource_group!r})",
        resource_name=resource_name,
        resource_group=resource_group,
        operation=operation,
        cause=exc,
        **kwargs,
    )
