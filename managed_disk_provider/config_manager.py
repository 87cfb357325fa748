import logging
import os
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from dotenv import load_dotenv

from .exceptions import InvalidConfigurationError, MissingConfigurationError
from .logging_config import configure_logging
from .timeout_config import OperationTimeouts

"""
Configuration Management for the managed disk provider

This module provides dataclass configuration sections populated from
environment variables (and a .env file when present), with validation.
"""

logger = logging.getLogger(__name__)


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() == "true"


@dataclass
class AzureCredentialsConfig:
    """Azure subscription and service principal settings."""

    subscription_id: str = field(
        default_factory=lambda: os.getenv("ARM_SUBSCRIPTION_ID")
        or os.getenv("AZURE_SUBSCRIPTION_ID", "")
    )
    tenant_id: Optional[str] = field(
        default_factory=lambda: os.getenv("ARM_TENANT_ID")
        or os.getenv("AZURE_TENANT_ID")
    )
    client_id: Optional[str] = field(
        default_factory=lambda: os.getenv("ARM_CLIENT_ID")
        or os.getenv("AZURE_CLIENT_ID")
    )
    client_secret: Optional[str] = field(
        default_factory=lambda: os.getenv("ARM_CLIENT_SECRET")
        or os.getenv("AZURE_CLIENT_SECRET")
    )

    def has_service_principal(self) -> bool:
        """Check if a complete service principal is configured."""
        return bool(self.tenant_id and self.client_id and self.client_secret)

    def validate(self) -> None:
        """Validate Azure credential configuration."""
        if not self.subscription_id:
            raise MissingConfigurationError(
                "Azure subscription ID is required",
                missing_keys=["ARM_SUBSCRIPTION_ID"],
            )
        partial = [self.tenant_id, self.client_id, self.client_secret]
        if any(partial) and not all(partial):
            missing = [
                key
                for key, value in zip(
                    ["ARM_TENANT_ID", "ARM_CLIENT_ID", "ARM_CLIENT_SECRET"], partial
                )
                if not value
            ]
            raise MissingConfigurationError(
                "Service principal configuration is incomplete",
                missing_keys=missing,
            )

    def get_safe_client_id(self) -> str:
        """Get client ID for logging (masked)."""
        if self.client_id:
            return f"{self.client_id[:8]}..."
        return "Not configured"


@dataclass
class LoggingConfig:
    """Configuration for logging behavior."""

    level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))

    def __post_init__(self) -> None:
        """Validate logging configuration."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if self.level.upper() not in valid_levels:
            raise InvalidConfigurationError(
                f"Log level must be one of: {valid_levels}", config_section="logging"
            )
        self.level = self.level.upper()

    def get_log_level(self) -> int:
        """Convert string log level to logging constant."""
        return int(getattr(logging, self.level))


@dataclass
class ProviderConfig:
    """Main configuration class that aggregates all configuration sections."""

    azure: AzureCredentialsConfig = field(default_factory=AzureCredentialsConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    timeouts: OperationTimeouts = field(default_factory=OperationTimeouts)
    # Reject creating resources that already exist outside of state
    resources_should_be_imported: bool = field(
        default_factory=lambda: _env_flag("ARM_PROVIDER_STRICT")
    )

    def validate_all(self) -> None:
        """Validate all configuration sections."""
        self.azure.validate()

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to a dictionary safe for logging."""
        return {
            "subscription_id": self.azure.subscription_id,
            "tenant_id": self.azure.tenant_id,
            "client_id": self.azure.get_safe_client_id(),
            "log_level": self.logging.level,
            "resources_should_be_imported": self.resources_should_be_imported,
            "timeouts": {
                "create": self.timeouts.create,
                "read": self.timeouts.read,
                "update": self.timeouts.update,
                "delete": self.timeouts.delete,
            },
        }

    def log_configuration_summary(self) -> None:
        """Log a summary of the current configuration."""
        logger.info("Managed disk provider configuration:")
        for key, value in self.to_dict().items():
            logger.info(f"  {key}: {value}")


def create_config_from_env(load_env_file: bool = True) -> ProviderConfig:
    """
    Create configuration from environment variables and apply its log level.

    Args:
        load_env_file: Load a .env file from the working directory first

    Returns:
        ProviderConfig: Validated configuration instance
    """
    if load_env_file:
        load_dotenv(override=False)
    config = ProviderConfig()
    config.validate_all()
    configure_logging(config.logging.get_log_level())
    return config
