"""Azure resource ID parsing.

Resource IDs are the persistent key of every managed resource. They follow
the hierarchical ARM format:

    /subscriptions/{sub}/resourceGroups/{rg}/providers/{namespace}/{type}/{name}

Only the resource group and the name are needed for API calls; the rest is
kept so callers can log or compare it.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Optional

from .exceptions import InvalidResourceIdError

logger = logging.getLogger(__name__)

DISK_TYPE_SEGMENT = "disks"


@dataclass(frozen=True)
class ResourceId:
    """Components of a parsed Azure resource ID.

    Attributes:
        subscription_id: Subscription GUID
        resource_group: Resource group name (may be empty for subscription scope)
        provider: Provider namespace, e.g. "Microsoft.Compute"
        path: Remaining type/name pairs, e.g. {"disks": "data-disk-1"}
    """

    subscription_id: str
    resource_group: str = ""
    provider: str = ""
    path: Dict[str, str] = field(default_factory=dict)

    def name_for(self, type_segment: str) -> Optional[str]:
        """Return the name following the given type segment (case-insensitive)."""
        for key, value in self.path.items():
            if key.lower() == type_segment.lower():
                return value
        return None


def parse_resource_id(resource_id: str) -> ResourceId:
    """Parse an Azure resource ID into its components.

    Args:
        resource_id: Azure resource ID string

    Returns:
        ResourceId with subscription, resource group, provider and path

    Raises:
        InvalidResourceIdError: If the ID is not a well-formed ARM ID
    """
    if not resource_id or not isinstance(resource_id, str):
        raise InvalidResourceIdError(
            "Cannot parse an empty resource ID", resource_id=resource_id
        )

    segments = resource_id.strip("/").split("/")
    if len(segments) % 2 != 0:
        raise InvalidResourceIdError(
            "The number of path segments is not divisible by 2",
            resource_id=resource_id,
        )

    components: Dict[str, str] = {}
    for i in range(0, len(segments), 2):
        key, value = segments[i], segments[i + 1]
        if not key or not value:
            raise InvalidResourceIdError(
                "Resource ID contains an empty segment", resource_id=resource_id
            )
        components[key] = value

    subscription_id = components.pop("subscriptions", "")
    if not subscription_id:
        raise InvalidResourceIdError(
            "No subscription ID found in resource ID", resource_id=resource_id
        )

    # Azure sometimes returns "resourcegroups" lower-cased
    resource_group = components.pop("resourceGroups", "") or components.pop(
        "resourcegroups", ""
    )
    provider = components.pop("providers", "")

    return ResourceId(
        subscription_id=subscription_id,
        resource_group=resource_group,
        provider=provider,
        path=components,
    )


def parse_disk_id(resource_id: str) -> ResourceId:
    """Parse a managed disk ID and check it names a resource group and disk.

    Raises:
        InvalidResourceIdError: If either component is missing
    """
    parsed = parse_resource_id(resource_id)
    if not parsed.resource_group:
        raise InvalidResourceIdError(
            "No resource group found in managed disk ID", resource_id=resource_id
        )
    if not parsed.name_for(DISK_TYPE_SEGMENT):
        raise InvalidResourceIdError(
            f"No '{DISK_TYPE_SEGMENT}' segment found in managed disk ID",
            resource_id=resource_id,
        )
    return parsed


def is_valid_resource_id(resource_id: str) -> bool:
    """Check whether a string is a well-formed Azure resource ID."""
    try:
        parse_resource_id(resource_id)
    except InvalidResourceIdError as e:
        logger.debug(f"Invalid resource ID {resource_id!r}: {e.message}")
        return False
    return True
