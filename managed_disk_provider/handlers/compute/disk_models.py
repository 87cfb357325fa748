"""
Typed models for managed disks.

DiskSpec is the user-declared configuration, validated with pydantic before
any API call. The creation source is a tagged union on ``create_option`` so
each provenance mode carries only the fields it needs. DiskState is the
flattened remote state returned by every handler operation.

The host framework exchanges flat attribute maps; ``DiskSpec.from_config``
and ``DiskState.to_config`` are the conversion boundary.
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Mapping, Optional, Union

from azure.mgmt.compute.models import CreationData, ImageDiskReference
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)
from pydantic_core import PydanticCustomError

from ...exceptions import DiskValidationError
from ...resource_id import is_valid_resource_id
from ..schema import Attribute, AttributeType, ResourceSchema

MAX_DISK_SIZE_GB = 32767
MAX_TAG_COUNT = 50
MAX_TAG_KEY_LENGTH = 512
MAX_TAG_VALUE_LENGTH = 256

_RESOURCE_GROUP_NAME_PATTERN = re.compile(r"^[-\w._()]+$")


class _CaseInsensitiveEnum(str, Enum):
    """String enum that also accepts values in any letter case."""

    @classmethod
    def _missing_(cls, value: object) -> Optional["_CaseInsensitiveEnum"]:
        if isinstance(value, str):
            for member in cls:
                if member.value.lower() == value.lower():
                    return member
        return None

    @classmethod
    def values(cls) -> List[str]:
        return [member.value for member in cls]


class StorageAccountType(_CaseInsensitiveEnum):
    STANDARD_LRS = "Standard_LRS"
    PREMIUM_LRS = "Premium_LRS"
    STANDARD_SSD_LRS = "StandardSSD_LRS"
    ULTRA_SSD_LRS = "UltraSSD_LRS"


class CreateOption(_CaseInsensitiveEnum):
    COPY = "Copy"
    EMPTY = "Empty"
    FROM_IMAGE = "FromImage"
    IMPORT = "Import"
    RESTORE = "Restore"


class OsType(_CaseInsensitiveEnum):
    WINDOWS = "Windows"
    LINUX = "Linux"


def _parse_enum(enum_cls, field_name: str, value: Any) -> Any:
    if not isinstance(value, str):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        raise PydanticCustomError(
            "enum_case_insensitive",
            "`{field}` must be one of {expected}, got '{value}'",
            {
                "field": field_name,
                "expected": ", ".join(enum_cls.values()),
                "value": value,
            },
        ) from None


def _require_resource_id(field_name: str, value: Optional[str]) -> Optional[str]:
    if value is not None and not is_valid_resource_id(value):
        raise PydanticCustomError(
            "resource_id",
            "`{field}` must be an Azure resource ID, got '{value}'",
            {"field": field_name, "value": value},
        )
    return value


def _unwrap_block(value: Any) -> Any:
    """Accept a nested block as a dict or as a framework-style one-item list."""
    if isinstance(value, (list, tuple)):
        if not value:
            return None
        if len(value) > 1:
            raise PydanticCustomError(
                "block_max_items", "at most one block may be specified"
            )
        return value[0]
    return value


# Creation sources: one variant per create option


class _CreationSourceBase(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    def to_creation_data(self) -> CreationData:
        return CreationData(create_option=self.create_option)


class EmptySource(_CreationSourceBase):
    """A new, blank disk."""

    create_option: Literal["Empty"] = "Empty"


class CopySource(_CreationSourceBase):
    """A copy of another disk or snapshot."""

    create_option: Literal["Copy"] = "Copy"
    source_resource_id: str = Field(min_length=1)

    def to_creation_data(self) -> CreationData:
        return CreationData(
            create_option=self.create_option,
            source_resource_id=self.source_resource_id,
        )


class RestoreSource(_CreationSourceBase):
    """A disk restored from a recovery point."""

    create_option: Literal["Restore"] = "Restore"
    source_resource_id: str = Field(min_length=1)

    def to_creation_data(self) -> CreationData:
        return CreationData(
            create_option=self.create_option,
            source_resource_id=self.source_resource_id,
        )


class FromImageSource(_CreationSourceBase):
    """A disk derived from a platform or custom image."""

    create_option: Literal["FromImage"] = "FromImage"
    image_reference_id: str = Field(min_length=1)

    def to_creation_data(self) -> CreationData:
        return CreationData(
            create_option=self.create_option,
            image_reference=ImageDiskReference(id=self.image_reference_id),
        )


class ImportSource(_CreationSourceBase):
    """A disk imported from a VHD blob in a storage account."""

    create_option: Literal["Import"] = "Import"
    source_uri: str = Field(min_length=1)
    storage_account_id: str = Field(min_length=1)

    @field_validator("storage_account_id")
    @classmethod
    def _validate_storage_account_id(cls, v: str) -> str:
        return _require_resource_id("storage_account_id", v)

    def to_creation_data(self) -> CreationData:
        return CreationData(
            create_option=self.create_option,
            source_uri=self.source_uri,
            storage_account_id=self.storage_account_id,
        )


CreationSource = Annotated[
    Union[EmptySource, CopySource, RestoreSource, FromImageSource, ImportSource],
    Field(discriminator="create_option"),
]

CREATION_SOURCE_FIELDS = (
    "create_option",
    "source_uri",
    "source_resource_id",
    "storage_account_id",
    "image_reference_id",
)

# Server-computed ints whose flat-map zero value is indistinguishable from unset
ZERO_MEANS_UNSET_FIELDS = (
    "disk_size_gb",
    "disk_iops_read_write",
    "disk_mbps_read_write",
)


# Legacy Azure Disk Encryption settings


class DiskEncryptionKey(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    secret_url: str = Field(min_length=1)
    source_vault_id: str

    @field_validator("source_vault_id")
    @classmethod
    def _validate_source_vault_id(cls, v: str) -> str:
        return _require_resource_id("source_vault_id", v)


class KeyEncryptionKey(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    key_url: str = Field(min_length=1)
    source_vault_id: str

    @field_validator("source_vault_id")
    @classmethod
    def _validate_source_vault_id(cls, v: str) -> str:
        return _require_resource_id("source_vault_id", v)


class EncryptionSettings(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    enabled: bool
    disk_encryption_key: Optional[DiskEncryptionKey] = None
    key_encryption_key: Optional[KeyEncryptionKey] = None

    @field_validator("disk_encryption_key", "key_encryption_key", mode="before")
    @classmethod
    def _unwrap_key_blocks(cls, v: Any) -> Any:
        return _unwrap_block(v)


class DiskSpec(BaseModel):
    """Desired configuration of a managed disk."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    name: str = Field(min_length=1)
    resource_group_name: str
    location: str = Field(min_length=1)
    storage_account_type: StorageAccountType
    creation_source: CreationSource
    zones: List[str] = Field(default_factory=list, max_length=1)
    os_type: Optional[OsType] = None
    disk_size_gb: Optional[int] = Field(default=None, ge=1, le=MAX_DISK_SIZE_GB)
    disk_iops_read_write: Optional[int] = Field(default=None, ge=0)
    disk_mbps_read_write: Optional[int] = Field(default=None, ge=0)
    disk_encryption_set_id: Optional[str] = None
    encryption_settings: Optional[EncryptionSettings] = None
    tags: Dict[str, str] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _canonical_create_option(cls, data: Any) -> Any:
        # The union discriminator matches exactly, so fix the case first
        if isinstance(data, dict):
            source = data.get("creation_source")
            if isinstance(source, dict) and isinstance(
                source.get("create_option"), str
            ):
                try:
                    canonical = CreateOption(source["create_option"]).value
                except ValueError:
                    return data
                data = {
                    **data,
                    "creation_source": {**source, "create_option": canonical},
                }
        return data

    @field_validator("resource_group_name")
    @classmethod
    def _validate_resource_group_name(cls, v: str) -> str:
        if not v or len(v) > 90:
            raise PydanticCustomError(
                "resource_group_name",
                "`resource_group_name` must be between 1 and 90 characters",
            )
        if not _RESOURCE_GROUP_NAME_PATTERN.match(v):
            raise PydanticCustomError(
                "resource_group_name",
                "`resource_group_name` may only contain alphanumerics, "
                "underscores, parentheses, hyphens and periods",
            )
        if v.endswith("."):
            raise PydanticCustomError(
                "resource_group_name", "`resource_group_name` cannot end with a period"
            )
        return v

    @field_validator("location")
    @classmethod
    def _normalize_location(cls, v: str) -> str:
        return v.replace(" ", "").lower()

    @field_validator("storage_account_type", mode="before")
    @classmethod
    def _parse_storage_account_type(cls, v: Any) -> Any:
        return _parse_enum(StorageAccountType, "storage_account_type", v)

    @field_validator("os_type", mode="before")
    @classmethod
    def _parse_os_type(cls, v: Any) -> Any:
        return _parse_enum(OsType, "os_type", v)

    @field_validator("disk_encryption_set_id")
    @classmethod
    def _validate_disk_encryption_set_id(cls, v: Optional[str]) -> Optional[str]:
        return _require_resource_id("disk_encryption_set_id", v)

    @field_validator("encryption_settings", mode="before")
    @classmethod
    def _unwrap_encryption_settings(cls, v: Any) -> Any:
        return _unwrap_block(v)

    @field_validator("tags", mode="before")
    @classmethod
    def _validate_tags(cls, v: Any) -> Any:
        if v is None:
            return {}
        if not isinstance(v, Mapping):
            return v
        if len(v) > MAX_TAG_COUNT:
            raise PydanticCustomError(
                "tags_count",
                "a maximum of {max} tags can be applied to each resource",
                {"max": MAX_TAG_COUNT},
            )
        tags = {}
        for key, value in v.items():
            if len(key) > MAX_TAG_KEY_LENGTH:
                raise PydanticCustomError(
                    "tag_key_length",
                    "tag name '{key}' exceeds {max} characters",
                    {"key": key[:32], "max": MAX_TAG_KEY_LENGTH},
                )
            value = "" if value is None else str(value)
            if len(value) > MAX_TAG_VALUE_LENGTH:
                raise PydanticCustomError(
                    "tag_value_length",
                    "value for tag '{key}' exceeds {max} characters",
                    {"key": key, "max": MAX_TAG_VALUE_LENGTH},
                )
            tags[key] = value
        return tags

    @model_validator(mode="after")
    def _performance_requires_ultra_ssd(self) -> "DiskSpec":
        if not self.is_ultra_ssd and (
            self.disk_iops_read_write is not None
            or self.disk_mbps_read_write is not None
        ):
            raise PydanticCustomError(
                "ultra_ssd_only",
                "`disk_iops_read_write` and `disk_mbps_read_write` are only "
                "available for UltraSSD disks",
            )
        return self

    @property
    def create_option(self) -> CreateOption:
        return CreateOption(self.creation_source.create_option)

    @property
    def is_ultra_ssd(self) -> bool:
        return self.storage_account_type is StorageAccountType.ULTRA_SSD_LRS

    @property
    def uses_customer_managed_key(self) -> bool:
        return bool(self.disk_encryption_set_id)

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "DiskSpec":
        """Build a DiskSpec from the host framework's flat attribute map.

        None and "" mean "not set". A 0 for size, IOPS or MBps also means not
        set, since that is the framework's zero value for an unset int. The
        map may be stored state: ``id`` and read-only attributes are dropped.

        Raises:
            DiskValidationError: If the configuration is invalid
        """
        name = config.get("name") or None

        config = MANAGED_DISK_SCHEMA.without_read_only(config)
        config.pop("id", None)
        invalid = MANAGED_DISK_SCHEMA.invalid_keys(config)
        if invalid:
            raise DiskValidationError(
                f"Unsupported arguments for Managed Disk {name!r}",
                resource_name=name,
                validation_errors=[
                    f"`{key}` is not an argument that can be set" for key in invalid
                ],
            )

        data: Dict[str, Any] = {
            k: v for k, v in config.items() if v is not None and v != ""
        }
        for key in ZERO_MEANS_UNSET_FIELDS:
            if data.get(key) == 0:
                del data[key]
        data["creation_source"] = {
            k: data.pop(k) for k in CREATION_SOURCE_FIELDS if k in data
        }

        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise DiskValidationError(
                f"Invalid configuration for Managed Disk {name!r}",
                resource_name=name,
                validation_errors=format_validation_errors(e),
                cause=e,
            ) from e


def format_validation_errors(exc: ValidationError) -> List[str]:
    """Render pydantic errors as messages naming the flat attributes."""
    messages = []
    for error in exc.errors():
        loc = [str(part) for part in error["loc"]]
        error_type = error["type"]

        if loc[:1] == ["creation_source"] and len(loc) >= 3:
            create_option, attribute = loc[1], loc[-1]
            if error_type == "missing":
                messages.append(
                    f"`{attribute}` must be specified when `create_option` "
                    f"is set to `{create_option}`"
                )
            elif error_type == "extra_forbidden":
                messages.append(
                    f"`{attribute}` cannot be specified when `create_option` "
                    f"is set to `{create_option}`"
                )
            else:
                messages.append(f"`{attribute}`: {error['msg']}")
        elif loc == ["creation_source"] and error_type == "union_tag_not_found":
            messages.append("`create_option` must be specified")
        elif loc == ["creation_source"] and error_type == "union_tag_invalid":
            messages.append(
                f"`create_option` must be one of {CreateOption.values()}, "
                f"got {error.get('ctx', {}).get('tag')!r}"
            )
        elif not loc:
            messages.append(error["msg"])
        elif error_type == "missing":
            messages.append(f"`{loc[0]}` is required")
        else:
            messages.append(f"`{'.'.join(loc)}`: {error['msg']}")
    return messages


@dataclass
class DiskState:
    """Canonical remote state of a managed disk, flattened.

    Absent substructures in the API response become None/empty here.
    """

    id: str
    name: str
    resource_group_name: str
    location: Optional[str] = None
    zones: List[str] = field(default_factory=list)
    storage_account_type: Optional[str] = None
    create_option: Optional[str] = None
    source_uri: Optional[str] = None
    source_resource_id: Optional[str] = None
    storage_account_id: Optional[str] = None
    image_reference_id: Optional[str] = None
    os_type: Optional[str] = None
    disk_size_gb: Optional[int] = None
    disk_iops_read_write: Optional[int] = None
    disk_mbps_read_write: Optional[int] = None
    disk_encryption_set_id: Optional[str] = None
    encryption_type: Optional[str] = None
    encryption_settings: Optional[Dict[str, Any]] = None
    tags: Dict[str, str] = field(default_factory=dict)

    def to_config(self) -> Dict[str, Any]:
        """Flatten into the host framework's attribute map, with ``id``."""
        values = {
            name: getattr(self, name)
            for name in MANAGED_DISK_SCHEMA.names
            if name != "encryption_settings"
        }
        values["encryption_settings"] = (
            [self.encryption_settings] if self.encryption_settings else []
        )
        return {"id": self.id, **MANAGED_DISK_SCHEMA.with_zero_values(values)}


MANAGED_DISK_SCHEMA = ResourceSchema(
    [
        Attribute("name", AttributeType.STRING, required=True, force_new=True),
        Attribute(
            "resource_group_name", AttributeType.STRING, required=True, force_new=True
        ),
        Attribute("location", AttributeType.STRING, required=True, force_new=True),
        Attribute(
            "zones", AttributeType.LIST, optional=True, force_new=True, max_items=1
        ),
        Attribute(
            "storage_account_type",
            AttributeType.STRING,
            required=True,
            case_insensitive=True,
        ),
        Attribute(
            "create_option",
            AttributeType.STRING,
            required=True,
            force_new=True,
            case_insensitive=True,
        ),
        Attribute(
            "source_uri",
            AttributeType.STRING,
            optional=True,
            computed=True,
            force_new=True,
        ),
        Attribute(
            "source_resource_id", AttributeType.STRING, optional=True, force_new=True
        ),
        Attribute("storage_account_id", AttributeType.STRING, optional=True),
        Attribute(
            "image_reference_id", AttributeType.STRING, optional=True, force_new=True
        ),
        Attribute(
            "os_type", AttributeType.STRING, optional=True, case_insensitive=True
        ),
        Attribute("disk_size_gb", AttributeType.INT, optional=True, computed=True),
        Attribute(
            "disk_iops_read_write", AttributeType.INT, optional=True, computed=True
        ),
        Attribute(
            "disk_mbps_read_write", AttributeType.INT, optional=True, computed=True
        ),
        Attribute(
            "disk_encryption_set_id",
            AttributeType.STRING,
            optional=True,
            force_new=True,
            case_insensitive=True,
        ),
        Attribute(
            "encryption_type",
            AttributeType.STRING,
            computed=True,
            description="EncryptionAtRestWithPlatformKey or EncryptionAtRestWithCustomerKey",
        ),
        Attribute(
            "encryption_settings", AttributeType.BLOCK, optional=True, max_items=1
        ),
        Attribute("tags", AttributeType.MAP, optional=True),
    ]
)
