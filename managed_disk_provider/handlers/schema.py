"""Attribute schema declarations for resource handlers.

A handler declares the flat attributes it accepts and produces. The host
framework uses the flags for planning; the handlers use the schema to reject
keys a user cannot set and to fill zero values when flattening remote state.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, Iterator, List, Mapping


class AttributeType(Enum):
    STRING = "string"
    INT = "int"
    BOOL = "bool"
    LIST = "list"
    MAP = "map"
    BLOCK = "block"


_ZERO_VALUES: Dict[AttributeType, Any] = {
    AttributeType.STRING: "",
    AttributeType.INT: 0,
    AttributeType.BOOL: False,
}


@dataclass(frozen=True)
class Attribute:
    """A single attribute in a resource schema.

    An attribute that is computed but neither required nor optional is
    read-only: the server assigns it and users may not set it.
    """

    name: str
    type: AttributeType
    required: bool = False
    optional: bool = False
    computed: bool = False
    force_new: bool = False
    # Differences in letter case are not changes
    case_insensitive: bool = False
    max_items: int = 0
    description: str = ""

    def __post_init__(self) -> None:
        if self.required and (self.optional or self.computed):
            raise ValueError(
                f"Attribute {self.name!r}: required excludes optional and computed"
            )
        if not (self.required or self.optional or self.computed):
            raise ValueError(
                f"Attribute {self.name!r} must be required, optional or computed"
            )

    @property
    def read_only(self) -> bool:
        return self.computed and not self.optional

    def zero_value(self) -> Any:
        """Return the host framework's zero value for this attribute."""
        if self.type in (AttributeType.LIST, AttributeType.BLOCK):
            return []
        if self.type is AttributeType.MAP:
            return {}
        return _ZERO_VALUES[self.type]


class ResourceSchema:
    """Ordered collection of attributes for one resource type."""

    def __init__(self, attributes: Iterable[Attribute]) -> None:
        self._attributes: Dict[str, Attribute] = {}
        for attribute in attributes:
            if attribute.name in self._attributes:
                raise ValueError(f"Duplicate attribute: {attribute.name}")
            self._attributes[attribute.name] = attribute

    def __contains__(self, name: object) -> bool:
        return name in self._attributes

    def __getitem__(self, name: str) -> Attribute:
        return self._attributes[name]

    def __iter__(self) -> Iterator[Attribute]:
        return iter(self._attributes.values())

    def __len__(self) -> int:
        return len(self._attributes)

    @property
    def names(self) -> List[str]:
        return list(self._attributes)

    def required_names(self) -> List[str]:
        return [a.name for a in self if a.required]

    def force_new_names(self) -> List[str]:
        return [a.name for a in self if a.force_new]

    def invalid_keys(self, config: Mapping[str, Any]) -> List[str]:
        """Return keys in config that the schema does not declare."""
        return sorted(k for k in config if k not in self._attributes)

    def without_read_only(self, config: Mapping[str, Any]) -> Dict[str, Any]:
        """Return config minus read-only attributes.

        Stored state carries server-assigned values that users cannot set.
        """
        return {
            k: v
            for k, v in config.items()
            if k not in self._attributes or not self._attributes[k].read_only
        }

    def with_zero_values(self, values: Mapping[str, Any]) -> Dict[str, Any]:
        """Return a flat map with every attribute present, in schema order.

        None values are replaced by the attribute's zero value.
        """
        result: Dict[str, Any] = {}
        for attribute in self:
            value = values.get(attribute.name)
            result[attribute.name] = (
                attribute.zero_value() if value is None else value
            )
        return result
