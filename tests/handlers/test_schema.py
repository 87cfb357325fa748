"""Tests for attribute schema declarations."""

import pytest

from managed_disk_provider.handlers.compute.disk_models import MANAGED_DISK_SCHEMA
from managed_disk_provider.handlers.schema import (
    Attribute,
    AttributeType,
    ResourceSchema,
)


class TestAttribute:
    """Test Attribute flag rules."""

    def test_required_attribute(self):
        attribute = Attribute("name", AttributeType.STRING, required=True)

        assert not attribute.read_only

    def test_computed_only_attribute_is_read_only(self):
        attribute = Attribute("encryption_type", AttributeType.STRING, computed=True)

        assert attribute.read_only

    def test_optional_computed_attribute_is_settable(self):
        attribute = Attribute(
            "disk_size_gb", AttributeType.INT, optional=True, computed=True
        )

        assert not attribute.read_only

    def test_required_and_optional_conflict(self):
        with pytest.raises(ValueError, match="required excludes"):
            Attribute("name", AttributeType.STRING, required=True, optional=True)

    def test_attribute_needs_a_mode(self):
        with pytest.raises(ValueError, match="must be required, optional or computed"):
            Attribute("name", AttributeType.STRING)

    @pytest.mark.parametrize(
        "attribute_type,expected",
        [
            (AttributeType.STRING, ""),
            (AttributeType.INT, 0),
            (AttributeType.BOOL, False),
            (AttributeType.LIST, []),
            (AttributeType.BLOCK, []),
            (AttributeType.MAP, {}),
        ],
    )
    def test_zero_values(self, attribute_type, expected):
        attribute = Attribute("a", attribute_type, optional=True)

        assert attribute.zero_value() == expected


class TestResourceSchema:
    """Test ResourceSchema lookups."""

    @pytest.fixture
    def schema(self):
        return ResourceSchema(
            [
                Attribute("name", AttributeType.STRING, required=True, force_new=True),
                Attribute("size", AttributeType.INT, optional=True, computed=True),
                Attribute("status", AttributeType.STRING, computed=True),
                Attribute("tags", AttributeType.MAP, optional=True),
            ]
        )

    def test_container_protocol(self, schema):
        assert "name" in schema
        assert "missing" not in schema
        assert schema["size"].type is AttributeType.INT
        assert len(schema) == 4
        assert [a.name for a in schema] == schema.names

    def test_duplicate_attribute_rejected(self):
        with pytest.raises(ValueError, match="Duplicate attribute"):
            ResourceSchema(
                [
                    Attribute("name", AttributeType.STRING, required=True),
                    Attribute("name", AttributeType.STRING, optional=True),
                ]
            )

    def test_required_and_force_new_names(self, schema):
        assert schema.required_names() == ["name"]
        assert schema.force_new_names() == ["name"]

    def test_invalid_keys(self, schema):
        config = {"name": "x", "status": "ok", "zone": "1", "size": 1}

        assert schema.invalid_keys(config) == ["zone"]

    def test_without_read_only(self, schema):
        config = {"id": "x", "name": "x", "status": "ok", "size": 1}

        assert schema.without_read_only(config) == {"id": "x", "name": "x", "size": 1}

    def test_with_zero_values(self, schema):
        result = schema.with_zero_values({"name": "x", "size": None})

        assert result == {"name": "x", "size": 0, "status": "", "tags": {}}


class TestManagedDiskSchema:
    """Test the declared managed disk attributes."""

    def test_required_attributes(self):
        assert set(MANAGED_DISK_SCHEMA.required_names()) == {
            "name",
            "resource_group_name",
            "location",
            "storage_account_type",
            "create_option",
        }

    def test_replacement_attributes(self):
        force_new = set(MANAGED_DISK_SCHEMA.force_new_names())

        assert {"name", "resource_group_name", "location", "zones"} <= force_new
        assert {"create_option", "source_uri", "source_resource_id"} <= force_new
        assert {"image_reference_id", "disk_encryption_set_id"} <= force_new
        assert "disk_size_gb" not in force_new
        assert "storage_account_type" not in force_new
        assert "tags" not in force_new

    def test_encryption_type_is_read_only(self):
        assert MANAGED_DISK_SCHEMA["encryption_type"].read_only

    @pytest.mark.parametrize(
        "name", ["storage_account_type", "create_option", "os_type"]
    )
    def test_case_insensitive_attributes(self, name):
        assert MANAGED_DISK_SCHEMA[name].case_insensitive

    def test_server_computed_attributes(self):
        for name in ("disk_size_gb", "disk_iops_read_write", "disk_mbps_read_write"):
            assert MANAGED_DISK_SCHEMA[name].computed
            assert MANAGED_DISK_SCHEMA[name].optional
