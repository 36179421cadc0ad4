"""Unit tests for resource_ids module."""

import pytest

from azclone.resource_ids import ResourceRef, name_from_id, parse_ref

SUB = "00000000-0000-0000-0000-000000000001"


class TestParseRef:
    """Tests for ARM id parsing."""

    def test_top_level_resource(self):
        """A top-level resource id yields its subscription, RG and name."""
        resource_id = (
            f"/subscriptions/{SUB}/resourceGroups/RG1/providers/"
            f"Microsoft.Compute/disks/VM1_OsDisk"
        )
        assert parse_ref(resource_id) == ResourceRef(SUB, "RG1", "VM1_OsDisk")

    def test_child_resource_uses_last_name(self):
        """For a subnet the name is the subnet, not the VNet."""
        resource_id = (
            f"/subscriptions/{SUB}/resourceGroups/net-rg/providers/"
            f"Microsoft.Network/virtualNetworks/vnet1/subnets/backend"
        )
        assert name_from_id(resource_id) == "backend"
        assert parse_ref(resource_id).resource_group == "net-rg"

    @pytest.mark.parametrize(
        "resource_id",
        ["", "not-an-id", "/subscriptions/x", f"/subscriptions/{SUB}/resourceGroups/RG1"],
    )
    def test_invalid_ids(self, resource_id):
        """Malformed ids raise ValueError."""
        with pytest.raises(ValueError, match="Invalid Azure resource id"):
            parse_ref(resource_id)

