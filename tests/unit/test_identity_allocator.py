"""Unit tests for identity_allocator module."""

import random

import pytest

from azclone.identity_allocator import SUFFIX_MAX, SUFFIX_MIN, IdentityAllocator
from azclone.models import CloneValidationError


class TestSuffix:
    """Tests for suffix generation."""

    def test_random_suffix_is_nine_digits(self):
        """Generated suffixes are always nine digits."""
        for _ in range(50):
            suffix = IdentityAllocator().suffix
            assert SUFFIX_MIN <= suffix <= SUFFIX_MAX
            assert len(str(suffix)) == 9

    def test_seeded_rng_is_reproducible(self):
        """An injected RNG makes the suffix deterministic."""
        first = IdentityAllocator(rng=random.Random(42)).suffix
        second = IdentityAllocator(rng=random.Random(42)).suffix
        assert first == second

    def test_fixed_suffix(self, allocator):
        """An explicit suffix is used as given."""
        assert allocator.suffix == 123456789


class TestVMName:
    """Tests for clone VM naming."""

    def test_default_name(self, allocator, make_request):
        """Without overrides the clone is <source>-clone-<suffix>."""
        assert allocator.vm_name(make_request()) == "VM1-clone-123456789"

    def test_explicit_name_wins(self, allocator, make_request):
        """--name overrides every other rule."""
        request = make_request(dest_vm_name="web-copy", keep_source_name=True)
        assert allocator.vm_name(request) == "web-copy"

    def test_keep_source_name_in_other_resource_group(self, allocator, make_request):
        """Keeping the source name is allowed when the destination RG differs."""
        request = make_request(keep_source_name=True, dest_resource_group="RG2")
        assert allocator.vm_name(request) == "VM1"

    def test_keep_source_name_in_same_resource_group(self, allocator, make_request):
        """Keeping the source name in the source RG would overwrite the source VM."""
        with pytest.raises(CloneValidationError, match="collides with the source VM"):
            allocator.vm_name(make_request(keep_source_name=True))

    def test_explicit_source_name_in_same_resource_group(self, allocator, make_request):
        """An explicit name equal to the source (any case) is rejected in the same RG."""
        with pytest.raises(CloneValidationError):
            allocator.vm_name(make_request(dest_vm_name="vm1"))


class TestResourceNames:
    """Tests for per-resource names."""

    def test_names(self, allocator):
        """Each created resource name carries the suffix."""
        assert allocator.snapshot_name("VM1_OsDisk") == "VM1_OsDisk-snapshot-123456789"
        assert allocator.disk_name("VM1_OsDisk") == "VM1_OsDisk-123456789"
        assert allocator.nic_name("vm1-nic") == "vm1-nic-123456789"
        assert allocator.availability_set_name("as1") == "as1-123456789"

    def test_public_ip_name(self, allocator):
        """Public IPs reuse the source name, or fall back to the VM name and ordinal."""
        assert allocator.public_ip_name("VM1-ip", "VM1-clone", 0) == "VM1-ip-123456789"
        assert allocator.public_ip_name(None, "VM1-clone", 2) == "VM1-clone-pip-123456789-2"
