"""Run suffix and resource naming.

One random nine-digit suffix is drawn per run and appended to every resource
the run creates.
"""

import logging
import random

from azclone.models import CloneRequest, CloneValidationError

logger = logging.getLogger(__name__)

SUFFIX_MIN = 100_000_000
SUFFIX_MAX = 999_999_999


class IdentityAllocator:
    """Derive the clone VM name and per-resource names from one suffix."""

    def __init__(self, suffix: int | None = None, rng: random.Random | None = None):
        if suffix is None:
            suffix = (rng or random.SystemRandom()).randint(SUFFIX_MIN, SUFFIX_MAX)
        self.suffix = suffix

    def vm_name(self, request: CloneRequest) -> str:
        """Destination VM name.

        Explicit --name wins; --keep-source-name reuses the source name; otherwise
        the name is <source>-clone-<suffix>.

        Raises:
            CloneValidationError: If the resulting name is the source VM itself
        """
        if request.dest_vm_name:
            name = request.dest_vm_name
        elif request.keep_source_name:
            name = request.source_vm_name
        else:
            name = f"{request.source_vm_name}-clone-{self.suffix}"

        if request.same_resource_group and name.lower() == request.source_vm_name.lower():
            raise CloneValidationError(
                f"Clone name '{name}' collides with the source VM in resource group "
                f"'{request.source_resource_group}'. Choose another --name or a "
                f"different destination resource group."
            )
        return name

    def snapshot_name(self, disk_name: str) -> str:
        return f"{disk_name}-snapshot-{self.suffix}"

    def disk_name(self, disk_name: str) -> str:
        return f"{disk_name}-{self.suffix}"

    def nic_name(self, nic_name: str) -> str:
        return f"{nic_name}-{self.suffix}"

    def public_ip_name(self, source_name: str | None, vm_name: str, ordinal: int) -> str:
        """Public IP name from the source IP name, or from the VM and a per-run ordinal."""
        if source_name:
            return f"{source_name}-{self.suffix}"
        return f"{vm_name}-pip-{self.suffix}-{ordinal}"

    def availability_set_name(self, set_name: str) -> str:
        return f"{set_name}-{self.suffix}"
