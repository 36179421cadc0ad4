"""Managed disks from snapshots, attached to the clone.

Snapshot index 0 becomes the OS disk; indices 1..N become data disks that keep
the LUN and caching mode of the source data disk at the same position.

The storage SKU is read from the source OS managed disk rather than the VM
model, whose managed-disk block is sparse when the VM is deallocated.
"""

import logging

from azure.core.exceptions import HttpResponseError
from azure.mgmt.compute.models import (
    CreationData,
    DataDisk,
    Disk,
    DiskCreateOption,
    DiskCreateOptionTypes,
    DiskSku,
    ManagedDiskParameters,
    OperatingSystemTypes,
    OSDisk,
)

from azclone.azure_clients import AzureClients
from azclone.identity_allocator import IdentityAllocator
from azclone.models import (
    CloneContext,
    CloneRequest,
    CreatedResources,
    DiskLayout,
    ResourceCreationError,
    SnapshotSet,
    ordered_data_disks,
)
from azclone.resource_ids import parse_ref

logger = logging.getLogger(__name__)

FALLBACK_DISK_SKU = "Standard_LRS"


def enum_value(value) -> str:
    """Wire string of an SDK enum member, or the string itself."""
    return getattr(value, "value", value)


def detect_os_type(vm) -> str:
    """Return "Windows" or "Linux" for a source VM.

    The OS profile is authoritative when present; a deallocated VM may have
    none, in which case the OS disk's os_type is used.
    """
    os_profile = vm.os_profile
    if os_profile is not None:
        if os_profile.windows_configuration is not None:
            return OperatingSystemTypes.WINDOWS.value
        if os_profile.linux_configuration is not None:
            return OperatingSystemTypes.LINUX.value

    os_type = vm.storage_profile.os_disk.os_type
    if os_type is not None:
        value = enum_value(os_type).lower()
        if value == "windows":
            return OperatingSystemTypes.WINDOWS.value
        if value == "linux":
            return OperatingSystemTypes.LINUX.value

    logger.warning(f"Could not determine OS type of VM '{vm.name}'; assuming Linux")
    return OperatingSystemTypes.LINUX.value


class DiskAttacher:
    """Create managed disks from a snapshot set and build the storage profile."""

    def __init__(
        self,
        source: AzureClients,
        dest: AzureClients,
        allocator: IdentityAllocator,
        ledger: CreatedResources | None = None,
    ):
        self.source = source
        self.dest = dest
        self.allocator = allocator
        self.ledger = ledger if ledger is not None else CreatedResources()

    def build(self, request: CloneRequest, context: CloneContext, snapshot_set: SnapshotSet) -> DiskLayout:
        """Create one disk per snapshot and return the OS/data disk layout.

        Raises:
            ResourceCreationError: A disk creation call failed
        """
        vm = context.source_vm
        sku = self.source_disk_sku(vm)
        source_os_disk = vm.storage_profile.os_disk
        source_data_disks = ordered_data_disks(vm)

        os_managed_disk = self._create_disk(
            request, context, source_os_disk.name, snapshot_set.os_snapshot, sku
        )
        os_type = detect_os_type(vm)
        if os_type == OperatingSystemTypes.WINDOWS.value:
            os_disk = self._set_windows_os_disk(os_managed_disk, source_os_disk.caching, sku)
        else:
            os_disk = self._set_linux_os_disk(os_managed_disk, source_os_disk.caching, sku)

        data_disks = []
        for position, snapshot in enumerate(snapshot_set.data_snapshots):
            if position < len(source_data_disks):
                source_disk = source_data_disks[position]
                base_name, lun, caching = source_disk.name, source_disk.lun, source_disk.caching
            else:
                base_name, lun, caching = snapshot.name, position, None

            managed_disk = self._create_disk(request, context, base_name, snapshot, sku)
            data_disks.append(
                DataDisk(
                    lun=lun,
                    name=managed_disk.name,
                    create_option=DiskCreateOptionTypes.ATTACH,
                    caching=caching,
                    managed_disk=ManagedDiskParameters(id=managed_disk.id, storage_account_type=sku),
                )
            )

        return DiskLayout(os_disk=os_disk, data_disks=data_disks, os_type=os_type)

    def source_disk_sku(self, vm) -> str:
        """Storage SKU of the source OS managed disk."""
        managed_disk = vm.storage_profile.os_disk.managed_disk
        try:
            ref = parse_ref(managed_disk.id)
            disk = self.source.compute.disks.get(ref.resource_group, ref.name)
            if disk.sku is not None and disk.sku.name:
                return enum_value(disk.sku.name)
        except (ValueError, HttpResponseError) as e:
            logger.warning(f"Could not read source OS disk: {e}")

        if managed_disk.storage_account_type:
            return enum_value(managed_disk.storage_account_type)
        logger.warning(f"Disk SKU unknown; using {FALLBACK_DISK_SKU}")
        return FALLBACK_DISK_SKU

    def _create_disk(self, request: CloneRequest, context: CloneContext, base_name: str, snapshot, sku: str):
        name = self.allocator.disk_name(base_name)
        logger.info(f"Creating disk: {name} from snapshot: {snapshot.name}")

        disk = Disk(
            location=context.dest_location,
            sku=DiskSku(name=sku),
            creation_data=CreationData(
                create_option=DiskCreateOption.COPY,
                source_resource_id=snapshot.id,
            ),
        )
        try:
            poller = self.dest.compute.disks.begin_create_or_update(
                request.effective_dest_resource_group, name, disk
            )
            created = poller.result()
        except HttpResponseError as e:
            logger.error(f"Disk creation failed: {e.message}")
            raise ResourceCreationError(f"Failed to create disk '{name}': {e.message}") from e

        self.ledger.record("disk", name)
        return created

    @staticmethod
    def _set_windows_os_disk(managed_disk, caching, sku: str) -> OSDisk:
        return OSDisk(
            name=managed_disk.name,
            os_type=OperatingSystemTypes.WINDOWS,
            create_option=DiskCreateOptionTypes.ATTACH,
            caching=caching,
            managed_disk=ManagedDiskParameters(id=managed_disk.id, storage_account_type=sku),
        )

    @staticmethod
    def _set_linux_os_disk(managed_disk, caching, sku: str) -> OSDisk:
        return OSDisk(
            name=managed_disk.name,
            os_type=OperatingSystemTypes.LINUX,
            create_option=DiskCreateOptionTypes.ATTACH,
            caching=caching,
            managed_disk=ManagedDiskParameters(id=managed_disk.id, storage_account_type=sku),
        )
