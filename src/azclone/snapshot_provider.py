"""Snapshot provisioning for the clone's disks.

Two mutually exclusive modes, selected by the OS-disk snapshot name:

- Create mode: snapshot every disk attached to the source VM, OS disk first,
  then data disks in LUN order.
- Reuse mode: look up the named OS-disk snapshot and, optionally, one named
  data-disk snapshot.

Reuse of a data-disk snapshot only covers single-data-disk VMs. When a
data-disk snapshot name is supplied for a VM with several data disks the
names are ignored and every disk is snapshotted instead.
"""

import logging

from azure.core.exceptions import HttpResponseError, ResourceNotFoundError
from azure.mgmt.compute.models import CreationData, DiskCreateOption, Snapshot

from azclone.azure_clients import AzureClients
from azclone.identity_allocator import IdentityAllocator
from azclone.models import (
    CloneContext,
    CloneError,
    CloneRequest,
    CloneValidationError,
    CreatedResources,
    ResourceCreationError,
    ResourceLookupError,
    SnapshotSet,
    ordered_data_disks,
)

logger = logging.getLogger(__name__)


class SnapshotProvider:
    """Create or look up the snapshots a clone is built from."""

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

    @staticmethod
    def use_existing(request: CloneRequest, source_vm) -> bool:
        """Decide between reuse and create mode."""
        if not request.reuse_snapshots:
            return False
        data_disk_count = len(source_vm.storage_profile.data_disks or [])
        if request.data_snapshot_name and data_disk_count > 1:
            logger.warning(
                f"VM '{source_vm.name}' has {data_disk_count} data disks; existing "
                f"snapshots can only be reused for a single data disk. Creating new "
                f"snapshots of every disk instead."
            )
            return False
        return True

    def provide(self, request: CloneRequest, context: CloneContext) -> SnapshotSet:
        """Return the snapshot set for this run.

        Raises:
            ResourceLookupError: A named snapshot does not exist
            ResourceCreationError: A snapshot creation call failed
            CloneValidationError: No snapshot was produced
        """
        if self.use_existing(request, context.source_vm):
            snapshot_set = self._lookup_existing(request)
        else:
            snapshot_set = self._create_all(request, context)

        if not snapshot_set.snapshots:
            raise CloneValidationError("No snapshots available to build the clone's disks")
        return snapshot_set

    def snapshot_location(self, context: CloneContext) -> str:
        """Snapshots live next to their source disks."""
        if context.source_location != context.dest_location:
            return context.source_location
        return context.dest_location

    def _create_all(self, request: CloneRequest, context: CloneContext) -> SnapshotSet:
        vm = context.source_vm
        location = self.snapshot_location(context)
        resource_group = request.effective_dest_resource_group

        os_disk = vm.storage_profile.os_disk
        snapshots = [
            self._create_snapshot(
                resource_group,
                location,
                os_disk.name,
                os_disk.managed_disk.id,
                os_type=os_disk.os_type,
            )
        ]

        for data_disk in ordered_data_disks(vm):
            if data_disk.managed_disk is None:
                raise CloneError(
                    f"Data disk '{data_disk.name}' (LUN {data_disk.lun}) is not a managed disk"
                )
            snapshots.append(
                self._create_snapshot(
                    resource_group, location, data_disk.name, data_disk.managed_disk.id
                )
            )

        logger.info(f"Created {len(snapshots)} snapshot(s) in '{resource_group}'")
        return SnapshotSet(snapshots=snapshots, created=True)

    def _create_snapshot(
        self,
        resource_group: str,
        location: str,
        disk_name: str,
        disk_id: str,
        os_type=None,
    ):
        name = self.allocator.snapshot_name(disk_name)
        logger.info(f"Creating snapshot: {name} from disk: {disk_name}")

        snapshot = Snapshot(
            location=location,
            os_type=os_type,
            creation_data=CreationData(
                create_option=DiskCreateOption.COPY,
                source_resource_id=disk_id,
            ),
        )
        try:
            poller = self.dest.compute.snapshots.begin_create_or_update(
                resource_group, name, snapshot
            )
            created = poller.result()
        except HttpResponseError as e:
            logger.error(f"Snapshot creation failed: {e.message}")
            raise ResourceCreationError(f"Failed to create snapshot '{name}': {e.message}") from e

        self.ledger.record("snapshot", name)
        return created

    def _lookup_existing(self, request: CloneRequest) -> SnapshotSet:
        resource_group = request.effective_snapshot_resource_group
        snapshots = [self._get_snapshot(resource_group, request.os_snapshot_name)]
        if request.data_snapshot_name:
            snapshots.append(self._get_snapshot(resource_group, request.data_snapshot_name))

        logger.info(f"Reusing {len(snapshots)} existing snapshot(s) from '{resource_group}'")
        return SnapshotSet(snapshots=snapshots, created=False)

    def _get_snapshot(self, resource_group: str, name: str):
        try:
            return self.source.compute.snapshots.get(resource_group, name)
        except ResourceNotFoundError as e:
            raise ResourceLookupError(
                f"Snapshot '{name}' not found in resource group '{resource_group}'"
            ) from e
        except HttpResponseError as e:
            raise CloneError(f"Failed to read snapshot '{name}': {e.message}") from e
