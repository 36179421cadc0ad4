"""Clone VM definition and creation."""

import logging

from azure.core.exceptions import HttpResponseError
from azure.mgmt.compute.models import (
    HardwareProfile,
    NetworkInterfaceReference,
    NetworkProfile,
    Plan,
    StorageProfile,
    SubResource,
    VirtualMachine,
)

from azclone.azure_clients import AzureClients
from azclone.models import (
    ClonedNic,
    CloneContext,
    CloneRequest,
    CloneValidationError,
    DiskLayout,
    ResourceCreationError,
)

logger = logging.getLogger(__name__)


class VMAssembler:
    """Combine the cloned pieces into a VirtualMachine and submit it."""

    def __init__(self, dest: AzureClients):
        self.dest = dest

    def assemble(
        self,
        request: CloneRequest,
        context: CloneContext,
        disks: DiskLayout,
        nics: list[ClonedNic],
        availability_set_id: str,
    ) -> VirtualMachine:
        """Build the VM definition.

        Size, plan and license type are copied from the source; tags only when
        copy_tags is set.

        Raises:
            CloneValidationError: No NIC could be cloned
        """
        if not nics:
            raise CloneValidationError(
                f"No network interface of VM '{context.source_vm.name}' could be cloned"
            )

        source = context.source_vm
        vm = VirtualMachine(
            location=context.dest_location,
            hardware_profile=HardwareProfile(vm_size=source.hardware_profile.vm_size),
            storage_profile=StorageProfile(os_disk=disks.os_disk, data_disks=disks.data_disks),
            network_profile=NetworkProfile(
                network_interfaces=[
                    NetworkInterfaceReference(id=nic.id, primary=self._primary_flag(nic, nics))
                    for nic in nics
                ]
            ),
            license_type=source.license_type,
        )

        if request.copy_tags and source.tags:
            vm.tags = dict(source.tags)
        if availability_set_id:
            vm.availability_set = SubResource(id=availability_set_id)
        if source.plan is not None:
            # Marketplace images require the purchase plan on every VM built from their disks
            vm.plan = Plan(
                name=source.plan.name,
                publisher=source.plan.publisher,
                product=source.plan.product,
                promotion_code=source.plan.promotion_code,
            )
        return vm

    @staticmethod
    def _primary_flag(nic: ClonedNic, nics: list[ClonedNic]) -> bool | None:
        if len(nics) == 1:
            return True if nic.primary is None else nic.primary
        return nic.primary

    def create(self, request: CloneRequest, vm_name: str, vm: VirtualMachine):
        """Submit the create call and wait for it.

        Raises:
            ResourceCreationError: The API reported a failure
        """
        resource_group = request.effective_dest_resource_group
        logger.info(f"Creating VM: {vm_name} ({vm.hardware_profile.vm_size}) in '{resource_group}'")
        try:
            poller = self.dest.compute.virtual_machines.begin_create_or_update(
                resource_group, vm_name, vm
            )
            return poller.result()
        except HttpResponseError as e:
            logger.error(f"VM creation failed: {e.message}")
            raise ResourceCreationError(f"Failed to create VM '{vm_name}': {e.message}") from e
