"""Source and destination context resolution.

Looks up everything the run needs to exist before any resource is created:
the source resource group, the source VM and the destination VNet. Then
fetches the destination resource group, creating it at the source group's
location when it does not exist.

Any missing required resource is fatal.
"""

import logging

from azure.core.exceptions import HttpResponseError, ResourceNotFoundError
from azure.mgmt.resource.resources.models import ResourceGroup

from azclone.azure_clients import AzureClients
from azclone.models import (
    CloneContext,
    CloneError,
    CloneRequest,
    CreatedResources,
    ResourceCreationError,
    ResourceLookupError,
)

logger = logging.getLogger(__name__)


class ContextResolver:
    """Resolve resource-group, VM and VNet handles for a clone run."""

    def __init__(
        self, source: AzureClients, dest: AzureClients, ledger: CreatedResources | None = None
    ):
        self.source = source
        self.dest = dest
        self.ledger = ledger if ledger is not None else CreatedResources()

    def resolve(self, request: CloneRequest) -> CloneContext:
        """Resolve all handles.

        Returns:
            CloneContext with the effective destination location

        Raises:
            ResourceLookupError: Source RG, source VM or destination VNet not found
            ResourceCreationError: Destination RG could not be created
        """
        source_rg = self._get_resource_group(self.source, request.source_resource_group)
        source_vm = self._get_source_vm(request)
        vnet = self._get_vnet(request)
        dest_rg, created = self._get_or_create_dest_resource_group(request, source_rg)

        dest_location = request.location or dest_rg.location
        logger.info(
            f"Destination: resource group '{dest_rg.name}' "
            f"(subscription {self.dest.subscription_id}), location '{dest_location}'"
        )

        return CloneContext(
            source_resource_group=source_rg,
            dest_resource_group=dest_rg,
            source_vm=source_vm,
            vnet=vnet,
            dest_location=dest_location,
            dest_resource_group_created=created,
        )

    def _get_resource_group(self, clients: AzureClients, name: str):
        try:
            return clients.resource.resource_groups.get(name)
        except ResourceNotFoundError as e:
            raise ResourceLookupError(
                f"Resource group '{name}' not found in subscription {clients.subscription_id}"
            ) from e
        except HttpResponseError as e:
            raise CloneError(f"Failed to read resource group '{name}': {e.message}") from e

    def _get_source_vm(self, request: CloneRequest):
        try:
            vm = self.source.compute.virtual_machines.get(
                request.source_resource_group, request.source_vm_name
            )
        except ResourceNotFoundError as e:
            raise ResourceLookupError(
                f"VM '{request.source_vm_name}' not found in resource group "
                f"'{request.source_resource_group}'"
            ) from e
        except HttpResponseError as e:
            raise CloneError(f"Failed to read VM '{request.source_vm_name}': {e.message}") from e

        if vm.storage_profile is None or vm.storage_profile.os_disk is None:
            raise ResourceLookupError(f"VM '{vm.name}' has no OS disk in its storage profile")
        if vm.storage_profile.os_disk.managed_disk is None:
            raise CloneError(
                f"VM '{vm.name}' does not use managed disks; only managed-disk VMs can be cloned"
            )

        logger.debug(f"Source VM '{vm.name}' found in '{vm.location}'")
        return vm

    def _get_vnet(self, request: CloneRequest):
        vnet_rg = request.effective_vnet_resource_group
        try:
            return self.dest.network.virtual_networks.get(vnet_rg, request.vnet_name)
        except ResourceNotFoundError as e:
            raise ResourceLookupError(
                f"Virtual network '{request.vnet_name}' not found in resource group '{vnet_rg}'"
            ) from e
        except HttpResponseError as e:
            raise CloneError(
                f"Failed to read virtual network '{request.vnet_name}': {e.message}"
            ) from e

    def _get_or_create_dest_resource_group(self, request: CloneRequest, source_rg):
        name = request.effective_dest_resource_group
        try:
            exists = self.dest.resource.resource_groups.check_existence(name)
        except HttpResponseError as e:
            raise CloneError(f"Failed to check resource group '{name}': {e.message}") from e

        if exists:
            return self._get_resource_group(self.dest, name), False

        logger.info(f"Creating resource group '{name}' in '{source_rg.location}'")
        try:
            created = self.dest.resource.resource_groups.create_or_update(
                name, ResourceGroup(location=source_rg.location)
            )
        except HttpResponseError as e:
            logger.error(f"Resource group creation failed: {e.message}")
            raise ResourceCreationError(
                f"Failed to create resource group '{name}': {e.message}"
            ) from e
        self.ledger.record("resource group", name)
        return created, True
