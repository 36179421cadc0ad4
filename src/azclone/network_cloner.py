"""Network interface cloning.

For each NIC on the source VM, in source order:

1. Rebuild every IP configuration: new public IP when the source config has one,
   subnet remapped by name onto the destination VNet, identity fields left empty.
2. Create the NIC with the first rebuilt configuration.
3. Replace its configuration list with the full rebuilt set, apply tags and the
   accelerated-networking / IP-forwarding flags, and persist with an update call.

Lookups of source NICs, source public IPs and destination subnets are
best-effort: a failure is logged as a warning and the affected substitution is
skipped. Creation calls are fatal.
"""

import logging

from azure.core.exceptions import HttpResponseError
from azure.mgmt.network.models import (
    IPAllocationMethod,
    NetworkInterface,
    NetworkInterfaceIPConfiguration,
    PublicIPAddress,
    PublicIPAddressSku,
    Subnet,
)

from azclone.azure_clients import AzureClients
from azclone.identity_allocator import IdentityAllocator
from azclone.models import (
    ClonedNic,
    CloneContext,
    CloneRequest,
    CreatedResources,
    ResourceCreationError,
)
from azclone.resource_ids import name_from_id, parse_ref

logger = logging.getLogger(__name__)

DEFAULT_PUBLIC_IP_ALLOCATION = IPAllocationMethod.STATIC
DEFAULT_PUBLIC_IP_SKU = "Standard"


class NetworkCloner:
    """Recreate a source VM's NICs in the destination resource group."""

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

    def clone_all(self, request: CloneRequest, context: CloneContext, vm_name: str) -> list[ClonedNic]:
        """Clone every NIC referenced by the source VM.

        Unreadable source NICs are skipped with a warning.

        Raises:
            ResourceCreationError: A public IP or NIC creation/update call failed
        """
        network_profile = context.source_vm.network_profile
        nic_refs = list(network_profile.network_interfaces or []) if network_profile else []

        cloned = []
        for nic_ref in nic_refs:
            source_nic = self._read_source_nic(nic_ref.id)
            if source_nic is None:
                continue
            if not source_nic.ip_configurations:
                logger.warning(f"NIC '{source_nic.name}' has no IP configurations; skipping")
                continue
            cloned.append(self.clone_nic(request, context, vm_name, source_nic, nic_ref.primary))
        return cloned

    def clone_nic(
        self,
        request: CloneRequest,
        context: CloneContext,
        vm_name: str,
        source_nic,
        primary: bool | None,
    ) -> ClonedNic:
        """Clone one NIC and return its destination handle."""
        ip_configurations = [
            self.rebuild_ip_configuration(request, context, vm_name, ip_config)
            for ip_config in source_nic.ip_configurations
        ]

        name = self.allocator.nic_name(source_nic.name)
        resource_group = request.effective_dest_resource_group
        logger.info(f"Creating network interface: {name}")

        nic = self._create_or_update_nic(
            resource_group,
            name,
            NetworkInterface(location=context.dest_location, ip_configurations=ip_configurations[:1]),
        )
        self.ledger.record("network interface", name)

        nic.ip_configurations = ip_configurations
        if request.copy_tags:
            nic.tags = dict(source_nic.tags or {})
        nic.enable_accelerated_networking = bool(
            source_nic.enable_accelerated_networking or request.force_accelerated_networking
        )
        nic.enable_ip_forwarding = source_nic.enable_ip_forwarding
        nic = self._create_or_update_nic(resource_group, name, nic)

        return ClonedNic(
            id=nic.id,
            name=nic.name or name,
            primary=primary,
            ip_configuration_count=len(ip_configurations),
        )

    def rebuild_ip_configuration(
        self,
        request: CloneRequest,
        context: CloneContext,
        vm_name: str,
        source_config,
    ) -> NetworkInterfaceIPConfiguration:
        """Build a destination IP configuration from a source one.

        The result carries no id or etag so the API treats it as new.
        """
        public_ip = None
        if source_config.public_ip_address is not None and source_config.public_ip_address.id:
            created = self._create_public_ip(
                request, context, vm_name, source_config.public_ip_address.id
            )
            public_ip = PublicIPAddress(id=created.id)

        allocation = source_config.private_ip_allocation_method
        if allocation == IPAllocationMethod.STATIC:
            logger.warning(
                f"IP configuration '{source_config.name}' uses a static private address "
                f"still held by the source; requesting a dynamic address instead"
            )
            allocation = IPAllocationMethod.DYNAMIC

        return NetworkInterfaceIPConfiguration(
            name=source_config.name,
            primary=source_config.primary,
            private_ip_allocation_method=allocation,
            private_ip_address_version=source_config.private_ip_address_version,
            subnet=self._map_subnet(context, source_config.subnet),
            public_ip_address=public_ip,
        )

    def _map_subnet(self, context: CloneContext, source_subnet) -> Subnet | None:
        if source_subnet is None or not source_subnet.id:
            return None

        subnet_name = name_from_id(source_subnet.id)
        for subnet in context.vnet.subnets or []:
            if subnet.name and subnet.name.lower() == subnet_name.lower():
                return Subnet(id=subnet.id)

        logger.warning(
            f"Subnet '{subnet_name}' not found in virtual network '{context.vnet.name}'; "
            f"keeping the source subnet assignment"
        )
        return Subnet(id=source_subnet.id)

    def _read_source_nic(self, nic_id: str):
        try:
            ref = parse_ref(nic_id)
            return self.source.network.network_interfaces.get(ref.resource_group, ref.name)
        except (ValueError, HttpResponseError) as e:
            logger.warning(f"Could not read source network interface '{nic_id}', skipping: {e}")
            return None

    def _read_source_public_ip(self, public_ip_id: str):
        try:
            ref = parse_ref(public_ip_id)
            return self.source.network.public_ip_addresses.get(ref.resource_group, ref.name)
        except (ValueError, HttpResponseError) as e:
            logger.warning(f"Could not read source public IP '{public_ip_id}', using defaults: {e}")
            return None

    def _create_public_ip(
        self,
        request: CloneRequest,
        context: CloneContext,
        vm_name: str,
        source_public_ip_id: str,
    ):
        source_ip = self._read_source_public_ip(source_public_ip_id)

        parameters = PublicIPAddress(
            location=context.dest_location,
            public_ip_allocation_method=DEFAULT_PUBLIC_IP_ALLOCATION,
            sku=PublicIPAddressSku(name=DEFAULT_PUBLIC_IP_SKU),
        )
        source_name = _public_ip_source_name(source_ip, source_public_ip_id)
        if source_ip is not None:
            parameters.public_ip_allocation_method = (
                source_ip.public_ip_allocation_method or DEFAULT_PUBLIC_IP_ALLOCATION
            )
            if source_ip.sku is not None:
                parameters.sku = PublicIPAddressSku(name=source_ip.sku.name, tier=source_ip.sku.tier)
            parameters.zones = list(source_ip.zones) if source_ip.zones else None
            if request.copy_tags:
                parameters.tags = dict(source_ip.tags or {})

        ordinal = len(self.ledger.names("public IP"))
        name = self.allocator.public_ip_name(source_name, vm_name, ordinal)
        logger.info(f"Creating public IP: {name}")
        try:
            poller = self.dest.network.public_ip_addresses.begin_create_or_update(
                request.effective_dest_resource_group, name, parameters
            )
            created = poller.result()
        except HttpResponseError as e:
            logger.error(f"Public IP creation failed: {e.message}")
            raise ResourceCreationError(f"Failed to create public IP '{name}': {e.message}") from e

        self.ledger.record("public IP", name)
        return created

    def _create_or_update_nic(self, resource_group: str, name: str, nic: NetworkInterface):
        try:
            poller = self.dest.network.network_interfaces.begin_create_or_update(
                resource_group, name, nic
            )
            return poller.result()
        except HttpResponseError as e:
            logger.error(f"Network interface operation failed: {e.message}")
            raise ResourceCreationError(
                f"Failed to create network interface '{name}': {e.message}"
            ) from e


def _public_ip_source_name(source_ip, public_ip_id: str) -> str | None:
    if source_ip is not None and source_ip.name:
        return source_ip.name
    try:
        return name_from_id(public_ip_id)
    except ValueError:
        return None
