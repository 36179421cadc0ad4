"""Availability-set resolution for the clone.

Decision table (source VM has an availability set):

    reuse requested, same RG        -> source set id
    reuse requested, other RG       -> named set in destination RG if it exists,
                                       otherwise a new set
    reuse not requested             -> new set mirroring the source's settings

A source VM without an availability set yields no set.
"""

import logging

from azure.core.exceptions import HttpResponseError, ResourceNotFoundError
from azure.mgmt.compute.models import AvailabilitySet, Sku

from azclone.azure_clients import AzureClients
from azclone.identity_allocator import IdentityAllocator
from azclone.models import (
    CloneContext,
    CloneRequest,
    CreatedResources,
    ResourceCreationError,
    ResourceLookupError,
)
from azclone.resource_ids import parse_ref

logger = logging.getLogger(__name__)

DEFAULT_UPDATE_DOMAINS = 5
DEFAULT_FAULT_DOMAINS = 2
DEFAULT_SKU = "Aligned"


class AvailabilitySetResolver:
    """Reuse, look up or recreate the availability set for a clone."""

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

    def resolve(self, request: CloneRequest, context: CloneContext) -> str:
        """Return the availability-set id for the clone, or "" for none.

        Raises:
            ResourceLookupError: The named destination set could not be read
            ResourceCreationError: A new availability set could not be created
        """
        source_ref = context.source_vm.availability_set
        if source_ref is None or not source_ref.id:
            logger.debug("Source VM has no availability set")
            return ""

        if request.use_existing_availability_set:
            if request.same_resource_group:
                logger.info(f"Reusing source availability set: {source_ref.id}")
                return source_ref.id

            existing_id = self._find_existing(request)
            if existing_id:
                return existing_id

        return self._create(request, context, source_ref.id)

    def _find_existing(self, request: CloneRequest) -> str:
        name = request.availability_set_name
        resource_group = request.effective_dest_resource_group
        if not name:
            logger.info("No existing availability set named; a new one will be created")
            return ""

        try:
            existing = self.dest.compute.availability_sets.get(resource_group, name)
        except ResourceNotFoundError:
            logger.warning(
                f"Availability set '{name}' not found in '{resource_group}'; creating a new one"
            )
            return ""
        except HttpResponseError as e:
            logger.error(f"Availability set lookup failed: {e.message}")
            raise ResourceLookupError(
                f"Failed to look up availability set '{name}' in '{resource_group}': {e.message}"
            ) from e

        logger.info(f"Reusing availability set '{existing.name}' in '{resource_group}'")
        return existing.id

    def _read_source(self, source_id: str):
        try:
            ref = parse_ref(source_id)
            return self.source.compute.availability_sets.get(ref.resource_group, ref.name)
        except (ValueError, HttpResponseError) as e:
            logger.warning(f"Could not read source availability set, using defaults: {e}")
            return None

    def _create(self, request: CloneRequest, context: CloneContext, source_id: str) -> str:
        source_set = self._read_source(source_id)
        name = self.allocator.availability_set_name(parse_ref(source_id).name)

        update_domains = DEFAULT_UPDATE_DOMAINS
        fault_domains = DEFAULT_FAULT_DOMAINS
        sku_name = DEFAULT_SKU
        tags = None
        if source_set is not None:
            update_domains = source_set.platform_update_domain_count or update_domains
            fault_domains = source_set.platform_fault_domain_count or fault_domains
            if source_set.sku is not None and source_set.sku.name:
                sku_name = source_set.sku.name
            if request.copy_tags:
                tags = dict(source_set.tags or {})

        parameters = AvailabilitySet(
            location=context.dest_location,
            platform_update_domain_count=update_domains,
            platform_fault_domain_count=fault_domains,
            sku=Sku(name=sku_name),
            tags=tags,
        )

        resource_group = request.effective_dest_resource_group
        logger.info(
            f"Creating availability set: {name} "
            f"(update domains: {update_domains}, fault domains: {fault_domains})"
        )
        try:
            created = self.dest.compute.availability_sets.create_or_update(
                resource_group, name, parameters
            )
        except HttpResponseError as e:
            logger.error(f"Availability set creation failed: {e.message}")
            raise ResourceCreationError(
                f"Failed to create availability set '{name}': {e.message}"
            ) from e
        self.ledger.record("availability set", name)
        return created.id
