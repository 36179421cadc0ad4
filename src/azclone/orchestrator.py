"""Clone workflow orchestration.

Runs the pipeline in a fixed order with no retries and no branching back:

1. Resolve source/destination context (RGs, source VM, destination VNet)
2. Allocate the run suffix and the clone VM name
3. Create or reuse snapshots
4. Resolve the availability set
5. Clone network interfaces
6. Create disks from snapshots
7. Assemble and create the VM

Any CloneError or Azure SDK error aborts the run. Resources created up to
that point are left in place and listed on the error for manual cleanup.
"""

import logging
import time

from azure.core.exceptions import AzureError

from azclone.availability_set import AvailabilitySetResolver
from azclone.azure_clients import ClientFactory
from azclone.context_resolver import ContextResolver
from azclone.disk_attacher import DiskAttacher
from azclone.identity_allocator import IdentityAllocator
from azclone.models import CloneError, CloneRequest, CloneResult, CreatedResources
from azclone.network_cloner import NetworkCloner
from azclone.progress import ProgressDisplay
from azclone.snapshot_provider import SnapshotProvider
from azclone.vm_assembler import VMAssembler

logger = logging.getLogger(__name__)


class CloneOrchestrator:
    """Coordinate the pipeline stages for one clone run."""

    def __init__(
        self,
        request: CloneRequest,
        client_factory: ClientFactory,
        allocator: IdentityAllocator | None = None,
        progress: ProgressDisplay | None = None,
    ):
        self.request = request
        self.allocator = allocator or IdentityAllocator()
        self.progress = progress or ProgressDisplay()
        self.ledger = CreatedResources()

        self.source = client_factory.for_subscription(request.source_subscription_id)
        self.dest = client_factory.for_subscription(request.effective_dest_subscription_id)

        self.context_resolver = ContextResolver(self.source, self.dest, self.ledger)
        self.snapshot_provider = SnapshotProvider(self.source, self.dest, self.allocator, self.ledger)
        self.availability_sets = AvailabilitySetResolver(
            self.source, self.dest, self.allocator, self.ledger
        )
        self.network_cloner = NetworkCloner(self.source, self.dest, self.allocator, self.ledger)
        self.disk_attacher = DiskAttacher(self.source, self.dest, self.allocator, self.ledger)
        self.vm_assembler = VMAssembler(self.dest)

    def run(self) -> CloneResult:
        """Execute the clone.

        Returns:
            CloneResult describing the new VM

        Raises:
            CloneError: Any fatal failure; created_resources lists what was left behind
        """
        start = time.time()
        request = self.request
        try:
            self.progress.start_operation("Resolving source and destination")
            context = self.context_resolver.resolve(request)
            vm_name = self.allocator.vm_name(request)
            self.progress.complete(message=f"Cloning '{request.source_vm_name}' as '{vm_name}'")

            self.progress.start_operation("Preparing snapshots")
            snapshot_set = self.snapshot_provider.provide(request, context)
            verb = "Created" if snapshot_set.created else "Reusing"
            self.progress.complete(message=f"{verb} {len(snapshot_set)} snapshot(s)")

            self.progress.start_operation("Resolving availability set")
            availability_set_id = self.availability_sets.resolve(request, context)
            self.progress.complete(
                message="Availability set ready" if availability_set_id else "No availability set"
            )

            self.progress.start_operation("Cloning network interfaces")
            nics = self.network_cloner.clone_all(request, context, vm_name)
            self.progress.complete(message=f"Cloned {len(nics)} network interface(s)")

            self.progress.start_operation("Creating disks from snapshots")
            disks = self.disk_attacher.build(request, context, snapshot_set)
            self.progress.complete(
                message=f"Created {disks.os_type} OS disk and {len(disks.data_disks)} data disk(s)"
            )

            self.progress.start_operation(f"Creating VM {vm_name}")
            vm = self.vm_assembler.assemble(request, context, disks, nics, availability_set_id)
            created_vm = self.vm_assembler.create(request, vm_name, vm)
            self.progress.complete(message=f"VM {vm_name} created")

        except CloneError as e:
            self._fail(e)
            raise
        except AzureError as e:
            error = CloneError(f"Azure request failed: {e}")
            self._fail(error)
            raise error from e

        elapsed = time.time() - start
        logger.info(f"Cloned '{request.source_vm_name}' to '{vm_name}' in {elapsed:.1f}s")

        return CloneResult(
            vm_name=vm_name,
            vm_id=getattr(created_vm, "id", "") or "",
            resource_group=request.effective_dest_resource_group,
            location=context.dest_location,
            suffix=self.allocator.suffix,
            snapshot_names=[snapshot.name for snapshot in snapshot_set.snapshots],
            disk_names=self.ledger.names("disk"),
            nic_names=[nic.name for nic in nics],
            availability_set_id=availability_set_id,
            elapsed_seconds=elapsed,
        )

    def _fail(self, error: CloneError) -> None:
        error.created_resources = self.ledger.describe()
        if self.progress.current_operation:
            self.progress.complete(success=False, message=str(error))
        logger.error(f"Clone of '{self.request.source_vm_name}' failed: {error}")
