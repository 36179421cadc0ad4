"""Data models and errors for the clone workflow.

This module defines the structures passed between pipeline stages:
- CloneRequest: every invocation parameter, resolved before the run starts
- CloneContext: resource handles resolved by the context stage
- SnapshotSet / ClonedNic / CloneResult: outputs of later stages

Errors:
- CloneError is the base of every fatal failure and carries the CLI exit code
- Recoverable failures are logged as warnings and never raise
"""

from dataclasses import dataclass, field
from typing import Any


class CloneError(Exception):
    """Base exception for fatal clone failures.

    created_resources is filled in by the orchestrator with everything the run
    created before failing, since nothing is rolled back.
    """

    exit_code = 1

    def __init__(self, message: str):
        super().__init__(message)
        self.created_resources: list[str] = []


class ResourceLookupError(CloneError):
    """A required pre-existing resource was not found."""

    pass


class ResourceCreationError(CloneError):
    """A required creation call failed."""

    pass


class CloneValidationError(CloneError):
    """Invalid parameter combination or unusable intermediate state."""

    pass


class CreatedResources:
    """Ordered record of resources created during a run."""

    def __init__(self) -> None:
        self._entries: list[tuple[str, str]] = []

    def record(self, kind: str, name: str) -> None:
        self._entries.append((kind, name))

    def names(self, kind: str | None = None) -> list[str]:
        return [name for entry_kind, name in self._entries if kind is None or entry_kind == kind]

    def describe(self) -> list[str]:
        return [f"{kind} {name}" for kind, name in self._entries]

    def __len__(self) -> int:
        return len(self._entries)


@dataclass(frozen=True)
class CloneRequest:
    """Invocation parameters for one clone run.

    Optional destination fields fall back to their source counterparts through the
    effective_* properties.
    """

    source_resource_group: str
    source_subscription_id: str
    source_vm_name: str
    vnet_name: str
    vnet_resource_group: str | None = None
    location: str | None = None
    dest_resource_group: str | None = None
    dest_subscription_id: str | None = None
    keep_source_name: bool = False
    force_accelerated_networking: bool = False
    use_existing_availability_set: bool = True
    copy_tags: bool = False
    availability_set_name: str | None = None
    os_snapshot_name: str | None = None
    data_snapshot_name: str | None = None
    snapshot_resource_group: str | None = None
    dest_vm_name: str | None = None

    def __post_init__(self) -> None:
        for field_name in (
            "source_resource_group",
            "source_subscription_id",
            "source_vm_name",
            "vnet_name",
        ):
            if not getattr(self, field_name):
                raise CloneValidationError(f"{field_name} is required")

    @property
    def effective_dest_resource_group(self) -> str:
        return self.dest_resource_group or self.source_resource_group

    @property
    def effective_dest_subscription_id(self) -> str:
        return self.dest_subscription_id or self.source_subscription_id

    @property
    def effective_vnet_resource_group(self) -> str:
        return self.vnet_resource_group or self.source_resource_group

    @property
    def effective_snapshot_resource_group(self) -> str:
        return self.snapshot_resource_group or self.source_resource_group

    @property
    def same_resource_group(self) -> bool:
        """True when source and destination are the same RG in the same subscription."""
        return (
            self.effective_dest_resource_group.lower() == self.source_resource_group.lower()
            and self.effective_dest_subscription_id == self.source_subscription_id
        )

    @property
    def reuse_snapshots(self) -> bool:
        return bool(self.os_snapshot_name)


@dataclass
class CloneContext:
    """Resolved source and destination handles."""

    source_resource_group: Any
    dest_resource_group: Any
    source_vm: Any
    vnet: Any
    dest_location: str
    dest_resource_group_created: bool = False

    @property
    def source_location(self) -> str:
        return self.source_vm.location


@dataclass
class SnapshotSet:
    """Snapshots backing the clone's disks.

    Index 0 is always the OS disk; indices 1..N map positionally to data disks.
    """

    snapshots: list[Any]
    created: bool

    def __len__(self) -> int:
        return len(self.snapshots)

    @property
    def os_snapshot(self) -> Any:
        return self.snapshots[0]

    @property
    def data_snapshots(self) -> list[Any]:
        return self.snapshots[1:]


@dataclass
class ClonedNic:
    """A NIC recreated in the destination."""

    id: str
    name: str
    primary: bool | None
    ip_configuration_count: int


@dataclass
class DiskLayout:
    """Storage profile pieces built from a snapshot set."""

    os_disk: Any
    data_disks: list[Any] = field(default_factory=list)
    os_type: str = "Linux"


def ordered_data_disks(vm: Any) -> list[Any]:
    """Data disks of a VM ordered by LUN, the order snapshots are taken in."""
    data_disks = list(vm.storage_profile.data_disks or [])
    return sorted(data_disks, key=lambda disk: disk.lun)


@dataclass
class CloneResult:
    """Outcome of a successful run."""

    vm_name: str
    vm_id: str
    resource_group: str
    location: str
    suffix: int
    snapshot_names: list[str]
    disk_names: list[str]
    nic_names: list[str]
    availability_set_id: str
    elapsed_seconds: float
