"""azclone - clone managed-disk Azure VMs across resource groups and subscriptions

Philosophy:
- Ruthless simplicity: one linear pipeline, one create call per resource
- Fail fast with helpful guidance
- No rollback: resources created before a failure are reported, not deleted

The azclone CLI snapshots (or reuses snapshots of) a source VM's disks, recreates its
network interfaces, public IPs and availability-set membership in a destination
resource group, and creates a new VM attached to the copied disks.
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
