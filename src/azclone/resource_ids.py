"""Azure resource id helpers."""

from dataclasses import dataclass

from azure.mgmt.core.tools import is_valid_resource_id, parse_resource_id


@dataclass(frozen=True)
class ResourceRef:
    """The parts of an ARM resource id the clone workflow needs."""

    subscription_id: str
    resource_group: str
    name: str


def parse_ref(resource_id: str) -> ResourceRef:
    """Parse an ARM id into subscription, resource group and name.

    For child resources (e.g. a subnet) the name is the last segment.

    Raises:
        ValueError: If resource_id is not a valid ARM resource id
    """
    if not resource_id or not is_valid_resource_id(resource_id):
        raise ValueError(f"Invalid Azure resource id: {resource_id!r}")

    parts = parse_resource_id(resource_id)
    resource_group = parts.get("resource_group")
    name = parts.get("resource_name") or parts.get("name")
    if not resource_group or not name:
        raise ValueError(f"Invalid Azure resource id (no resource group or name): {resource_id!r}")
    return ResourceRef(
        subscription_id=parts["subscription"],
        resource_group=resource_group,
        name=name,
    )


def name_from_id(resource_id: str) -> str:
    """Return the last name segment of a resource id."""
    return parse_ref(resource_id).name
