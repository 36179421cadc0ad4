"""CLI entry point for azclone.

Commands:
    azclone clone VM_NAME ...     # Clone a managed-disk VM
    azclone config show           # Show effective defaults
    azclone config set KEY VALUE  # Persist a default
"""

import logging
import sys

import click
from rich.console import Console
from rich.table import Table

from azclone import __version__
from azclone.azure_clients import ClientFactory
from azclone.click_group import AzcloneGroup
from azclone.config_manager import AzcloneConfig, ConfigError, ConfigManager
from azclone.credential_factory import AuthMethod, CredentialFactory, CredentialFactoryError
from azclone.models import CloneError, CloneRequest, CloneResult
from azclone.orchestrator import CloneOrchestrator
from azclone.progress import format_duration

logger = logging.getLogger(__name__)
console = Console()


def _configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="%(message)s", force=True)
    # The SDK logs every HTTP request at INFO
    logging.getLogger("azure").setLevel(logging.DEBUG if verbose else logging.WARNING)


def _pick(option_value, config_value):
    """CLI option when given, else the config file value."""
    return config_value if option_value is None else option_value


def _print_summary(result: CloneResult) -> None:
    table = Table(title=f"Clone {result.vm_name}", show_header=False)
    table.add_column("Field", style="bold")
    table.add_column("Value")
    table.add_row("VM", result.vm_name)
    table.add_row("Resource group", result.resource_group)
    table.add_row("Location", result.location)
    table.add_row("Suffix", str(result.suffix))
    table.add_row("Snapshots", ", ".join(result.snapshot_names))
    table.add_row("Disks", ", ".join(result.disk_names))
    table.add_row("NICs", ", ".join(result.nic_names))
    table.add_row("Availability set", result.availability_set_id or "(none)")
    table.add_row("Duration", format_duration(result.elapsed_seconds))
    console.print(table)


@click.group(cls=AzcloneGroup, context_settings={"help_option_names": ["--help", "-h"]})
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.version_option(version=__version__)
def main(verbose: bool) -> None:
    """azclone - clone managed-disk Azure VMs.

    Snapshots a VM's disks, recreates its NICs, public IPs and availability-set
    membership in a destination resource group, and creates a new VM from the copies.

    \b
    EXAMPLES:
        # Clone into the same resource group
        $ azclone clone web01 --rg prod-rg --subscription <id> --vnet prod-vnet

        # Clone into another subscription and resource group
        $ azclone clone web01 --rg prod-rg --subscription <id> --vnet dr-vnet \\
            --dest-subscription <id> --dest-resource-group dr-rg

    \b
    CONFIGURATION:
        Config file: ~/.azclone/config.toml
        Set defaults: azclone config set copy_tags true
    """
    _configure_logging(verbose)


@main.command(name="clone")
@click.argument("vm_name", type=str)
@click.option("--resource-group", "--rg", required=True, help="Source resource group")
@click.option("--subscription", help="Source subscription id (default: config)")
@click.option("--vnet", "vnet_name", required=True, help="Destination virtual network name")
@click.option("--vnet-resource-group", help="Destination VNet resource group (default: source RG)")
@click.option("--location", help="Destination location override (default: destination RG location)")
@click.option("--dest-resource-group", help="Destination resource group (default: source RG)")
@click.option("--dest-subscription", help="Destination subscription id (default: source)")
@click.option("--name", "dest_vm_name", help="Destination VM name (default: <vm>-clone-<suffix>)")
@click.option("--keep-source-name", is_flag=True, help="Give the clone the source VM's name")
@click.option(
    "--accelerated-networking/--no-accelerated-networking",
    default=None,
    help="Force accelerated networking on cloned NICs",
)
@click.option(
    "--use-existing-availability-set/--new-availability-set",
    default=None,
    help="Reuse an existing availability set where possible (default: reuse)",
)
@click.option("--copy-tags/--no-copy-tags", default=None, help="Copy tags to created resources")
@click.option("--availability-set", "availability_set_name", help="Existing availability set in the destination RG")
@click.option("--os-snapshot", help="Existing OS-disk snapshot to reuse")
@click.option("--data-snapshot", help="Existing data-disk snapshot to reuse (single data disk only)")
@click.option("--snapshot-resource-group", help="Resource group of existing snapshots (default: source RG)")
@click.option(
    "--auth-method",
    type=click.Choice([method.value for method in AuthMethod]),
    help="Authentication method (default: config, else azure_cli)",
)
@click.option("--config", help="Config file path", type=click.Path())
def clone(
    vm_name: str,
    resource_group: str,
    subscription: str | None,
    vnet_name: str,
    vnet_resource_group: str | None,
    location: str | None,
    dest_resource_group: str | None,
    dest_subscription: str | None,
    dest_vm_name: str | None,
    keep_source_name: bool,
    accelerated_networking: bool | None,
    use_existing_availability_set: bool | None,
    copy_tags: bool | None,
    availability_set_name: str | None,
    os_snapshot: str | None,
    data_snapshot: str | None,
    snapshot_resource_group: str | None,
    auth_method: str | None,
    config: str | None,
):
    """Clone a managed-disk VM.

    \b
    Existing snapshots:
        --os-snapshot reuses an OS-disk snapshot instead of snapshotting the VM.
        --data-snapshot adds one data-disk snapshot; VMs with several data disks
        are always snapshotted afresh.

    \b
    Exit codes:
        0  clone created
        1  validation or creation failure
    """
    try:
        settings = ConfigManager.load_config(config)
        subscription = subscription or settings.default_subscription
        if not subscription:
            click.echo(
                "Error: No subscription specified. Use --subscription or "
                "'azclone config set default_subscription <id>'.",
                err=True,
            )
            sys.exit(1)

        request = CloneRequest(
            source_resource_group=resource_group,
            source_subscription_id=subscription,
            source_vm_name=vm_name,
            vnet_name=vnet_name,
            vnet_resource_group=vnet_resource_group,
            location=location,
            dest_resource_group=dest_resource_group,
            dest_subscription_id=dest_subscription,
            keep_source_name=keep_source_name,
            force_accelerated_networking=_pick(
                accelerated_networking, settings.force_accelerated_networking
            ),
            use_existing_availability_set=_pick(
                use_existing_availability_set, settings.use_existing_availability_set
            ),
            copy_tags=_pick(copy_tags, settings.copy_tags),
            availability_set_name=availability_set_name,
            os_snapshot_name=os_snapshot,
            data_snapshot_name=data_snapshot,
            snapshot_resource_group=snapshot_resource_group,
            dest_vm_name=dest_vm_name,
        )

        credential = CredentialFactory.create_credential(auth_method or settings.auth_method)
        orchestrator = CloneOrchestrator(request, ClientFactory(credential))
        result = orchestrator.run()

        console.print(f"\n[bold green]✓ Clone '{result.vm_name}' created[/bold green]")
        _print_summary(result)

    except CloneError as e:
        click.echo(f"Error: {e}", err=True)
        if e.created_resources:
            click.echo("Resources created before the failure (clean up manually):", err=True)
            for entry in e.created_resources:
                click.echo(f"  - {entry}", err=True)
        sys.exit(e.exit_code)
    except (ConfigError, CredentialFactoryError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    except Exception as e:
        logger.debug("Unexpected error", exc_info=True)
        click.echo(f"Unexpected error: {e}", err=True)
        sys.exit(1)


@main.group(name="config", cls=AzcloneGroup)
def config_group():
    """Show or change persisted defaults."""
    pass


@config_group.command(name="show")
@click.option("--config", help="Config file path", type=click.Path())
def config_show(config: str | None):
    """Show the effective configuration."""
    try:
        settings = ConfigManager.load_config(config)
    except ConfigError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    path = ConfigManager.get_config_path(config)
    console.print(f"[bold]Config file:[/bold] {path}")
    for key in AzcloneConfig.keys():
        value = getattr(settings, key)
        click.echo(f"  {key} = {'(not set)' if value is None else value}")


@config_group.command(name="set")
@click.argument("key", type=str)
@click.argument("value", type=str)
@click.option("--config", help="Config file path", type=click.Path())
def config_set(key: str, value: str, config: str | None):
    """Persist one default.

    \b
    Example:
        azclone config set use_existing_availability_set false
    """
    try:
        settings = ConfigManager.set_value(key, value, config)
    except ConfigError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    click.echo(f"✓ {key} = {getattr(settings, key)}")


if __name__ == "__main__":
    main()
