"""Custom Click group with automatic help display on errors.

This module provides a custom Click Group class that automatically
displays contextual help when syntax errors occur.
"""

from typing import Any

import click


class AzcloneGroup(click.Group):
    """Custom Click group that auto-displays help on usage errors."""

    def invoke(self, ctx: click.Context) -> Any:
        """Invoke the subcommand, showing its help when its arguments are invalid."""
        try:
            return super().invoke(ctx)
        except (
            click.exceptions.UsageError,
            click.exceptions.BadParameter,
            click.exceptions.MissingParameter,
        ) as e:
            click.echo(f"Error: {e.format_message()}", err=True)

            # Get the most specific context for help (the subcommand context if available)
            error_ctx = e.ctx if hasattr(e, "ctx") and e.ctx else ctx
            click.echo("")
            click.echo(error_ctx.get_help())

            # Use ctx.exit() so CliRunner captures the exit code
            error_ctx.exit(e.exit_code if hasattr(e, "exit_code") else 2)

    def resolve_command(
        self, ctx: click.Context, args: list[str]
    ) -> tuple[str | None, click.Command | None, list[str]]:
        """Show help when the command is not found."""
        try:
            return super().resolve_command(ctx, args)
        except click.UsageError:
            click.echo(ctx.get_help())
            ctx.exit(1)
