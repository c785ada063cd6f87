"""Operation verbs for the rearden CLI."""

import click

from rearden.cli.main import ReardenContext, pass_context, run_command
from rearden.templates import INIT_TEMPLATE


def register_commands(cli: click.Group) -> None:  # noqa: C901
    """Register every verb on the main CLI group.

    Args:
        cli: The main CLI group to register commands on
    """

    @cli.command("init")
    @pass_context
    def init(ctx: ReardenContext) -> None:
        """Initialize the restic repository if it does not exist."""
        run_command(ctx, "init", lambda orchestrator: orchestrator.init_repository())

    @cli.command("backup")
    @pass_context
    def backup(ctx: ReardenContext) -> None:
        """Back up the configured directories, then apply retention and verify."""
        run_command(ctx, "backup", lambda orchestrator: orchestrator.backup())

    @cli.command("restore")
    @click.argument("path", default="/", required=False)
    @click.argument("snapshot", default="latest", required=False)
    @pass_context
    def restore(ctx: ReardenContext, path: str, snapshot: str) -> None:
        """Restore SNAPSHOT (default: latest) into PATH (default: /)."""
        run_command(ctx, "restore", lambda orchestrator: orchestrator.restore(target=path, snapshot=snapshot))

    @cli.command("push")
    @pass_context
    def push(ctx: ReardenContext) -> None:
        """Upload the config directory to the rclone remote."""
        run_command(ctx, "push", lambda orchestrator: orchestrator.push())

    @cli.command("pull")
    @pass_context
    def pull(ctx: ReardenContext) -> None:
        """Download the config directory from the rclone remote."""
        run_command(ctx, "pull", lambda orchestrator: orchestrator.pull())

    @cli.command("list")
    @pass_context
    def list_snapshots(ctx: ReardenContext) -> None:
        """List snapshots in the repository."""
        run_command(ctx, "list", lambda orchestrator: orchestrator.list_snapshots())

    @cli.command("verify")
    @pass_context
    def verify(ctx: ReardenContext) -> None:
        """Check repository integrity."""
        run_command(ctx, "verify", lambda orchestrator: orchestrator.verify())

    @cli.command("stats")
    @pass_context
    def stats(ctx: ReardenContext) -> None:
        """Show repository statistics and the latest snapshots."""
        run_command(ctx, "stats", lambda orchestrator: orchestrator.show_stats())

    @cli.command("export")
    @pass_context
    def export(ctx: ReardenContext) -> None:
        """Write snapshots and statistics to backup-info.txt."""
        run_command(ctx, "export", lambda orchestrator: orchestrator.export_info())

    @cli.command("template")
    def template() -> None:
        """Print an example init file."""
        click.echo(INIT_TEMPLATE, nl=False)
