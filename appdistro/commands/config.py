"""appdistro - Config commands"""

import click
from rich.table import Table

from appdistro.base import ConfigCommand


class ConfigShowCommand(ConfigCommand):
    """Show the resolved configuration."""

    def execute(self) -> None:
        """Execute config:show command."""
        config = self.load_config()
        data = config.to_dict()

        if self.json_output:
            self.output_json(data)
            return

        self.show_header(
            title="Configuration",
            project=config.project_name,
            details={"Config": config.config_path},
        )

        settings = data["distribution"]
        self.console.print(f"[bold]Backend:[/bold] {settings['backend']}")
        self.console.print(f"[bold]Command:[/bold] {settings['command']}")
        self.console.print(
            f"[bold]Credentials:[/bold] "
            f"{data['credentials']['file'] or '$' + data['credentials']['env']}"
        )
        if data["github"]["repo"]:
            self.console.print(f"[bold]GitHub repo:[/bold] {data['github']['repo']}")
        self.console.print()

        table = Table(title="Targets", title_justify="left", padding=(0, 1))
        table.add_column("Platform", style="cyan", no_wrap=True)
        table.add_column("App ID")
        table.add_column("Artifact", style="dim")
        table.add_column("Build", style="dim")
        table.add_column("Groups")

        for name, target in data["targets"].items():
            table.add_row(
                name,
                target["app_id"] or "[red]not set[/red]",
                target["artifact"] or "[red]not set[/red]",
                target["build"] or "-",
                ", ".join(target["groups"]) or "-",
            )

        self.console.print(table)


@click.command(name="config:show")
@click.option("-c", "--config", "config_path", help="Path to appdistro.yml")
@click.option("--json", "json_output", is_flag=True, help="Output in JSON format")
def config_show(config_path, json_output):
    """
    Show resolved configuration

    \b
    Examples:
      appdistro config:show
      appdistro config:show --json
    """
    cmd = ConfigShowCommand(config_path=config_path, json_output=json_output)
    cmd.run()
