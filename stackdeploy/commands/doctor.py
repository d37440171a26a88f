"""Doctor command - prerequisite and configuration report"""

from pathlib import Path
from typing import Callable, Optional

import click
from rich.table import Table

from stackdeploy.base import BaseCommand
from stackdeploy.core.compose_loader import ComposeLoader, resolve_compose_file
from stackdeploy.exceptions import ConfigurationError
from stackdeploy.models.deployment import Environment
from stackdeploy.services.runtime import ContainerRuntime, DockerComposeRuntime
from stackdeploy.stages.prerequisites import PREREQUISITE_CHECKS


class DoctorCommand(BaseCommand):
    """System health check and diagnostics."""

    def __init__(
        self,
        project_root: Optional[Path] = None,
        runtime_factory: Optional[Callable[..., ContainerRuntime]] = None,
    ):
        super().__init__(project_root=project_root)
        self.runtime_factory = runtime_factory or DockerComposeRuntime
        self.table = Table(title="System Health Report", title_justify="left", padding=(0, 1))
        self.table.add_column("Check", style="cyan", no_wrap=True)
        self.table.add_column("Status")
        self.table.add_column("Details", style="dim")
        self.failures = 0

    def check_prerequisites(self, runtime: ContainerRuntime) -> None:
        for check in PREREQUISITE_CHECKS:
            if check.probe(runtime):
                self.table.add_row(f"✅ {check.label}", "[green]OK[/green]", "")
            else:
                self.failures += 1
                self.table.add_row(f"❌ {check.label}", f"[red]{check.error}[/red]", check.remedy)

    def check_compose_files(self) -> None:
        for environment in Environment:
            candidates = self.settings.compose_candidates(environment.value)
            compose_file = resolve_compose_file(candidates)
            label = f"{environment.value} profile"

            if compose_file is None:
                self.table.add_row(
                    f"⏳ {label}",
                    "[yellow]Missing[/yellow]",
                    " or ".join(c.name for c in candidates),
                )
                continue

            try:
                profile = ComposeLoader(compose_file).load()
            except ConfigurationError as e:
                self.failures += 1
                self.table.add_row(f"❌ {label}", "[red]Invalid[/red]", e.message)
                continue

            self.table.add_row(
                f"✅ {label}",
                "[green]Valid[/green]",
                f"{compose_file.name}: {len(profile.services)} service(s)",
            )

    def check_env_files(self) -> None:
        env_files = self.settings.env_files
        for relative in (env_files.backend, env_files.frontend, env_files.production):
            if self.settings.path(relative).exists():
                self.table.add_row(f"✅ {relative}", "[green]Present[/green]", "")
            else:
                self.table.add_row(
                    f"⏳ {relative}", "[yellow]Not created yet[/yellow]", "Created on deploy"
                )

    def execute(self) -> int:
        self.show_header(
            title="System Diagnostics",
            subtitle="Checking tools and project configuration",
        )

        self.check_prerequisites(self.runtime_factory(self.project_root))
        self.check_compose_files()
        self.check_env_files()

        self.console.print(self.table)
        if self.failures:
            self.print_error(f"{self.failures} check(s) failed")
            return 1

        self.print_success("Diagnostics complete! Review results above.")
        return 0


@click.command()
@click.option(
    "--project-root",
    "-C",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=None,
    help="Directory holding the compose files (default: current directory)",
)
def doctor(project_root):
    """
    Health check & diagnostics

    \b
    Checks:
    - Docker, the Docker daemon and Docker Compose
    - Compose profiles per environment
    - Environment files
    """
    cmd = DoctorCommand(project_root=project_root)
    cmd.run()
