"""Backup command - on-demand snapshot of persistent state"""

from pathlib import Path
from typing import Callable, Optional

import click

from stackdeploy.base import BaseCommand
from stackdeploy.constants import DEFAULT_DOMAIN
from stackdeploy.core.lock import DeploymentLock
from stackdeploy.core.pipeline import DeploymentContext
from stackdeploy.models.deployment import DeploymentRequest, Environment
from stackdeploy.services.credential_store import CredentialStore
from stackdeploy.services.runtime import ContainerRuntime, DockerComposeRuntime
from stackdeploy.stages.backup import BackupAgent
from stackdeploy.stages.prerequisites import PrerequisiteChecker


class BackupsCreateCommand(BaseCommand):
    """Backup the database and file storage outside of a deployment."""

    def __init__(
        self,
        project_root: Optional[Path] = None,
        verbose: bool = False,
        runtime_factory: Optional[Callable[..., ContainerRuntime]] = None,
    ):
        super().__init__(project_root=project_root, verbose=verbose)
        self.runtime_factory = runtime_factory or DockerComposeRuntime

    def execute(self, environment: str = "production") -> int:
        request = DeploymentRequest(
            environment=Environment.parse(environment), domain=DEFAULT_DOMAIN
        )
        settings = self.settings

        self.show_header(
            title="Backup",
            details={"Environment": request.environment.value, "Output": settings.backup.dir},
        )

        logger = self.init_logger(request.environment.value, "backup")

        with DeploymentLock(settings.path(settings.lock_file)):
            ctx = DeploymentContext(
                request=request,
                settings=settings,
                runtime=self.runtime_factory(self.project_root, logger),
                logger=logger,
                credentials=CredentialStore(settings.path(settings.env_files.production)),
                strict_backup=True,
            )

            logger.step("Checking prerequisites")
            PrerequisiteChecker().run(ctx)

            logger.step("Creating backup")
            record = BackupAgent().create_backup(ctx)

        if record.is_empty:
            self.print_warning("Nothing to back up (database not running, no storage)")
        self.console.print(f"\n[white]Backup location:[/white] {record.path}")
        self.print_log_location()
        return 0


@click.command(name="backups:create")
@click.option(
    "--environment",
    "-e",
    type=click.Choice([env.value for env in Environment], case_sensitive=False),
    default="production",
    show_default=True,
    help="Compose profile the running services belong to",
)
@click.option(
    "--project-root",
    "-C",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=None,
    help="Directory holding the compose files (default: current directory)",
)
@click.option("--verbose", "-v", is_flag=True, help="Show all command output")
def backups_create(environment, project_root, verbose):
    """
    Backup database and file storage

    \b
    Examples:
      stackdeploy backups:create                  # production service set
      stackdeploy backups:create -e development

    \b
    This command backs up:
    - A full logical database dump
    - The application file storage directory
    """
    cmd = BackupsCreateCommand(project_root=project_root, verbose=verbose)
    cmd.run(environment=environment)
