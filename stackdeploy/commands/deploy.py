"""Deploy command - run the full deployment pipeline"""

import json
import signal
from pathlib import Path
from typing import Callable, Optional

import click

from stackdeploy.base import BaseCommand
from stackdeploy.constants import DEFAULT_DOMAIN, DEFAULT_ENVIRONMENT
from stackdeploy.core.lock import DeploymentLock
from stackdeploy.core.pipeline import DeploymentContext, DeploymentPipeline
from stackdeploy.logger import DeployLogger
from stackdeploy.models.deployment import DeploymentRequest, Environment
from stackdeploy.models.results import DeploymentOutcome
from stackdeploy.services.credential_store import CredentialStore
from stackdeploy.services.runtime import ContainerRuntime, DockerComposeRuntime
from stackdeploy.stages import default_stages, print_outcome

OUTCOME_FILENAME = "last_deploy.json"


def _raise_interrupt(signum, frame):
    raise KeyboardInterrupt()


class DeployCommand(BaseCommand):
    """
    Deploy the service set for one environment.

    Features:
    - Fail-fast staged pipeline (see stackdeploy.stages)
    - Project lock against concurrent runs
    - Log file per run and a JSON outcome for automation
    """

    def __init__(
        self,
        project_root: Optional[Path] = None,
        verbose: bool = False,
        runtime_factory: Optional[Callable[[Path, DeployLogger], ContainerRuntime]] = None,
        **context_overrides,
    ):
        """
        Initialize deploy command.

        Args:
            project_root: Directory holding the compose files
            verbose: Whether to show verbose output
            runtime_factory: Builds the ContainerRuntime (defaults to docker)
            **context_overrides: Extra DeploymentContext fields (sleep, http_get, confirm)
        """
        super().__init__(project_root=project_root, verbose=verbose)
        self.runtime_factory = runtime_factory or DockerComposeRuntime
        self.context_overrides = context_overrides
        self.outcome: Optional[DeploymentOutcome] = None

    def execute(
        self,
        environment: str = DEFAULT_ENVIRONMENT,
        domain: str = DEFAULT_DOMAIN,
        assume_yes: bool = False,
        strict_backup: bool = False,
        skip_grace: bool = False,
    ) -> int:
        """Execute deploy command."""
        request = DeploymentRequest(environment=Environment.parse(environment), domain=domain)

        self.show_header(
            title="Deploy",
            subtitle=f"🚀 Starting deployment for {request.environment.value} environment",
            details={"Domain": request.domain, "Project": self.project_root},
        )

        settings = self.settings
        logger = self.init_logger(request.environment.value, "deploy")

        previous_handler = signal.signal(signal.SIGTERM, _raise_interrupt)
        try:
            with DeploymentLock(settings.path(settings.lock_file)):
                ctx = DeploymentContext(
                    request=request,
                    settings=settings,
                    runtime=self.runtime_factory(self.project_root, logger),
                    logger=logger,
                    credentials=CredentialStore(settings.path(settings.env_files.production)),
                    confirm=self.confirm,
                    assume_yes=assume_yes,
                    strict_backup=strict_backup or settings.backup.strict,
                    skip_grace=skip_grace,
                    **self.context_overrides,
                )
                self.outcome = DeploymentPipeline(default_stages()).run(ctx)
        finally:
            signal.signal(signal.SIGTERM, previous_handler)

        self._save_outcome(self.outcome)
        print_outcome(self.outcome, console=self.console)
        self.print_log_location()
        return self.outcome.exit_code

    def confirm(self, question: str) -> bool:
        return click.confirm(question, default=False)

    def _save_outcome(self, outcome: DeploymentOutcome) -> None:
        state_dir = self.settings.path(self.settings.state_dir)
        state_dir.mkdir(parents=True, exist_ok=True)
        (state_dir / OUTCOME_FILENAME).write_text(json.dumps(outcome.to_dict(), indent=2))


@click.command()
@click.argument(
    "environment",
    required=False,
    default=DEFAULT_ENVIRONMENT,
    type=click.Choice([env.value for env in Environment], case_sensitive=False),
)
@click.argument("domain", required=False, default=DEFAULT_DOMAIN)
@click.option(
    "--project-root",
    "-C",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=None,
    help="Directory holding the compose files (default: current directory)",
)
@click.option("--yes", "-y", "assume_yes", is_flag=True, help="Answer yes to prompts")
@click.option(
    "--strict-backup", is_flag=True, help="Abort the deployment if the backup fails"
)
@click.option(
    "--skip-grace", is_flag=True, help="Skip the startup wait before readiness polling"
)
@click.option("--verbose", "-v", is_flag=True, help="Show all command output")
def deploy(environment, domain, project_root, assume_yes, strict_backup, skip_grace, verbose):
    """
    Deploy the application stack

    \b
    Examples:
      stackdeploy deploy                          # development on localhost
      stackdeploy deploy production example.com   # production with backup + TLS

    \b
    Stages:
      prerequisites → backup → environment → tls → lifecycle →
      readiness → bootstrap → health → summary
    """
    cmd = DeployCommand(project_root=project_root, verbose=verbose)
    cmd.run(
        environment=environment,
        domain=domain,
        assume_yes=assume_yes,
        strict_backup=strict_backup,
        skip_grace=skip_grace,
    )
