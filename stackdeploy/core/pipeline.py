"""
Deployment Pipeline

An ordered list of stages run against a shared DeploymentContext. The
driver stops at the first stage that raises and reports which stage failed
(KeyboardInterrupt still propagates); non-fatal problems are collected as
stage warnings.
"""

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Callable, List, Optional

import requests

from stackdeploy.core.config_loader import DeploySettings
from stackdeploy.exceptions import StackDeployError
from stackdeploy.logger import DeployLogger
from stackdeploy.models.deployment import BackupRecord, DeploymentRequest
from stackdeploy.models.results import DeploymentOutcome, ResultStatus, StageResult
from stackdeploy.models.services import ComposeProfile
from stackdeploy.services.credential_store import CredentialStore
from stackdeploy.services.runtime import ContainerRuntime


def _decline(_question: str) -> bool:
    return False


@dataclass
class DeploymentContext:
    """Everything a stage may read or record during one run."""

    request: DeploymentRequest
    settings: DeploySettings
    runtime: ContainerRuntime
    logger: DeployLogger
    credentials: CredentialStore

    # Injected effects
    sleep: Callable[[float], None] = time.sleep
    confirm: Callable[[str], bool] = _decline
    http_get: Callable[..., requests.Response] = requests.get

    # Run options
    assume_yes: bool = False
    strict_backup: bool = False
    skip_grace: bool = False

    # Produced by stages
    profile: Optional[ComposeProfile] = None
    backup: Optional[BackupRecord] = None
    backup_failed: bool = False
    summary: str = ""
    stage_warnings: List[str] = field(default_factory=list)

    def warn(self, message: str) -> None:
        """Record a non-fatal problem for the current stage."""
        self.stage_warnings.append(message)
        self.logger.warning(message)


class Stage(ABC):
    """One step of the deployment pipeline."""

    name: str = ""
    title: str = ""

    def should_run(self, ctx: DeploymentContext) -> bool:
        """Return False to skip this stage for the current run."""
        return True

    @abstractmethod
    def run(self, ctx: DeploymentContext) -> Optional[str]:
        """
        Execute the stage.

        Returns:
            Optional short message for the stage result

        Raises:
            StackDeployError: On a fatal failure
        """


class DeploymentPipeline:
    """Runs stages in order, fail-fast."""

    def __init__(self, stages: List[Stage]):
        self.stages = list(stages)

    @property
    def stage_names(self) -> List[str]:
        return [stage.name for stage in self.stages]

    def run(self, ctx: DeploymentContext) -> DeploymentOutcome:
        results: List[StageResult] = []

        for stage in self.stages:
            if not stage.should_run(ctx):
                ctx.logger.log(f"Skipping stage: {stage.name}", "DEBUG")
                results.append(StageResult(stage=stage.name, status=ResultStatus.SKIPPED))
                continue

            ctx.logger.step(stage.title or stage.name)
            ctx.stage_warnings = []
            started = time.monotonic()

            try:
                message = stage.run(ctx) or ""
            except StackDeployError as e:
                return self._fail(ctx, stage, e, e.message, e.context, started, results)
            except Exception as e:
                # Unexpected errors still end the run with the stage named
                reason = f"{type(e).__name__}: {e}"
                return self._fail(ctx, stage, e, reason, None, started, results)

            status = ResultStatus.WARNING if ctx.stage_warnings else ResultStatus.SUCCESS
            results.append(
                StageResult(
                    stage=stage.name,
                    status=status,
                    duration_seconds=time.monotonic() - started,
                    message=message,
                    warnings=list(ctx.stage_warnings),
                )
            )

        return DeploymentOutcome(
            success=True,
            stages=results,
            backup=ctx.backup,
            summary=ctx.summary,
        )

    def _fail(
        self,
        ctx: DeploymentContext,
        stage: Stage,
        error: Exception,
        reason: str,
        context: Optional[str],
        started: float,
        results: List[StageResult],
    ) -> DeploymentOutcome:
        """Record the failed stage and build the terminal outcome."""
        results.append(
            StageResult(
                stage=stage.name,
                status=ResultStatus.FAILURE,
                duration_seconds=time.monotonic() - started,
                message=reason,
                warnings=list(ctx.stage_warnings),
            )
        )
        ctx.logger.log_error(reason, context=context)
        return DeploymentOutcome(
            success=False,
            failed_stage=stage.name,
            error=error,
            stages=results,
            backup=ctx.backup,
            summary=f"Deployment failed at stage '{stage.name}': {reason}",
        )
