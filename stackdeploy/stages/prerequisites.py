"""Prerequisite checks: container runtime and compose tool"""

from typing import Callable, List, NamedTuple

from stackdeploy.core.pipeline import DeploymentContext, Stage
from stackdeploy.exceptions import PrerequisiteError
from stackdeploy.services.runtime import ContainerRuntime


class PrerequisiteCheck(NamedTuple):
    label: str
    probe: Callable[[ContainerRuntime], bool]
    error: str
    remedy: str


PREREQUISITE_CHECKS: List[PrerequisiteCheck] = [
    PrerequisiteCheck(
        "Docker",
        lambda runtime: runtime.docker_installed(),
        "Docker is not installed",
        "Please install Docker first.",
    ),
    PrerequisiteCheck(
        "Docker daemon",
        lambda runtime: runtime.daemon_reachable(),
        "Docker is not running",
        "Please start Docker and try again.",
    ),
    PrerequisiteCheck(
        "Docker Compose",
        lambda runtime: runtime.compose_available(),
        "Docker Compose is not installed",
        "Please install Docker Compose first.",
    ),
]


class PrerequisiteChecker(Stage):
    """Fails fast unless the runtime binary, daemon and compose tool are usable."""

    name = "prerequisites"
    title = "Checking prerequisites"

    def run(self, ctx: DeploymentContext):
        for check in PREREQUISITE_CHECKS:
            if not check.probe(ctx.runtime):
                raise PrerequisiteError(check.error, context=check.remedy)
            ctx.logger.log(f"{check.label}: OK")

        ctx.logger.success("All prerequisites satisfied")
        return "docker, daemon and compose available"
