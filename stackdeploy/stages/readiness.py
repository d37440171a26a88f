"""Bounded readiness polling for the database service"""

from typing import Callable, List

from stackdeploy.core.pipeline import DeploymentContext, Stage
from stackdeploy.exceptions import ConfigurationError, ReadinessTimeoutError
from stackdeploy.logger import DeployLogger
from stackdeploy.services.runtime import ContainerRuntime


def wait_until_ready(
    runtime: ContainerRuntime,
    service: str,
    command: List[str],
    attempts: int,
    interval: float,
    sleep: Callable[[float], None],
    logger: DeployLogger,
) -> int:
    """
    Probe a service until it reports ready.

    Sleeps `interval` seconds between attempts (not after the last one).

    Returns:
        The attempt number that succeeded

    Raises:
        ReadinessTimeoutError: After `attempts` failed probes
    """
    for attempt in range(1, attempts + 1):
        if runtime.exec(service, command).is_success:
            return attempt

        logger.warning(f"Waiting for {service}... (attempt {attempt}/{attempts})")
        if attempt < attempts:
            sleep(interval)

    raise ReadinessTimeoutError(service, attempts, interval)


class ReadinessPoller(Stage):
    """
    Second readiness layer on top of the compose healthcheck: polls the
    database with a fixed budget and aborts the deployment when it runs out.
    """

    name = "readiness"
    title = "Waiting for services to be ready"

    def run(self, ctx: DeploymentContext):
        readiness = ctx.settings.readiness
        database = ctx.settings.services.database

        if ctx.profile is not None:
            descriptor = ctx.profile.get(database)
            if descriptor is None:
                raise ConfigurationError(
                    f"Database service '{database}' is not declared in {ctx.profile.path.name}"
                )
            if descriptor.healthcheck:
                policy = descriptor.healthcheck
                ctx.logger.log(
                    f"Compose healthcheck for {database}: interval {policy.interval:g}s, "
                    f"timeout {policy.timeout:g}s, retries {policy.retries}"
                )

        if readiness.grace and not ctx.skip_grace:
            ctx.logger.log(f"Waiting {readiness.grace:g}s for services to start")
            ctx.sleep(readiness.grace)

        attempt = wait_until_ready(
            ctx.runtime,
            database,
            list(readiness.command),
            int(readiness.attempts),
            float(readiness.interval),
            ctx.sleep,
            ctx.logger,
        )
        ctx.logger.success(f"{database} is ready")
        return f"ready after {attempt} attempt(s)"
