"""Service set teardown and start-up"""

from stackdeploy.core.compose_loader import ComposeLoader, resolve_compose_file
from stackdeploy.core.pipeline import DeploymentContext, Stage
from stackdeploy.exceptions import LifecycleError


def _tail(text: str, lines: int = 20) -> str:
    return "\n".join(text.strip().splitlines()[-lines:])


class LifecycleController(Stage):
    """
    Stops the previous service set and starts the one for the requested
    environment. Returns once the runtime accepted the start request; the
    services themselves may still be starting.
    """

    name = "lifecycle"
    title = "Deploying application"

    def run(self, ctx: DeploymentContext):
        environment = ctx.request.environment.value
        candidates = ctx.settings.compose_candidates(environment)
        compose_file = resolve_compose_file(candidates)
        if compose_file is None:
            raise LifecycleError(
                f"Compose file {candidates[0].name} not found!",
                context=f"Looked for: {', '.join(str(c) for c in candidates)}",
            )

        loader = ComposeLoader(compose_file)
        profile = loader.load()
        for warning in loader.warnings:
            ctx.warn(warning)
        ctx.logger.log(
            f"Using {compose_file.name}: {', '.join(profile.startup_order())}"
        )

        env_file = None
        if ctx.request.is_production:
            env_file = ctx.credentials.path
            if not ctx.credentials.exists():
                raise LifecycleError(f"Environment file {env_file.name} not found!")

        ctx.runtime.select_profile(compose_file, env_file)

        ctx.logger.log("Stopping existing containers")
        result = ctx.runtime.down()
        if result.is_failure:
            raise LifecycleError(
                "Failed to stop existing containers", context=_tail(result.output)
            )

        ctx.logger.log("Building and starting containers")
        result = ctx.runtime.up(build=True)
        if result.is_failure:
            raise LifecycleError(
                "Failed to build and start containers", context=_tail(result.output)
            )

        ctx.profile = profile
        ctx.logger.success(f"Started {len(profile.services)} services from {compose_file.name}")
        return compose_file.name
