"""Post-deploy health verification"""

import requests

from stackdeploy.core.pipeline import DeploymentContext, Stage
from stackdeploy.exceptions import HealthCheckError


class HealthVerifier(Stage):
    """
    Confirms the stack is serving: every declared service running and the
    application answering are fatal checks; the public HTTP probe is
    advisory because DNS and certificate propagation can lag.
    """

    name = "health"
    title = "Running health checks"

    def run(self, ctx: DeploymentContext):
        self.verify_services(ctx)
        self.verify_application(ctx)
        self.probe_web(ctx)
        return None

    def verify_services(self, ctx: DeploymentContext) -> None:
        running = set(ctx.runtime.running_services())
        declared = ctx.profile.service_names if ctx.profile else []
        not_running = [name for name in declared if name not in running]

        if not running or not_running:
            ctx.logger.log_output(ctx.runtime.ps().output, "stdout")
            context = f"Not running: {', '.join(not_running)}" if not_running else None
            raise HealthCheckError("Some containers are not running properly", context)

        ctx.logger.success(f"All {len(running)} services running")

    def verify_application(self, ctx: DeploymentContext) -> None:
        artisan = list(ctx.settings.bootstrap.artisan)
        result = ctx.runtime.exec(ctx.settings.services.app, artisan + ["--version"])
        if result.is_failure:
            raise HealthCheckError("Laravel health check failed", context=result.output or None)
        ctx.logger.success(f"Laravel is healthy ({result.stdout.strip()})")

    def probe_web(self, ctx: DeploymentContext) -> None:
        health = ctx.settings.health
        if health.probe_delay:
            ctx.sleep(health.probe_delay)

        url = ctx.request.app_url
        try:
            response = ctx.http_get(url, timeout=health.probe_timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            ctx.logger.log(f"HTTP probe failed: {e}", "DEBUG")
            ctx.warn(f"Web application might not be accessible at {url}")
            return

        ctx.logger.success(f"Web application is accessible at {url}")
