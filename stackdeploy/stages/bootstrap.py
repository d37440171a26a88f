"""Post-start application setup inside the app service"""

import re
from typing import List

from dotenv import dotenv_values

from stackdeploy.core.pipeline import DeploymentContext, Stage
from stackdeploy.exceptions import BootstrapError
from stackdeploy.models.results import ExecutionResult

APP_KEY_LINE = re.compile(r"app\.key[\s.]+([^\s.]\S*)")
EMPTY_KEY_VALUES = {"null", "''", '""', "empty", "false"}


def has_app_key(config_output: str) -> bool:
    """Check `artisan config:show app.key` output for a non-empty key."""
    for line in config_output.splitlines():
        match = APP_KEY_LINE.search(line)
        if match and match.group(1).lower() not in EMPTY_KEY_VALUES:
            return True
    return False


class BootstrapRunner(Stage):
    """
    Runs the application setup steps, in order:

    1. application key (generated only when none is set)
    2. configuration cache
    3. schema migrations
    4. seed data (non-production only, best effort)
    5. public storage link (best effort)
    6. ownership and permissions of writable directories

    Steps 1-3 and 6 raise BootstrapError on failure.
    """

    name = "bootstrap"
    title = "Setting up Laravel"

    def run(self, ctx: DeploymentContext):
        self.ensure_app_key(ctx)
        self._fatal(ctx, "config:cache", self._artisan(ctx, "config:cache"))

        ctx.logger.log("Running database migrations")
        self._fatal(ctx, "migrate", self._artisan(ctx, "migrate", "--force"))

        if not ctx.request.is_production:
            ctx.logger.log("Seeding database")
            self._best_effort(ctx, "db:seed", self._artisan(ctx, "db:seed", "--force"))

        self._best_effort(ctx, "storage:link", self._artisan(ctx, "storage:link"))

        ctx.logger.log("Setting permissions")
        self.normalize_permissions(ctx)

        ctx.logger.success("Application bootstrapped")
        return None

    def ensure_app_key(self, ctx: DeploymentContext) -> None:
        if self._app_key_present(ctx):
            ctx.logger.log("Application key already set")
            return

        ctx.logger.log("Generating application key")
        self._fatal(ctx, "key:generate", self._artisan(ctx, "key:generate", "--force"))

    def _app_key_present(self, ctx: DeploymentContext) -> bool:
        result = self._exec(ctx, self._artisan(ctx, "config:show", "app.key"))
        if result.is_success:
            return has_app_key(result.stdout)

        # Older frameworks lack config:show; fall back to the host env file
        backend_env = ctx.settings.path(ctx.settings.env_files.backend)
        if backend_env.is_file():
            return bool(dotenv_values(backend_env).get("APP_KEY"))
        return False

    def normalize_permissions(self, ctx: DeploymentContext) -> None:
        bootstrap = ctx.settings.bootstrap
        directories = [
            f"{bootstrap.app_root.rstrip('/')}/{directory}"
            for directory in bootstrap.writable_directories
        ]

        for directory in directories:
            self._fatal(ctx, "permissions", ["chown", "-R", bootstrap.owner, directory])
        for directory in directories:
            self._fatal(ctx, "permissions", ["chmod", "-R", bootstrap.mode, directory])

    def _artisan(self, ctx: DeploymentContext, *args: str) -> List[str]:
        return list(ctx.settings.bootstrap.artisan) + list(args)

    def _exec(self, ctx: DeploymentContext, command: List[str]) -> ExecutionResult:
        return ctx.runtime.exec(ctx.settings.services.app, command, timeout=None)

    def _fatal(self, ctx: DeploymentContext, step: str, command: List[str]) -> None:
        result = self._exec(ctx, command)
        if result.is_failure:
            raise BootstrapError(step, result.output)

    def _best_effort(self, ctx: DeploymentContext, step: str, command: List[str]) -> None:
        result = self._exec(ctx, command)
        if result.is_failure:
            last_line = result.output.splitlines()[-1] if result.output else "no output"
            ctx.warn(f"{step} failed (ignored): {last_line}")
