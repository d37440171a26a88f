"""Environment files and directories needed before the service set starts"""

import shutil
from typing import Dict

from stackdeploy.constants import GENERATED_SECRET_KEYS
from stackdeploy.core.pipeline import DeploymentContext, Stage
from stackdeploy.exceptions import ConfigurationError
from stackdeploy.services.credential_store import generate_secret


class EnvironmentMaterializer(Stage):
    """
    Ensures working directories and env files exist.

    Existing files are never rewritten; production credentials are generated
    once and reused by every later run.
    """

    name = "environment"
    title = "Setting up environment files"

    def run(self, ctx: DeploymentContext):
        self.create_directories(ctx)
        self.ensure_backend_env(ctx)
        self.ensure_frontend_env(ctx)
        if ctx.request.is_production:
            self.ensure_production_credentials(ctx)
        return None

    def create_directories(self, ctx: DeploymentContext) -> None:
        for directory in ctx.settings.env_files.directories:
            ctx.settings.path(directory).mkdir(parents=True, exist_ok=True)

    def ensure_backend_env(self, ctx: DeploymentContext) -> None:
        env_files = ctx.settings.env_files
        backend_env = ctx.settings.path(env_files.backend)
        if backend_env.exists():
            return

        template = ctx.settings.path(env_files.backend_template)
        ctx.warn(f"{env_files.backend} not found, creating from {template.name}")
        if not template.is_file():
            raise ConfigurationError(
                f"No {template.name} found for {env_files.backend}",
                context=f"Expected template at {template}",
            )
        shutil.copyfile(template, backend_env)

    def ensure_frontend_env(self, ctx: DeploymentContext) -> None:
        frontend_env = ctx.settings.path(ctx.settings.env_files.frontend)
        if frontend_env.exists():
            return

        ctx.warn(f"{ctx.settings.env_files.frontend} not found, creating one")
        frontend_env.parent.mkdir(parents=True, exist_ok=True)
        frontend_env.write_text(f"VITE_API_URL={ctx.request.api_url}\n")

    def ensure_production_credentials(self, ctx: DeploymentContext) -> None:
        store = ctx.credentials
        if store.exists():
            existing = store.load()
            missing = [key for key in GENERATED_SECRET_KEYS if not existing.get(key)]
            if missing:
                ctx.warn(f"{store.path.name} is missing: {', '.join(missing)}")
            ctx.logger.success(f"Reusing credentials from {store.path.name}")
            return

        created = store.create(
            self.production_values(ctx), title="Production Environment Variables"
        )
        if created:
            ctx.warn(
                f"Production {store.path.name} created. Please review and update if needed."
            )
        else:
            ctx.logger.success(f"Reusing credentials from {store.path.name}")

    @staticmethod
    def production_values(ctx: DeploymentContext) -> Dict[str, str]:
        secrets = {}
        while len(set(secrets.values())) < len(GENERATED_SECRET_KEYS):
            secrets = {key: generate_secret() for key in GENERATED_SECRET_KEYS}

        return {
            "DB_ROOT_PASSWORD": secrets["DB_ROOT_PASSWORD"],
            "DB_USERNAME": ctx.settings.env_files.db_username,
            "DB_PASSWORD": secrets["DB_PASSWORD"],
            "REDIS_PASSWORD": secrets["REDIS_PASSWORD"],
            "DOMAIN": ctx.request.domain,
        }
