"""Configuration management for stackdeploy projects"""

from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Dict, Any, List, Optional

import yaml

from stackdeploy import constants
from stackdeploy.exceptions import ConfigurationError


@dataclass
class ServicesConfig:
    """Names of the services the orchestrator talks to directly"""

    database: str = constants.DATABASE_SERVICE
    app: str = constants.APP_SERVICE


@dataclass
class ReadinessConfig:
    """Database readiness gate"""

    attempts: int = constants.READINESS_MAX_ATTEMPTS
    interval: float = constants.READINESS_INTERVAL_SECONDS
    grace: float = constants.STARTUP_GRACE_SECONDS
    command: List[str] = field(
        default_factory=lambda: list(constants.DATABASE_READY_COMMAND)
    )


@dataclass
class BackupConfig:
    """Pre-deploy backups (production only)"""

    dir: str = constants.BACKUP_DIR
    state_paths: List[str] = field(
        default_factory=lambda: list(constants.BACKUP_STATE_PATHS)
    )
    storage_path: str = constants.STORAGE_PATH
    strict: bool = False


@dataclass
class BootstrapConfig:
    """Application setup run inside the app service"""

    artisan: List[str] = field(default_factory=lambda: list(constants.ARTISAN))
    app_root: str = constants.APP_ROOT
    writable_directories: List[str] = field(
        default_factory=lambda: list(constants.WRITABLE_DIRECTORIES)
    )
    owner: str = constants.WRITABLE_OWNER
    mode: str = constants.WRITABLE_MODE


@dataclass
class HealthConfig:
    """Post-deploy verification"""

    probe_delay: float = constants.WEB_PROBE_DELAY_SECONDS
    probe_timeout: float = constants.WEB_PROBE_TIMEOUT_SECONDS


@dataclass
class EnvFilesConfig:
    """Environment files materialized before the service set starts"""

    production: str = constants.PRODUCTION_ENV_FILE
    backend: str = constants.BACKEND_ENV_FILE
    backend_template: str = constants.BACKEND_ENV_TEMPLATE
    frontend: str = constants.FRONTEND_ENV_FILE
    directories: List[str] = field(
        default_factory=lambda: list(constants.WORKING_DIRECTORIES)
    )
    db_username: str = constants.DEFAULT_DB_USERNAME


@dataclass
class DeploySettings:
    """Loaded and validated project settings"""

    project_root: Path
    compose_files: Dict[str, List[str]] = field(
        default_factory=lambda: {
            env: list(names) for env, names in constants.DEFAULT_COMPOSE_FILES.items()
        }
    )
    services: ServicesConfig = field(default_factory=ServicesConfig)
    readiness: ReadinessConfig = field(default_factory=ReadinessConfig)
    backup: BackupConfig = field(default_factory=BackupConfig)
    bootstrap: BootstrapConfig = field(default_factory=BootstrapConfig)
    health: HealthConfig = field(default_factory=HealthConfig)
    env_files: EnvFilesConfig = field(default_factory=EnvFilesConfig)
    ssl_dir: str = constants.SSL_DIR
    lock_file: str = constants.LOCK_FILENAME
    state_dir: str = constants.STATE_DIR

    def path(self, relative: str) -> Path:
        """Resolve a project-relative path."""
        return self.project_root / relative

    @property
    def log_root(self) -> Path:
        return self.project_root / self.state_dir / "logs"

    def compose_candidates(self, environment: str) -> List[Path]:
        """Candidate compose files for an environment, in preference order."""
        return [self.path(name) for name in self.compose_files.get(environment, [])]


SECTIONS = {
    "services": ServicesConfig,
    "readiness": ReadinessConfig,
    "backup": BackupConfig,
    "bootstrap": BootstrapConfig,
    "health": HealthConfig,
    "env_files": EnvFilesConfig,
}

SCALARS = ("ssl_dir", "lock_file", "state_dir")


class ConfigLoader:
    """Loads stackdeploy.yml from a project root and merges it over defaults"""

    def __init__(self, project_root: Path):
        self.project_root = Path(project_root)
        self.config_path = self.project_root / constants.CONFIG_FILENAME

    def load(self) -> DeploySettings:
        """
        Load project settings.

        A missing stackdeploy.yml is not an error: every value has a default.

        Raises:
            ConfigurationError: If the file is unreadable or has invalid keys
        """
        raw = self._read_raw()
        return self.build(raw)

    def _read_raw(self) -> Dict[str, Any]:
        if not self.config_path.exists():
            return {}

        try:
            with open(self.config_path, "r") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(
                f"Invalid YAML in {self.config_path.name}", context=str(e)
            )

        if not isinstance(data, dict):
            raise ConfigurationError(
                f"{self.config_path.name} must contain a mapping at the top level"
            )
        return data

    def build(self, raw: Dict[str, Any]) -> DeploySettings:
        """Build settings from a raw mapping (already parsed)."""
        settings = DeploySettings(project_root=self.project_root)

        unknown = set(raw) - set(SECTIONS) - set(SCALARS) - {"compose_files"}
        if unknown:
            raise ConfigurationError(
                f"Unknown keys in {constants.CONFIG_FILENAME}: {', '.join(sorted(unknown))}",
                context=f"Valid keys: compose_files, {', '.join(list(SECTIONS) + list(SCALARS))}",
            )

        if "compose_files" in raw:
            settings.compose_files.update(self._parse_compose_files(raw["compose_files"]))

        for section, section_cls in SECTIONS.items():
            if section in raw:
                setattr(
                    settings,
                    section,
                    self._build_section(section, section_cls, raw[section]),
                )

        for key in SCALARS:
            if key in raw:
                setattr(settings, key, str(raw[key]))

        self._validate(settings)
        return settings

    def _parse_compose_files(self, value: Any) -> Dict[str, List[str]]:
        if not isinstance(value, dict):
            raise ConfigurationError("'compose_files' must map environment to file(s)")

        parsed = {}
        for env, names in value.items():
            if env not in constants.DEFAULT_COMPOSE_FILES:
                raise ConfigurationError(f"Unknown environment in compose_files: '{env}'")
            parsed[env] = [names] if isinstance(names, str) else [str(n) for n in names]
        return parsed

    def _build_section(self, name: str, section_cls, value: Any):
        if value is None:
            return section_cls()
        if not isinstance(value, dict):
            raise ConfigurationError(f"'{name}' must be a mapping")

        allowed = {f.name for f in fields(section_cls)}
        unknown = set(value) - allowed
        if unknown:
            raise ConfigurationError(
                f"Unknown keys in '{name}': {', '.join(sorted(unknown))}",
                context=f"Valid keys: {', '.join(sorted(allowed))}",
            )
        return section_cls(**value)

    def _validate(self, settings: DeploySettings) -> None:
        readiness = settings.readiness
        if int(readiness.attempts) < 1:
            raise ConfigurationError(
                f"Invalid readiness.attempts: {readiness.attempts} (must be >= 1)"
            )
        if float(readiness.interval) < 0 or float(readiness.grace) < 0:
            raise ConfigurationError("Readiness interval and grace must be >= 0")

        for env, names in settings.compose_files.items():
            if not names:
                raise ConfigurationError(f"No compose file configured for '{env}'")


def load_settings(project_root: Optional[Path] = None) -> DeploySettings:
    """Load settings for a project root (defaults to the current directory)."""
    return ConfigLoader(project_root or Path.cwd()).load()
