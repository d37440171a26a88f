"""
Deployment Models

Dataclass models for the deployment request and the backups it produces.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Optional, Dict, Any

from stackdeploy.constants import DEFAULT_DOMAIN, DEV_SERVER_URL


class Environment(Enum):
    """Deployment environment."""

    DEVELOPMENT = "development"
    PRODUCTION = "production"

    @classmethod
    def parse(cls, value: str) -> "Environment":
        """Parse an environment name, raising ValueError for unknown names."""
        try:
            return cls(value.strip().lower())
        except ValueError:
            choices = ", ".join(env.value for env in cls)
            raise ValueError(f"Unknown environment '{value}' (expected: {choices})")


@dataclass(frozen=True)
class DeploymentRequest:
    """Immutable description of one deployment run."""

    environment: Environment
    domain: str = DEFAULT_DOMAIN
    timestamp: datetime = field(default_factory=datetime.now)

    @property
    def is_production(self) -> bool:
        return self.environment is Environment.PRODUCTION

    @property
    def app_url(self) -> str:
        """Public application URL."""
        if self.is_production:
            return f"https://{self.domain}"
        return "http://localhost"

    @property
    def api_url(self) -> str:
        """Public API URL (routed by the reverse proxy under /api)."""
        return f"{self.app_url}/api"

    @property
    def dev_server_url(self) -> Optional[str]:
        """Frontend dev server URL (development only)."""
        if self.is_production:
            return None
        return DEV_SERVER_URL

    def __repr__(self) -> str:
        return f"DeploymentRequest(environment={self.environment.value}, domain={self.domain})"


@dataclass
class BackupRecord:
    """A timestamped snapshot of persistent state taken before a redeploy."""

    path: Path
    timestamp: str
    database_dump: Optional[Path] = None
    storage_snapshot: Optional[Path] = None

    @property
    def is_empty(self) -> bool:
        """Check if nothing was captured."""
        return self.database_dump is None and self.storage_snapshot is None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for the backup manifest."""
        return {
            "path": str(self.path),
            "timestamp": self.timestamp,
            "database_dump": self.database_dump.name if self.database_dump else None,
            "storage_snapshot": (
                self.storage_snapshot.name if self.storage_snapshot else None
            ),
        }

    def __repr__(self) -> str:
        return f"BackupRecord(path={self.path}, timestamp={self.timestamp})"
