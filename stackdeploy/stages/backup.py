"""Pre-deploy backup of persistent state (production only)"""

import json
import shutil
import subprocess
from datetime import datetime
from pathlib import Path

from stackdeploy.constants import (
    BACKUP_DUMP_TIMEOUT,
    BACKUP_MANIFEST_FILENAME,
    BACKUP_TIMESTAMP_FORMAT,
    DATABASE_DUMP_COMMAND,
    DATABASE_DUMP_FILENAME,
)
from stackdeploy.core.compose_loader import resolve_compose_file
from stackdeploy.core.pipeline import DeploymentContext, Stage
from stackdeploy.exceptions import BackupError
from stackdeploy.models.deployment import BackupRecord


def unique_backup_dir(backup_root: Path, timestamp: datetime) -> Path:
    """
    Timestamped backup directory that does not exist yet.

    Two runs within the same second get `_1`, `_2`, ... suffixes so an
    earlier backup is never reused or overwritten.
    """
    base = timestamp.strftime(BACKUP_TIMESTAMP_FORMAT)
    candidate = backup_root / base
    suffix = 1
    while candidate.exists():
        candidate = backup_root / f"{base}_{suffix}"
        suffix += 1
    return candidate


class BackupAgent(Stage):
    """
    Snapshots the database and file storage before the service set is torn
    down. Backup failures are warnings unless strict backups are enabled.
    """

    name = "backup"
    title = "Creating backup"

    def should_run(self, ctx: DeploymentContext) -> bool:
        return ctx.request.is_production and self.has_prior_state(ctx)

    def has_prior_state(self, ctx: DeploymentContext) -> bool:
        """Check for state left by a previous deployment."""
        settings = ctx.settings
        if any(settings.path(p).exists() for p in settings.backup.state_paths):
            return True

        self._select_current_profile(ctx)
        return settings.services.database in ctx.runtime.running_services()

    def run(self, ctx: DeploymentContext):
        try:
            record = self.create_backup(ctx)
        except (BackupError, OSError, subprocess.SubprocessError) as e:
            if ctx.strict_backup:
                if isinstance(e, BackupError):
                    raise
                raise BackupError("Backup failed", context=str(e))
            ctx.backup_failed = True
            ctx.warn(f"Backup failed, continuing without one: {e}")
            return "backup failed (non-fatal)"

        ctx.backup = record
        return str(record.path)

    def create_backup(self, ctx: DeploymentContext) -> BackupRecord:
        """
        Create a BackupRecord directory with a database dump, a copy of file
        storage and a manifest.

        Raises:
            BackupError: If the database dump fails
            OSError: If the backup directory or storage copy fails
        """
        settings = ctx.settings
        backup_path = unique_backup_dir(
            settings.path(settings.backup.dir), ctx.request.timestamp
        )
        backup_path.mkdir(parents=True)
        ctx.logger.log(f"Backup directory: {backup_path}")

        record = BackupRecord(path=backup_path, timestamp=backup_path.name)

        self._select_current_profile(ctx)
        database = settings.services.database
        if database in ctx.runtime.running_services():
            ctx.logger.log("Backing up database")
            dump_path = backup_path / DATABASE_DUMP_FILENAME
            result = ctx.runtime.dump(
                database, DATABASE_DUMP_COMMAND, dump_path, timeout=BACKUP_DUMP_TIMEOUT
            )
            if result.is_failure:
                raise BackupError(
                    "Database dump failed",
                    context=f"{result.stderr.strip()} (partial backup left in {backup_path})",
                )
            record.database_dump = dump_path
        else:
            ctx.warn(f"Database service '{database}' is not running, skipping dump")

        storage = settings.path(settings.backup.storage_path)
        if storage.is_dir():
            ctx.logger.log("Backing up storage files")
            snapshot = backup_path / storage.name
            shutil.copytree(storage, snapshot, symlinks=True)
            record.storage_snapshot = snapshot

        self._save_manifest(record)
        ctx.logger.success(f"Backup created at {backup_path}")
        return record

    def _select_current_profile(self, ctx: DeploymentContext) -> None:
        # The backup talks to the service set that is about to be replaced
        compose_file = resolve_compose_file(
            ctx.settings.compose_candidates(ctx.request.environment.value)
        )
        if compose_file is None:
            return
        env_file = ctx.credentials.path if ctx.credentials.exists() else None
        ctx.runtime.select_profile(compose_file, env_file)

    def _save_manifest(self, record: BackupRecord) -> None:
        manifest = {"created_at": datetime.now().isoformat(), **record.to_dict()}
        (record.path / BACKUP_MANIFEST_FILENAME).write_text(json.dumps(manifest, indent=2))
