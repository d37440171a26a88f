"""Unit tests for the stages that run before the service set is replaced."""

import json

import pytest

from stackdeploy.exceptions import BackupError, ConfigurationError, PrerequisiteError
from stackdeploy.services.credential_store import CredentialStore
from stackdeploy.stages import (
    BackupAgent,
    EnvironmentMaterializer,
    PrerequisiteChecker,
    TlsCertificateCheck,
)
from tests.fakes import FakeRuntime


class TestPrerequisiteChecker:
    """Tests for runtime availability checks."""

    def test_all_available(self, make_context):
        runtime = FakeRuntime()
        PrerequisiteChecker().run(make_context(runtime=runtime))

        assert [call[0] for call in runtime.calls] == [
            "docker_installed",
            "daemon_reachable",
            "compose_available",
        ]

    @pytest.mark.parametrize(
        "flags, message",
        [
            ({"docker": False}, "Docker is not installed"),
            ({"daemon": False}, "Docker is not running"),
            ({"compose": False}, "Docker Compose is not installed"),
        ],
    )
    def test_distinct_failure_messages(self, make_context, flags, message):
        runtime = FakeRuntime(**flags)

        with pytest.raises(PrerequisiteError) as exc_info:
            PrerequisiteChecker().run(make_context(runtime=runtime))

        assert exc_info.value.message == message

    def test_stops_at_first_failure(self, make_context):
        runtime = FakeRuntime(docker=False)

        with pytest.raises(PrerequisiteError):
            PrerequisiteChecker().run(make_context(runtime=runtime))

        assert runtime.calls == [("docker_installed",)]


class TestBackupAgent:
    """Tests for the pre-deploy backup."""

    def test_skipped_in_development(self, make_context):
        ctx = make_context(runtime=FakeRuntime(running=["mysql"]))
        assert not BackupAgent().should_run(ctx)

    def test_skipped_without_prior_state(self, make_context):
        ctx = make_context("production", "example.com", runtime=FakeRuntime())
        assert not BackupAgent().should_run(ctx)

    def test_prior_state_from_data_directory(self, make_context, project):
        (project / "mysql_data").mkdir()
        ctx = make_context("production", "example.com", runtime=FakeRuntime())

        assert BackupAgent().should_run(ctx)

    def test_backup_of_running_stack(self, make_context, project):
        runtime = FakeRuntime(running=["mysql", "laravel"])
        ctx = make_context("production", "example.com", runtime=runtime)
        agent = BackupAgent()

        assert agent.should_run(ctx)
        message = agent.run(ctx)

        backup_dir = project / "backups" / "20240501_120000"
        assert message == str(backup_dir)
        assert ctx.backup.path == backup_dir
        assert (backup_dir / "database_backup.sql").read_text().startswith("-- MySQL dump")
        assert (backup_dir / "storage" / "app" / "upload.txt").read_text() == "user upload\n"

        manifest = json.loads((backup_dir / "manifest.json").read_text())
        assert manifest["database_dump"] == "database_backup.sql"
        assert manifest["storage_snapshot"] == "storage"
        assert ("select_profile", "docker-compose.prod.yml") in runtime.calls

    def test_same_timestamp_never_reuses_directory(self, make_context, project):
        existing = project / "backups" / "20240501_120000"
        existing.mkdir(parents=True)
        (existing / "database_backup.sql").write_text("older dump")

        ctx = make_context("production", "example.com", runtime=FakeRuntime(running=["mysql"]))
        BackupAgent().run(ctx)

        assert ctx.backup.path.name == "20240501_120000_1"
        assert (existing / "database_backup.sql").read_text() == "older dump"

    def test_stopped_database_is_a_warning(self, make_context, project):
        (project / "mysql_data").mkdir()
        ctx = make_context("production", "example.com", runtime=FakeRuntime())

        BackupAgent().run(ctx)

        assert ctx.backup.database_dump is None
        assert ctx.backup.storage_snapshot is not None
        assert any("not running" in w for w in ctx.stage_warnings)

    def test_dump_failure_is_non_fatal_by_default(self, make_context):
        runtime = FakeRuntime(running=["mysql"], dump_fails=True)
        ctx = make_context("production", "example.com", runtime=runtime)

        message = BackupAgent().run(ctx)

        assert message == "backup failed (non-fatal)"
        assert ctx.backup is None
        assert ctx.backup_failed
        assert any("partial backup left in" in w for w in ctx.stage_warnings)
        assert any("Database dump failed" in w for w in ctx.stage_warnings)

    def test_dump_failure_with_strict_backup(self, make_context):
        runtime = FakeRuntime(running=["mysql"], dump_fails=True)
        ctx = make_context("production", "example.com", runtime=runtime, strict_backup=True)

        with pytest.raises(BackupError, match="Database dump failed"):
            BackupAgent().run(ctx)


class TestEnvironmentMaterializer:
    """Tests for env file synthesis."""

    def test_development_files(self, make_context, project):
        ctx = make_context()
        EnvironmentMaterializer().run(ctx)

        assert (project / "backend" / ".env").read_text() == (
            project / "backend" / ".env.example"
        ).read_text()
        assert (project / "frontend" / ".env").read_text() == "VITE_API_URL=http://localhost/api\n"
        for directory in ("nginx/ssl", "mysql/init", "logs"):
            assert (project / directory).is_dir()
        assert not (project / ".env.prod").exists()
        assert len(ctx.stage_warnings) == 2

    def test_existing_files_are_kept(self, make_context, project):
        (project / "backend" / ".env").write_text("APP_KEY=base64:kept\n")
        (project / "frontend" / ".env").write_text("VITE_API_URL=http://custom\n")

        ctx = make_context()
        EnvironmentMaterializer().run(ctx)

        assert (project / "backend" / ".env").read_text() == "APP_KEY=base64:kept\n"
        assert (project / "frontend" / ".env").read_text() == "VITE_API_URL=http://custom\n"
        assert ctx.stage_warnings == []

    def test_missing_template(self, make_context, project):
        (project / "backend" / ".env.example").unlink()

        with pytest.raises(ConfigurationError, match=".env.example"):
            EnvironmentMaterializer().run(make_context())

    def test_production_credentials(self, make_context, project):
        ctx = make_context("production", "example.com")
        EnvironmentMaterializer().run(ctx)

        values = CredentialStore(project / ".env.prod").load()
        generated = [values["DB_ROOT_PASSWORD"], values["DB_PASSWORD"], values["REDIS_PASSWORD"]]
        assert len(set(generated)) == 3
        assert values["DB_USERNAME"] == "laravel_user"
        assert values["DOMAIN"] == "example.com"
        assert (project / "frontend" / ".env").read_text() == (
            "VITE_API_URL=https://example.com/api\n"
        )

    def test_production_credentials_are_reused(self, make_context, project):
        EnvironmentMaterializer().run(make_context("production", "example.com"))
        first = (project / ".env.prod").read_bytes()

        ctx = make_context("production", "other.example.com")
        EnvironmentMaterializer().run(ctx)

        assert (project / ".env.prod").read_bytes() == first
        assert ctx.stage_warnings == []

    def test_incomplete_credentials_warn(self, make_context, project):
        (project / ".env.prod").write_text("DB_ROOT_PASSWORD=abc\nDOMAIN=example.com\n")
        ctx = make_context("production", "example.com")

        EnvironmentMaterializer().run(ctx)

        assert any("DB_PASSWORD" in w and "REDIS_PASSWORD" in w for w in ctx.stage_warnings)
        assert (project / ".env.prod").read_text() == "DB_ROOT_PASSWORD=abc\nDOMAIN=example.com\n"


class TestTlsCertificateCheck:
    """Tests for the certificate check."""

    def test_only_for_public_production_domains(self, make_context):
        stage = TlsCertificateCheck()

        assert not stage.should_run(make_context())
        assert not stage.should_run(make_context("production", "localhost"))
        assert stage.should_run(make_context("production", "example.com"))

    def test_certificates_present(self, make_context, project):
        ssl = project / "nginx" / "ssl"
        ssl.mkdir(parents=True)
        (ssl / "fullchain.pem").write_text("cert")
        (ssl / "privkey.pem").write_text("key")

        assert TlsCertificateCheck().run(make_context("production", "example.com")) == (
            "certificates found"
        )

    def test_missing_certificates_declined(self, make_context):
        questions = []

        def decline(question):
            questions.append(question)
            return False

        ctx = make_context("production", "example.com", confirm=decline)

        with pytest.raises(ConfigurationError, match="SSL certificates not found"):
            TlsCertificateCheck().run(ctx)
        assert questions == ["Continue without SSL?"]

    def test_missing_certificates_accepted(self, make_context):
        ctx = make_context("production", "example.com", confirm=lambda question: True)

        TlsCertificateCheck().run(ctx)

        assert ctx.stage_warnings == ["Continuing without SSL certificates"]

    def test_assume_yes_skips_prompt(self, make_context):
        def fail(question):
            raise AssertionError("prompted")

        ctx = make_context("production", "example.com", confirm=fail, assume_yes=True)

        assert TlsCertificateCheck().run(ctx) == "continuing without certificates"
