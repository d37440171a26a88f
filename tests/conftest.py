"""Pytest configuration and fixtures."""

from datetime import datetime
from pathlib import Path

import pytest

from stackdeploy.core.config_loader import ConfigLoader, DeploySettings
from stackdeploy.core.pipeline import DeploymentContext
from stackdeploy.logger import DeployLogger
from stackdeploy.models.deployment import DeploymentRequest, Environment
from stackdeploy.services.credential_store import CredentialStore
from tests.fakes import FakeHttp, FakeRuntime, SleepRecorder

DEV_COMPOSE = """\
version: '3.8'

services:
  mysql:
    image: mysql:8.0
    environment:
      MYSQL_DATABASE: laravel_db
      MYSQL_ROOT_PASSWORD: root_password
    networks:
      - app_network
    healthcheck:
      test: ["CMD", "mysqladmin", "ping", "-h", "localhost"]
      interval: 2s
      timeout: 20s
      retries: 10

  laravel:
    build:
      context: ./backend
      dockerfile: Dockerfile
    depends_on:
      mysql:
        condition: service_healthy
      redis:
        condition: service_started
    networks:
      - app_network

  react:
    build: ./frontend
    networks:
      - app_network

  nginx:
    image: nginx:alpine
    depends_on:
      - laravel
      - react
    networks:
      - app_network

  redis:
    image: redis:alpine
    networks:
      - app_network

networks:
  app_network:
    driver: bridge
"""

PROD_COMPOSE = """\
version: '3.8'

services:
  mysql:
    image: mysql:8.0
    environment:
      MYSQL_ROOT_PASSWORD: ${DB_ROOT_PASSWORD}
    healthcheck:
      test: ["CMD", "mysqladmin", "ping", "-h", "localhost"]
      timeout: 20s
      retries: 10

  laravel:
    build:
      context: ./backend
      dockerfile: Dockerfile.prod
    depends_on:
      mysql:
        condition: service_healthy
      redis:
        condition: service_started
    healthcheck:
      test: ["CMD", "curl", "-f", "http://localhost/api/health"]
      interval: 30s
      timeout: 10s
      retries: 3

  react:
    build:
      context: ./frontend
      dockerfile: Dockerfile.prod

  nginx:
    image: nginx:alpine
    depends_on:
      laravel:
        condition: service_healthy
      react:
        condition: service_started

  redis:
    image: redis:alpine
    command: redis-server --requirepass ${REDIS_PASSWORD} --appendonly yes

  queue:
    build:
      context: ./backend
      dockerfile: Dockerfile.prod
    depends_on:
      - mysql
      - redis
"""

BACKEND_ENV_EXAMPLE = """\
APP_NAME=Laravel
APP_ENV=local
APP_KEY=
DB_CONNECTION=mysql
DB_HOST=mysql
"""


@pytest.fixture
def project(tmp_path: Path) -> Path:
    """A project root with both compose profiles and a backend env template."""
    (tmp_path / "docker-compose.yml").write_text(DEV_COMPOSE)
    (tmp_path / "docker-compose.prod.yml").write_text(PROD_COMPOSE)

    backend = tmp_path / "backend"
    (backend / "storage" / "app").mkdir(parents=True)
    (backend / "storage" / "app" / "upload.txt").write_text("user upload\n")
    (backend / ".env.example").write_text(BACKEND_ENV_EXAMPLE)
    (tmp_path / "frontend").mkdir()
    return tmp_path


@pytest.fixture
def settings(project: Path) -> DeploySettings:
    return ConfigLoader(project).load()


@pytest.fixture
def logger(settings: DeploySettings):
    """A file logger writing under the project's state directory."""
    deploy_logger = DeployLogger(settings.log_root, "test", "deploy")
    yield deploy_logger
    deploy_logger.close()


@pytest.fixture
def sleep() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def http() -> FakeHttp:
    return FakeHttp()


@pytest.fixture
def make_context(settings, logger, sleep, http):
    """Factory for a DeploymentContext wired to fakes."""

    def _make(
        environment: str = "development",
        domain: str = "localhost",
        runtime: FakeRuntime = None,
        timestamp: datetime = None,
        **overrides,
    ) -> DeploymentContext:
        request = DeploymentRequest(
            environment=Environment.parse(environment),
            domain=domain,
            timestamp=timestamp or datetime(2024, 5, 1, 12, 0, 0),
        )
        options = {"sleep": sleep, "http_get": http}
        options.update(overrides)
        return DeploymentContext(
            request=request,
            settings=settings,
            runtime=runtime or FakeRuntime(),
            logger=logger,
            credentials=CredentialStore(settings.path(settings.env_files.production)),
            **options,
        )

    return _make
