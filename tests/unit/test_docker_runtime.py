"""Unit tests for the docker-backed runtime (subprocess is stubbed)."""

import subprocess

import pytest

from stackdeploy.services.runtime import DockerComposeRuntime


class Completed:
    def __init__(self, returncode=0, stdout="", stderr=""):
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr


@pytest.fixture
def commands(monkeypatch):
    """Record subprocess.run argv; `docker-compose` is not installed."""
    recorded = []

    def fake_run(command, **kwargs):
        recorded.append(command)
        if command[-3:] == ["--services", "--filter", "status=running"]:
            return Completed(stdout="mysql\nlaravel\n\n")
        return Completed()

    monkeypatch.setattr(subprocess, "run", fake_run)
    monkeypatch.setattr(
        "stackdeploy.services.runtime.shutil.which",
        lambda name: "/usr/bin/docker" if name == "docker" else None,
    )
    return recorded


class TestDockerComposeRuntime:
    def test_falls_back_to_compose_plugin(self, tmp_path, commands):
        runtime = DockerComposeRuntime(tmp_path)

        assert runtime.docker_installed()
        assert runtime.compose_available()
        assert commands == [["docker", "compose", "version"]]

    def test_profile_selects_file_and_env(self, tmp_path, commands):
        runtime = DockerComposeRuntime(tmp_path)
        runtime.select_profile(tmp_path / "docker-compose.prod.yml", tmp_path / ".env.prod")

        runtime.down()
        runtime.up()
        runtime.exec("mysql", ["mysqladmin", "ping"])

        prefix = [
            "docker", "compose",
            "-f", str(tmp_path / "docker-compose.prod.yml"),
            "--env-file", str(tmp_path / ".env.prod"),
        ]
        assert commands[1:] == [
            prefix + ["down", "--remove-orphans"],
            prefix + ["up", "-d", "--build"],
            prefix + ["exec", "-T", "mysql", "mysqladmin", "ping"],
        ]

    def test_running_services(self, tmp_path, commands):
        runtime = DockerComposeRuntime(tmp_path)
        runtime.select_profile(tmp_path / "docker-compose.yml")

        assert runtime.running_services() == ["mysql", "laravel"]

    def test_missing_binary_maps_to_127(self, tmp_path, monkeypatch):
        def missing(command, **kwargs):
            raise FileNotFoundError(command[0])

        monkeypatch.setattr(subprocess, "run", missing)

        result = DockerComposeRuntime(tmp_path).exec("mysql", ["true"])
        assert result.returncode == 127

    def test_timeout_maps_to_124(self, tmp_path, monkeypatch):
        def slow(command, **kwargs):
            raise subprocess.TimeoutExpired(command, kwargs.get("timeout"))

        monkeypatch.setattr(subprocess, "run", slow)

        assert not DockerComposeRuntime(tmp_path).daemon_reachable()
        assert DockerComposeRuntime(tmp_path).exec("mysql", ["true"], timeout=5).returncode == 124
