"""
Container Runtime

Narrow interface over the container runtime and compose tool, with one
implementation that shells out to docker. Pipeline stages only talk to
ContainerRuntime, so tests can swap in a fake.
"""

import shutil
import subprocess
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional, List

from stackdeploy.constants import PROBE_TIMEOUT
from stackdeploy.logger import DeployLogger, run_with_progress
from stackdeploy.models.results import ExecutionResult


class ContainerRuntime(ABC):
    """Operations the deployment pipeline needs from the container runtime."""

    @abstractmethod
    def docker_installed(self) -> bool:
        """Check if the runtime binary is on PATH."""

    @abstractmethod
    def daemon_reachable(self) -> bool:
        """Check if the runtime daemon answers."""

    @abstractmethod
    def compose_available(self) -> bool:
        """Check if a compose tool (binary or plugin) is usable."""

    @abstractmethod
    def select_profile(self, compose_file: Path, env_file: Optional[Path] = None) -> None:
        """Select the compose document (and env file) for later calls."""

    @abstractmethod
    def down(self) -> ExecutionResult:
        """Stop and remove the running service set."""

    @abstractmethod
    def up(self, build: bool = True) -> ExecutionResult:
        """Create and start the service set in the background."""

    @abstractmethod
    def exec(
        self,
        service: str,
        command: List[str],
        timeout: Optional[int] = PROBE_TIMEOUT,
    ) -> ExecutionResult:
        """Run a command inside a running service (no TTY)."""

    @abstractmethod
    def dump(
        self,
        service: str,
        command: List[str],
        destination: Path,
        timeout: Optional[int] = None,
    ) -> ExecutionResult:
        """Run a command inside a service, streaming its stdout to a file."""

    @abstractmethod
    def running_services(self) -> List[str]:
        """Names of services currently running."""

    @abstractmethod
    def ps(self) -> ExecutionResult:
        """Human-readable service table."""


class DockerComposeRuntime(ContainerRuntime):
    """ContainerRuntime backed by the docker CLI and docker compose."""

    def __init__(self, project_root: Path, logger: Optional[DeployLogger] = None):
        """
        Initialize runtime.

        Args:
            project_root: Directory holding the compose files
            logger: Optional DeployLogger for command and output logging
        """
        self.project_root = Path(project_root)
        self.logger = logger
        self.compose_file: Optional[Path] = None
        self.env_file: Optional[Path] = None
        self._compose_command: Optional[List[str]] = None

    # Prerequisites

    def docker_installed(self) -> bool:
        return shutil.which("docker") is not None

    def daemon_reachable(self) -> bool:
        return self._run(["docker", "info"]).is_success

    def compose_available(self) -> bool:
        return self._detect_compose() is not None

    def _detect_compose(self) -> Optional[List[str]]:
        """Prefer a standalone docker-compose binary, fall back to the plugin."""
        if self._compose_command is None:
            if shutil.which("docker-compose"):
                self._compose_command = ["docker-compose"]
            elif self._run(["docker", "compose", "version"]).is_success:
                self._compose_command = ["docker", "compose"]
        return self._compose_command

    # Service set

    def select_profile(self, compose_file: Path, env_file: Optional[Path] = None) -> None:
        self.compose_file = Path(compose_file)
        self.env_file = Path(env_file) if env_file else None

    def _compose(self, *args: str) -> List[str]:
        command = list(self._detect_compose() or ["docker", "compose"])
        if self.compose_file:
            command += ["-f", str(self.compose_file)]
        if self.env_file:
            command += ["--env-file", str(self.env_file)]
        return command + list(args)

    def down(self) -> ExecutionResult:
        return self._run_long(
            self._compose("down", "--remove-orphans"), "Stopping existing containers"
        )

    def up(self, build: bool = True) -> ExecutionResult:
        args = ["up", "-d"]
        if build:
            args.append("--build")
        return self._run_long(self._compose(*args), "Building and starting containers")

    def exec(
        self,
        service: str,
        command: List[str],
        timeout: Optional[int] = PROBE_TIMEOUT,
    ) -> ExecutionResult:
        return self._run(self._compose("exec", "-T", service, *command), timeout=timeout)

    def dump(
        self,
        service: str,
        command: List[str],
        destination: Path,
        timeout: Optional[int] = None,
    ) -> ExecutionResult:
        full_command = self._compose("exec", "-T", service, *command)
        self._log_command(full_command)

        with open(destination, "w") as out:
            result = subprocess.run(
                full_command,
                cwd=self.project_root,
                stdout=out,
                stderr=subprocess.PIPE,
                text=True,
                timeout=timeout,
            )

        if self.logger and result.stderr:
            self.logger.log_output(result.stderr, "stderr")
        return ExecutionResult(
            returncode=result.returncode,
            stderr=result.stderr or "",
            command=" ".join(full_command),
        )

    def running_services(self) -> List[str]:
        result = self._run(self._compose("ps", "--services", "--filter", "status=running"))
        if result.is_failure:
            return []
        return [line.strip() for line in result.stdout.splitlines() if line.strip()]

    def ps(self) -> ExecutionResult:
        return self._run(self._compose("ps"))

    # Subprocess plumbing

    def _log_command(self, command: List[str]) -> None:
        if self.logger:
            self.logger.log_command(" ".join(command))

    def _run(self, command: List[str], timeout: Optional[int] = PROBE_TIMEOUT) -> ExecutionResult:
        self._log_command(command)
        try:
            result = subprocess.run(
                command,
                cwd=self.project_root,
                capture_output=True,
                text=True,
                timeout=timeout,
            )
        except FileNotFoundError as e:
            return ExecutionResult(returncode=127, stderr=str(e), command=" ".join(command))
        except subprocess.TimeoutExpired:
            return ExecutionResult(
                returncode=124,
                stderr=f"Timed out after {timeout}s",
                command=" ".join(command),
            )

        if self.logger:
            self.logger.log_output(result.stdout, "stdout")
            self.logger.log_output(result.stderr, "stderr")

        return ExecutionResult(
            returncode=result.returncode,
            stdout=result.stdout,
            stderr=result.stderr,
            command=" ".join(command),
        )

    def _run_long(self, command: List[str], description: str) -> ExecutionResult:
        if self.logger is None:
            return self._run(command, timeout=None)

        try:
            returncode, stdout, stderr = run_with_progress(
                self.logger, command, description, cwd=self.project_root
            )
        except FileNotFoundError as e:
            return ExecutionResult(returncode=127, stderr=str(e), command=" ".join(command))
        return ExecutionResult(
            returncode=returncode,
            stdout=stdout,
            stderr=stderr,
            command=" ".join(command),
        )
