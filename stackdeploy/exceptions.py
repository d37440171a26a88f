"""
stackdeploy Exception Hierarchy

Clean exception hierarchy for consistent error handling across the pipeline.
Every fatal stage failure is one of these; the pipeline driver tags it with
the stage that raised it.
"""

from typing import Optional


class StackDeployError(Exception):
    """Base exception for all stackdeploy errors."""

    def __init__(self, message: str, context: Optional[str] = None):
        self.message = message
        self.context = context
        super().__init__(self.format_message())

    def format_message(self) -> str:
        """Format error message with optional context."""
        if self.context:
            return f"{self.message}\nContext: {self.context}"
        return self.message


class ConfigurationError(StackDeployError):
    """Raised when configuration is invalid, missing or cannot be synthesized."""

    pass


class PrerequisiteError(StackDeployError):
    """Raised when the container runtime or compose tool is unavailable."""

    pass


class BackupError(StackDeployError):
    """Raised when a backup fails and backups are configured as strict."""

    pass


class LifecycleError(StackDeployError):
    """Raised when stopping or starting the service set fails."""

    pass


class ReadinessTimeoutError(StackDeployError):
    """Raised when a dependency never became ready within its budget."""

    def __init__(self, service: str, attempts: int, interval: float):
        self.service = service
        self.attempts = attempts
        self.interval = interval
        message = f"Service '{service}' failed to become ready"
        context = f"Gave up after {attempts} attempts at {interval:g}s intervals"
        super().__init__(message, context)


class BootstrapError(StackDeployError):
    """Raised when a fatal application setup step fails."""

    def __init__(self, step: str, detail: Optional[str] = None):
        self.step = step
        super().__init__(f"Bootstrap step '{step}' failed", detail or None)


class HealthCheckError(StackDeployError):
    """Raised when post-deploy verification fails."""

    pass


class DeploymentLockError(StackDeployError):
    """Raised when another deployment already holds the project lock."""

    def __init__(self, lock_path: str, holder: Optional[str] = None):
        self.lock_path = lock_path
        self.holder = holder
        message = "Another deployment is already running"
        context = f"Lock file: {lock_path}"
        if holder:
            context += f" (held by {holder})"
        super().__init__(message, context)
