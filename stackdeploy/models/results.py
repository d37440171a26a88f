"""
Result Models

Dataclass models for command executions, stage results and the final
deployment outcome.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, List, Dict, Any

from stackdeploy.models.deployment import BackupRecord


class ResultStatus(Enum):
    """Status of a pipeline stage."""

    SUCCESS = "success"
    FAILURE = "failure"
    WARNING = "warning"
    SKIPPED = "skipped"


@dataclass
class ExecutionResult:
    """Result of a command execution (subprocess, docker exec, etc.)."""

    returncode: int
    stdout: str = ""
    stderr: str = ""
    command: str = ""

    @property
    def is_success(self) -> bool:
        """Check if execution succeeded."""
        return self.returncode == 0

    @property
    def is_failure(self) -> bool:
        """Check if execution failed."""
        return self.returncode != 0

    @property
    def output(self) -> str:
        """Get combined output (stdout + stderr)."""
        return f"{self.stdout}\n{self.stderr}".strip()

    def __repr__(self) -> str:
        return f"ExecutionResult(returncode={self.returncode}, command='{self.command[:50]}...')"


@dataclass
class StageResult:
    """Result of a single pipeline stage."""

    stage: str
    status: ResultStatus
    duration_seconds: float = 0.0
    message: str = ""
    warnings: List[str] = field(default_factory=list)

    @property
    def is_success(self) -> bool:
        return self.status in (
            ResultStatus.SUCCESS,
            ResultStatus.WARNING,
            ResultStatus.SKIPPED,
        )

    def __repr__(self) -> str:
        return f"StageResult(stage={self.stage}, status={self.status.value}, duration={self.duration_seconds:.2f}s)"


@dataclass
class DeploymentOutcome:
    """Terminal value of one deployment run."""

    success: bool
    failed_stage: Optional[str] = None
    error: Optional[Exception] = None
    stages: List[StageResult] = field(default_factory=list)
    backup: Optional[BackupRecord] = None
    summary: str = ""

    @property
    def exit_code(self) -> int:
        return 0 if self.success else 1

    @property
    def warnings(self) -> List[str]:
        """All warnings raised by non-fatal steps, in stage order."""
        return [warning for stage in self.stages for warning in stage.warnings]

    def stage(self, name: str) -> Optional[StageResult]:
        """Get the result of a stage by name."""
        for result in self.stages:
            if result.stage == name:
                return result
        return None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "success": self.success,
            "failed_stage": self.failed_stage,
            "error": str(self.error) if self.error else None,
            "stages": [
                {
                    "stage": result.stage,
                    "status": result.status.value,
                    "duration_seconds": round(result.duration_seconds, 3),
                    "message": result.message,
                    "warnings": result.warnings,
                }
                for result in self.stages
            ],
            "backup": self.backup.to_dict() if self.backup else None,
        }

    def __repr__(self) -> str:
        return f"DeploymentOutcome(success={self.success}, failed_stage={self.failed_stage})"
