"""
stackdeploy Domain Models

Clean dataclass-based models for type-safe data handling.
"""

from .deployment import (
    Environment,
    DeploymentRequest,
    BackupRecord,
)
from .results import (
    ResultStatus,
    ExecutionResult,
    StageResult,
    DeploymentOutcome,
)
from .services import (
    HealthcheckPolicy,
    ServiceDescriptor,
    ComposeProfile,
)

__all__ = [
    # Deployment
    "Environment",
    "DeploymentRequest",
    "BackupRecord",
    # Results
    "ResultStatus",
    "ExecutionResult",
    "StageResult",
    "DeploymentOutcome",
    # Services
    "HealthcheckPolicy",
    "ServiceDescriptor",
    "ComposeProfile",
]
