"""
Deployment stages, in execution order.
"""

from typing import List

from stackdeploy.core.pipeline import Stage

from .prerequisites import PrerequisiteChecker, PREREQUISITE_CHECKS
from .backup import BackupAgent, unique_backup_dir
from .environment import EnvironmentMaterializer
from .tls import TlsCertificateCheck
from .lifecycle import LifecycleController
from .readiness import ReadinessPoller, wait_until_ready
from .bootstrap import BootstrapRunner, has_app_key
from .health import HealthVerifier
from .summary import SummaryReporter, render_summary, print_outcome


def default_stages() -> List[Stage]:
    """The full deployment pipeline."""
    return [
        PrerequisiteChecker(),
        BackupAgent(),
        EnvironmentMaterializer(),
        TlsCertificateCheck(),
        LifecycleController(),
        ReadinessPoller(),
        BootstrapRunner(),
        HealthVerifier(),
        SummaryReporter(),
    ]


__all__ = [
    "default_stages",
    "PrerequisiteChecker",
    "PREREQUISITE_CHECKS",
    "BackupAgent",
    "unique_backup_dir",
    "EnvironmentMaterializer",
    "TlsCertificateCheck",
    "LifecycleController",
    "ReadinessPoller",
    "wait_until_ready",
    "BootstrapRunner",
    "has_app_key",
    "HealthVerifier",
    "SummaryReporter",
    "render_summary",
    "print_outcome",
]
