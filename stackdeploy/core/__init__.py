"""
stackdeploy core: configuration, compose documents, locking and the
deployment pipeline driver.
"""

from .config_loader import ConfigLoader, DeploySettings, load_settings
from .compose_loader import ComposeLoader, parse_duration, resolve_compose_file
from .lock import DeploymentLock
from .pipeline import DeploymentContext, DeploymentPipeline, Stage

__all__ = [
    "DeploymentContext",
    "DeploymentPipeline",
    "Stage",
    "ConfigLoader",
    "DeploySettings",
    "load_settings",
    "ComposeLoader",
    "parse_duration",
    "resolve_compose_file",
    "DeploymentLock",
]
