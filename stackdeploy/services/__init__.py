"""
stackdeploy Services Layer

Side-effecting collaborators injected into the deployment pipeline.
"""

from .credential_store import CredentialStore, generate_secret
from .runtime import ContainerRuntime, DockerComposeRuntime

__all__ = [
    "CredentialStore",
    "generate_secret",
    "ContainerRuntime",
    "DockerComposeRuntime",
]
