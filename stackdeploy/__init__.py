"""stackdeploy - staged, health-gated deployments of a Compose application stack."""

__version__ = "1.0.0"
